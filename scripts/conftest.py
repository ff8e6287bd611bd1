"""Shared fixtures: in-memory SQLite, a recording object store and API helpers.

Every test gets a fresh database; the rate limiter is switched off.
"""

import uuid
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from b2b_backend.api.app import app
from b2b_backend.api.limiter import limiter
from b2b_backend.db import Base, get_db
from b2b_backend.errors import StorageError
from b2b_backend.services.storage import ObjectStorage, get_storage

PASSWORD = "Passw0rd123"


class FakeStorage(ObjectStorage):
    """Object store that keeps uploads in memory and records deletions."""

    def __init__(self):
        super().__init__(bucket="test-bucket", public_base_url="https://files.test")
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_uploads = False

    def upload(self, folder: str, filename: str, content: bytes, content_type: str) -> dict:
        if self.fail_uploads:
            raise StorageError()
        key = f"{folder}/{filename}"
        self.objects[key] = content
        return {
            "fileId": str(uuid.uuid4()),
            "fileName": filename,
            "fileUrl": self.url_for(key),
            "uploadedAt": datetime.now(UTC).isoformat(),
        }

    def delete(self, folder: str, filename: str):
        key = f"{folder}/{filename}"
        self.objects.pop(key, None)
        self.deleted.append(key)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(session_factory, storage):
    """API client with DB and storage dependencies overridden."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    limiter.enabled = False
    yield TestClient(app)
    limiter.enabled = True
    app.dependency_overrides.clear()


# Helpers


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def error_of(response) -> dict:
    return response.json()["error"]


def register(client, email: str, role: str | None = None) -> dict:
    """Register an account (optionally with a role). Returns ``{id, email, headers}``."""
    response = client.post("/auth/register", json={"email": email, "password": PASSWORD})
    assert response.status_code == 201, response.text
    body = response.json()
    headers = auth(body["tokens"]["access_token"])
    if role:
        assigned = client.post("/roles", json={"role": role}, headers=headers)
        assert assigned.status_code == 200, assigned.text
    return {"id": body["user"]["id"], "email": email, "headers": headers}


def student_profile(first_name: str = "Alice", last_name: str = "Walker", email: str = "alice@example.com") -> dict:
    return {
        "personal_information": {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "date_of_birth": "2001-04-12",
            "country": "US",
            "state_province": "California",
            "city": "Berkeley",
        },
        "about": {"industry": "Technology", "current_status": "Studying"},
        "skills": [],
    }


def company_payload(name: str = "Acme Widgets", **overrides) -> dict:
    payload = {
        "companyName": name,
        "company_type": "Private",
        "industry": "Manufacturing",
        "tagline": "Widgets for everyone",
        "company_size": 50,
        "headquater_location": "San Francisco, CA",
        "primary_email": "hello@acme.test",
        "phone_number": "+14155550100",
    }
    payload.update(overrides)
    return payload


def create_company(client, owner: dict, name: str = "Acme Widgets") -> str:
    response = client.post(
        "/business-profile/create-business-profile", json=company_payload(name), headers=owner["headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()["profile_id"]


def job_payload(title: str = "Backend Engineer", **overrides) -> dict:
    payload = {
        "title": title,
        "job_description": "Build and run our public APIs.",
        "employment_type": "full_time",
        "job_mode": "remote",
        "location": {"city": "Austin", "state": "TX", "country": "US"},
        "experience_level": {"min": 2, "max": 5},
        "skills": ["Python", "SQL"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def owner(client):
    return register(client, "owner@acme.test", "business")


@pytest.fixture
def company(client, owner):
    return create_company(client, owner)
