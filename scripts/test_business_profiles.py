"""Business profile, its sections and privacy settings."""

import json
from datetime import date, timedelta

from conftest import company_payload, create_company, error_of, register

from b2b_backend.services.business_profiles import validate_company_data


def test_validate_company_data_normalises_values():
    data, privacy, errors = validate_company_data(
        company_payload(primary_email="Hello@Acme.TEST", phone_number="+1 415 555 0100", company_size="20")
    )

    assert errors == []
    assert data["primary_email"] == "hello@acme.test"
    assert data["phone_number"] == "+14155550100"
    assert data["company_size"] == 20
    assert privacy == {"profile_visibility": "public", "contact_visibility": "public"}


def test_validate_company_data_collects_errors():
    _, _, errors = validate_company_data(
        company_payload(companyName="A$", company_type="Cooperative", company_size=500, additional_email=["x"])
    )

    assert {e["field"] for e in errors} == {"companyName", "company_type", "company_size", "additional_email"}


def test_create_and_get(client, owner):
    response = client.post(
        "/business-profile/create-business-profile", json=company_payload(), headers=owner["headers"]
    )
    profile_id = response.json()["profile_id"]
    outsider = register(client, "visitor@example.com")

    as_owner = client.get(f"/business-profile/{profile_id}", headers=owner["headers"]).json()
    as_visitor = client.get(f"/business-profile/{profile_id}", headers=outsider["headers"]).json()

    assert response.status_code == 201
    assert response.json()["role"] == "owner"
    assert as_owner["profile_data"]["companyName"] == "Acme Widgets"
    assert as_visitor["role"] is None


def test_company_name_is_unique_ignoring_case(client, owner, company):
    response = client.post(
        "/business-profile/create-business-profile", json=company_payload("ACME widgets"), headers=owner["headers"]
    )

    assert response.status_code == 409


def test_unknown_profile(client):
    response = client.get("/business-profile/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert error_of(response)["code"] == "BUSINESS_PROFILE_NOT_FOUND"


# About


def test_about_lifecycle(client, owner, company):
    url = f"/business-profile/{company}/about"
    about = {"description": "We build widgets.", "mission": "Widgets for all", "founded": "1999"}

    created = client.post(url, json=about, headers=owner["headers"])
    duplicate = client.post(url, json=about, headers=owner["headers"])
    updated = client.put(url, json={"vision": "A widget in every home"}, headers=owner["headers"])
    empty_update = client.put(url, json={}, headers=owner["headers"])
    fetched = client.get(url)
    deleted = client.delete(url, headers=owner["headers"])

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert updated.json()["about"]["vision"] == "A widget in every home"
    assert updated.json()["about"]["mission"] == "Widgets for all"
    assert empty_update.status_code == 400
    assert fetched.json()["visibility"] == "public"
    assert deleted.json()["deleted"] is True
    assert client.get(url).status_code == 404


def test_about_founded_year_range(client, owner, company):
    future = str(date.today().year + 1)
    response = client.post(
        f"/business-profile/{company}/about",
        json={"description": "Widgets", "founded": future},
        headers=owner["headers"],
    )

    assert response.status_code == 400
    assert error_of(response)["details"][0]["field"] == "founded"


def test_about_visibility(client, owner, company):
    url = f"/business-profile/{company}/about"
    client.post(url, json={"description": "We build widgets."}, headers=owner["headers"])
    stranger = register(client, "stranger@example.com")
    friend = register(client, "friend@example.com")
    client.post("/connection/request", json={"recipient_id": owner["id"]}, headers=friend["headers"])
    client.post("/connection/accept", json={"sender_id": friend["id"]}, headers=owner["headers"])

    client.put(
        f"/business-profile/{company}/privacy-settings",
        json={"about_visibility": "connections-only"},
        headers=owner["headers"],
    )
    limited = client.get(url, headers=stranger["headers"])
    allowed = client.get(url, headers=friend["headers"])

    client.put(
        f"/business-profile/{company}/privacy-settings", json={"about_visibility": "private"}, headers=owner["headers"]
    )
    private = client.get(url, headers=friend["headers"])
    own = client.get(url, headers=owner["headers"])

    assert limited.status_code == 403
    assert error_of(limited)["message"] == "About section is limited to connections"
    assert allowed.status_code == 200
    assert private.status_code == 403
    assert own.status_code == 200


def test_writes_need_owner_or_admin(client, company):
    stranger = register(client, "stranger@example.com")

    response = client.post(
        f"/business-profile/{company}/about", json={"description": "Hijacked"}, headers=stranger["headers"]
    )

    assert response.status_code == 403
    assert error_of(response)["code"] == "BUSINESS_PROFILE_FORBIDDEN"


# Projects


def _project(title, start, **extra):
    return {"title": title, "description": "A long enough description", "startDate": start, **extra}


def test_projects(client, owner, company):
    url = f"/business-profile/{company}/projects"
    older = client.post(url, json=_project("Old Widget", "2019-03-01"), headers=owner["headers"]).json()
    client.post(url, json=_project("New Widget", "2023-06-01"), headers=owner["headers"])

    listing = client.get(url, params={"limit": 1}).json()
    project_id = older["project"]["projectId"]
    updated = client.put(f"{url}/{project_id}", json={"client": "Globex"}, headers=owner["headers"])
    deleted = client.delete(f"{url}/{project_id}", headers=owner["headers"])

    assert [p["title"] for p in listing["projects"]] == ["New Widget"]
    assert listing["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}
    assert updated.json()["project"]["client"] == "Globex"
    assert updated.json()["project"]["title"] == "Old Widget"
    assert deleted.json()["deleted"] is True
    assert client.delete(f"{url}/{project_id}", headers=owner["headers"]).status_code == 404


def test_project_validation(client, owner, company):
    response = client.post(
        f"/business-profile/{company}/projects",
        json=_project("Tiny", "2023-13-01", endDate="2020-01-01", project_url="ftp://x"),
        headers=owner["headers"],
    )

    fields = {d["field"] for d in error_of(response)["details"]}
    assert response.status_code == 400
    assert fields == {"title", "startDate", "project_url"}


# Private info


def test_private_info(client, owner, company):
    url = f"/business-profile/{company}/private-info"
    info = {"taxId": "123-45-6789", "ein": "12-3456789", "legalName": "Acme Widgets LLC"}
    stranger = register(client, "snoop@example.com")

    created = client.post(url, json=info, headers=owner["headers"])
    hidden = client.get(url, headers=stranger["headers"])
    bad_update = client.put(url, json={"ein": "123"}, headers=owner["headers"])
    updated = client.put(url, json={"bankDetails": {"bankName": "First Bank"}}, headers=owner["headers"])

    assert created.status_code == 201
    assert hidden.status_code == 403
    assert bad_update.status_code == 400
    assert error_of(bad_update)["details"][0]["message"] == "EIN must be in format XX-XXXXXXX"
    assert updated.json()["private_info"]["bankDetails"] == {"bankName": "First Bank"}
    assert client.get(url, headers=owner["headers"]).json()["private_info"]["legalName"] == "Acme Widgets LLC"


# Banner and avatar


def test_banner_upload_replace_and_delete(client, storage, owner, company):
    url = f"/business-profile/{company}/banner"

    first = client.post(url, files={"banner": ("one.jpg", b"jpg-1", "image/jpeg")}, headers=owner["headers"])
    second = client.put(url, files={"banner": ("two.png", b"png-2", "image/png")}, headers=owner["headers"])
    fetched = client.get(url).json()
    deleted = client.delete(url, headers=owner["headers"])

    assert first.status_code == 201
    assert second.status_code == 200
    assert fetched["banner"]["filename"].endswith("two.png")
    assert storage.deleted[0] == first.json()["banner"]["fileUrl"].removeprefix("https://files.test/")
    assert storage.deleted[1].startswith("businessBanners/")
    assert deleted.json()["deleted"] is True


def test_missing_avatar(client, company):
    response = client.get(f"/business-profile/{company}/avatar")

    assert response.status_code == 404
    assert error_of(response)["message"] == "Avatar not found"


# Achievements


def test_achievement_with_certificates(client, storage, owner, company):
    url = f"/business-profile/{company}/achievements"
    data = {"award_name": "Best Widget", "date_received": "2023-05-01", "issuer": "Widget Guild"}

    created = client.post(
        url,
        data={"data": json.dumps(data)},
        files=[("certificates", ("award.pdf", b"%PDF", "application/pdf"))],
        headers=owner["headers"],
    )
    achievement = created.json()["achievement"]
    updated = client.put(
        f"{url}/{achievement['achievementId']}", json={"category": "Design"}, headers=owner["headers"]
    )
    deleted = client.delete(f"{url}/{achievement['achievementId']}", headers=owner["headers"])

    assert created.status_code == 201, created.text
    assert achievement["certificateUrl"][0]["file_url"].startswith("https://files.test/achievementCertificates/")
    assert updated.json()["achievement"]["category"] == "Design"
    assert updated.json()["achievement"]["certificateUrl"] == achievement["certificateUrl"]
    assert deleted.json()["deleted"] is True
    assert storage.deleted == [achievement["certificateUrl"][0]["file_url"].removeprefix("https://files.test/")]


def test_failed_certificate_batch_leaves_no_objects(client, storage, owner, company, monkeypatch):
    original_upload = storage.upload
    calls = []

    def upload_once(folder, filename, content, content_type):
        calls.append(filename)
        if len(calls) > 1:
            storage.fail_uploads = True
        return original_upload(folder, filename, content, content_type)

    monkeypatch.setattr(storage, "upload", upload_once)
    data = {"award_name": "Best Widget", "date_received": "2023-05-01"}

    response = client.post(
        f"/business-profile/{company}/achievements",
        data={"data": json.dumps(data)},
        files=[
            ("certificates", ("first.pdf", b"%PDF", "application/pdf")),
            ("certificates", ("second.pdf", b"%PDF", "application/pdf")),
        ],
        headers=owner["headers"],
    )
    listed = client.get(f"/business-profile/{company}/achievements").json()

    assert response.status_code == 500
    assert error_of(response)["code"] == "STORAGE_ERROR"
    assert storage.objects == {}
    assert storage.deleted == [f"achievementCertificates/{calls[0]}"]
    assert listed["achievements"] == []


def test_update_achievement_discards_dropped_certificates(client, storage, owner, company):
    url = f"/business-profile/{company}/achievements"
    created = client.post(
        url,
        data={"data": json.dumps({"award_name": "Best Widget", "date_received": "2023-05-01"})},
        files=[("certificates", ("award.pdf", b"%PDF", "application/pdf"))],
        headers=owner["headers"],
    ).json()["achievement"]
    key = created["certificateUrl"][0]["file_url"].removeprefix("https://files.test/")

    updated = client.put(f"{url}/{created['achievementId']}", json={"certificateUrl": []}, headers=owner["headers"])

    assert updated.status_code == 200, updated.text
    assert updated.json()["achievement"]["certificateUrl"] == []
    assert storage.deleted == [key]
    assert key not in storage.objects


def test_update_achievement_requires_date_when_sent(client, owner, company):
    url = f"/business-profile/{company}/achievements"
    created = client.post(
        url, json={"award_name": "Best Widget", "date_received": "2023-05-01"}, headers=owner["headers"]
    ).json()["achievement"]

    blank = client.put(f"{url}/{created['achievementId']}", json={"date_received": ""}, headers=owner["headers"])
    current = client.get(f"{url}/{created['achievementId']}").json()["achievement"]

    assert blank.status_code == 400
    assert error_of(blank)["details"] == [{"field": "date_received", "message": "Date received is required"}]
    assert current["date_received"] == "2023-05-01"


def test_achievement_validation(client, owner, company):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    url = f"/business-profile/{company}/achievements"

    missing = client.post(url, json={}, headers=owner["headers"])
    future = client.post(url, json={"award_name": "X", "date_received": tomorrow}, headers=owner["headers"])

    assert {d["field"] for d in error_of(missing)["details"]} == {"award_name", "date_received"}
    assert error_of(future)["details"][0]["message"] == "Date received cannot be in the future"


def test_achievements_paginated(client, owner, company):
    url = f"/business-profile/{company}/achievements"
    for i in range(3):
        client.post(url, json={"award_name": f"Award {i}", "date_received": "2022-01-01"}, headers=owner["headers"])

    body = client.get(url, params={"page": 2, "limit": 2}).json()

    assert [a["award_name"] for a in body["achievements"]] == ["Award 2"]
    assert body["pagination"]["totalPages"] == 2


# Privacy settings


def test_privacy_settings(client, owner, company):
    url = f"/business-profile/{company}/privacy-settings"

    defaults = client.get(url).json()["privacy_settings"]
    updated = client.put(url, json={"projects_visibility": "private", "show_email": True}, headers=owner["headers"])
    invalid = client.put(url, json={"posts_visibility": "friends", "allow_messages": "yes"}, headers=owner["headers"])
    empty = client.put(url, json={}, headers=owner["headers"])
    reset = client.delete(url, headers=owner["headers"])

    assert defaults["projects_visibility"] == "public"
    assert defaults["show_email"] is False
    assert updated.json()["privacy_settings"]["projects_visibility"] == "private"
    assert updated.json()["privacy_settings"]["show_email"] is True
    assert [d["message"] for d in error_of(invalid)["details"]] == [
        "Must be one of: public, private, connections",
        "Must be a boolean (true or false)",
    ]
    assert empty.status_code == 400
    assert reset.json()["privacy_settings"]["projects_visibility"] == "public"
