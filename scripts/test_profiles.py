"""Personal profile endpoints."""

import io
import json

from conftest import error_of, register, student_profile

from b2b_backend.db import UserProfile


def _create(client, user, **names):
    response = client.post(
        "/profile/create", json={"profile_data": student_profile(**names)}, headers=user["headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_create_requires_role(client):
    user = register(client, "norole@example.com")

    response = client.post("/profile/create", json={"profile_data": student_profile()}, headers=user["headers"])

    assert response.status_code == 400
    assert error_of(response)["details"][0]["message"] == "User role required"


def test_business_role_cannot_create_personal_profile(client):
    user = register(client, "biz@example.com", "business")

    response = client.post("/profile/create", json={"profile_data": student_profile()}, headers=user["headers"])

    assert response.status_code == 400
    assert error_of(response)["details"][0]["message"] == "Invalid user role"


def test_create_and_duplicate(client):
    user = register(client, "alice@example.com", "student")

    created = _create(client, user)
    again = client.post("/profile/create", json={"profile_data": student_profile()}, headers=user["headers"])

    assert created["user_id"] == user["id"]
    assert created["profile_data"]["personal_information"]["city"] == "Berkeley"
    assert again.status_code == 409
    assert error_of(again)["code"] == "PROFILE_EXISTS"


def test_create_reports_field_errors(client):
    user = register(client, "bad@example.com", "student")
    data = student_profile()
    data["personal_information"]["email"] = "nope"

    response = client.post("/profile/create", json={"profile_data": data}, headers=user["headers"])

    assert response.status_code == 400
    assert error_of(response)["details"][0]["field"] == "personal_information.email"


def test_edit_section_with_json(client):
    user = register(client, "edit@example.com", "student")
    _create(client, user)

    skills = [{"skill_name": "Python", "proficiency_level": "Advanced"}]
    response = client.put("/profile/edit", json={"field": "skills", "data": skills}, headers=user["headers"])

    assert response.status_code == 200
    assert response.json()["profile_data"]["skills"] == skills


def test_edit_unwraps_double_nesting(client):
    user = register(client, "nest@example.com", "student")
    _create(client, user)

    about = {"about": {"industry": "Finance"}}
    response = client.put("/profile/edit", json={"field": "about", "data": about}, headers=user["headers"])

    assert response.json()["profile_data"]["about"] == {"industry": "Finance"}


def test_edit_rejects_invalid_section(client):
    user = register(client, "edit2@example.com", "student")
    _create(client, user)

    response = client.put(
        "/profile/edit", json={"field": "about", "data": {"industry": "Mining"}}, headers=user["headers"]
    )

    assert response.status_code == 400
    assert error_of(response)["details"][0]["field"] == "about.industry"


def test_edit_requires_field(client):
    user = register(client, "edit3@example.com", "student")
    _create(client, user)

    response = client.put("/profile/edit", json={"data": {}}, headers=user["headers"])

    assert response.status_code == 400
    assert error_of(response)["message"] == "Missing required fields"


def test_edit_certifications_with_certificate_file(client, storage):
    user = register(client, "pro@example.com", "professional")
    data = student_profile()
    data["personal_information"]["phone_number"] = "+14155550123"
    data["about"] = {"current_status": "Employed"}
    assert client.post("/profile/create", json={"profile_data": data}, headers=user["headers"]).status_code == 201

    certifications = '[{"id": "c1", "certification_name": "Cloud Architect"}]'
    response = client.put(
        "/profile/edit",
        data={"field": "certifications", "data": certifications},
        files={"certificate": ("cert.pdf", io.BytesIO(b"%PDF-1.4"), "application/pdf")},
        headers=user["headers"],
    )

    assert response.status_code == 200, response.text
    stored = response.json()["profile_data"]["certifications"][0]
    assert stored["certificateUrl"].startswith("https://files.test/certificates/")
    assert stored["fileSize"] == len(b"%PDF-1.4")
    assert len(storage.objects) == 1


def test_certificate_upload_failure_still_saves(client, storage):
    user = register(client, "pro2@example.com", "professional")
    data = student_profile()
    data["personal_information"]["phone_number"] = "+14155550123"
    del data["about"]
    client.post("/profile/create", json={"profile_data": data}, headers=user["headers"])
    storage.fail_uploads = True

    response = client.put(
        "/profile/edit",
        data={"field": "certifications", "data": '[{"certification_name": "Cloud Architect"}]'},
        files={"certificate": ("cert.pdf", io.BytesIO(b"%PDF-1.4"), "application/pdf")},
        headers=user["headers"],
    )

    assert response.status_code == 200
    assert response.json()["warning"].startswith("Certificate upload failed")
    assert "certificateUrl" not in response.json()["profile_data"]["certifications"][0]


def test_avatar_upload_replaces_previous(client, storage):
    user = register(client, "pic@example.com", "student")
    _create(client, user)

    first = client.post(
        "/profile/upload-avatar", files={"avatar": ("a.png", b"png-1", "image/png")}, headers=user["headers"]
    )
    second = client.post(
        "/profile/upload-avatar", files={"avatar": ("b.png", b"png-2", "image/png")}, headers=user["headers"]
    )

    assert first.status_code == 200
    old_key = first.json()["avatar"]["fileUrl"].removeprefix("https://files.test/")
    assert storage.deleted == [old_key]
    assert second.json()["avatar"]["fileName"].endswith("b.png")


def test_upload_rejects_wrong_type(client):
    user = register(client, "pic2@example.com", "student")
    _create(client, user)

    response = client.post(
        "/profile/upload-resume", files={"resume": ("cv.txt", b"text", "text/plain")}, headers=user["headers"]
    )

    assert response.status_code == 400
    assert "Invalid file format" in error_of(response)["message"]


def test_delete_banner(client, storage):
    user = register(client, "ban@example.com", "student")
    _create(client, user)
    client.post("/profile/upload-banner", files={"banner": ("b.jpg", b"jpg", "image/jpeg")}, headers=user["headers"])

    response = client.delete("/profile/banner", headers=user["headers"])

    assert response.json() == {"user_id": user["id"], "banner": None}
    assert storage.deleted and storage.deleted[0].startswith("userBanners/")


def test_search_by_name(client):
    alice = register(client, "alice@example.com", "student")
    alina = register(client, "alina@example.com", "student")
    bob = register(client, "bob@example.com", "student")
    _create(client, alice, first_name="Alice", last_name="Walker")
    _create(client, alina, first_name="Alina", last_name="Stone")
    _create(client, bob, first_name="Bobby", last_name="Tables")

    response = client.get("/profile/search", params={"q": "ali"})

    body = response.json()
    assert response.status_code == 200
    assert body["total_candidates"] == 2
    assert {r["first_name"] for r in body["results"]} == {"Alice", "Alina"}
    assert body["has_more"] is False


def test_search_needs_query_unless_recent(client):
    assert client.get("/profile/search").status_code == 400
    recent = client.get("/profile/search", params={"sort": "recent"})
    assert recent.status_code == 200
    assert recent.json()["results"] == []


def test_profile_views(client):
    owner = register(client, "alice@example.com", "student")
    friend = register(client, "friend@example.com", "student")
    _create(client, owner)

    own = client.get(f"/profile/{owner['id']}", headers=owner["headers"]).json()
    public = client.get(f"/profile/{owner['id']}").json()

    client.post("/connection/request", json={"recipient_id": owner["id"]}, headers=friend["headers"])
    client.post("/connection/accept", json={"sender_id": friend["id"]}, headers=owner["headers"])
    connected = client.get(f"/profile/{owner['id']}", headers=friend["headers"]).json()

    assert own["view"] == "owner"
    assert public["view"] == "public"
    assert "email" not in public["profile_data"]["visibility_allowed_fields"]["personal_information"]
    assert connected["view"] == "connection"
    assert connected["profile_data"]["personal_information"]["email"] == "alice@example.com"


def test_profile_view_bad_id(client):
    assert client.get("/profile/not-a-uuid").status_code == 400
    missing = client.get("/profile/00000000-0000-0000-0000-000000000000")
    assert missing.status_code == 404
    assert error_of(missing)["message"] == "User not found"


# Certificate and resume objects


def _professional(client, email="pro@example.com", **sections):
    user = register(client, email, "professional")
    data = student_profile(email=email)
    data["personal_information"]["phone_number"] = "+14155550123"
    data["about"] = {"current_status": "Employed"}
    data.update(sections)
    response = client.post("/profile/create", json={"profile_data": data}, headers=user["headers"])
    assert response.status_code == 201, response.text
    return user


def _edit_certifications(client, user, certifications, filename="cert.pdf"):
    return client.put(
        "/profile/edit",
        data={"field": "certifications", "data": json.dumps(certifications)},
        files={"certificate": (filename, io.BytesIO(b"%PDF-1.4"), "application/pdf")},
        headers=user["headers"],
    )


def _key(url: str) -> str:
    return url.removeprefix("https://files.test/")


def test_new_certificate_file_replaces_old_object(client, storage):
    user = _professional(client)
    first = _edit_certifications(client, user, [{"id": "c1", "certification_name": "Cloud Architect"}], "one.pdf")
    entry = first.json()["profile_data"]["certifications"][0]

    second = _edit_certifications(client, user, [entry], "two.pdf")

    saved = second.json()["profile_data"]["certifications"][0]
    assert second.status_code == 200, second.text
    assert saved["certificateUrl"] != entry["certificateUrl"]
    assert saved["fileName"].endswith("two.pdf")
    assert storage.deleted == [_key(entry["certificateUrl"])]
    assert list(storage.objects) == [_key(saved["certificateUrl"])]


def test_failed_replacement_keeps_previous_certificate(client, storage):
    user = _professional(client)
    first = _edit_certifications(client, user, [{"id": "c1", "certification_name": "Cloud Architect"}])
    entry = first.json()["profile_data"]["certifications"][0]
    storage.fail_uploads = True

    response = _edit_certifications(client, user, [entry])

    assert response.json()["warning"].startswith("Certificate upload failed")
    assert response.json()["profile_data"]["certifications"][0]["certificateUrl"] == entry["certificateUrl"]
    assert storage.deleted == []
    assert _key(entry["certificateUrl"]) in storage.objects


def test_json_edit_discards_removed_certificates(client, storage):
    user = _professional(client)
    first = _edit_certifications(client, user, [{"id": "c1", "certification_name": "Cloud Architect"}])
    old_url = first.json()["profile_data"]["certifications"][0]["certificateUrl"]

    response = client.put(
        "/profile/edit",
        json={"field": "certifications", "data": [{"id": "c2", "certification_name": "Data Engineer"}]},
        headers=user["headers"],
    )

    assert response.status_code == 200, response.text
    assert storage.deleted == [_key(old_url)]


def test_resume_upload_replaces_previous(client, storage):
    user = register(client, "cv@example.com", "student")
    _create(client, user)

    first = client.post(
        "/profile/upload-resume", files={"resume": ("cv1.pdf", b"%PDF-1", "application/pdf")}, headers=user["headers"]
    )
    second = client.post(
        "/profile/upload-resume", files={"resume": ("cv2.pdf", b"%PDF-2", "application/pdf")}, headers=user["headers"]
    )
    own = client.get(f"/profile/{user['id']}", headers=user["headers"]).json()

    assert first.status_code == 200
    assert own["profile_data"]["resume"]["fileUrl"] == second.json()["resume"]["fileUrl"]
    assert storage.deleted == [_key(first.json()["resume"]["fileUrl"])]


def test_connection_view_respects_privacy_settings(client, db):
    experience = [{"company_name": "Acme", "job_title": "Engineer", "start_date": "2019-01", "end_date": "2021-06"}]
    owner = _professional(client, "owner@example.com", experience=experience, skills=[{"skill_name": "Python"}])
    friend = register(client, "friend@example.com", "student")
    client.post("/connection/request", json={"recipient_id": owner["id"]}, headers=friend["headers"])
    client.post("/connection/accept", json={"sender_id": friend["id"]}, headers=owner["headers"])

    visible = client.get(f"/profile/{owner['id']}", headers=friend["headers"]).json()["profile_data"]
    profile = db.query(UserProfile).filter(UserProfile.user_id == owner["id"]).first()
    profile.privacy_settings = {
        "skills_visibility": False,
        "experience_visibility": "Hidden",
        "contact_visibility": "Hidden",
    }
    db.commit()
    hidden = client.get(f"/profile/{owner['id']}", headers=friend["headers"]).json()["profile_data"]

    assert visible["skills"] == [{"skill_name": "Python"}]
    assert visible["experience"] == experience
    assert visible["personal_information"]["phone_number"] == "+14155550123"
    assert "skills" not in hidden
    assert "experience" not in hidden
    assert "email" not in hidden["personal_information"]
    assert "phone_number" not in hidden["personal_information"]
    assert hidden["personal_information"]["first_name"] == "Alice"
