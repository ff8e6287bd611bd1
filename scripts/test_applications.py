"""Applicant side: applying for jobs and managing own applications."""

from conftest import error_of, job_payload, register

RESUME_URL = "https://files.test/resumes/bob-cv.pdf"


def _post_job(client, company, owner, **overrides) -> str:
    response = client.post(f"/business-profile/{company}/job", json=job_payload(**overrides), headers=owner["headers"])
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _apply(client, job_id, applicant, **fields):
    body = {"full_name": "Bob Builder", "phone": "+15125550100", "resume": {"file_url": RESUME_URL}}
    body.update(fields)
    return client.post(f"/jobs/{job_id}/apply", json=body, headers=applicant["headers"])


def _review(client, company, owner, job_id, application_id, status):
    response = client.patch(
        f"/business-profile/{company}/job/{job_id}/application/{application_id}/status",
        json={"status": status},
        headers=owner["headers"],
    )
    assert response.status_code == 200, response.text


def test_apply_with_resume_reference(client, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")

    response = _apply(client, job_id, bob)
    repeat = _apply(client, job_id, bob)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "applied"
    assert body["user_id"] == bob["id"]
    assert body["resume"] == {"file_name": "bob-cv.pdf", "file_url": RESUME_URL}
    assert repeat.status_code == 409
    assert error_of(repeat)["code"] == "ALREADY_APPLIED"


def test_apply_requires_resume_and_name(client, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")

    no_resume = client.post(f"/jobs/{job_id}/apply", json={"full_name": "Bob"}, headers=bob["headers"])
    no_name = client.post(f"/jobs/{job_id}/apply", json={"resume": {"file_url": RESUME_URL}}, headers=bob["headers"])

    assert no_resume.status_code == 400
    assert error_of(no_resume)["details"] == [{"field": "resume", "message": "Resume file is required"}]
    assert no_name.status_code == 400
    assert error_of(no_name)["code"] == "VALIDATION_ERROR"


def test_apply_to_inactive_or_missing_job(client, owner, company):
    job_id = _post_job(client, company, owner, status="inactive")
    bob = register(client, "bob@example.com")

    inactive = _apply(client, job_id, bob)
    missing = _apply(client, "00000000-0000-0000-0000-000000000000", bob)

    assert inactive.status_code == 400
    assert error_of(inactive)["message"] == "Job is not active"
    assert missing.status_code == 404


def test_rejected_application_reopened_with_uploaded_resume(client, storage, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    first = _apply(client, job_id, bob).json()
    _review(client, company, owner, job_id, first["id"], "rejected")

    response = client.post(
        f"/jobs/{job_id}/apply",
        data={"full_name": "Bob Builder", "email": "bob@work.test"},
        files={"resume": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")},
        headers=bob["headers"],
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["id"] == first["id"]
    assert body["status"] == "applied"
    assert body["reviewed_at"] is None
    assert body["email"] == "bob@work.test"
    assert body["resume"]["file_name"] == "cv.pdf"
    assert body["resume"]["file_url"].startswith("https://files.test/resumes/")
    assert any(key.startswith("resumes/") for key in storage.objects)


def test_selected_application_cannot_be_reopened(client, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    first = _apply(client, job_id, bob).json()
    _review(client, company, owner, job_id, first["id"], "selected")

    assert _apply(client, job_id, bob).status_code == 409


def test_wrong_resume_format(client, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")

    response = client.post(
        f"/jobs/{job_id}/apply",
        data={"full_name": "Bob Builder"},
        files={"resume": ("cv.exe", b"MZ", "application/octet-stream")},
        headers=bob["headers"],
    )

    assert response.status_code == 400
    assert error_of(response)["details"][0]["field"] == "resume"


def test_my_applications(client, owner, company):
    first_job = _post_job(client, company, owner)
    second_job = _post_job(client, company, owner, title="Data Engineer")
    bob = register(client, "bob@example.com")
    _apply(client, first_job, bob)
    second = _apply(client, second_job, bob).json()
    _review(client, company, owner, second_job, second["id"], "rejected")

    everything = client.get("/jobs/applications", headers=bob["headers"]).json()
    rejected = client.get("/jobs/applications", params={"status": "rejected"}, headers=bob["headers"]).json()
    bad = client.get("/jobs/applications", params={"status": "hired"}, headers=bob["headers"])

    assert everything["total"] == 2
    assert {a["job_title"] for a in everything["applications"]} == {"Backend Engineer", "Data Engineer"}
    assert everything["applications"][0]["company_name"] == "Acme Widgets"
    assert [a["id"] for a in rejected["applications"]] == [second["id"]]
    assert bad.status_code == 400


def test_get_application_is_private(client, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    mallory = register(client, "mallory@example.com")
    application = _apply(client, job_id, bob).json()

    own = client.get(f"/jobs/applications/{application['id']}", headers=bob["headers"])
    other = client.get(f"/jobs/applications/{application['id']}", headers=mallory["headers"])

    assert own.json()["job_title"] == "Backend Engineer"
    assert other.status_code == 403


def test_update_application(client, storage, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    application = _apply(client, job_id, bob).json()
    url = f"/jobs/applications/{application['id']}"

    phone = client.put(url, json={"phone": "+15125550199"}, headers=bob["headers"])
    resume = client.put(
        url,
        files={"resume": ("new.pdf", b"%PDF-1.4 new", "application/pdf")},
        headers=bob["headers"],
    )
    empty = client.put(url, json={}, headers=bob["headers"])

    assert phone.json()["phone"] == "+15125550199"
    assert phone.json()["full_name"] == "Bob Builder"
    assert resume.json()["resume"]["file_name"] == "new.pdf"
    assert storage.deleted == ["resumes/bob-cv.pdf"]
    assert error_of(empty)["message"] == "No fields to update"


def test_update_after_review_rejected(client, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    application = _apply(client, job_id, bob).json()
    _review(client, company, owner, job_id, application["id"], "selected")

    response = client.put(f"/jobs/applications/{application['id']}", json={"phone": "1"}, headers=bob["headers"])

    assert response.status_code == 400
    assert error_of(response)["code"] == "ALREADY_REVIEWED"


def test_revoke_application(client, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    application = _apply(client, job_id, bob).json()
    url = f"/jobs/applications/{application['id']}"

    revoked = client.delete(url, headers=bob["headers"])
    missing = client.delete(url, headers=bob["headers"])

    assert revoked.json() == {
        "deleted": True,
        "application_id": application["id"],
        "job_id": job_id,
        "job_title": "Backend Engineer",
    }
    assert missing.status_code == 404
    assert _apply(client, job_id, bob).status_code == 201


def test_reopened_application_discards_replaced_resume(client, storage, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    first = _apply(client, job_id, bob).json()
    _review(client, company, owner, job_id, first["id"], "rejected")

    response = client.post(
        f"/jobs/{job_id}/apply",
        data={"full_name": "Bob Builder"},
        files={"resume": ("cv.pdf", b"%PDF-1.4 resume", "application/pdf")},
        headers=bob["headers"],
    )

    assert response.status_code == 201, response.text
    assert storage.deleted == ["resumes/bob-cv.pdf"]


def test_revoke_discards_resume(client, storage, owner, company):
    job_id = _post_job(client, company, owner)
    bob = register(client, "bob@example.com")
    application = _apply(client, job_id, bob).json()

    client.delete(f"/jobs/applications/{application['id']}", headers=bob["headers"])

    assert storage.deleted == ["resumes/bob-cv.pdf"]


def test_revoke_keeps_resume_used_by_another_application(client, storage, owner, company):
    first_job = _post_job(client, company, owner)
    second_job = _post_job(client, company, owner, title="Data Engineer")
    bob = register(client, "bob@example.com")
    application = _apply(client, first_job, bob).json()
    _apply(client, second_job, bob)

    revoked = client.delete(f"/jobs/applications/{application['id']}", headers=bob["headers"])

    assert revoked.status_code == 200
    assert storage.deleted == []
