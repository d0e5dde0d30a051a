PNG = ("shot.png", b"\x89PNG fake image bytes", "image/png")


def create_screenshot(client, student_id="S001", **extra):
    data = {"student_id": student_id, "submission_type": "screenshot", "title": "Home screen", **extra}
    return client.post("/api/submissions", data=data, files={"file": PNG})


def test_screenshot_upload_stores_file_and_registers_student(client, file_store):
    response = create_screenshot(client, full_name="Grace Hopper")

    assert response.status_code == 201
    submission = response.json()["data"]["submission"]
    assert submission["student_name"] == "Grace Hopper"
    assert submission["file_name"] == "shot.png"
    assert submission["mime_type"] == "image/png"
    assert submission["file_size"] == len(PNG[1])
    assert submission["file_url"] == f"http://testserver/api/files/{submission['file_path']}"
    assert len(submission["files"]) == 1
    assert submission["file_path"] in file_store.files


def test_stored_file_is_served(client):
    submission = create_screenshot(client).json()["data"]["submission"]

    response = client.get(f"/api/files/{submission['file_path']}")

    assert response.status_code == 200
    assert response.content == PNG[1]
    assert response.headers["content-type"].startswith("image/png")


def test_unknown_file_is_404(client):
    response = client.get("/api/files/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"] == "FILE_NOT_FOUND"


def test_multiple_numbered_files(client, file_store):
    files = [
        ("file_1", ("second.png", b"two", "image/png")),
        ("file_0", ("first.png", b"one", "image/png")),
    ]
    response = client.post(
        "/api/submissions",
        data={"student_id": "S001", "submission_type": "screenshot", "title": "Two screens"},
        files=files,
    )

    assert response.status_code == 201
    submission = response.json()["data"]["submission"]
    assert [f["file_name"] for f in submission["files"]] == ["first.png", "second.png"]
    assert submission["file_name"] == "first.png"
    assert len(file_store.files) == 2


def test_screenshot_requires_file(client):
    response = client.post(
        "/api/submissions", data={"student_id": "S001", "submission_type": "screenshot", "title": "Nothing"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_FILE"


def test_github_repo_requires_url(client):
    response = client.post(
        "/api/submissions", data={"student_id": "S001", "submission_type": "github_repo", "title": "Repo"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_GITHUB_URL"


def test_invalid_github_url_is_validation_error(client):
    response = client.post(
        "/api/submissions",
        data={"student_id": "S001", "submission_type": "github_repo", "title": "Repo", "github_url": "not a url"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"][0]["loc"] == ["github_url"]


def test_project_requires_project_type(client):
    response = client.post(
        "/api/submissions",
        data={
            "student_id": "S001",
            "submission_type": "project",
            "title": "App",
            "github_url": "https://github.com/me/app",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_PROJECT_TYPE"


def test_rejects_disallowed_file_type(client, file_store):
    response = client.post(
        "/api/submissions",
        data={"student_id": "S001", "submission_type": "screenshot", "title": "Zip"},
        files={"file": ("archive.zip", b"PK", "application/zip")},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_FILE_TYPE"
    assert file_store.files == {}


def test_rejects_oversized_file(client, settings, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_mb", 0)
    response = create_screenshot(client)
    assert response.status_code == 413
    assert response.json()["error"] == "FILE_TOO_LARGE"


def test_create_public_project(client):
    response = client.post(
        "/api/submissions",
        data={
            "student_id": "S001",
            "submission_type": "project",
            "title": "Budget App",
            "github_url": "https://github.com/me/budget",
            "project_type": "midterm",
            "is_public": "true",
        },
    )

    assert response.status_code == 201
    submission = response.json()["data"]["submission"]
    assert submission["project_type"] == "midterm"
    assert submission["is_public"] is True
    assert submission["file_url"] is None
    assert submission["files"] == []


def test_list_submissions_with_filters(client, make_student, make_submission):
    student = make_student("S001")
    other = make_student("S002")
    make_submission(student, submission_type="github_repo")
    make_submission(student)
    make_submission(other)

    data = client.get("/api/submissions", params={"student_id": "S001"}).json()["data"]
    assert data["total"] == 2

    data = client.get("/api/submissions", params={"submission_type": "github_repo"}).json()["data"]
    assert data["total"] == 1
    assert data["submissions"][0]["submission_type"] == "github_repo"


def test_public_projects_include_vote_counts(client, make_student, make_submission):
    owner = make_student("S001")
    make_student("S002")
    public_id = make_submission(owner, project_type="final")
    make_submission(owner, project_type="final", is_public=False)
    client.post("/api/voting/vote", json={"student_id": "S002", "submission_id": public_id, "project_type": "final"})

    data = client.get("/api/submissions/projects/public", params={"project_type": "final"}).json()["data"]

    assert data["total"] == 1
    assert data["projects"][0]["id"] == public_id
    assert data["projects"][0]["vote_count"] == 1


def test_get_unknown_submission(client):
    response = client.get("/api/submissions/999")
    assert response.status_code == 404
    assert response.json()["error"] == "SUBMISSION_NOT_FOUND"


def test_delete_submission_removes_stored_files(client, file_store):
    submission = create_screenshot(client).json()["data"]["submission"]

    response = client.delete(f"/api/submissions/{submission['id']}")

    assert response.status_code == 200
    assert file_store.files == {}
    assert client.get(f"/api/submissions/{submission['id']}").status_code == 404


def test_delete_continues_when_stored_file_is_missing(client, file_store):
    submission = create_screenshot(client).json()["data"]["submission"]
    file_store.files.clear()

    response = client.delete(f"/api/submissions/{submission['id']}")

    assert response.status_code == 200


def test_owner_updates_project(client, make_student, make_submission):
    student = make_student("S001")
    submission_id = make_submission(student, is_public=False)

    response = client.put(
        f"/api/submissions/{submission_id}",
        json={"student_id": "S001", "title": "  Renamed  ", "is_public": True},
    )

    assert response.status_code == 200
    submission = response.json()["data"]["submission"]
    assert submission["title"] == "Renamed"
    assert submission["is_public"] is True


def test_non_owner_cannot_update_project(client, make_student, make_submission):
    student = make_student("S001")
    make_student("S002")
    submission_id = make_submission(student)

    response = client.put(f"/api/submissions/{submission_id}", json={"student_id": "S002", "title": "Mine now"})

    assert response.status_code == 403
    assert response.json()["error"] == "NOT_OWNER"


def test_update_without_fields(client, make_student, make_submission):
    student = make_student("S001")
    submission_id = make_submission(student)

    response = client.put(f"/api/submissions/{submission_id}", json={"student_id": "S001"})

    assert response.status_code == 400
    assert response.json()["error"] == "NO_UPDATES"


def test_owner_adds_and_removes_files(client, file_store):
    submission = create_screenshot(client).json()["data"]["submission"]
    submission_id = submission["id"]

    added = client.post(
        f"/api/submissions/{submission_id}/files",
        data={"student_id": "S001"},
        files={"file_0": ("extra.jpg", b"jpeg", "image/jpeg")},
    )
    assert added.status_code == 201
    files = added.json()["data"]["submission"]["files"]
    assert [f["file_name"] for f in files] == ["shot.png", "extra.jpg"]

    first_id = files[0]["id"]
    removed = client.delete(f"/api/submissions/{submission_id}/files/{first_id}", params={"student_id": "S001"})

    assert removed.status_code == 200
    updated = removed.json()["data"]["submission"]
    assert [f["file_name"] for f in updated["files"]] == ["extra.jpg"]
    assert updated["file_name"] == "extra.jpg"
    assert len(file_store.files) == 1


def test_only_owner_can_add_files(client):
    submission = create_screenshot(client).json()["data"]["submission"]

    response = client.post(
        f"/api/submissions/{submission['id']}/files",
        data={"student_id": "S999"},
        files={"file": PNG},
    )

    assert response.status_code == 403


def test_remove_unknown_file(client):
    submission = create_screenshot(client).json()["data"]["submission"]

    response = client.delete(f"/api/submissions/{submission['id']}/files/999", params={"student_id": "S001"})

    assert response.status_code == 404
    assert response.json()["error"] == "FILE_NOT_FOUND"
