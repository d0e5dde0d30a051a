import pytest


@pytest.fixture
def submission_id(make_student, make_submission):
    make_student("S002")
    return make_submission(make_student("S001"))


def add_note(client, submission_id, student_id="S001", note_text="Remember the icons"):
    return client.post(
        "/api/project-notes",
        json={"submission_id": submission_id, "student_id": student_id, "note_text": note_text},
    )


def test_create_note(client, submission_id):
    response = add_note(client, submission_id, note_text="  Fix the login flow  ")

    assert response.status_code == 201
    note = response.json()["data"]["note"]
    assert note["note_text"] == "Fix the login flow"
    assert note["is_private"] is True
    assert note["submission_id"] == submission_id


def test_note_text_cannot_be_blank(client, submission_id):
    response = add_note(client, submission_id, note_text="   ")
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_NOTE_TEXT"


def test_note_for_unknown_student(client, submission_id):
    response = add_note(client, submission_id, student_id="NOPE")
    assert response.status_code == 400
    assert response.json()["error"] == "STUDENT_NOT_FOUND"


def test_note_for_unknown_submission(client, submission_id):
    response = add_note(client, 999)
    assert response.status_code == 404
    assert response.json()["error"] == "SUBMISSION_NOT_FOUND"


def test_students_only_see_their_own_notes(client, submission_id):
    add_note(client, submission_id, "S001", "mine")
    add_note(client, submission_id, "S002", "theirs")

    data = client.get(f"/api/project-notes/{submission_id}", params={"student_id": "S001"}).json()["data"]

    assert [n["note_text"] for n in data["notes"]] == ["mine"]
    assert data["student_id"] == "S001"


def test_listing_notes_requires_student_id(client, submission_id):
    response = client.get(f"/api/project-notes/{submission_id}")
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_STUDENT_ID"


def test_update_and_delete_own_note(client, submission_id):
    note_id = add_note(client, submission_id).json()["data"]["note"]["id"]

    updated = client.put(f"/api/project-notes/{note_id}", params={"student_id": "S001"}, json={"note_text": "New"})
    assert updated.status_code == 200
    assert updated.json()["data"]["note"]["note_text"] == "New"

    deleted = client.delete(f"/api/project-notes/{note_id}", params={"student_id": "S001"})
    assert deleted.status_code == 200
    notes = client.get(f"/api/project-notes/{submission_id}", params={"student_id": "S001"}).json()["data"]["notes"]
    assert notes == []


def test_cannot_touch_someone_elses_note(client, submission_id):
    note_id = add_note(client, submission_id).json()["data"]["note"]["id"]

    updated = client.put(f"/api/project-notes/{note_id}", params={"student_id": "S002"}, json={"note_text": "x"})
    deleted = client.delete(f"/api/project-notes/{note_id}", params={"student_id": "S002"})

    assert updated.status_code == 404
    assert updated.json()["error"] == "NOTE_NOT_FOUND"
    assert deleted.status_code == 404
