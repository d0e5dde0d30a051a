import pytest


def vote(client, student_id, submission_id, project_type="midterm", method="POST"):
    return client.request(
        method,
        "/api/voting/vote",
        json={"student_id": student_id, "submission_id": submission_id, "project_type": project_type},
    )


@pytest.fixture
def projects(make_student, make_submission):
    owner = make_student("S001", "Owner")
    make_student("S002", "Voter")
    return {
        "public": make_submission(owner, title="Public"),
        "second": make_submission(owner, title="Second"),
        "private": make_submission(owner, is_public=False),
        "final": make_submission(owner, project_type="final"),
        "repo": make_submission(owner, submission_type="github_repo"),
    }


def test_cast_vote(client, projects):
    response = vote(client, "S002", projects["public"])

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["vote"]["submission_id"] == projects["public"]
    assert data["vote_id"] == data["vote"]["id"]


@pytest.mark.parametrize("key, student_id, project_type, status, error", [
    ("public", None, "midterm", 400, "MISSING_FIELDS"),
    ("public", "S002", "summer", 400, "INVALID_PROJECT_TYPE"),
    ("repo", "S002", "midterm", 404, "PROJECT_NOT_FOUND"),
    ("final", "S002", "midterm", 400, "PROJECT_TYPE_MISMATCH"),
    ("private", "S002", "midterm", 400, "PROJECT_NOT_PUBLIC"),
    ("public", "S001", "midterm", 400, "OWN_PROJECT"),
    ("public", "NOPE", "midterm", 404, "STUDENT_NOT_FOUND"),
])
def test_vote_rules(client, projects, key, student_id, project_type, status, error):
    response = vote(client, student_id, projects[key], project_type)
    assert response.status_code == status
    assert response.json()["error"] == error


def test_second_vote_for_same_type_conflicts(client, projects):
    assert vote(client, "S002", projects["public"]).status_code == 200

    response = vote(client, "S002", projects["second"])

    assert response.status_code == 409
    assert response.json()["error"] == "ALREADY_VOTED"


def test_voting_status(client, projects):
    vote(client, "S002", projects["public"])

    status = client.get("/api/voting/student/S002/voting-status").json()["data"]["voting_status"]

    by_type = {s["project_type"]: s for s in status}
    assert by_type["midterm"] == {
        "project_type": "midterm",
        "can_vote": False,
        "voted_for_submission_id": projects["public"],
        "votes_remaining": 0,
    }
    assert by_type["final"]["can_vote"] is True
    assert by_type["final"]["votes_remaining"] == 1


def test_change_vote_replaces_existing(client, projects):
    vote(client, "S002", projects["public"])

    response = vote(client, "S002", projects["second"], method="PUT")

    assert response.status_code == 200
    counts = client.get("/api/voting/projects/midterm/votes").json()["data"]["projects"]
    assert {p["submission_id"]: p["vote_count"] for p in counts} == {
        projects["second"]: 1,
        projects["public"]: 0,
    }
    assert counts[0]["submission_id"] == projects["second"]


def test_change_vote_without_prior_vote(client, projects):
    response = vote(client, "S002", projects["public"], method="PUT")
    assert response.status_code == 200


def test_change_vote_keeps_old_vote_when_invalid(client, projects):
    vote(client, "S002", projects["public"])

    response = vote(client, "S002", projects["private"], method="PUT")

    assert response.status_code == 400
    status = client.get("/api/voting/student/S002/voting-status").json()["data"]["voting_status"]
    assert status[0]["voted_for_submission_id"] == projects["public"]


def test_remove_vote(client, projects):
    vote(client, "S002", projects["public"])
    body = {"student_id": "S002", "project_type": "midterm"}

    assert client.request("DELETE", "/api/voting/vote", json=body).status_code == 200

    again = client.request("DELETE", "/api/voting/vote", json=body)
    assert again.status_code == 404
    assert again.json()["error"] == "VOTE_NOT_FOUND"


def test_vote_counts_reject_unknown_type(client):
    response = client.get("/api/voting/projects/summer/votes")
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_PROJECT_TYPE"
