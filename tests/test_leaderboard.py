from datetime import datetime, timezone

from learnify.services.scoring_service import (
    compute_points_breakdown,
    count_check_in_days,
    rank_entries,
)


def entry(name, total_marks=0, total_check_ins=0, latest_check_in=None):
    return {
        "full_name": name,
        "total_marks": total_marks,
        "total_check_ins": total_check_ins,
        "latest_check_in": latest_check_in,
    }


def test_breakdown_uses_configured_values(settings):
    breakdown = compute_points_breakdown(
        {"check_in_days": 3, "reviews": 2, "has_midterm": True, "notes": 4, "votes": 1, "quiz_points": 15},
        settings,
    )

    assert breakdown == {
        "check_in_points": 3 * settings.check_in_points,
        "review_points": 2 * settings.review_points,
        "midterm_project_points": settings.midterm_project_points,
        "final_project_points": 0,
        "project_notes_points": 4 * settings.project_note_points,
        "voting_points": settings.vote_points,
        "quiz_points": 15,
        "bonus_points": 0,
    }


def test_note_points_are_capped(settings):
    breakdown = compute_points_breakdown({"notes": 100}, settings)
    assert breakdown["project_notes_points"] == settings.project_note_points_cap


def test_check_in_days_are_distinct_utc_days():
    stamps = [
        "2025-07-01T08:00:00+00:00",
        "2025-07-01T23:30:00+00:00",
        # 01:00 in UTC+2 is still July 1st in UTC
        "2025-07-02T01:00:00+02:00",
        datetime(2025, 7, 3, 9, tzinfo=timezone.utc),
    ]
    assert count_check_in_days(stamps) == 2


def test_ranking_tiebreaks():
    ranked = rank_entries([
        entry("zed", 10, 1, "2025-07-01T08:00:00+00:00"),
        entry("amy", 10, 1, "2025-07-02T08:00:00+00:00"),
        entry("Bob", 10, 2, "2025-07-01T08:00:00+00:00"),
        entry("carl", 10, 1),
        entry("top", 50),
    ])

    assert [e["full_name"] for e in ranked] == ["top", "Bob", "amy", "zed", "carl"]
    assert [e["rank"] for e in ranked] == [1, 2, 3, 4, 5]


def test_leaderboard_includes_every_student(client, make_student, make_submission, settings):
    make_student("S001", "Ada")
    idle = make_student("S002", "Bea")
    make_submission(idle, project_type="final")

    data = client.get("/api/leaderboard").json()["data"]

    assert data["total_students"] == 2
    first = data["leaderboard"][0]
    assert first["student_id"] == "S002"
    assert first["total_marks"] == settings.final_project_points
    assert first["points_breakdown"]["final_project_points"] == settings.final_project_points
    assert data["leaderboard"][1]["total_marks"] == 0
    assert data["showing"] == {"limit": 50, "offset": 0, "total_pages": 1, "current_page": 1}


def test_leaderboard_paging(client, make_student):
    for i in range(5):
        make_student(f"S00{i}", f"Student {i}")

    data = client.get("/api/leaderboard", params={"limit": 2, "offset": 2}).json()["data"]

    assert len(data["leaderboard"]) == 2
    assert data["leaderboard"][0]["rank"] == 3
    assert data["showing"]["total_pages"] == 3
    assert data["showing"]["current_page"] == 2


def test_student_ranking_with_context(client, make_student):
    for i in range(5):
        make_student(f"S00{i}", f"Student {i}")

    data = client.get("/api/leaderboard/student/S002", params={"context": 1}).json()["data"]

    assert data["student"]["student_id"] == "S002"
    assert data["student_index"] == 2
    assert [e["student_id"] for e in data["context"]] == ["S001", "S002", "S003"]


def test_student_ranking_unknown(client):
    response = client.get("/api/leaderboard/student/NOPE")
    assert response.status_code == 404
    assert response.json()["error"] == "STUDENT_NOT_FOUND"


def test_vote_winner_bonus_awarded_once(client, make_student, make_submission, admin, settings):
    first_author = make_student("S001", "First")
    second_author = make_student("S002", "Second")
    make_student("S003", "Voter")
    early = make_submission(first_author)
    late = make_submission(second_author)
    for voter, submission_id in (("S003", early), ("S002", early), ("S001", late)):
        client.post("/api/voting/vote", json={"student_id": voter, "submission_id": submission_id,
                                              "project_type": "midterm"})

    headers = {"x-student-id": admin["student_id"]}
    response = client.post("/api/calculate-bonus/midterm", headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["submission_id"] == early
    assert data["student_id"] == "S001"
    assert data["vote_count"] == 2
    assert data["bonus_awarded"] == settings.vote_winner_bonus_points

    again = client.post("/api/calculate-bonus/midterm", headers=headers).json()
    assert again["data"] is None

    ranking = client.get("/api/leaderboard/student/S001").json()["data"]["student"]
    assert ranking["points_breakdown"]["bonus_points"] == settings.vote_winner_bonus_points


def test_bonus_without_votes(client, admin):
    response = client.post("/api/calculate-bonus/final", headers={"x-student-id": admin["student_id"]})
    assert response.status_code == 200
    assert response.json()["data"] is None


def test_bonus_requires_admin(client, make_student):
    make_student("S001")
    response = client.post("/api/calculate-bonus/midterm", headers={"x-student-id": "S001"})
    assert response.status_code == 403


def test_deleting_winning_submission_drops_its_bonus(client, admin, make_student, make_submission):
    winner = make_student("S001")
    make_student("S002")
    submission_id = make_submission(winner)
    client.post("/api/voting/vote", json={"student_id": "S002", "submission_id": submission_id,
                                          "project_type": "midterm"})
    client.post("/api/calculate-bonus/midterm", headers={"x-student-id": admin["student_id"]})

    assert client.delete(f"/api/submissions/{submission_id}").status_code == 200

    ranking = client.get("/api/leaderboard/student/S001").json()["data"]["student"]
    assert ranking["points_breakdown"]["bonus_points"] == 0
