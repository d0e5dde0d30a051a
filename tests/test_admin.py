from sqlalchemy import text

from learnify.db.database import get_db_session


def as_admin(admin):
    return {"x-student-id": admin["student_id"]}


def test_admin_routes_require_admin(client, make_student):
    make_student("S001")

    assert client.get("/api/admin/students").status_code == 401
    response = client.get("/api/admin/students", headers={"x-student-id": "S001"})
    assert response.status_code == 403
    assert response.json()["error"] == "ADMIN_REQUIRED"


def test_admin_status(client, admin):
    data = client.get("/api/admin/status", headers=as_admin(admin)).json()["data"]
    assert data["admin"]["student_id"] == "T14004"
    assert "delete_students" in data["permissions"]


def test_list_students(client, admin, make_student):
    make_student("S001")
    data = client.get("/api/admin/students", headers=as_admin(admin)).json()["data"]
    assert {s["student_id"] for s in data} == {"T14004", "S001"}


def test_delete_student_removes_their_data(client, admin, make_student, make_submission, file_store):
    leaving = make_student("S001", "Leaving")
    staying = make_student("S002", "Staying")
    client.post("/api/reviews", json={"student_id": "S001", "mobile_app_name": "Notes", "review_text": "ok"})
    client.post("/api/auto/check-in", json={"student_id": "S001"})
    upload = client.post(
        "/api/submissions",
        data={"student_id": "S001", "submission_type": "screenshot", "title": "Shot"},
        files={"file": ("shot.png", b"png", "image/png")},
    )
    submission_id = upload.json()["data"]["submission"]["id"]
    project_id = make_submission(staying, project_type="final")
    client.post("/api/voting/vote", json={"student_id": "S001", "submission_id": project_id, "project_type": "final"})
    won = make_submission(leaving, project_type="midterm")
    client.post("/api/voting/vote", json={"student_id": "S002", "submission_id": won, "project_type": "midterm"})
    assert client.post("/api/calculate-bonus/midterm", headers=as_admin(admin)).status_code == 200

    response = client.delete("/api/admin/students/S001", headers=as_admin(admin))

    assert response.status_code == 200
    assert response.json()["data"]["deleted_student"]["full_name"] == "Leaving"
    assert file_store.files == {}
    assert client.get(f"/api/submissions/{submission_id}").status_code == 404
    assert client.get("/api/auto/students/S001").status_code == 403
    assert client.get("/api/reviews/S001").status_code == 404
    counts = client.get("/api/voting/projects/final/votes").json()["data"]["projects"]
    assert counts[0]["vote_count"] == 0
    with get_db_session() as db:
        assert db.execute(text("SELECT COUNT(*) FROM vote_bonuses")).scalar() == 0


def test_cannot_delete_self_or_admins(client, admin, make_student):
    make_student("T2", "Other Teacher", is_admin=True)

    self_delete = client.delete(f"/api/admin/students/{admin['student_id']}", headers=as_admin(admin))
    assert self_delete.status_code == 400
    assert self_delete.json()["error"] == "CANNOT_DELETE_SELF"

    other_admin = client.delete("/api/admin/students/T2", headers=as_admin(admin))
    assert other_admin.status_code == 400
    assert other_admin.json()["error"] == "CANNOT_DELETE_ADMIN"

    missing = client.delete("/api/admin/students/NOPE", headers=as_admin(admin))
    assert missing.status_code == 404


def test_fix_quiz_scores(client, admin, make_student, make_question, settings):
    make_student("S001")
    question_id = make_question(correct_answer="A")
    for _ in range(2):
        client.post(
            "/api/quiz/submit-answer",
            json={"student_id": "S001", "question_id": question_id, "selected_answer": "A"},
        )
    # simulate scores written before only first correct answers earned points
    with get_db_session() as db:
        db.execute(text("UPDATE student_quiz_attempts SET points_earned = :p"), {"p": settings.quiz_correct_points})
        db.execute(text("UPDATE student_quiz_scores SET total_points = :p"), {"p": 2 * settings.quiz_correct_points})

    response = client.post("/api/admin/fix-quiz-scores", headers=as_admin(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["students_processed"] == 1
    assert data["details"][0]["old_points"] == 2 * settings.quiz_correct_points
    assert data["details"][0]["new_points"] == settings.quiz_correct_points
    assert data["total_points_corrected"] == settings.quiz_correct_points

    scores = client.get("/api/quiz/student/S001/scores").json()["data"]["quiz_scores"]
    assert scores["total_points"] == settings.quiz_correct_points


def test_fix_quiz_scores_without_attempts(client, admin):
    response = client.post("/api/admin/fix-quiz-scores", headers=as_admin(admin))
    assert response.json()["message"] == "No quiz attempts found to fix"
