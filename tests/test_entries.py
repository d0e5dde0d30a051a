import pytest


@pytest.mark.parametrize("payload, error", [
    ({"mobile_app_name": "Notes", "review_text": "Nice"}, "MISSING_STUDENT_ID"),
    ({"student_id": "S001", "review_text": "Nice"}, "MISSING_APP_NAME"),
    ({"student_id": "S001", "mobile_app_name": "Notes", "review_text": "   "}, "MISSING_REVIEW"),
])
def test_review_validation(client, make_student, payload, error):
    make_student("S001")
    response = client.post("/api/reviews", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == error


def test_review_for_unknown_student(client):
    response = client.post(
        "/api/reviews", json={"student_id": "NOPE", "mobile_app_name": "Notes", "review_text": "Nice"}
    )
    assert response.status_code == 404


def test_submit_review_trims_text(client, make_student):
    make_student("S001", "Ada Lovelace")

    response = client.post(
        "/api/reviews",
        json={"student_id": "S001", "mobile_app_name": "  Notes ", "review_text": " Clean layout. "},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["mobile_app_name"] == "Notes"
    assert data["review_text"] == "Clean layout."
    assert data["student_name"] == "Ada Lovelace"
    assert data["review_id"] > 0


def test_list_reviews_filters_by_app_name(client, make_student):
    make_student("S001")
    for app_name in ("Weather Pro", "Calendar", "weather lite"):
        client.post("/api/reviews", json={"student_id": "S001", "mobile_app_name": app_name, "review_text": "ok"})

    data = client.get("/api/reviews", params={"app_name": "WEATHER"}).json()["data"]

    assert data["total_reviews"] == 2
    assert [r["mobile_app_name"] for r in data["reviews"]] == ["weather lite", "Weather Pro"]
    assert data["showing"]["app_name_filter"] == "WEATHER"


def test_student_reviews_paging(client, make_student):
    make_student("S001")
    for i in range(3):
        client.post("/api/reviews", json={"student_id": "S001", "mobile_app_name": f"App {i}", "review_text": "ok"})

    data = client.get("/api/reviews/S001", params={"limit": 1, "offset": 1}).json()["data"]

    assert data["total_reviews"] == 3
    assert [r["mobile_app_name"] for r in data["reviews"]] == ["App 1"]


def test_reflections_mirror_reviews(client, make_student):
    make_student("S001")

    empty = client.post(
        "/api/reflections", json={"student_id": "S001", "mobile_app_name": "Notes", "reflection_text": ""}
    )
    assert empty.status_code == 400
    assert empty.json()["error"] == "MISSING_REFLECTION"

    created = client.post(
        "/api/reflections",
        json={"student_id": "S001", "mobile_app_name": "Notes", "reflection_text": "I learned a lot"},
    )
    assert created.status_code == 201
    assert created.json()["data"]["reflection_id"] > 0

    data = client.get("/api/reflections/S001").json()["data"]
    assert data["total_reflections"] == 1
    assert data["reflections"][0]["reflection_text"] == "I learned a lot"
