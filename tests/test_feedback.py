from learnify.services.feedback_service import compute_analytics


def test_topics_grouped_by_category(client, make_topic):
    make_topic("liked", "Swift", display_order=2)
    make_topic("liked", "SwiftUI", display_order=1)
    make_topic("future", "Widgets")
    make_topic("future", "Old topic", is_active=False)

    data = client.get("/api/feedback/topics").json()["data"]

    assert data["total"] == 3
    assert [t["topic_name"] for t in data["topics"]["liked"]] == ["SwiftUI", "Swift"]
    assert [t["topic_name"] for t in data["topics"]["future"]] == ["Widgets"]


def test_submit_requires_identity(client):
    response = client.post("/api/feedback/submit", json={"overall_rating": 4})
    assert response.status_code == 401
    assert response.json()["error"] == "AUTH_REQUIRED"


def test_submit_then_update_feedback(client, make_student):
    make_student("S001")
    headers = {"x-student-id": "S001"}

    first = client.post(
        "/api/feedback/submit",
        headers=headers,
        json={"overall_rating": 4, "liked_topics": ["SwiftUI"], "semester_feedback": "Great"},
    )
    assert first.status_code == 201
    assert first.json()["data"]["feedback"]["liked_topics"] == ["SwiftUI"]

    second = client.post("/api/feedback/submit", headers=headers, json={"overall_rating": 5})
    assert second.status_code == 200
    assert second.json()["message"] == "Feedback updated successfully"

    mine = client.get("/api/feedback/my-feedback", headers=headers).json()["data"]
    assert mine["has_submitted"] is True
    assert mine["feedback"]["overall_rating"] == 5
    assert mine["feedback"]["liked_topics"] == []


def test_rating_out_of_range(client, make_student):
    make_student("S001")
    response = client.post("/api/feedback/submit", headers={"x-student-id": "S001"}, json={"overall_rating": 6})
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_RATING"


def test_my_feedback_before_submitting(client, make_student):
    make_student("S001")
    data = client.get("/api/feedback/my-feedback", headers={"x-student-id": "S001"}).json()["data"]
    assert data == {"feedback": None, "has_submitted": False}


def test_admin_views(client, make_student, admin):
    make_student("S001")
    make_student("S002")
    client.post("/api/feedback/submit", headers={"x-student-id": "S001"},
                json={"overall_rating": 4, "future_topics": ["Widgets"]})
    client.post("/api/feedback/submit", headers={"x-student-id": "S002"},
                json={"overall_rating": 5, "future_topics": ["Widgets", "ARKit"]})

    forbidden = client.get("/api/feedback/all", headers={"x-student-id": "S001"})
    assert forbidden.status_code == 403
    assert forbidden.json()["error"] == "ADMIN_REQUIRED"

    headers = {"x-student-id": admin["student_id"]}
    all_feedback = client.get("/api/feedback/all", headers=headers).json()["data"]
    assert all_feedback["total"] == 2

    analytics = client.get("/api/feedback/analytics", headers=headers).json()["data"]
    assert analytics["total_responses"] == 2
    assert analytics["average_rating"] == 4.5
    assert analytics["popular_future_topics"] == {"Widgets": 2, "ARKit": 1}


def test_analytics_rating_distribution():
    feedback = [
        {"overall_rating": 5, "liked_topics": '["Swift"]'},
        {"overall_rating": 5, "liked_topics": ["Swift", "SwiftUI"]},
        {"overall_rating": 2},
        {"overall_rating": None},
    ]

    analytics = compute_analytics(feedback)

    assert analytics["total_responses"] == 4
    assert analytics["average_rating"] == 4.0
    assert analytics["rating_distribution"] == {"1": 0, "2": 1, "3": 0, "4": 0, "5": 2}
    assert analytics["popular_liked_topics"] == {"Swift": 2, "SwiftUI": 1}


def test_analytics_without_feedback():
    analytics = compute_analytics([])
    assert analytics["average_rating"] == 0
    assert analytics["rating_distribution"]["3"] == 0
