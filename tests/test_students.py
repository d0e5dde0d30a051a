from learnify.db.database import get_db_session
from learnify.services.student_service import ensure_admin, ensure_student


def test_ensure_admin_creates_missing_admin():
    with get_db_session() as db:
        student, created = ensure_admin(db, "T14004")

    assert created is True
    assert student["full_name"] == "Admin User"
    assert student["is_admin"] is True


def test_ensure_admin_promotes_existing_student(make_student):
    make_student("S001", "Ada")

    with get_db_session() as db:
        student, created = ensure_admin(db, "S001", "Ignored Name")

    assert created is False
    assert student["is_admin"] is True
    assert student["full_name"] == "Ada"


def test_ensure_student_defaults_name_to_code():
    with get_db_session() as db:
        student = ensure_student(db, "S009")
        again = ensure_student(db, "S009", "Other Name")

    assert student["full_name"] == "S009"
    assert again["id"] == student["id"]
