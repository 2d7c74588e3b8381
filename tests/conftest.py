import os
import tempfile
from datetime import date, timedelta

_TEST_ROOT = tempfile.mkdtemp(prefix="tutorlink-tests-")
os.environ.setdefault("SECRET_KEY", "tutorlink-test-secret")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_ROOT}/app.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TEST_ROOT, "uploads"))
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from tutorlink import config, email_service  # noqa: E402
from tutorlink.database import Base, build_engine, get_db  # noqa: E402
from tutorlink.main import app  # noqa: E402

PASSWORD = "Secret123!"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
ALL_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def future_date(days: int = 7) -> date:
    return date.today() + timedelta(days=days)


def png_upload(name: str = "proof.png") -> dict:
    return {"file": (name, PNG_BYTES, "image/png")}


@pytest.fixture
def session_factory(tmp_path, monkeypatch):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", False)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of talking to SMTP/Resend"""
    sent = []

    async def fake_send_email(to, subject, mjml_content):
        sent.append({"to": to, "subject": subject, "body": mjml_content})
        return {"id": f"test-{len(sent)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


@pytest.fixture
def admin(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Ada Admin", "email": "admin@tutorlink.app", "password": PASSWORD},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    return {"token": body["accessToken"], "user_id": body["user"]["user_id"]}


@pytest.fixture
def university(client, admin):
    response = client.post(
        "/api/universities",
        json={"name": "Bohol Island State University", "acronym": "BISU", "email_domain": "bisu.edu.ph"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def course(client, admin, university):
    response = client.post(
        "/api/courses",
        json={"course_name": "BS Computer Science", "university_id": university["university_id"]},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


def register_tutee(client, university, course, email="juan@bisu.edu.ph", name="Juan Dela Cruz"):
    response = client.post(
        "/api/auth/register-student",
        json={
            "name": name,
            "email": email,
            "password": PASSWORD,
            "university_id": university["university_id"],
            "course_id": course["course_id"],
            "year_level": 2,
        },
    )
    assert response.status_code == 200, response.text
    body = response.json()
    return {"token": body["accessToken"], "user_id": body["user"]["user_id"], "email": email}


def register_tutor(client, university, course, email="maria@bisu.edu.ph", name="Maria Santos"):
    response = client.post(
        "/api/auth/register-tutor",
        json={
            "name": name,
            "email": email,
            "password": PASSWORD,
            "university_id": university["university_id"],
            "course_id": course["course_id"],
            "year_level": 4,
            "bio": "Dean's lister, loves calculus",
            "gcash_number": "09171234567",
            "session_rate_per_hour": "200.00",
        },
    )
    assert response.status_code == 200, response.text
    body = response.json()
    return {
        "token": body["accessToken"],
        "user_id": body["user"]["user_id"],
        "tutor_id": body["tutor_id"],
        "email": email,
    }


@pytest.fixture
def tutee(client, university, course):
    return register_tutee(client, university, course)


@pytest.fixture
def tutor(client, university, course):
    return register_tutor(client, university, course)


@pytest.fixture
def approved_tutor(client, admin, tutor):
    """Tutor teaching Calculus, available 08:00-17:00 every day, approved by the admin"""
    headers = auth(tutor["token"])
    tutor_id = tutor["tutor_id"]

    response = client.post(f"/api/tutors/{tutor_id}/subjects", json={"subjects": ["Calculus"]}, headers=headers)
    assert response.status_code == 200, response.text

    slots = [{"day_of_week": day, "start_time": "08:00", "end_time": "17:00"} for day in ALL_DAYS]
    response = client.post(f"/api/tutors/{tutor_id}/availability", json={"slots": slots}, headers=headers)
    assert response.status_code == 200, response.text

    response = client.patch(
        f"/api/tutors/{tutor_id}/status",
        json={"status": "approved", "adminNotes": "Welcome aboard"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200, response.text
    return tutor
