import hashlib
from datetime import datetime, timedelta

from conftest import PASSWORD, auth

from tutorlink import config, rate_limiter
from tutorlink.models import PasswordResetToken, User
from tutorlink.security_utils import hash_password, verify_password


def test_admin_registration_is_single_use(client, admin):
    response = client.post(
        "/api/auth/register",
        json={"name": "Second Admin", "email": "second@tutorlink.app", "password": PASSWORD},
    )
    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_admin_login_and_portal_separation(client, admin, tutee):
    response = client.post("/api/auth/login", json={"email": "admin@tutorlink.app", "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"

    response = client.post("/api/auth/login-tutor-tutee", json={"email": "admin@tutorlink.app", "password": PASSWORD})
    assert response.status_code == 401
    assert "Admin Portal" in response.json()["detail"]

    response = client.post("/api/auth/login", json={"email": tutee["email"], "password": PASSWORD})
    assert response.status_code == 401


def test_login_rejects_bad_password(client, tutee):
    response = client.post("/api/auth/login-tutor-tutee", json={"email": tutee["email"], "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_student_registration_returns_profile(client, university, course):
    response = client.post(
        "/api/auth/register-student",
        json={
            "name": "Pedro Penduko",
            "email": "Pedro@BISU.edu.ph",
            "password": PASSWORD,
            "university_id": university["university_id"],
            "course_name": "BS Information Technology",
            "year_level": 1,
        },
    )
    assert response.status_code == 200, response.text
    user = response.json()["user"]
    assert user["email"] == "pedro@bisu.edu.ph"
    assert user["role"] == "student"
    assert user["university_name"] == "Bohol Island State University"
    assert user["course_name"] == "BS Information Technology"
    assert "password" not in user


def test_student_registration_enforces_university_domain(client, university, course):
    response = client.post(
        "/api/auth/register-student",
        json={
            "name": "Outsider",
            "email": "outsider@gmail.com",
            "password": PASSWORD,
            "university_id": university["university_id"],
            "course_id": course["course_id"],
            "year_level": 2,
        },
    )
    assert response.status_code == 400
    assert "bisu.edu.ph" in response.json()["detail"]


def test_duplicate_email_rejected(client, university, course, tutee):
    response = client.post(
        "/api/auth/register-tutor",
        json={
            "name": "Juan Again",
            "email": tutee["email"],
            "password": PASSWORD,
            "university_id": university["university_id"],
            "course_id": course["course_id"],
            "year_level": 3,
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already exists"


def test_tutor_registration_starts_pending(client, tutor):
    response = client.post(
        "/api/auth/login-tutor-tutee", json={"email": tutor["email"], "password": PASSWORD}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["tutor_id"] == tutor["tutor_id"]
    assert body["user"]["role"] == "tutor"
    assert body["user"]["tutor_status"] == "pending"


def test_change_password(client, tutee):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "not-it", "new_password": "BrandNew123"},
        headers=auth(tutee["token"]),
    )
    assert response.status_code == 400

    response = client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "BrandNew123"},
        headers=auth(tutee["token"]),
    )
    assert response.status_code == 200
    response = client.post(
        "/api/auth/login-tutor-tutee", json={"email": tutee["email"], "password": "BrandNew123"}
    )
    assert response.status_code == 200


def test_missing_or_bad_token(client):
    response = client.get("/api/users/me/bookings")
    assert response.status_code in (401, 403)

    response = client.get("/api/users/me/bookings", headers=auth("not-a-jwt"))
    assert response.status_code == 401


def test_email_verification_creates_placeholder_then_registration_claims_it(
    client, db, university, course, sent_emails
):
    email = "newbie@bisu.edu.ph"
    response = client.post("/api/auth/email-verification/send-code", json={"email": email})
    assert response.status_code == 200
    assert sent_emails[-1]["to"] == email

    placeholder = db.query(User).filter(User.email == email).one()
    assert placeholder.password is None
    code = placeholder.verification_code

    wrong_code = "111111" if code == "000000" else "000000"
    response = client.post(
        "/api/auth/email-verification/verify-code", json={"email": email, "code": wrong_code}
    )
    assert response.status_code == 400

    response = client.post("/api/auth/email-verification/verify-code", json={"email": email, "code": code})
    assert response.status_code == 200

    response = client.get("/api/auth/email-verification/status", params={"email": email})
    assert response.json()["is_verified"] == 1

    response = client.post(
        "/api/auth/register-student",
        json={
            "name": "New Student",
            "email": email,
            "password": PASSWORD,
            "university_id": university["university_id"],
            "course_id": course["course_id"],
            "year_level": 1,
        },
    )
    assert response.status_code == 200, response.text
    assert response.json()["user"]["user_id"] == placeholder.user_id
    assert response.json()["user"]["is_verified"] is True


def test_verification_code_expires(client, db):
    email = "late@bisu.edu.ph"
    client.post("/api/auth/email-verification/send-code", json={"email": email})
    user = db.query(User).filter(User.email == email).one()
    user.verification_expires = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    response = client.post(
        "/api/auth/email-verification/verify-code", json={"email": email, "code": user.verification_code}
    )
    assert response.status_code == 400
    assert "expired" in response.json()["detail"]


def test_verification_status_for_unknown_email(client):
    response = client.get("/api/auth/email-verification/status", params={"email": "nobody@bisu.edu.ph"})
    assert response.status_code == 200
    assert response.json()["is_verified"] == 0


def test_password_reset_flow(client, db, tutee, sent_emails):
    response = client.post("/api/auth/password-reset/request", json={"email": tutee["email"]})
    assert response.status_code == 200
    assert sent_emails[-1]["to"] == tutee["email"]

    token = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == tutee["user_id"]).one()

    response = client.post(
        "/api/auth/password-reset/verify-and-reset",
        json={"email": tutee["email"], "code": "bogus1", "newPassword": "Another123"},
    )
    assert response.status_code == 400

    response = client.post(
        "/api/auth/password-reset/verify-and-reset",
        json={"email": tutee["email"], "code": token.changepasscode, "newPassword": "Another123"},
    )
    assert response.status_code == 200

    response = client.post(
        "/api/auth/password-reset/verify-and-reset",
        json={"email": tutee["email"], "code": token.changepasscode, "newPassword": "ThirdOne123"},
    )
    assert response.status_code == 400

    response = client.post(
        "/api/auth/login-tutor-tutee", json={"email": tutee["email"], "password": "Another123"}
    )
    assert response.status_code == 200


def test_password_reset_for_unknown_email(client):
    response = client.post("/api/auth/password-reset/request", json={"email": "ghost@bisu.edu.ph"})
    assert response.status_code == 404


def test_new_reset_code_invalidates_previous(client, db, tutee):
    client.post("/api/auth/password-reset/request", json={"email": tutee["email"]})
    client.post("/api/auth/password-reset/request", json={"email": tutee["email"]})

    tokens = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.user_id == tutee["user_id"])
        .order_by(PasswordResetToken.id)
        .all()
    )
    assert len(tokens) == 2
    assert tokens[0].is_used is True
    assert tokens[1].is_used is False


def test_legacy_prehashed_password_is_upgraded_on_login(client, db, tutee):
    user = db.get(User, tutee["user_id"])
    legacy_hash = hash_password(hashlib.sha256(PASSWORD.encode("utf-8")).hexdigest())
    user.password = legacy_hash
    db.commit()

    response = client.post("/api/auth/login-tutor-tutee", json={"email": tutee["email"], "password": PASSWORD})
    assert response.status_code == 200

    db.refresh(user)
    assert user.password != legacy_hash
    assert verify_password(PASSWORD, user.password) == (True, False)


def test_login_is_rate_limited(client, monkeypatch, tutee):
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: None)
    monkeypatch.setattr(rate_limiter, "memory_cache", {})

    credentials = {"email": tutee["email"], "password": "wrong-pass"}
    for _ in range(10):
        response = client.post("/api/auth/login-tutor-tutee", json=credentials)
        assert response.status_code == 401

    response = client.post("/api/auth/login-tutor-tutee", json=credentials)
    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0
    assert response.json()["detail"]["limit"] == 10
