from conftest import PASSWORD, auth, png_upload, register_tutee


def test_admin_lists_users_without_placeholders(client, admin, tutee, tutor):
    client.post("/api/auth/email-verification/send-code", json={"email": "pending@bisu.edu.ph"})

    response = client.get("/api/users", headers=auth(admin["token"]))
    assert response.status_code == 200
    emails = {u["email"] for u in response.json()}
    assert emails == {"admin@tutorlink.app", tutee["email"], tutor["email"]}


def test_user_listing_is_admin_only(client, tutee):
    response = client.get("/api/users", headers=auth(tutee["token"]))
    assert response.status_code == 403


def test_deactivated_user_is_locked_out(client, admin, tutee):
    response = client.patch(
        f"/api/users/{tutee['user_id']}/status", json={"status": "inactive"}, headers=auth(admin["token"])
    )
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"

    response = client.get("/api/users/me/bookings", headers=auth(tutee["token"]))
    assert response.status_code == 401

    response = client.post("/api/auth/login-tutor-tutee", json={"email": tutee["email"], "password": PASSWORD})
    assert response.status_code == 401


def test_admin_resets_password(client, admin, tutee):
    response = client.patch(
        f"/api/users/{tutee['user_id']}/reset-password",
        json={"newPassword": "AdminSet123"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    response = client.post("/api/auth/login-tutor-tutee", json={"email": tutee["email"], "password": "AdminSet123"})
    assert response.status_code == 200


def test_self_update_and_restrictions(client, admin, tutee, tutor):
    response = client.patch(
        f"/api/users/{tutee['user_id']}", json={"name": "Juan D.", "year_level": 3}, headers=auth(tutee["token"])
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Juan D."
    assert response.json()["year_level"] == 3

    response = client.patch(f"/api/users/{tutor['user_id']}", json={"name": "Nope"}, headers=auth(tutee["token"]))
    assert response.status_code == 403

    response = client.patch(
        f"/api/users/{tutee['user_id']}", json={"status": "inactive"}, headers=auth(tutee["token"])
    )
    assert response.status_code == 403

    response = client.patch(
        f"/api/users/{tutee['user_id']}", json={"email": tutor["email"]}, headers=auth(admin["token"])
    )
    assert response.status_code == 400


def test_delete_user(client, admin, university, course):
    doomed = register_tutee(client, university, course, email="doomed@bisu.edu.ph", name="Doomed")
    response = client.delete(f"/api/users/{doomed['user_id']}", headers=auth(admin["token"]))
    assert response.status_code == 200

    emails = {u["email"] for u in client.get("/api/users", headers=auth(admin["token"])).json()}
    assert "doomed@bisu.edu.ph" not in emails

    response = client.delete(f"/api/users/{admin['user_id']}", headers=auth(admin["token"]))
    assert response.status_code == 400


def test_admin_profile_and_qr(client, admin, tutee):
    response = client.get(f"/api/users/{admin['user_id']}/admin-profile", headers=auth(tutee["token"]))
    assert response.status_code == 200
    assert response.json()["qr_code_url"] is None
    assert client.get("/api/users/admins-with-qr", headers=auth(tutee["token"])).json() == []

    response = client.post(
        f"/api/users/{admin['user_id']}/admin-qr", files=png_upload("gcash.png"), headers=auth(admin["token"])
    )
    assert response.status_code == 200
    assert response.json()["qr_code_url"] == f"admin_qr/adminQR_{admin['user_id']}.png"

    response = client.get("/api/users/admins-with-qr", headers=auth(tutee["token"]))
    assert [a["user_id"] for a in response.json()] == [admin["user_id"]]

    response = client.get(f"/api/users/{tutee['user_id']}/admin-profile", headers=auth(tutee["token"]))
    assert response.status_code == 404


def test_profile_image_upload_only_for_self(client, tutee, tutor):
    response = client.post(
        f"/api/users/{tutee['user_id']}/profile-image", files=png_upload("me.png"), headers=auth(tutee["token"])
    )
    assert response.status_code == 200
    assert response.json()["profile_image_url"] == f"user_profile_images/userProfile_{tutee['user_id']}.png"

    response = client.post(
        f"/api/users/{tutor['user_id']}/profile-image", files=png_upload("me.png"), headers=auth(tutee["token"])
    )
    assert response.status_code == 403


def test_upcoming_sessions_empty_by_default(client, tutee):
    assert client.get("/api/users/upcoming-sessions/list", headers=auth(tutee["token"])).json() == []
    assert client.get("/api/users/upcoming-sessions/has", headers=auth(tutee["token"])).json() == {
        "hasUpcoming": False
    }
