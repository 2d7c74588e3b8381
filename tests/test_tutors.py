from pathlib import Path

from conftest import PNG_BYTES, auth, png_upload

from tutorlink import config
from tutorlink.models import Notification, TutorAvailability, TutorDocument


def upload_documents(client, tutor, count=1):
    files = [("files", (f"diploma_{n}.png", PNG_BYTES, "image/png")) for n in range(count)]
    return client.post(f"/api/tutors/{tutor['tutor_id']}/documents", files=files, headers=auth(tutor["token"]))


# ============================================================================
# Application review
# ============================================================================


def test_submit_application_requires_documents(client, tutor):
    response = client.post(f"/api/tutors/{tutor['tutor_id']}/submit-application", headers=auth(tutor["token"]))
    assert response.status_code == 400


def test_submit_application_notifies_admins(client, db, admin, tutor):
    response = upload_documents(client, tutor, count=2)
    assert response.status_code == 200, response.text
    documents = response.json()
    assert len(documents) == 2
    assert all(d["file_url"].startswith(f"tutor_documents/tutor_{tutor['tutor_id']}_") for d in documents)

    response = client.post(f"/api/tutors/{tutor['tutor_id']}/submit-application", headers=auth(tutor["token"]))
    assert response.status_code == 200
    assert response.json()["status"] == "pending"

    admin_messages = [n.message for n in db.query(Notification).filter(Notification.receiver_id == admin["user_id"])]
    assert any("submitted a tutor application" in m for m in admin_messages)

    response = client.get("/api/tutors/applications", headers=auth(admin["token"]))
    applications = response.json()
    assert [a["tutor_id"] for a in applications] == [tutor["tutor_id"]]
    assert len(applications[0]["documents"]) == 2


def test_applications_queue_is_admin_only(client, tutor):
    response = client.get("/api/tutors/applications", headers=auth(tutor["token"]))
    assert response.status_code == 403


def test_approval_approves_initial_subjects_and_emails_tutor(client, admin, tutor, sent_emails):
    client.post(
        f"/api/tutors/{tutor['tutor_id']}/subjects",
        json={"subjects": ["Calculus", "calculus", "Physics"]},
        headers=auth(tutor["token"]),
    )

    response = client.patch(
        f"/api/tutors/{tutor['tutor_id']}/status",
        json={"status": "approved"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "approved"
    assert sorted(s["subject_name"] for s in body["subjects"]) == ["Calculus", "Physics"]
    assert all(s["status"] == "approved" for s in body["subjects"])
    assert sent_emails[-1]["to"] == tutor["email"]

    response = client.get(f"/api/tutors/{tutor['user_id']}/status", headers=auth(tutor["token"]))
    assert response.json() == {"status": "approved", "is_verified": True}


def test_rejection_keeps_subjects_pending(client, admin, tutor):
    client.post(f"/api/tutors/{tutor['tutor_id']}/subjects", json={"subjects": ["Calculus"]}, headers=auth(tutor["token"]))
    response = client.patch(
        f"/api/tutors/{tutor['tutor_id']}/status",
        json={"status": "rejected", "adminNotes": "Please upload your transcript"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    assert response.json()["admin_notes"] == "Please upload your transcript"
    assert response.json()["subjects"][0]["status"] == "pending"


def test_tutor_id_lookup_by_user(client, tutor, tutee):
    response = client.get(f"/api/tutors/by-user/{tutor['user_id']}/tutor-id", headers=auth(tutor["token"]))
    assert response.json() == {"tutor_id": tutor["tutor_id"]}

    response = client.get(f"/api/tutors/by-user/{tutee['user_id']}/tutor-id", headers=auth(tutor["token"]))
    assert response.status_code == 404


# ============================================================================
# Profile
# ============================================================================


def test_profile_update_is_owner_only(client, tutor, tutee):
    response = client.put(
        f"/api/tutors/{tutor['tutor_id']}/profile",
        json={"bio": "<script>alert(1)</script>Math tutor", "gcash_number": "+63 917 765 4321", "session_rate_per_hour": "250"},
        headers=auth(tutor["token"]),
    )
    assert response.status_code == 200, response.text
    profile = response.json()
    assert "<script>" not in profile["bio"]
    assert profile["gcash_number"] == "09177654321"

    response = client.put(
        f"/api/tutors/{tutor['tutor_id']}/profile", json={"bio": "hijacked"}, headers=auth(tutee["token"])
    )
    assert response.status_code == 403


def test_profile_rejects_bad_gcash_number(client, tutor):
    response = client.put(
        f"/api/tutors/{tutor['tutor_id']}/profile", json={"gcash_number": "12345"}, headers=auth(tutor["token"])
    )
    assert response.status_code == 422


def test_gcash_qr_and_profile_image_uploads(client, tutor):
    response = client.post(
        f"/api/tutors/{tutor['tutor_id']}/gcash-qr", files=png_upload("qr.png"), headers=auth(tutor["token"])
    )
    assert response.status_code == 200
    assert response.json()["gcash_qr_url"] == f"tutor_gcash_qr/gcashQR_{tutor['tutor_id']}.png"

    response = client.post(
        f"/api/tutors/{tutor['tutor_id']}/profile-image", files=png_upload("me.png"), headers=auth(tutor["token"])
    )
    assert response.status_code == 200
    assert response.json()["profile_image_url"] == f"user_profile_images/userProfile_{tutor['user_id']}.png"

    profile = client.get(f"/api/tutors/{tutor['tutor_id']}/profile", headers=auth(tutor["token"])).json()
    assert profile["gcash_qr_url"].startswith("tutor_gcash_qr/")


def test_unknown_tutor_profile(client, tutor):
    response = client.get("/api/tutors/9999/profile", headers=auth(tutor["token"]))
    assert response.status_code == 404


# ============================================================================
# Subject expertise
# ============================================================================


def test_subject_application_lifecycle(client, admin, approved_tutor, sent_emails):
    tutor_id = approved_tutor["tutor_id"]
    headers = auth(approved_tutor["token"])

    response = client.post(
        f"/api/tutors/{tutor_id}/subject-application",
        data={"subject_name": "Linear Algebra"},
        files=[("files", ("certificate.pdf", b"%PDF-1.4 test", "application/pdf"))],
        headers=headers,
    )
    assert response.status_code == 200, response.text
    application = response.json()
    assert application["status"] == "pending"
    assert len(application["documents"]) == 1

    response = client.post(
        f"/api/tutors/{tutor_id}/subject-application",
        data={"subject_name": "Linear Algebra"},
        files=[("files", ("again.pdf", b"%PDF-1.4 again", "application/pdf"))],
        headers=headers,
    )
    assert response.status_code == 400

    pending = client.get("/api/tutors/subject-applications/pending", headers=auth(admin["token"])).json()
    assert [p["subject_name"] for p in pending] == ["Linear Algebra"]
    assert pending[0]["tutor_email"] == approved_tutor["email"]

    response = client.patch(
        f"/api/tutors/subject-applications/{application['tutor_subject_id']}",
        json={"status": "approved", "admin_notes": "Strong grades"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert sent_emails[-1]["to"] == approved_tutor["email"]

    profile = client.get(f"/api/tutors/{tutor_id}/profile", headers=headers).json()
    assert sorted(profile["subjects"]) == ["Calculus", "Linear Algebra"]

    mine = client.get(f"/api/tutors/{tutor_id}/subject-applications", headers=headers).json()
    assert {s["subject_name"]: s["status"] for s in mine} == {"Calculus": "approved", "Linear Algebra": "approved"}


def test_rejected_subject_can_be_reapplied(client, admin, approved_tutor):
    tutor_id = approved_tutor["tutor_id"]
    headers = auth(approved_tutor["token"])
    files = [("files", ("cert.png", PNG_BYTES, "image/png"))]

    first = client.post(
        f"/api/tutors/{tutor_id}/subject-application", data={"subject_name": "Statistics"}, files=files, headers=headers
    ).json()
    client.patch(
        f"/api/tutors/subject-applications/{first['tutor_subject_id']}",
        json={"status": "rejected", "admin_notes": "Need a grade report"},
        headers=auth(admin["token"]),
    )

    response = client.post(
        f"/api/tutors/{tutor_id}/subject-application", data={"subject_name": "Statistics"}, files=files, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["tutor_subject_id"] == first["tutor_subject_id"]
    assert response.json()["status"] == "pending"
    assert response.json()["admin_notes"] is None


# ============================================================================
# Availability
# ============================================================================


def test_availability_replace_sorts_and_validates(client, tutor):
    tutor_id = tutor["tutor_id"]
    headers = auth(tutor["token"])
    slots = [
        {"day_of_week": "wednesday", "start_time": "13:00", "end_time": "15:00"},
        {"day_of_week": "Monday", "start_time": "08:00", "end_time": "10:00"},
    ]
    response = client.post(f"/api/tutors/{tutor_id}/availability", json={"slots": slots}, headers=headers)
    assert response.status_code == 200
    assert [(s["day_of_week"], s["start_time"]) for s in response.json()] == [
        ("Monday", "08:00"),
        ("Wednesday", "13:00"),
    ]

    overlapping = [
        {"day_of_week": "Friday", "start_time": "08:00", "end_time": "10:00"},
        {"day_of_week": "Friday", "start_time": "09:00", "end_time": "11:00"},
    ]
    response = client.post(f"/api/tutors/{tutor_id}/availability", json={"slots": overlapping}, headers=headers)
    assert response.status_code == 400

    # the failed replace left the earlier schedule intact
    response = client.get(f"/api/tutors/{tutor_id}/availability", headers=headers)
    assert len(response.json()) == 2


def test_availability_change_request_approval_replaces_day(client, db, admin, approved_tutor):
    tutor_id = approved_tutor["tutor_id"]
    response = client.post(
        f"/api/tutors/{tutor_id}/availability-change-request",
        json={"day_of_week": "Saturday", "start_time": "10:00", "end_time": "12:00", "reason": "Weekend classes"},
        headers=auth(approved_tutor["token"]),
    )
    assert response.status_code == 200
    request_id = response.json()["request_id"]

    pending = client.get("/api/tutors/availability-change-requests/pending", headers=auth(admin["token"])).json()
    assert [r["request_id"] for r in pending] == [request_id]

    response = client.patch(
        f"/api/tutors/availability-change-requests/{request_id}",
        json={"status": "approved"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "approved"

    saturday = (
        db.query(TutorAvailability)
        .filter(TutorAvailability.tutor_id == tutor_id, TutorAvailability.day_of_week == "Saturday")
        .all()
    )
    assert [(s.start_time, s.end_time) for s in saturday] == [("10:00", "12:00")]

    response = client.patch(
        f"/api/tutors/availability-change-requests/{request_id}",
        json={"status": "rejected"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 400

    mine = client.get(
        f"/api/tutors/{tutor_id}/availability-change-requests", headers=auth(approved_tutor["token"])
    ).json()
    assert mine[0]["status"] == "approved"


def test_change_request_rejects_bad_times(client, tutor):
    response = client.post(
        f"/api/tutors/{tutor['tutor_id']}/availability-change-request",
        json={"day_of_week": "Monday", "start_time": "12:00", "end_time": "09:00"},
        headers=auth(tutor["token"]),
    )
    assert response.status_code == 400


# ============================================================================
# Upload handling
# ============================================================================


def test_rejected_document_batch_leaves_no_files(client, db, tutor):
    files = [
        ("files", ("transcript.png", PNG_BYTES, "image/png")),
        ("files", ("blank.png", b"", "image/png")),
    ]
    response = client.post(f"/api/tutors/{tutor['tutor_id']}/documents", files=files, headers=auth(tutor["token"]))
    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is empty"

    assert list((Path(config.UPLOAD_DIR) / "tutor_documents").glob("*")) == []
    assert db.query(TutorDocument).filter(TutorDocument.tutor_id == tutor["tutor_id"]).count() == 0


def test_rejected_subject_application_leaves_no_files(client, approved_tutor):
    files = [
        ("files", ("cert.pdf", b"%PDF-1.4 ok", "application/pdf")),
        ("files", ("notes.txt", b"plain text", "text/plain")),
    ]
    response = client.post(
        f"/api/tutors/{approved_tutor['tutor_id']}/subject-application",
        data={"subject_name": "Discrete Math"},
        files=files,
        headers=auth(approved_tutor["token"]),
    )
    assert response.status_code == 400
    assert list((Path(config.UPLOAD_DIR) / "tutor_documents").glob("*")) == []


def test_reupload_replaces_other_extension(client, tutor):
    headers = auth(tutor["token"])
    qr_dir = Path(config.UPLOAD_DIR) / "tutor_gcash_qr"

    client.post(f"/api/tutors/{tutor['tutor_id']}/gcash-qr", files=png_upload("qr.png"), headers=headers)
    response = client.post(
        f"/api/tutors/{tutor['tutor_id']}/gcash-qr",
        files={"file": ("qr.jpg", b"\xff\xd8\xff\xe0" + b"\x00" * 32, "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["gcash_qr_url"] == f"tutor_gcash_qr/gcashQR_{tutor['tutor_id']}.jpg"
    assert sorted(p.name for p in qr_dir.iterdir()) == [f"gcashQR_{tutor['tutor_id']}.jpg"]


def test_oversize_upload_rejected(client, monkeypatch, tutor):
    monkeypatch.setattr(config, "MAX_UPLOAD_SIZE_MB", 1)
    big = PNG_BYTES + b"\x00" * (1024 * 1024)
    response = client.post(
        f"/api/tutors/{tutor['tutor_id']}/gcash-qr",
        files={"file": ("qr.png", big, "image/png")},
        headers=auth(tutor["token"]),
    )
    assert response.status_code == 400
    assert "exceeds 1MB" in response.json()["detail"]
    assert not (Path(config.UPLOAD_DIR) / "tutor_gcash_qr").exists()


def test_dangerous_filename_rejected(client, tutor):
    response = client.post(
        f"/api/tutors/{tutor['tutor_id']}/gcash-qr",
        files={"file": ("qr|rm.png", PNG_BYTES, "image/png")},
        headers=auth(tutor["token"]),
    )
    assert response.status_code == 400
    assert "dangerous character '|'" in response.json()["detail"]
