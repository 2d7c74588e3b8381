from decimal import Decimal
from pathlib import Path

import pytest
from conftest import auth, future_date, png_upload, register_tutee, register_tutor

from tutorlink import config
from tutorlink.domain.payments import service as payments_service
from tutorlink.models import BookingRequest, Notification
from tutorlink.models import Session as TutoringSession


def book(client, tutee, tutor_id, time="10:00", duration="1.5", subject="Calculus", on=None):
    return client.post(
        f"/api/tutors/{tutor_id}/booking-requests",
        json={
            "subject": subject,
            "date": (on or future_date()).isoformat(),
            "time": time,
            "duration": duration,
            "student_notes": "Chapter 3 limits please",
        },
        headers=auth(tutee["token"]),
    )


@pytest.fixture
def pending_booking(client, approved_tutor, tutee):
    response = book(client, tutee, approved_tutor["tutor_id"])
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def accepted_booking(client, approved_tutor, pending_booking):
    response = client.post(
        f"/api/tutors/booking-requests/{pending_booking['id']}/accept", headers=auth(approved_tutor["token"])
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def submitted_payment(client, tutee, accepted_booking):
    response = client.post(
        f"/api/users/me/bookings/{accepted_booking['id']}/payment-proof",
        files=png_upload(),
        headers=auth(tutee["token"]),
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def upcoming_booking(client, admin, approved_tutor, accepted_booking, submitted_payment):
    response = client.post(f"/api/payments/{submitted_payment['payment_id']}/confirm", headers=auth(admin["token"]))
    assert response.status_code == 200, response.text
    response = client.post(
        f"/api/tutors/booking-requests/{accepted_booking['id']}/payment-approve",
        headers=auth(approved_tutor["token"]),
    )
    assert response.status_code == 200, response.text
    return accepted_booking


# ============================================================================
# Creating bookings
# ============================================================================


def test_booking_request_created_pending_and_tutor_notified(client, approved_tutor, pending_booking):
    assert pending_booking["status"] == "pending"
    assert pending_booking["subject"] == "Calculus"
    assert Decimal(pending_booking["duration"]) == Decimal("1.5")

    response = client.get("/api/users/notifications", headers=auth(approved_tutor["token"]))
    messages = [n["message"] for n in response.json()]
    assert any("requested a booking" in m for m in messages)


def test_subject_match_is_case_insensitive(client, approved_tutor, tutee):
    response = book(client, tutee, approved_tutor["tutor_id"], subject="calculus")
    assert response.status_code == 201
    assert response.json()["subject"] == "Calculus"


def test_overlapping_booking_conflicts_but_touching_is_allowed(client, approved_tutor, tutee, pending_booking):
    response = book(client, tutee, approved_tutor["tutor_id"], time="11:00", duration="1")
    assert response.status_code == 409

    response = book(client, tutee, approved_tutor["tutor_id"], time="11:30", duration="1")
    assert response.status_code == 201


def test_declined_booking_frees_the_slot(client, approved_tutor, tutee, pending_booking):
    response = client.post(
        f"/api/tutors/booking-requests/{pending_booking['id']}/decline", headers=auth(approved_tutor["token"])
    )
    assert response.status_code == 200
    assert response.json()["status"] == "declined"

    response = book(client, tutee, approved_tutor["tutor_id"], time="10:00", duration="1")
    assert response.status_code == 201


def test_booking_outside_availability(client, approved_tutor, tutee):
    response = book(client, tutee, approved_tutor["tutor_id"], time="16:30", duration="1")
    assert response.status_code == 409
    assert "availability" in response.json()["detail"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"duration": "0.25"},
        {"duration": "9"},
        {"time": "10:15"},
        {"subject": "Organic Chemistry"},
    ],
)
def test_invalid_booking_requests(client, approved_tutor, tutee, overrides):
    response = book(client, tutee, approved_tutor["tutor_id"], **overrides)
    assert response.status_code == 400


def test_booking_in_the_past(client, approved_tutor, tutee):
    response = book(client, tutee, approved_tutor["tutor_id"], on=future_date(-1))
    assert response.status_code == 400


def test_unapproved_tutor_cannot_be_booked(client, tutor, tutee):
    response = book(client, tutee, tutor["tutor_id"])
    assert response.status_code == 400


def test_only_tutees_create_bookings(client, approved_tutor):
    response = book(client, approved_tutor, approved_tutor["tutor_id"])
    assert response.status_code == 403


def test_open_slots_exclude_booked_time(client, approved_tutor, pending_booking):
    response = client.get(
        f"/api/tutors/{approved_tutor['tutor_id']}/open-slots",
        params={"date": future_date().isoformat(), "duration": "1"},
    )
    assert response.status_code == 200
    slots = response.json()["slots"]
    assert "08:00" in slots
    assert "09:00" in slots
    assert "09:30" not in slots
    assert "10:30" not in slots
    assert "11:30" in slots
    assert slots[-1] == "16:00"


# ============================================================================
# Tutor decisions
# ============================================================================


def test_accept_moves_to_awaiting_payment_and_emails_tutee(client, tutee, accepted_booking, sent_emails):
    assert accepted_booking["status"] == "awaiting_payment"
    assert any(mail["to"] == tutee["email"] for mail in sent_emails)


def test_other_tutor_cannot_decide(client, university, course, pending_booking):
    other = register_tutor(client, university, course, email="pablo@bisu.edu.ph", name="Pablo")
    response = client.post(
        f"/api/tutors/booking-requests/{pending_booking['id']}/accept", headers=auth(other["token"])
    )
    assert response.status_code == 403


def test_cannot_accept_twice(client, approved_tutor, accepted_booking):
    response = client.post(
        f"/api/tutors/booking-requests/{accepted_booking['id']}/accept", headers=auth(approved_tutor["token"])
    )
    assert response.status_code == 400


def test_tutee_cancels_pending_booking(client, db, approved_tutor, tutee, pending_booking):
    response = client.post(
        f"/api/users/me/bookings/{pending_booking['id']}/cancel", headers=auth(tutee["token"])
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    tutor_messages = [
        n.message for n in db.query(Notification).filter(Notification.receiver_id == approved_tutor["user_id"])
    ]
    assert any("cancelled" in m for m in tutor_messages)


def test_other_tutee_cannot_cancel(client, university, course, pending_booking):
    other = register_tutee(client, university, course, email="ana@bisu.edu.ph", name="Ana")
    response = client.post(
        f"/api/users/me/bookings/{pending_booking['id']}/cancel", headers=auth(other["token"])
    )
    assert response.status_code == 404


# ============================================================================
# Payment review
# ============================================================================


def test_payment_proof_creates_pending_payment(client, tutee, submitted_payment):
    assert submitted_payment["status"] == "pending"
    assert Decimal(submitted_payment["amount"]) == Decimal("300.00")
    assert submitted_payment["payment_proof"].startswith("payment_proofs/paymentProof_")

    response = client.get("/api/users/me/bookings", headers=auth(tutee["token"]))
    booking = response.json()[0]
    assert booking["payment_status"] == "pending"


def test_payment_proof_only_once_while_under_review(client, tutee, accepted_booking, submitted_payment):
    response = client.post(
        f"/api/users/me/bookings/{accepted_booking['id']}/payment-proof",
        files=png_upload(),
        headers=auth(tutee["token"]),
    )
    assert response.status_code == 400


def test_payment_proof_rejects_non_image(client, tutee, accepted_booking):
    response = client.post(
        f"/api/users/me/bookings/{accepted_booking['id']}/payment-proof",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth(tutee["token"]),
    )
    assert response.status_code == 400


def test_payment_proof_requires_accepted_booking(client, tutee, pending_booking):
    response = client.post(
        f"/api/users/me/bookings/{pending_booking['id']}/payment-proof",
        files=png_upload(),
        headers=auth(tutee["token"]),
    )
    assert response.status_code == 400


def test_tutor_cannot_approve_before_admin(client, approved_tutor, accepted_booking, submitted_payment):
    response = client.post(
        f"/api/tutors/booking-requests/{accepted_booking['id']}/payment-approve",
        headers=auth(approved_tutor["token"]),
    )
    assert response.status_code == 400


def test_admin_confirm_notifies_tutor(client, admin, approved_tutor, submitted_payment):
    response = client.post(f"/api/payments/{submitted_payment['payment_id']}/confirm", headers=auth(admin["token"]))
    assert response.status_code == 200
    assert response.json()["status"] == "admin_confirmed"

    response = client.get("/api/users/notifications", headers=auth(approved_tutor["token"]))
    assert any("approved by admin" in n["message"] for n in response.json())


def test_admin_reject_reopens_booking_for_new_proof(client, admin, tutee, accepted_booking, submitted_payment):
    response = client.post(
        f"/api/payments/{submitted_payment['payment_id']}/reject",
        json={"admin_note": "Reference number does not match"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "rejected"
    assert body["payment_proof"] is None

    response = client.get("/api/users/notifications", headers=auth(tutee["token"]))
    assert any("Reference number does not match" in n["message"] for n in response.json())

    response = client.post(
        f"/api/users/me/bookings/{accepted_booking['id']}/payment-proof",
        files=png_upload(),
        headers=auth(tutee["token"]),
    )
    assert response.status_code == 200


def test_tutor_approval_makes_session_upcoming(client, db, tutee, approved_tutor, upcoming_booking):
    booking = db.get(BookingRequest, upcoming_booking["id"])
    assert booking.status == "upcoming"
    session = db.query(TutoringSession).filter(TutoringSession.booking_request_id == booking.id).one()
    assert session.status == "scheduled"
    assert (session.end_time - session.start_time).total_seconds() == 90 * 60

    response = client.get("/api/users/notifications", headers=auth(tutee["token"]))
    messages = [n["message"] for n in response.json()]
    assert any("has been confirmed" in m for m in messages)
    assert not any("upcoming" in m for m in messages)

    response = client.get("/api/users/upcoming-sessions/list", headers=auth(tutee["token"]))
    assert [s["id"] for s in response.json()] == [upcoming_booking["id"]]
    response = client.get("/api/users/upcoming-sessions/has", headers=auth(approved_tutor["token"]))
    assert response.json() == {"hasUpcoming": True}


def test_tutor_dispute_opens_case(client, admin, approved_tutor, accepted_booking, submitted_payment):
    client.post(f"/api/payments/{submitted_payment['payment_id']}/confirm", headers=auth(admin["token"]))

    response = client.post(
        f"/api/tutors/booking-requests/{accepted_booking['id']}/payment-reject",
        headers=auth(approved_tutor["token"]),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["dispute_status"] == "open"

    response = client.patch(
        f"/api/payments/{submitted_payment['payment_id']}/dispute",
        json={"dispute_status": "resolved", "admin_note": "Tutee resent payment"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    assert response.json()["dispute_status"] == "resolved"


def test_cannot_cancel_with_payment_under_review(client, tutee, accepted_booking, submitted_payment):
    response = client.post(
        f"/api/users/me/bookings/{accepted_booking['id']}/cancel", headers=auth(tutee["token"])
    )
    assert response.status_code == 400


# ============================================================================
# Completion and earnings
# ============================================================================


def test_complete_session_and_earnings(client, db, admin, approved_tutor, upcoming_booking):
    tutor_id = approved_tutor["tutor_id"]
    headers = auth(approved_tutor["token"])

    response = client.get(f"/api/tutors/{tutor_id}/earnings-stats", headers=headers)
    assert Decimal(response.json()["total_earnings"]) == Decimal("261.00")
    assert response.json()["completed_sessions"] == 0

    response = client.post(
        f"/api/tutors/booking-requests/{upcoming_booking['id']}/complete",
        files=png_upload("session.png"),
        headers=headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "completed"
    assert response.json()["tutor_proof"].startswith("session_proofs/sessionProof_")

    session = db.query(TutoringSession).filter(TutoringSession.booking_request_id == upcoming_booking["id"]).one()
    assert session.status == "completed"

    stats = client.get(f"/api/tutors/{tutor_id}/earnings-stats", headers=headers).json()
    assert stats["completed_sessions"] == 1
    assert Decimal(stats["total_hours"]) == Decimal("1.5")
    assert Decimal(stats["pending_earnings"]) == Decimal("0.00")

    sessions = client.get(f"/api/tutors/{tutor_id}/sessions", headers=headers).json()
    assert [s["status"] for s in sessions] == ["completed"]

    payments = client.get(f"/api/tutors/{tutor_id}/payments", headers=headers).json()
    assert [p["status"] for p in payments] == ["confirmed"]

    dashboard = client.get("/api/dashboard/stats", headers=auth(admin["token"])).json()
    assert Decimal(dashboard["grossRevenue"]) == Decimal("300.00")
    assert Decimal(dashboard["totalRevenue"]) == Decimal("39.00")
    assert dashboard["confirmedSessions"] == 1
    assert dashboard["mostInDemandSubjects"][0]["subjectName"] == "Calculus"


def test_cannot_complete_before_upcoming(client, approved_tutor, accepted_booking):
    response = client.post(
        f"/api/tutors/booking-requests/{accepted_booking['id']}/complete",
        headers=auth(approved_tutor["token"]),
    )
    assert response.status_code == 400


def test_tutor_booking_list_is_owner_only(client, approved_tutor, tutee, pending_booking):
    response = client.get(
        f"/api/tutors/{approved_tutor['tutor_id']}/booking-requests", headers=auth(approved_tutor["token"])
    )
    assert [b["id"] for b in response.json()] == [pending_booking["id"]]

    response = client.get(
        f"/api/tutors/{approved_tutor['tutor_id']}/booking-requests", headers=auth(tutee["token"])
    )
    assert response.status_code == 403


def test_booking_decisions_need_a_tutor_account(client, admin, tutee, pending_booking):
    for token in (admin["token"], tutee["token"]):
        response = client.post(f"/api/tutors/booking-requests/{pending_booking['id']}/accept", headers=auth(token))
        assert response.status_code == 403


def test_dashboard_counts_completed_session_rows(client, db, admin, pending_booking):
    booking = db.get(BookingRequest, pending_booking["id"])
    booking.status = "completed"
    db.commit()

    dashboard = client.get("/api/dashboard/stats", headers=auth(admin["token"])).json()
    assert dashboard["confirmedSessions"] == 0
    assert dashboard["mostInDemandSubjects"] == []


def test_failed_payment_submission_discards_proof_file(client, monkeypatch, tutee, accepted_booking):
    def failing_notify_admins(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(payments_service, "notify_admins", failing_notify_admins)
    with pytest.raises(RuntimeError):
        client.post(
            f"/api/users/me/bookings/{accepted_booking['id']}/payment-proof",
            files=png_upload(),
            headers=auth(tutee["token"]),
        )
    assert list((Path(config.UPLOAD_DIR) / "payment_proofs").glob("*")) == []
