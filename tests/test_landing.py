import smtplib
from datetime import date
from decimal import Decimal

import pytest
from conftest import auth

from tutorlink import config, email_service
from tutorlink.domain.dashboard.service import last_months, platform_cut


def test_root_and_health(client):
    body = client.get("/").json()
    assert body["message"] == "TutorLink API is running!"
    assert body["endpoints"]["tutors"] == "/api/tutors"
    assert client.get("/health").json() == {"status": "healthy"}


def test_landing_stats(client, approved_tutor, tutee):
    client.post("/api/auth/email-verification/send-code", json={"email": "lurker@bisu.edu.ph"})

    stats = client.get("/api/landing/stats").json()
    assert stats == {"users": 3, "tutors": 1, "universities": 1, "courses": 1, "sessions": 0}


def test_contact_form_forwards_message(client, sent_emails):
    response = client.post(
        "/api/landing/contact",
        json={"name": "Curious Parent", "email": "parent@example.com", "message": "Do you offer chemistry?"},
    )
    assert response.status_code == 200
    assert "Do you offer chemistry?" in sent_emails[-1]["body"]


def test_contact_form_reports_delivery_failure(client, monkeypatch):
    async def broken_send_email(to, subject, mjml_content):
        raise email_service.EmailDeliveryError("smtp down")

    monkeypatch.setattr(email_service, "send_email", broken_send_email)
    response = client.post(
        "/api/landing/contact",
        json={"name": "Curious Parent", "email": "parent@example.com", "message": "Hello"},
    )
    assert response.status_code == 400


def test_dashboard_requires_admin(client, tutee):
    response = client.get("/api/dashboard/stats", headers=auth(tutee["token"]))
    assert response.status_code == 403


def test_dashboard_on_fresh_platform(client, admin, tutor, tutee):
    stats = client.get("/api/dashboard/stats", headers=auth(admin["token"])).json()
    assert stats["totalUsers"] == 3
    assert stats["totalTutors"] == 0
    assert stats["pendingApplications"] == 1
    assert Decimal(stats["grossRevenue"]) == Decimal("0")
    assert stats["userTypeTotals"] == {"tutors": 1, "tutees": 1, "admins": 1}
    assert len(stats["paymentOverview"]["revenueByMonth"]) == 6
    assert stats["universityDistribution"][0]["universityName"] == "Bohol Island State University"
    assert stats["universityDistribution"][0]["users"] == 2


def test_last_months_wraps_year():
    assert last_months(date(2026, 2, 15), 4) == ["2025-11", "2025-12", "2026-01", "2026-02"]


def test_platform_cut():
    assert platform_cut(Decimal("300")) == Decimal("39.00")


def test_smtp_connection_closed_when_starttls_fails(monkeypatch):
    closed = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host

        def starttls(self, context=None):
            raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server")

        def quit(self):
            closed.append(self.host)

    monkeypatch.setattr(config, "SMTP_PORT", 587)
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    with pytest.raises(smtplib.SMTPNotSupportedError):
        email_service.send_via_smtp(["parent@example.com"], "Hello", "<p>Hello</p>", "TutorLink <noreply@tutorlink.app>")
    assert closed == [config.SMTP_HOST]
