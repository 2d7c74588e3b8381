"""
Unified Email Service using Gmail SMTP or Resend (fallback)
Provides email functionality using MJML templates for responsive design
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from fastapi.concurrency import run_in_threadpool
from mjml import mjml_to_html

from . import config
from .email_templates import (
    booking_status_template,
    contact_message_template,
    password_reset_code_template,
    payment_status_template,
    subject_application_status_template,
    tutor_application_status_template,
    verification_code_template,
)

logger = logging.getLogger(__name__)

# Initialize Resend as fallback
resend.api_key = config.RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when no configured transport could deliver a message"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e

    errors = getattr(result, "errors", None) or (result.get("errors") if isinstance(result, dict) else None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    if isinstance(result, dict):
        return result.get("html", "")
    return getattr(result, "html", str(result))


def smtp_configured() -> bool:
    return bool(config.GMAIL_USER and config.GMAIL_APP_PASSWORD)


def send_via_smtp(recipients: list[str], subject: str, html_content: str, from_address: str) -> dict:
    """Send email through the configured SMTP server (Gmail by default)"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = ", ".join(recipients)
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    context = ssl.create_default_context()
    if config.SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, context=context, timeout=30)
    else:
        server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=30)

    try:
        if config.SMTP_PORT != 465:
            server.starttls(context=context)
        server.login(config.GMAIL_USER, config.GMAIL_APP_PASSWORD)
        server.sendmail(config.GMAIL_USER, recipients, msg.as_string())
    finally:
        server.quit()

    logger.info(f"✅ SMTP email sent successfully via {config.SMTP_HOST}")
    return {"id": f"smtp-{datetime.utcnow().timestamp()}", "success": True}


async def send_email(to: Union[str, list[str]], subject: str, mjml_content: str) -> dict:
    """
    Send an email using SMTP (if configured) or Resend (fallback)

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)

    Returns:
        Send response dict

    Raises:
        EmailDeliveryError: when every configured transport failed
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to
    sender = config.EMAIL_FROM_ADDRESS

    if smtp_configured():
        try:
            logger.info(f"📧 Sending email via SMTP to: {recipients}")
            return await run_in_threadpool(send_via_smtp, recipients, subject, html_content, sender)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not config.RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and SMTP unavailable")
        raise EmailDeliveryError("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {"from": sender, "to": recipients, "subject": subject, "html": html_content}
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built Email Templates for Common Events
# ============================================


async def send_verification_code_email(to: str, user_name: str, code: str) -> dict:
    """Send the 6-digit email verification code"""
    mjml_content = verification_code_template(user_name, code, config.VERIFICATION_CODE_TTL_MINUTES)
    return await send_email(to=to, subject="✉️ Verify Your Email - TutorLink", mjml_content=mjml_content)


async def send_password_reset_code_email(to: str, user_name: str, code: str) -> dict:
    """Send the 6-digit password reset code"""
    mjml_content = password_reset_code_template(user_name, code, config.RESET_CODE_TTL_MINUTES)
    return await send_email(
        to=to, subject="🔐 Password Reset Verification Code", mjml_content=mjml_content
    )


async def send_tutor_application_status_email(
    to: str, tutor_name: str, status: str, admin_notes: Optional[str] = None
) -> dict:
    mjml_content = tutor_application_status_template(tutor_name, status, admin_notes)
    subject = (
        "🎉 Your TutorLink Tutor Application Was Approved"
        if status == "approved"
        else "Update on Your TutorLink Tutor Application"
    )
    return await send_email(to=to, subject=subject, mjml_content=mjml_content)


async def send_subject_application_status_email(
    to: str, tutor_name: str, subject_name: str, status: str, admin_notes: Optional[str] = None
) -> dict:
    mjml_content = subject_application_status_template(tutor_name, subject_name, status, admin_notes)
    return await send_email(
        to=to, subject=f"Subject Application {status.title()}: {subject_name}", mjml_content=mjml_content
    )


async def send_booking_status_email(
    to: str,
    student_name: str,
    tutor_name: str,
    subject: str,
    session_date: str,
    session_time: str,
    accepted: bool,
) -> dict:
    mjml_content = booking_status_template(
        student_name, tutor_name, subject, session_date, session_time, accepted
    )
    verdict = "Accepted" if accepted else "Declined"
    return await send_email(to=to, subject=f"Booking {verdict}: {subject}", mjml_content=mjml_content)


async def send_payment_status_email(
    to: str,
    student_name: str,
    subject: str,
    session_date: str,
    amount: str,
    confirmed: bool,
    note: Optional[str] = None,
) -> dict:
    mjml_content = payment_status_template(student_name, subject, session_date, amount, confirmed, note)
    verdict = "Confirmed" if confirmed else "Rejected"
    return await send_email(to=to, subject=f"Payment {verdict} - TutorLink", mjml_content=mjml_content)


async def send_contact_email(sender_name: str, sender_email: str, message: str) -> dict:
    """Forward a landing page contact message to the support inbox"""
    mjml_content = contact_message_template(sender_name, sender_email, message)
    return await send_email(
        to=config.CONTACT_EMAIL, subject=f"TutorLink Contact: {sender_name}", mjml_content=mjml_content
    )
