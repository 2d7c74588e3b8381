"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Sky/Slate color scheme
THEME = {
    "primary": "#0ea5e9",
    "primary_dark": "#0369a1",
    "primary_light": "#e0f2fe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#1e293b",
    "text_secondary": "#475569",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

TAGLINE = "TutorLink - Connecting Minds, Building Futures"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="{THEME['primary']}" padding="28px 20px" border-radius="8px 8px 0 0">
          <mj-column>
            <mj-text align="center" font-size="26px" font-weight="700" color="#ffffff" padding="0">
              TutorLink
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="{THEME['card_bg']}" padding="32px 40px 40px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">
              This email was sent from {TAGLINE}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _code_block(code: str) -> str:
    return f"""
    <mj-text align="center" padding="24px 0">
      <span style="background-color: {THEME['primary_light']}; border: 2px dashed {THEME['primary']}; border-radius: 8px; padding: 16px 28px; color: {THEME['primary_dark']}; font-size: 32px; font-weight: bold; letter-spacing: 6px; font-family: 'Courier New', monospace;">{code}</span>
    </mj-text>
    """


def _notes_block(label: str, notes: Optional[str]) -> str:
    if not notes:
        return ""
    return f"""
    <mj-text container-background-color="{THEME['background']}" color="{THEME['text_secondary']}" padding="16px 0">
      <strong>{label}:</strong> {escape(notes)}
    </mj-text>
    """


def verification_code_template(user_name: str, code: str, ttl_minutes: int) -> str:
    """Email verification code template"""
    content = f"""
    <mj-text>Hello {escape(user_name)},</mj-text>
    <mj-text>
      Use the code below to verify your email address and finish setting up your TutorLink account.
    </mj-text>
    {_code_block(code)}
    <mj-text color="{THEME['warning']}" font-size="14px">
      This code expires in <strong>{ttl_minutes} minutes</strong>. Do not share it with anyone.
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't request this, you can safely ignore this email.
    </mj-text>
    """
    return get_base_template(
        title="Verify Your Email Address",
        preview_text=f"Your verification code is {code}",
        content_sections=content,
    )


def password_reset_code_template(user_name: str, code: str, ttl_minutes: int) -> str:
    """Password reset verification code template"""
    content = f"""
    <mj-text>Hello {escape(user_name)},</mj-text>
    <mj-text>
      You requested to reset your password for your TutorLink account.
      Use the verification code below to complete the password reset process.
    </mj-text>
    {_code_block(code)}
    <mj-text color="{THEME['warning']}" font-size="14px">
      This code will expire in <strong>{ttl_minutes} minutes</strong> and can only be used once.
      If you didn't request this reset, please ignore this email.
    </mj-text>
    """
    return get_base_template(
        title="Password Reset",
        preview_text="Your password reset code is ready",
        content_sections=content,
    )


def tutor_application_status_template(
    tutor_name: str, status: str, admin_notes: Optional[str] = None
) -> str:
    """Tutor application approved/rejected template"""
    if status == "approved":
        headline = "Your Tutor Application Was Approved"
        body = """
        <mj-text>
          Congratulations! Your application to become a TutorLink tutor has been approved.
          You can now set your availability and start accepting booking requests.
        </mj-text>
        """
        cta_url, cta_label = f"{FRONTEND_URL}/#/login", "Go to Dashboard"
    else:
        headline = "Update on Your Tutor Application"
        body = """
        <mj-text>
          Thank you for applying to tutor on TutorLink. After reviewing your documents,
          we are unable to approve your application at this time.
        </mj-text>
        """
        cta_url, cta_label = None, None

    content = f"""
    <mj-text>Hello {escape(tutor_name)},</mj-text>
    {body}
    {_notes_block("Notes from the admin", admin_notes)}
    """
    return get_base_template(
        title=headline,
        preview_text=headline,
        content_sections=content,
        cta_url=cta_url,
        cta_label=cta_label,
    )


def subject_application_status_template(
    tutor_name: str, subject_name: str, status: str, admin_notes: Optional[str] = None
) -> str:
    """Subject expertise application approved/rejected template"""
    color = THEME["success"] if status == "approved" else THEME["danger"]
    content = f"""
    <mj-text>Hello {escape(tutor_name)},</mj-text>
    <mj-text>
      Your application to tutor <strong>{escape(subject_name)}</strong> has been
      <strong style="color: {color};">{status}</strong>.
    </mj-text>
    {_notes_block("Notes from the admin", admin_notes)}
    """
    return get_base_template(
        title="Subject Application Update",
        preview_text=f"Your {subject_name} application was {status}",
        content_sections=content,
    )


def booking_status_template(
    student_name: str,
    tutor_name: str,
    subject: str,
    session_date: str,
    session_time: str,
    accepted: bool,
) -> str:
    """Booking accepted/declined template sent to the tutee"""
    if accepted:
        title = "Your Booking Was Accepted"
        next_step = """
        <mj-text>
          Please complete your payment and upload the proof of payment from <strong>My Bookings</strong>
          to secure the session.
        </mj-text>
        """
    else:
        title = "Your Booking Was Declined"
        next_step = """
        <mj-text>
          The tutor is unable to take this session. You can look for another available time or tutor.
        </mj-text>
        """

    content = f"""
    <mj-text>Hello {escape(student_name)},</mj-text>
    <mj-text>
      {escape(tutor_name)} has {'accepted' if accepted else 'declined'} your booking for
      <strong>{escape(subject)}</strong> on <strong>{session_date}</strong> at <strong>{session_time}</strong>.
    </mj-text>
    {next_step}
    """
    return get_base_template(
        title=title,
        preview_text=title,
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/#/tutee-dashboard",
        cta_label="View My Bookings",
    )


def payment_status_template(
    student_name: str,
    subject: str,
    session_date: str,
    amount: str,
    confirmed: bool,
    note: Optional[str] = None,
) -> str:
    """Payment confirmed/rejected template sent to the tutee"""
    if confirmed:
        title = "Payment Confirmed"
        body = f"""
        <mj-text>
          Your payment of <strong>₱{amount}</strong> for <strong>{escape(subject)}</strong> on
          <strong>{session_date}</strong> has been confirmed. Your session is now upcoming.
        </mj-text>
        """
    else:
        title = "Payment Rejected"
        body = f"""
        <mj-text>
          We could not verify your payment of <strong>₱{amount}</strong> for <strong>{escape(subject)}</strong>
          on <strong>{session_date}</strong>. Please upload a valid proof of payment again.
        </mj-text>
        """

    content = f"""
    <mj-text>Hello {escape(student_name)},</mj-text>
    {body}
    {_notes_block("Note", note)}
    """
    return get_base_template(title=title, preview_text=title, content_sections=content)


def contact_message_template(sender_name: str, sender_email: str, message: str) -> str:
    """Landing page contact form message forwarded to the support inbox"""
    content = f"""
    <mj-text><strong>From:</strong> {escape(sender_name)} &lt;{escape(sender_email)}&gt;</mj-text>
    <mj-text container-background-color="{THEME['background']}" padding="16px 0">
      {escape(message).replace(chr(10), '<br />')}
    </mj-text>
    """
    return get_base_template(
        title="New Contact Message",
        preview_text=f"Message from {sender_name}",
        content_sections=content,
    )
