"""
Mail Service - transactional email over SMTP.

Sends:
1. Registration OTP codes
2. Password reset links

Delivery is synchronous and never retried. Any failure is logged and raised
as MailFailure so the triggering operation (send-otp, resend-otp,
forgot-password) aborts and reports it to the caller.
"""

import logging
import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from placement_portal.core.config import Settings, get_settings
from placement_portal.core.errors import MailFailure

logger = logging.getLogger(__name__)


OTP_EMAIL_HTML = """
<h2>Email Verification</h2>
<p>Your OTP for email verification is:</p>
<h1 style="color: #4a90e2; font-size: 32px; text-align: center;">{otp}</h1>
<p>This OTP will expire in {minutes} minutes.</p>
<p>If you didn't request this, please ignore this email.</p>
"""

RESET_EMAIL_HTML = """
<p>You requested a password reset for your {role} account.</p>
<p>Click the link below to reset your password:</p>
<a href="{url}">{url}</a>
<p>This link will expire in {minutes} minutes.</p>
<p>If you didn't request this, please ignore this email.</p>
"""


class Mailer:
    """
    Thin SMTP client.
    A new connection is opened per message; the portal sends few emails.
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        s = self.settings
        return bool(s.smtp_host and s.smtp_user and s.smtp_password and s.smtp_sender)

    def send(self, to: str, subject: str, html_body: str) -> None:
        """Send one HTML email. Raises MailFailure on any error."""
        if not self.is_configured:
            logger.error("SMTP is not configured; cannot send '%s' to %s", subject, to)
            raise MailFailure()

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.settings.smtp_sender
        msg["To"] = to
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html_body, subtype="html")

        s = self.settings
        try:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
                if s.smtp_use_tls:
                    server.starttls()
                server.login(s.smtp_user, s.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send '%s' to %s: %s", subject, to, e)
            raise MailFailure() from e

        logger.info("Sent '%s' to %s", subject, to)

    def send_otp_email(self, email: str, otp: str) -> None:
        html = OTP_EMAIL_HTML.format(otp=otp, minutes=self.settings.otp_expire_minutes)
        self.send(email, "Email Verification - NSEC Placement Portal", html)

    def send_password_reset_email(self, email: str, token: str, role: str) -> None:
        query = urlencode({"token": token, "type": role})
        url = f"{self.settings.frontend_url.rstrip('/')}/reset-password?{query}"
        html = RESET_EMAIL_HTML.format(
            role=role.capitalize(), url=url, minutes=self.settings.reset_token_expire_minutes
        )
        self.send(email, "Password Reset Request", html)

    def test_connection(self) -> bool:
        """Log in to the SMTP server without sending anything."""
        if not self.is_configured:
            return False
        s = self.settings
        try:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
                if s.smtp_use_tls:
                    server.starttls()
                server.login(s.smtp_user, s.smtp_password)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP connection failed: %s", e)
            return False
