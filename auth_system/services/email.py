"""Transactional email: verification and password-reset messages over SMTP."""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auth_system.core.config import Settings

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Email Verification"
PASSWORD_RESET_SUBJECT = "Password Reset Request"


def verification_email_html(verification_url: str, expire_hours: int) -> str:
    return (
        "<h1>Email Verification</h1>"
        "<p>Please click the link below to verify your email address:</p>"
        f'<a href="{verification_url}">Verify Email</a>'
        f"<p>This link will expire in {expire_hours} hours.</p>"
    )


def password_reset_email_html(reset_url: str, expire_minutes: int) -> str:
    return (
        "<h1>Reset Password</h1>"
        "<p>You requested to reset your password. Click the link below to reset it:</p>"
        f'<a href="{reset_url}">Reset Password</a>'
        f"<p>This link will expire in {expire_minutes} minutes.</p>"
        "<p>If you didn't request this, please ignore this email.</p>"
    )


def redact_email(email: str) -> str:
    """Redact an email address for logging."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class EmailService:
    """
    Sends verification and reset emails.

    Without SMTP_HOST/EMAIL_FROM nothing is delivered. In dev the message is
    logged instead (recipient redacted, link in the log line) and reported as
    sent; in prod a warning is logged and the send reported as failed.
    Transport failures are logged and reported as False; callers never see
    an exception.
    """

    def __init__(self, settings: "Settings") -> None:
        self.app_env = settings.APP_ENV
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = (
            settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
        )
        self.smtp_use_tls = settings.SMTP_USE_TLS
        self.timeout = settings.SMTP_TIMEOUT_SEC
        self.from_email = settings.EMAIL_FROM or settings.SMTP_USER
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL
        self.verification_expire_hours = settings.EMAIL_VERIFICATION_EXPIRE_HOURS
        self.reset_expire_minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def send(self, to_email: str, subject: str, html_body: str, link: str | None = None) -> bool:
        """
        Send one HTML email. Returns True on success (or dev-mode log).

        ``link`` is the action URL inside the body; it only ever appears in the
        dev-mode log line, never in production logs.
        """
        if not self.is_configured:
            if self.app_env == "dev":
                logger.info(
                    "SMTP not configured; email to %s not sent (dev mode). Subject: %s. Link: %s",
                    redact_email(to_email),
                    subject,
                    link or "-",
                )
                return True
            logger.warning(
                "SMTP not configured; email to %s not sent. Subject: %s",
                redact_email(to_email),
                subject,
            )
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                if self.smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email to %s failed (%s): %s", redact_email(to_email), subject, str(e)[:200])
            return False

        logger.info("Email sent to %s (%s)", redact_email(to_email), subject)
        return True

    def send_verification_email(self, to_email: str, raw_token: str) -> bool:
        url = f"{self.frontend_url}/verify-email/{raw_token}"
        return self.send(
            to_email,
            VERIFICATION_SUBJECT,
            verification_email_html(url, self.verification_expire_hours),
            link=url,
        )

    def send_password_reset_email(self, to_email: str, raw_token: str) -> bool:
        url = f"{self.frontend_url}/reset-password/{raw_token}"
        return self.send(
            to_email,
            PASSWORD_RESET_SUBJECT,
            password_reset_email_html(url, self.reset_expire_minutes),
            link=url,
        )
