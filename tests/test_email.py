"""Unit tests for EmailService: dev mode, SMTP delivery and failure handling."""

import smtplib
import unittest
from unittest.mock import patch

from auth_system.core.config import Settings
from auth_system.services.email import (
    PASSWORD_RESET_SUBJECT,
    VERIFICATION_SUBJECT,
    EmailService,
    redact_email,
)


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": 2525,
        "SMTP_USER": "mailer",
        "SMTP_PASSWORD": "smtp-secret",
        "EMAIL_FROM": "noreply@example.com",
        "FRONTEND_URL": "https://app.example.com/",
    }
    values.update(overrides)
    return Settings(**values)


class TestRedactEmail(unittest.TestCase):
    def test_keeps_domain_and_two_chars(self) -> None:
        self.assertEqual(redact_email("alice@example.com"), "al***@example.com")

    def test_not_an_address(self) -> None:
        self.assertEqual(redact_email("alice"), "redacted")


class TestSmtpNotConfigured(unittest.TestCase):
    @patch("auth_system.services.email.smtplib.SMTP")
    def test_dev_mode_logs_link_in_message(self, smtp_cls) -> None:
        service = EmailService(_settings(SMTP_HOST="", APP_ENV="dev"))
        self.assertFalse(service.is_configured)
        with self.assertLogs("auth_system.services.email", level="INFO") as logs:
            self.assertTrue(service.send_verification_email("alice@x.com", "RAWTOKEN123"))
        self.assertEqual(len(logs.output), 1)
        line = logs.output[0]
        self.assertIn("https://app.example.com/verify-email/RAWTOKEN123", line)
        self.assertIn("al***@x.com", line)
        self.assertNotIn("alice@x.com", line)
        smtp_cls.assert_not_called()

    @patch("auth_system.services.email.smtplib.SMTP")
    def test_prod_without_smtp_reports_failure_and_hides_link(self, smtp_cls) -> None:
        service = EmailService(_settings(SMTP_HOST="", APP_ENV="prod"))
        with self.assertLogs("auth_system.services.email", level="WARNING") as logs:
            self.assertFalse(service.send_password_reset_email("alice@x.com", "RAWTOKEN123"))
        self.assertTrue(logs.output[0].startswith("WARNING:"))
        self.assertNotIn("RAWTOKEN123", logs.output[0])
        self.assertEqual(logs.records[0].args, ("al***@x.com", PASSWORD_RESET_SUBJECT))
        smtp_cls.assert_not_called()


@patch("auth_system.services.email.smtplib.SMTP")
class TestSmtpDelivery(unittest.TestCase):
    def setUp(self) -> None:
        self.service = EmailService(_settings())

    def test_verification_email(self, smtp_cls) -> None:
        server = smtp_cls.return_value.__enter__.return_value
        self.assertTrue(self.service.send_verification_email("a@x.com", "abc123"))

        smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "smtp-secret")
        from_addr, to_addrs, message = server.sendmail.call_args.args
        self.assertEqual(from_addr, "noreply@example.com")
        self.assertEqual(to_addrs, ["a@x.com"])
        self.assertIn(f"Subject: {VERIFICATION_SUBJECT}", message)

    def test_links_point_at_frontend(self, smtp_cls) -> None:
        with patch.object(self.service, "send", return_value=True) as send:
            self.service.send_verification_email("a@x.com", "abc123")
            self.service.send_password_reset_email("a@x.com", "def456")
        verify_call, reset_call = send.call_args_list
        self.assertEqual(verify_call.args[1], VERIFICATION_SUBJECT)
        self.assertIn("https://app.example.com/verify-email/abc123", verify_call.args[2])
        self.assertIn("24 hours", verify_call.args[2])
        self.assertEqual(reset_call.args[1], PASSWORD_RESET_SUBJECT)
        self.assertIn("https://app.example.com/reset-password/def456", reset_call.args[2])
        self.assertIn("60 minutes", reset_call.args[2])

    def test_no_tls_no_login(self, smtp_cls) -> None:
        service = EmailService(_settings(SMTP_USE_TLS=False, SMTP_USER="", SMTP_PASSWORD=None))
        server = smtp_cls.return_value.__enter__.return_value
        self.assertTrue(service.send("a@x.com", "Hi", "<p>Hi</p>"))
        server.starttls.assert_not_called()
        server.login.assert_not_called()

    def test_smtp_error_returns_false(self, smtp_cls) -> None:
        server = smtp_cls.return_value.__enter__.return_value
        server.sendmail.side_effect = smtplib.SMTPRecipientsRefused({"a@x.com": (550, b"no")})
        with self.assertLogs("auth_system.services.email", level="ERROR") as logs:
            self.assertFalse(self.service.send("a@x.com", "Hi", "<p>Hi</p>"))
        self.assertIn("Email to a***@x.com failed (Hi)", logs.output[0])

    def test_connection_error_returns_false(self, smtp_cls) -> None:
        smtp_cls.side_effect = ConnectionRefusedError()
        self.assertFalse(self.service.send("a@x.com", "Hi", "<p>Hi</p>"))


if __name__ == "__main__":
    unittest.main()
