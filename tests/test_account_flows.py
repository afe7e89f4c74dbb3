"""Email verification and password reset flows through the API."""

import unittest
from datetime import UTC, datetime, timedelta

from auth_system.core.database import SessionLocal
from auth_system.core.security import hash_one_time_token
from auth_system.models import User
from auth_system.services.sessions import RefreshTokenRegistry
from tests.base import API, DEFAULT_PASSWORD, ApiTestCase


class TestEmailVerification(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        body = self.register(email="a@x.com").json()["data"]
        self.user_id = body["user"]["id"]
        self.access = body["tokens"]["accessToken"]
        self.raw_token = self.mailer.send_verification_email.call_args.args[1]

    def test_only_digest_is_stored(self) -> None:
        user = self.load_user(self.user_id)
        self.assertEqual(user.email_verification_token, hash_one_time_token(self.raw_token))
        self.assertNotEqual(user.email_verification_token, self.raw_token)

    def test_verify_marks_email_verified_once(self) -> None:
        response = self.client.get(f"{API}/auth/verify-email/{self.raw_token}")
        self.assertEqual(response.status_code, 200)
        user = self.load_user(self.user_id)
        self.assertTrue(user.email_verified)
        self.assertIsNone(user.email_verification_token)

        again = self.client.get(f"{API}/auth/verify-email/{self.raw_token}")
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["message"], "Invalid or expired verification token")

    def test_expired_token_rejected(self) -> None:
        with SessionLocal() as db:
            db.get(User, self.user_id).email_verification_expires = datetime.now(UTC) - timedelta(minutes=1)
            db.commit()
        self.assertEqual(self.client.get(f"{API}/auth/verify-email/{self.raw_token}").status_code, 400)

    def test_unknown_token_rejected(self) -> None:
        self.assertEqual(self.client.get(f"{API}/auth/verify-email/{'0' * 64}").status_code, 400)

    def test_resend_replaces_token(self) -> None:
        self.mailer.reset_mock()
        response = self.client.post(f"{API}/auth/resend-verification", headers=self.bearer(self.access))
        self.assertEqual(response.status_code, 200)
        new_token = self.mailer.send_verification_email.call_args.args[1]
        self.assertNotEqual(new_token, self.raw_token)
        self.assertEqual(self.client.get(f"{API}/auth/verify-email/{self.raw_token}").status_code, 400)
        self.assertEqual(self.client.get(f"{API}/auth/verify-email/{new_token}").status_code, 200)

    def test_resend_when_verified_is_400(self) -> None:
        self.client.get(f"{API}/auth/verify-email/{self.raw_token}")
        response = self.client.post(f"{API}/auth/resend-verification", headers=self.bearer(self.access))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Email is already verified")


class TestPasswordReset(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user_id = self.register(email="a@x.com").json()["data"]["user"]["id"]
        self.login_tokens()

    def request_reset(self, email: str = "a@x.com") -> str | None:
        self.mailer.reset_mock()
        response = self.client.post(f"{API}/auth/forgot-password", json={"email": email})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()["message"],
            "If that email is registered, a password reset link has been sent",
        )
        if not self.mailer.send_password_reset_email.called:
            return None
        return self.mailer.send_password_reset_email.call_args.args[1]

    def reset(self, token: str, password: str = "N3wPassword"):
        return self.client.post(f"{API}/auth/reset-password/{token}", json={"password": password})

    def test_unknown_email_gets_same_answer_and_no_mail(self) -> None:
        self.assertIsNone(self.request_reset("nobody@x.com"))

    def test_reset_sets_password_and_revokes_sessions(self) -> None:
        token = self.request_reset()
        self.assertIsNotNone(token)
        response = self.reset(token)
        self.assertEqual(response.status_code, 200)
        with SessionLocal() as db:
            self.assertEqual(RefreshTokenRegistry(db, self.user_id).tokens(), [])
        self.assertEqual(self.login(password=DEFAULT_PASSWORD).status_code, 401)
        self.assertEqual(self.login(password="N3wPassword").status_code, 200)

    def test_token_is_single_use(self) -> None:
        token = self.request_reset()
        self.assertEqual(self.reset(token).status_code, 200)
        response = self.reset(token, "An0therPass")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid or expired reset token")

    def test_expired_token_rejected(self) -> None:
        token = self.request_reset()
        with SessionLocal() as db:
            db.get(User, self.user_id).password_reset_expires = datetime.now(UTC) - timedelta(seconds=1)
            db.commit()
        self.assertEqual(self.reset(token).status_code, 400)

    def test_weak_new_password_is_400(self) -> None:
        token = self.request_reset()
        response = self.reset(token, "short")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "password")

    def test_deactivated_account_gets_no_mail(self) -> None:
        with SessionLocal() as db:
            db.get(User, self.user_id).is_active = False
            db.commit()
        self.assertIsNone(self.request_reset())


if __name__ == "__main__":
    unittest.main()
