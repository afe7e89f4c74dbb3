"""Test package. Point the app at an in-memory SQLite database before anything imports it."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "dev"
os.environ["REQUIRE_EMAIL_VERIFICATION"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
