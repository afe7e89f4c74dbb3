import unittest

from auth_system.core.config import API_VERSION
from tests.base import API, ApiTestCase


class TestHealth(ApiTestCase):
    def test_health_reports_database(self) -> None:
        response = self.client.get(f"{API}/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"status": "ok", "environment": "dev", "version": API_VERSION, "database": "connected"},
        )

    def test_root(self) -> None:
        body = self.client.get("/").json()
        self.assertEqual(body["message"], "Auth API is running")
        self.assertEqual(body["version"], API_VERSION)


if __name__ == "__main__":
    unittest.main()
