"""Authentication dependency and role gate tests."""

from __future__ import annotations

import os
from typing import Annotated
import unittest

from fastapi import Depends, Request
from fastapi.testclient import TestClient

from devcamper.adapters.geocoding import GeoPoint, StaticGeocoder
from devcamper.core.config import get_settings
from devcamper.core.tokens import TokenService
from devcamper.main import create_app
from devcamper.repositories.memory import InMemoryStore
from devcamper.routes.dependencies import get_authenticated_principal
from devcamper.schemas.auth import AuthPrincipal

_BOOTCAMP = {
    "name": "Devworks Bootcamp",
    "description": "Full stack web development",
    "address": "233 Bay State Rd Boston MA 02215",
    "careers": ["Web Development"],
}


class _CountingGeocoder(StaticGeocoder):
    def __init__(self) -> None:
        super().__init__(default=GeoPoint(42.35, -71.1))
        self.calls = 0

    async def geocode(self, address: str) -> GeoPoint:
        self.calls += 1
        return await super().geocode(address)


class _SettingsEnvCase(unittest.TestCase):
    _env_keys = (
        "DEVCAMPER_JWT_SECRET",
        "DEVCAMPER_EMAIL_PROVIDER",
        "DEVCAMPER_GEOCODER_PROVIDER",
    )

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env_keys}
        os.environ["DEVCAMPER_JWT_SECRET"] = "test-jwt-secret"
        os.environ["DEVCAMPER_EMAIL_PROVIDER"] = "memory"
        os.environ["DEVCAMPER_GEOCODER_PROVIDER"] = "static"
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()


class AuthMiddlewareTests(_SettingsEnvCase):
    def setUp(self) -> None:
        super().setUp()
        self.store = InMemoryStore()
        self.geocoder = _CountingGeocoder()
        self.app = create_app(store=self.store, geocoder=self.geocoder)

        @self.app.get("/api/v1/whoami")
        async def whoami(
            request: Request,
            principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
        ) -> dict[str, str]:
            attached = request.state.auth_principal
            return {"user_id": attached.user_id, "role": attached.role}

        self.client = TestClient(self.app)
        self.tokens = TokenService.from_settings(get_settings())

    def _seed_user(self, role: str) -> tuple[str, str]:
        user = self.store.users.insert(
            {
                "name": f"{role} account",
                "email": f"{role}@example.com",
                "role": role,
                "password_hash": "unused",
                "reset_password_token": None,
                "reset_password_expire": None,
            }
        )
        return user["id"], self.tokens.issue(user["id"])

    def test_missing_token_is_rejected_before_handler_runs(self) -> None:
        with self.assertLogs("devcamper.routes.dependencies", level="WARNING") as logs:
            response = self.client.post("/api/v1/bootcamps", json=_BOOTCAMP)

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"success": False, "error": "Not authorized to access this route"})
        self.assertEqual(self.store.bootcamps.write_count, 0)
        self.assertEqual(self.geocoder.calls, 0)
        self.assertIn("reason=missing_token", logs.output[0])

    def test_invalid_token_is_rejected(self) -> None:
        response = self.client.get("/api/v1/whoami", headers={"Authorization": "Bearer not-a-token"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Not authorized to access this route")

    def test_bearer_token_attaches_principal_to_request_state(self) -> None:
        user_id, token = self._seed_user("publisher")

        response = self.client.get("/api/v1/whoami", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"user_id": user_id, "role": "publisher"})

    def test_cookie_token_is_accepted(self) -> None:
        user_id, token = self._seed_user("user")
        self.client.cookies.set("token", token)

        response = self.client.get("/api/v1/whoami")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user_id"], user_id)

    def test_bearer_header_wins_over_cookie(self) -> None:
        _, user_token = self._seed_user("user")
        admin_id, admin_token = self._seed_user("admin")
        self.client.cookies.set("token", user_token)

        response = self.client.get("/api/v1/whoami", headers={"Authorization": f"Bearer {admin_token}"})

        self.assertEqual(response.json(), {"user_id": admin_id, "role": "admin"})

    def test_token_for_deleted_user_is_rejected(self) -> None:
        user_id, token = self._seed_user("user")
        self.store.users.delete_by_id(user_id)

        response = self.client.get("/api/v1/whoami", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 401)

    def test_role_is_read_from_store_not_token(self) -> None:
        user_id, token = self._seed_user("user")
        self.store.users.update_by_id(user_id, {"role": "publisher"})

        response = self.client.get("/api/v1/whoami", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.json()["role"], "publisher")

    def test_role_outside_allowed_set_is_forbidden(self) -> None:
        _, token = self._seed_user("user")

        with self.assertLogs("devcamper.routes.dependencies", level="WARNING") as logs:
            response = self.client.post(
                "/api/v1/bootcamps",
                json=_BOOTCAMP,
                headers={"Authorization": f"Bearer {token}"},
            )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "User role user is not authorized to access this route")
        self.assertEqual(self.store.bootcamps.write_count, 0)
        self.assertTrue(any("auth.forbidden" in line for line in logs.output))

    def test_public_routes_need_no_token(self) -> None:
        response = self.client.get("/api/v1/bootcamps")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "count": 0, "pagination": {}, "data": []})

    def test_security_headers_are_set(self) -> None:
        response = self.client.get("/api/v1/bootcamps")

        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")


if __name__ == "__main__":
    unittest.main()
