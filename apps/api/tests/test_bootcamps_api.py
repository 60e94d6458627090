"""Bootcamp endpoint tests: publishing rules, ownership, queries, radius search and photo upload."""

from __future__ import annotations

import os
from pathlib import Path
import tempfile
import unittest

from fastapi.testclient import TestClient

from devcamper.adapters.geocoding import StaticGeocoder
from devcamper.adapters.storage import LocalFileStore
from devcamper.core.config import get_settings
from devcamper.core.tokens import TokenService
from devcamper.main import create_app
from devcamper.repositories.memory import InMemoryStore

BOSTON = "233 Bay State Rd Boston MA 02215"
PROVIDENCE = "68 Washington St Providence RI 02903"


def _bootcamp(name: str = "Devworks Bootcamp", address: str = BOSTON) -> dict:
    return {
        "name": name,
        "description": "Full stack web development",
        "website": "https://devworks.com",
        "address": address,
        "careers": ["Web Development", "UI/UX"],
        "housing": True,
    }


class _SettingsEnvCase(unittest.TestCase):
    _env_keys = (
        "DEVCAMPER_JWT_SECRET",
        "DEVCAMPER_EMAIL_PROVIDER",
        "DEVCAMPER_GEOCODER_PROVIDER",
        "DEVCAMPER_MAX_FILE_UPLOAD_BYTES",
    )

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env_keys}
        os.environ["DEVCAMPER_JWT_SECRET"] = "test-jwt-secret"
        os.environ["DEVCAMPER_EMAIL_PROVIDER"] = "memory"
        os.environ["DEVCAMPER_GEOCODER_PROVIDER"] = "static"
        os.environ["DEVCAMPER_MAX_FILE_UPLOAD_BYTES"] = "64"
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()


class _BootcampApiCase(_SettingsEnvCase):
    def setUp(self) -> None:
        super().setUp()
        self.upload_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.upload_dir.cleanup)
        self.store = InMemoryStore()
        self.client = TestClient(
            create_app(
                store=self.store,
                geocoder=StaticGeocoder(),
                file_store=LocalFileStore(self.upload_dir.name),
            )
        )
        self.tokens = TokenService.from_settings(get_settings())

    def _auth(self, role: str, name: str | None = None) -> tuple[str, dict[str, str]]:
        label = name or role
        user = self.store.users.insert(
            {
                "name": label,
                "email": f"{label}@example.com",
                "role": role,
                "password_hash": "unused",
                "reset_password_token": None,
                "reset_password_expire": None,
            }
        )
        return user["id"], {"Authorization": f"Bearer {self.tokens.issue(user['id'])}"}

    def _create(self, headers: dict[str, str], **overrides) -> dict:
        response = self.client.post("/api/v1/bootcamps", json=_bootcamp(**overrides), headers=headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]


class BootcampPublishingTests(_BootcampApiCase):
    def test_publisher_creates_bootcamp_with_derived_fields(self) -> None:
        publisher_id, headers = self._auth("publisher")

        created = self._create(headers)

        self.assertEqual(created["slug"], "devworks-bootcamp")
        self.assertEqual(created["user"], publisher_id)
        self.assertEqual(created["photo"], "no-photo.jpg")
        self.assertEqual(created["location"]["type"], "Point")
        self.assertEqual(created["location"]["coordinates"], [-71.1054, 42.3505])
        self.assertEqual(created["location"]["zipcode"], "02215")

    def test_publisher_may_publish_only_one_bootcamp(self) -> None:
        publisher_id, headers = self._auth("publisher")
        self._create(headers)

        response = self.client.post("/api/v1/bootcamps", json=_bootcamp(name="Second Camp"), headers=headers)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"success": False, "error": f"The user with ID {publisher_id} has already published a bootcamp"},
        )
        self.assertEqual(self.store.bootcamps.count(), 1)

    def test_admin_may_publish_several_bootcamps(self) -> None:
        _, headers = self._auth("admin")

        self._create(headers, name="First Camp")
        self._create(headers, name="Second Camp")

        self.assertEqual(self.store.bootcamps.count(), 2)

    def test_duplicate_name_is_rejected_without_write(self) -> None:
        _, admin = self._auth("admin")
        self._create(admin)
        writes_before = self.store.bootcamps.write_count

        response = self.client.post("/api/v1/bootcamps", json=_bootcamp(), headers=admin)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"success": False, "error": "Duplicate field value entered"})
        self.assertEqual(self.store.bootcamps.count(), 1)
        self.assertEqual(self.store.bootcamps.write_count, writes_before)

    def test_invalid_payload_is_reported_in_error_envelope(self) -> None:
        _, headers = self._auth("publisher")
        payload = _bootcamp()
        payload["careers"] = ["Underwater Basket Weaving"]

        response = self.client.post("/api/v1/bootcamps", json=payload, headers=headers)

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])
        self.assertIn("careers", response.json()["error"])

    def test_unknown_address_is_upstream_failure(self) -> None:
        _, headers = self._auth("publisher")

        response = self.client.post(
            "/api/v1/bootcamps",
            json=_bootcamp(address="1 Nowhere Lane, Atlantis"),
            headers=headers,
        )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"success": False, "error": "Could not geocode address"})
        self.assertEqual(self.store.bootcamps.count(), 0)


class BootcampOwnershipTests(_BootcampApiCase):
    def setUp(self) -> None:
        super().setUp()
        self.owner_id, self.owner = self._auth("publisher", "owner")
        self.bootcamp = self._create(self.owner)

    def test_owner_updates_and_reslugs(self) -> None:
        response = self.client.put(
            f"/api/v1/bootcamps/{self.bootcamp['id']}",
            json={"name": "Devworks Renamed", "address": PROVIDENCE},
            headers=self.owner,
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["slug"], "devworks-renamed")
        self.assertEqual(data["location"]["city"], "Providence")

    def test_other_publisher_cannot_update(self) -> None:
        intruder_id, intruder = self._auth("publisher", "intruder")

        response = self.client.put(
            f"/api/v1/bootcamps/{self.bootcamp['id']}",
            json={"description": "Hijacked"},
            headers=intruder,
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], f"User {intruder_id} is not authorized to update this bootcamp")
        self.assertEqual(self.store.bootcamps.find_by_id(self.bootcamp["id"])["description"], "Full stack web development")

    def test_admin_overrides_ownership(self) -> None:
        _, admin = self._auth("admin")

        response = self.client.put(
            f"/api/v1/bootcamps/{self.bootcamp['id']}",
            json={"description": "Moderated"},
            headers=admin,
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["description"], "Moderated")

    def test_missing_bootcamp_is_not_found(self) -> None:
        response = self.client.get("/api/v1/bootcamps/does-not-exist")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "error": "Bootcamp not found with id of does-not-exist"})

    def test_delete_cascades_courses_and_reviews(self) -> None:
        bootcamp_id = self.bootcamp["id"]
        self.store.courses.insert({"title": "Intro", "tuition": 100.0, "bootcamp": bootcamp_id, "user": self.owner_id})
        self.store.reviews.insert({"title": "Nice", "rating": 8, "bootcamp": bootcamp_id, "user": "someone"})
        self.store.courses.insert({"title": "Elsewhere", "tuition": 100.0, "bootcamp": "other", "user": "x"})

        response = self.client.delete(f"/api/v1/bootcamps/{bootcamp_id}", headers=self.owner)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "data": {}})
        self.assertIsNone(self.store.bootcamps.find_by_id(bootcamp_id))
        self.assertEqual(self.store.courses.find_all(bootcamp=bootcamp_id), [])
        self.assertEqual(self.store.reviews.find_all(bootcamp=bootcamp_id), [])
        self.assertEqual(len(self.store.courses.find_all()), 1)

    def test_other_publisher_cannot_delete(self) -> None:
        _, intruder = self._auth("publisher", "intruder")

        response = self.client.delete(f"/api/v1/bootcamps/{self.bootcamp['id']}", headers=intruder)

        self.assertEqual(response.status_code, 403)
        self.assertIsNotNone(self.store.bootcamps.find_by_id(self.bootcamp["id"]))


class BootcampQueryTests(_BootcampApiCase):
    def setUp(self) -> None:
        super().setUp()
        for index in range(1, 16):
            self.store.bootcamps.insert(
                {
                    "name": f"Camp {index:02d}",
                    "description": f"Camp number {index}",
                    "average_cost": float(index * 1000),
                    "housing": index % 2 == 0,
                    "careers": ["Web Development"],
                    "user": f"owner-{index}",
                }
            )

    def test_select_sort_and_pagination(self) -> None:
        response = self.client.get(
            "/api/v1/bootcamps",
            params={"select": "name,description", "sort": "-average_cost", "page": "2", "limit": "10"},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["count"], 5)
        self.assertEqual(body["pagination"], {"prev": {"page": 1, "limit": 10}})
        self.assertEqual([item["name"] for item in body["data"]], ["Camp 05", "Camp 04", "Camp 03", "Camp 02", "Camp 01"])
        for item in body["data"]:
            self.assertEqual(set(item), {"id", "name", "description"})

    def test_camel_case_query_fields_resolve_to_stored_fields(self) -> None:
        response = self.client.get("/api/v1/bootcamps?select=name,description&sort=-averageCost&page=2&limit=10")
        filtered = self.client.get("/api/v1/bootcamps", params={"averageCost[gt]": "13000"})

        body = response.json()
        self.assertEqual(body["count"], 5)
        self.assertEqual([item["name"] for item in body["data"]], ["Camp 05", "Camp 04", "Camp 03", "Camp 02", "Camp 01"])
        self.assertEqual(sorted(item["name"] for item in filtered.json()["data"]), ["Camp 14", "Camp 15"])

    def test_sort_on_nested_document_field_does_not_fail(self) -> None:
        camp = self.store.bootcamps.find_one(name="Camp 01")
        self.store.bootcamps.update_by_id(camp["id"], {"location": {"type": "Point", "coordinates": [-71.1, 42.3]}})
        other = self.store.bootcamps.find_one(name="Camp 02")
        self.store.bootcamps.update_by_id(other["id"], {"location": {"type": "Point", "coordinates": [-71.4, 41.8]}})

        response = self.client.get("/api/v1/bootcamps", params={"sort": "location"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["count"], 15)

    def test_filters_combine_with_default_page(self) -> None:
        response = self.client.get("/api/v1/bootcamps", params={"average_cost[lte]": "6000", "housing": "true"})

        body = response.json()
        self.assertEqual(body["count"], 3)
        self.assertEqual(body["pagination"], {})
        self.assertEqual([item["name"] for item in body["data"]], ["Camp 06", "Camp 04", "Camp 02"])

    def test_list_embeds_courses(self) -> None:
        camp = self.store.bootcamps.find_one(name="Camp 01")
        self.store.courses.insert({"title": "Intro", "tuition": 100.0, "bootcamp": camp["id"], "user": "owner-1"})

        response = self.client.get("/api/v1/bootcamps", params={"name": "Camp 01"})

        self.assertEqual([course["title"] for course in response.json()["data"][0]["courses"]], ["Intro"])


class BootcampRadiusTests(_BootcampApiCase):
    def setUp(self) -> None:
        super().setUp()
        _, admin = self._auth("admin")
        self._create(admin, name="Boston Camp", address=BOSTON)
        self._create(admin, name="Providence Camp", address=PROVIDENCE)

    def test_small_radius_finds_only_nearby_bootcamp(self) -> None:
        response = self.client.get("/api/v1/bootcamps/radius/02215/10")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["data"][0]["name"], "Boston Camp")

    def test_large_radius_finds_both(self) -> None:
        response = self.client.get("/api/v1/bootcamps/radius/02215/100")

        self.assertEqual(response.json()["count"], 2)

    def test_negative_distance_is_rejected(self) -> None:
        response = self.client.get("/api/v1/bootcamps/radius/02215/-5")

        self.assertEqual(response.status_code, 400)


class BootcampPhotoTests(_BootcampApiCase):
    def setUp(self) -> None:
        super().setUp()
        self.owner_id, self.owner = self._auth("publisher", "owner")
        self.bootcamp = self._create(self.owner)
        self.url = f"/api/v1/bootcamps/{self.bootcamp['id']}/photo"

    def test_owner_uploads_image(self) -> None:
        response = self.client.put(self.url, files={"file": ("camp.jpg", b"\xff\xd8\xff-image", "image/jpeg")}, headers=self.owner)

        self.assertEqual(response.status_code, 200, response.text)
        expected_name = f"photo_{self.bootcamp['id']}.jpg"
        self.assertEqual(response.json(), {"success": True, "data": f"/uploads/{expected_name}"})
        self.assertEqual((Path(self.upload_dir.name) / expected_name).read_bytes(), b"\xff\xd8\xff-image")
        self.assertEqual(self.store.bootcamps.find_by_id(self.bootcamp["id"])["photo"], expected_name)

    def test_uploaded_photo_is_served_at_returned_path(self) -> None:
        uploaded = self.client.put(
            self.url,
            files={"file": ("camp.png", b"\x89PNG-bytes", "image/png")},
            headers=self.owner,
        )
        path = uploaded.json()["data"]

        served = self.client.get(path)
        missing = self.client.get("/uploads/photo_missing.png")

        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, b"\x89PNG-bytes")
        self.assertEqual(missing.status_code, 404)
        self.assertFalse(missing.json()["success"])

    def test_non_image_is_rejected(self) -> None:
        response = self.client.put(self.url, files={"file": ("notes.txt", b"hello", "text/plain")}, headers=self.owner)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Please upload a valid image")

    def test_oversized_image_is_rejected(self) -> None:
        response = self.client.put(self.url, files={"file": ("big.png", b"x" * 65, "image/png")}, headers=self.owner)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Please upload an image less than 64 bytes")
        self.assertEqual(list(Path(self.upload_dir.name).iterdir()), [])

    def test_other_publisher_cannot_upload(self) -> None:
        _, intruder = self._auth("publisher", "intruder")

        response = self.client.put(self.url, files={"file": ("camp.jpg", b"img", "image/jpeg")}, headers=intruder)

        self.assertEqual(response.status_code, 403)

    def test_plain_user_cannot_upload(self) -> None:
        _, user = self._auth("user")

        response = self.client.put(self.url, files={"file": ("camp.jpg", b"img", "image/jpeg")}, headers=user)

        self.assertEqual(response.status_code, 403)


if __name__ == "__main__":
    unittest.main()
