"""Bootcamp service layer."""

from __future__ import annotations

from collections.abc import Mapping
import logging
import math
from pathlib import PurePath
import re
from typing import Any

from devcamper.adapters.geocoding import GeoPoint, Geocoder, GeocodingError
from devcamper.adapters.storage import FileStore, FileStoreError
from devcamper.domain.ownership import OwnershipGuard
from devcamper.domain.query import Expansion, QueryBuilder
from devcamper.errors import NotFound, UpstreamFailure, ValidationError
from devcamper.repositories.memory import InMemoryStore
from devcamper.schemas.auth import AuthPrincipal
from devcamper.schemas.bootcamp import CreateBootcampRequest, UpdateBootcampRequest
from devcamper.schemas.envelope import PaginatedResult

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3963.0
DEFAULT_PHOTO = "no-photo.jpg"
BOOTCAMP_COURSES = Expansion(path="courses", collection="courses", many=True, foreign_field="bootcamp")

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    return _SLUG_SEPARATORS.sub("-", value.lower()).strip("-")


def distance_miles(origin: GeoPoint, coordinates: list[float]) -> float:
    """Great-circle distance between ``origin`` and a GeoJSON ``[lng, lat]`` pair."""
    lng, lat = coordinates
    lat1, lat2 = math.radians(origin.latitude), math.radians(lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(lng - origin.longitude)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))


class BootcampService:
    def __init__(
        self,
        store: InMemoryStore,
        guard: OwnershipGuard,
        geocoder: Geocoder,
        file_store: FileStore,
        *,
        max_upload_bytes: int,
    ) -> None:
        self._store = store
        self._guard = guard
        self._geocoder = geocoder
        self._file_store = file_store
        self._max_upload_bytes = max_upload_bytes

    def list_bootcamps(self, params: Mapping[str, str]) -> PaginatedResult:
        return QueryBuilder(self._store.bootcamps, expand=[BOOTCAMP_COURSES]).execute(params)

    def get_bootcamp(self, bootcamp_id: str) -> dict[str, Any]:
        return self._require(bootcamp_id)

    async def create_bootcamp(self, principal: AuthPrincipal, payload: CreateBootcampRequest) -> dict[str, Any]:
        published = self._store.bootcamps.find_one(user=principal.user_id)
        self._guard.ensure_can_publish(principal, published, resource="bootcamp")

        data = payload.model_dump(mode="json")
        data.update(
            {
                "slug": slugify(payload.name),
                "location": await self._locate(payload.address),
                "average_rating": None,
                "average_cost": None,
                "photo": DEFAULT_PHOTO,
                "user": principal.user_id,
            }
        )
        return self._store.bootcamps.insert(data)

    async def update_bootcamp(
        self,
        principal: AuthPrincipal,
        bootcamp_id: str,
        payload: UpdateBootcampRequest,
    ) -> dict[str, Any]:
        bootcamp = self._require(bootcamp_id)
        self._guard.ensure_can_mutate(principal, bootcamp, action="update", resource="bootcamp")

        changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if "name" in changes:
            changes["slug"] = slugify(changes["name"])
        if "address" in changes:
            changes["location"] = await self._locate(changes["address"])
        updated = self._store.bootcamps.update_by_id(bootcamp_id, changes)
        if updated is None:
            raise NotFound(f"Bootcamp not found with id of {bootcamp_id}")
        return updated

    def delete_bootcamp(self, principal: AuthPrincipal, bootcamp_id: str) -> None:
        bootcamp = self._require(bootcamp_id)
        self._guard.ensure_can_mutate(principal, bootcamp, action="delete", resource="bootcamp")

        self._store.courses.delete_many(bootcamp=bootcamp_id)
        self._store.reviews.delete_many(bootcamp=bootcamp_id)
        self._store.bootcamps.delete_by_id(bootcamp_id)

    async def bootcamps_in_radius(self, zipcode: str, distance: float) -> list[dict[str, Any]]:
        if distance < 0:
            raise ValidationError("Distance must not be negative")
        origin = await self._geocode(zipcode)
        found = []
        for bootcamp in self._store.bootcamps.find_all():
            coordinates = (bootcamp.get("location") or {}).get("coordinates")
            if coordinates and distance_miles(origin, coordinates) <= distance:
                found.append(bootcamp)
        return found

    async def upload_photo(
        self,
        principal: AuthPrincipal,
        bootcamp_id: str,
        *,
        filename: str | None,
        content_type: str | None,
        data: bytes | None,
    ) -> str:
        bootcamp = self._require(bootcamp_id)
        self._guard.ensure_can_mutate(principal, bootcamp, action="update", resource="bootcamp")

        if data is None or not filename:
            raise ValidationError("Please upload a file")
        if not (content_type or "").startswith("image"):
            raise ValidationError("Please upload a valid image")
        if len(data) > self._max_upload_bytes:
            raise ValidationError(f"Please upload an image less than {self._max_upload_bytes} bytes")

        name = f"photo_{bootcamp_id}{PurePath(filename).suffix}"
        try:
            path = await self._file_store.save(data, name)
        except FileStoreError as exc:
            logger.error("upload.failed bootcamp_id=%s reason=%s", bootcamp_id, exc)
            raise UpstreamFailure("Problem with file upload") from exc

        self._store.bootcamps.update_by_id(bootcamp_id, {"photo": name})
        return path

    def _require(self, bootcamp_id: str) -> dict[str, Any]:
        bootcamp = self._store.bootcamps.find_by_id(bootcamp_id)
        if bootcamp is None:
            raise NotFound(f"Bootcamp not found with id of {bootcamp_id}")
        return bootcamp

    async def _geocode(self, address: str) -> GeoPoint:
        try:
            return await self._geocoder.geocode(address)
        except GeocodingError as exc:
            logger.warning("geocode.failed reason=%s", exc)
            raise UpstreamFailure("Could not geocode address") from exc

    async def _locate(self, address: str) -> dict[str, Any]:
        return (await self._geocode(address)).to_location()
