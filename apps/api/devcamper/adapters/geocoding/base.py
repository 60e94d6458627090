"""Geocoding interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class GeocodingError(Exception):
    """Raised when an address cannot be resolved to coordinates."""


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float
    formatted_address: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None
    country: str | None = None

    def to_location(self) -> dict:
        """GeoJSON point plus address parts, as stored on a bootcamp."""
        return {
            "type": "Point",
            "coordinates": [self.longitude, self.latitude],
            "formatted_address": self.formatted_address,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipcode": self.zipcode,
            "country": self.country,
        }


class Geocoder(ABC):
    """Provider-neutral address lookup."""

    @abstractmethod
    async def geocode(self, address: str) -> GeoPoint:
        """Resolve the best match for ``address`` or raise ``GeocodingError``."""


__all__ = ["GeoPoint", "Geocoder", "GeocodingError"]
