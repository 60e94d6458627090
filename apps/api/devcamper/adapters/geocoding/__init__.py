"""Geocoder adapters."""

from .base import GeoPoint, Geocoder, GeocodingError
from .mapquest import MapQuestGeocoder
from .static import DEFAULT_LOCATIONS, StaticGeocoder

__all__ = ["DEFAULT_LOCATIONS", "GeoPoint", "Geocoder", "GeocodingError", "MapQuestGeocoder", "StaticGeocoder"]
