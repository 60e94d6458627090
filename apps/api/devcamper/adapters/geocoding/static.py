"""Lookup-table geocoder for local development and tests."""

from collections.abc import Mapping

from devcamper.adapters.geocoding.base import GeoPoint, Geocoder, GeocodingError

DEFAULT_LOCATIONS: dict[str, GeoPoint] = {
    "02215": GeoPoint(42.3505, -71.1054, "Boston, MA 02215, US", city="Boston", state="MA", zipcode="02215", country="US"),
    "01854": GeoPoint(42.6487, -71.3485, "Lowell, MA 01854, US", city="Lowell", state="MA", zipcode="01854", country="US"),
    "02881": GeoPoint(41.4801, -71.5249, "Kingston, RI 02881, US", city="Kingston", state="RI", zipcode="02881", country="US"),
    "02903": GeoPoint(41.8200, -71.4116, "Providence, RI 02903, US", city="Providence", state="RI", zipcode="02903", country="US"),
}


class StaticGeocoder(Geocoder):
    """Resolves addresses from a fixed table.

    Keys are matched case-insensitively against the full address and then
    against each comma-separated part and word, so a zipcode entry also
    resolves any street address that contains it.
    """

    def __init__(self, table: Mapping[str, GeoPoint] | None = None, *, default: GeoPoint | None = None) -> None:
        source = DEFAULT_LOCATIONS if table is None else table
        self._table = {key.strip().lower(): point for key, point in source.items()}
        self._default = default

    async def geocode(self, address: str) -> GeoPoint:
        normalized = (address or "").strip().lower()
        if normalized in self._table:
            return self._table[normalized]
        for part in normalized.split(","):
            for token in (part.strip(), *part.split()):
                if token in self._table:
                    return self._table[token]
        if self._default is not None:
            return self._default
        raise GeocodingError(f"No coordinates known for address: {address}")


__all__ = ["DEFAULT_LOCATIONS", "StaticGeocoder"]
