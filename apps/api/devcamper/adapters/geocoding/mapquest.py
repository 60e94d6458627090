"""MapQuest geocoding adapter."""

from __future__ import annotations

from typing import Any

import httpx

from devcamper.adapters.geocoding.base import GeoPoint, Geocoder, GeocodingError

_MAPQUEST_URL = "https://www.mapquestapi.com/geocoding/v1/address"


def _first_location(data: dict[str, Any]) -> dict[str, Any]:
    results = data.get("results")
    if not isinstance(results, list) or not results:
        raise GeocodingError("Geocoder returned no results.")
    locations = results[0].get("locations") if isinstance(results[0], dict) else None
    if not isinstance(locations, list) or not locations:
        raise GeocodingError("Geocoder returned no locations.")
    return locations[0]


class MapQuestGeocoder(Geocoder):
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = _MAPQUEST_URL,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._transport = transport

    async def geocode(self, address: str) -> GeoPoint:
        address = (address or "").strip()
        if not address:
            raise GeocodingError("Address is empty.")
        if not self._api_key:
            raise GeocodingError("Geocoder API key is not configured.")

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
                resp = await client.get(self._base_url, params={"key": self._api_key, "location": address})
        except httpx.HTTPError as exc:
            raise GeocodingError("Geocoder is unreachable.") from exc

        if resp.status_code != 200:
            raise GeocodingError(f"Geocoder request failed: {resp.status_code} {resp.text[:200]}")

        location = _first_location(resp.json())
        lat_lng = location.get("latLng") or {}
        try:
            latitude = float(lat_lng["lat"])
            longitude = float(lat_lng["lng"])
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError("Geocoder returned no coordinates.") from exc

        street = location.get("street") or None
        city = location.get("adminArea5") or None
        state = location.get("adminArea3") or None
        zipcode = location.get("postalCode") or None
        country = location.get("adminArea1") or None
        formatted = ", ".join(part for part in (street, city, state, zipcode, country) if part)
        return GeoPoint(
            latitude=latitude,
            longitude=longitude,
            formatted_address=formatted or address,
            street=street,
            city=city,
            state=state,
            zipcode=zipcode,
            country=country,
        )


__all__ = ["MapQuestGeocoder"]
