"""Address lookup through third-party providers.

Failures here must never block ordering: callers show the address as free
text when a lookup fails.
"""
import logging
from typing import List, Optional

import httpx
from fastapi import HTTPException

from laundry import config
from laundry.schemas.external import AddressSuggestion, Coordinates

logger = logging.getLogger("laundry.geocoding")

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GEOAPIFY_AUTOCOMPLETE_URL = "https://api.geoapify.com/v1/geocode/autocomplete"
AUTOCOMPLETE_MIN_LENGTH = 2
AUTOCOMPLETE_LIMIT = 5


def with_country(address: str) -> str:
    if "Finland" in address or "Suomi" in address:
        return address
    return f"{address}, Finland"


class GeocodingClient:
    def __init__(self, google_key: str = None, geoapify_key: str = None,
                 transport: Optional[httpx.BaseTransport] = None, timeout: float = None):
        self.google_key = config.GOOGLE_MAPS_API_KEY if google_key is None else google_key
        self.geoapify_key = config.GEOAPIFY_API_KEY if geoapify_key is None else geoapify_key
        self.transport = transport
        self.timeout = config.HTTP_TIMEOUT_SECONDS if timeout is None else timeout

    def _get(self, url: str, params: dict, provider: str) -> dict:
        try:
            with httpx.Client(transport=self.transport, timeout=self.timeout) as client:
                response = client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            logger.error("%s request failed: %s", provider, exc)
            raise HTTPException(status_code=502, detail=f"{provider} request failed")

    def geocode(self, address: str) -> Coordinates:
        address = (address or "").strip()
        if not address:
            raise HTTPException(status_code=400, detail="Address is required")
        if not self.google_key:
            logger.error("geocoding key not configured")
            raise HTTPException(status_code=503, detail="Geocoding service unavailable")

        data = self._get(
            GOOGLE_GEOCODE_URL,
            {"address": with_country(address), "region": "fi", "key": self.google_key},
            "Geocoding",
        )
        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            logger.warning("address not found, provider status %s", data.get("status"))
            raise HTTPException(status_code=404, detail="Address not found")
        location = results[0]["geometry"]["location"]
        return Coordinates(lat=location["lat"], lng=location["lng"])

    def autocomplete(self, text: str) -> List[AddressSuggestion]:
        text = (text or "").strip()
        if len(text) < AUTOCOMPLETE_MIN_LENGTH:
            return []
        if not self.geoapify_key:
            logger.error("autocomplete key not configured")
            raise HTTPException(status_code=503, detail="Autocomplete service unavailable")

        data = self._get(
            GEOAPIFY_AUTOCOMPLETE_URL,
            {"text": text, "filter": "countrycode:fi", "limit": AUTOCOMPLETE_LIMIT, "apiKey": self.geoapify_key},
            "Autocomplete",
        )
        suggestions = []
        for feature in data.get("features") or []:
            props = feature.get("properties") or {}
            suggestions.append(AddressSuggestion(
                address=props.get("formatted", ""),
                street=props.get("address_line1", ""),
                city=props.get("city") or "",
                postcode=props.get("postcode") or "",
                coordinates=Coordinates(lat=props["lat"], lng=props["lon"]),
            ))
        return suggestions


def get_geocoding_client() -> GeocodingClient:
    return GeocodingClient()
