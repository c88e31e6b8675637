"""
Reverse geocoding for notification emails.

Mapbox is used when a token is configured; Nominatim is the fallback.
Failures never propagate: an email without an address is still sent.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

NOMINATIM_USER_AGENT = "WhereAreThey/1.0 (https://www.aretheyhere.com)"
MAPBOX_REVERSE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{lon},{lat}.json"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
GEOCODING_TIMEOUT_SECONDS = 10.0


class GeocodingService:
    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    def _get(self, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url, **kwargs)
        with httpx.Client(timeout=GEOCODING_TIMEOUT_SECONDS) as client:
            return client.get(url, **kwargs)

    def _mapbox_reverse(self, latitude: float, longitude: float, token: str) -> Optional[str]:
        response = self._get(
            MAPBOX_REVERSE_URL.format(lat=latitude, lon=longitude),
            params={"access_token": token, "types": "address,poi,neighborhood", "limit": 1}
        )
        if response.status_code != 200:
            return None

        features = response.json().get("features") or []
        if features:
            return features[0].get("place_name")
        return None

    def _nominatim_reverse(self, latitude: float, longitude: float) -> Optional[str]:
        response = self._get(
            NOMINATIM_REVERSE_URL,
            params={"lat": latitude, "lon": longitude, "format": "jsonv2"},
            headers={"User-Agent": NOMINATIM_USER_AGENT}
        )
        if response.status_code != 200:
            return None
        return response.json().get("display_name")

    def reverse_geocode(self, latitude: float, longitude: float, mapbox_token: Optional[str] = None) -> Optional[str]:
        """
        Look up an approximate address for a coordinate.

        Never raises: a provider that errors or answers with an unexpected
        shape counts as "no result".

        Returns:
            The address, or None if neither provider produced one
        """
        if mapbox_token:
            try:
                address = self._mapbox_reverse(latitude, longitude, mapbox_token)
                if address:
                    return address
            except Exception as e:
                logger.warning(f"Mapbox reverse geocoding failed: {type(e).__name__}: {e}")
            logger.warning("Mapbox reverse geocoding returned no result. Falling back to Nominatim.")

        try:
            return self._nominatim_reverse(latitude, longitude)
        except Exception as e:
            logger.warning(f"Nominatim reverse geocoding failed: {type(e).__name__}: {e}")
            return None


# Singleton instance
geocoding_service = GeocodingService()
