from __future__ import annotations
import logging
from typing import Optional

from apregistry.core.settings import settings
from apregistry.services.http_client import UpstreamError, http_get
from apregistry.services.venues import get_venue_classifier

log = logging.getLogger(__name__)


class GeocodingError(RuntimeError):
    pass


def _to_float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _place_payload(result: dict) -> dict:
    return {
        "display_name": result.get("display_name"),
        "address": result.get("address"),
        "class": result.get("class"),
        "type": result.get("type"),
        **get_venue_classifier().describe_place(result),
    }


def search_address(query: str, limit: int = 5) -> list[dict]:
    """
    Forward geocoding. Each result:
      {display_name, lat, lon, address, class, type, wifi_group, wifi_type}
    """
    url = f"{settings.nominatim_base_url.rstrip('/')}/search"
    params = {"q": query, "format": "json", "addressdetails": 1, "limit": limit}
    try:
        data = http_get(url, params=params).json()
    except (UpstreamError, ValueError) as e:
        log.warning("Nominatim search error for %r: %s", query, e)
        raise GeocodingError("Failed to search address") from e

    if not isinstance(data, list):
        raise GeocodingError("Failed to search address")

    results = []
    for result in data:
        if not isinstance(result, dict):
            log.warning("Nominatim search %r: skipping non-object result %r", query, result)
            continue
        place = _place_payload(result)
        place["lat"] = _to_float(result.get("lat"))
        place["lon"] = _to_float(result.get("lon"))
        results.append(place)
    log.info("Nominatim search %r: %d results", query, len(results))
    return results


def reverse_geocode(lat: float, lon: float) -> dict:
    url = f"{settings.nominatim_base_url.rstrip('/')}/reverse"
    params = {"lat": lat, "lon": lon, "format": "json", "addressdetails": 1}
    try:
        data = http_get(url, params=params).json()
    except (UpstreamError, ValueError) as e:
        log.warning("Nominatim reverse geocode error for %s,%s: %s", lat, lon, e)
        raise GeocodingError("Failed to reverse geocode coordinates") from e

    # Nominatim answers 200 with {"error": "..."} when nothing is there
    if not isinstance(data, dict) or "error" in data:
        log.warning("Nominatim reverse geocode for %s,%s returned no place", lat, lon)
        raise GeocodingError("Failed to reverse geocode coordinates")

    return _place_payload(data)
