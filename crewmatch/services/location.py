"""Location parsing for Mapbox payloads and plain addresses.

Stored and requested locations come in three shapes:

- a Mapbox JSON string: '{"lat": 34.0522, "lng": -118.2437, "address": "Los Angeles, CA"}'
- an already decoded mapping with the same keys (``latitude``/``longitude`` accepted too)
- a plain address string: "Los Angeles, CA"

None of the helpers here raise on malformed input; they degrade to a
text-only location or ``None``.
"""

import json
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel


class Location(BaseModel):
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None

    @property
    def is_geolocated(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """Both values are real finite numbers inside latitude/longitude bounds."""
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def _coordinate(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _first_present(data: Mapping, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _from_mapping(data: Mapping, fallback_address: str | None = None) -> Location:
    address = _first_present(data, "address", "formatted_address", "place_name")
    if address is not None and not isinstance(address, str):
        address = str(address)
    return Location(
        latitude=_coordinate(_first_present(data, "lat", "latitude")),
        longitude=_coordinate(_first_present(data, "lng", "lon", "longitude")),
        address=address or fallback_address,
    )


def resolve_location(value: Any) -> Location | None:
    """Normalize any supported location input, or return None when empty."""
    if value is None:
        return None
    if isinstance(value, Location):
        return value
    if isinstance(value, Mapping):
        return _from_mapping(value) if value else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
    except ValueError:
        return Location(address=value)

    if isinstance(parsed, Mapping):
        return _from_mapping(parsed, fallback_address=value)
    # Valid JSON but not a record, e.g. a bare ZIP code
    return Location(address=value)


def has_usable_coordinates(location: Location | None) -> bool:
    return location is not None and is_valid_coordinate(location.latitude, location.longitude)


def format_location_response(value: Any) -> dict:
    """Shape a stored location for API responses."""
    location = resolve_location(value)
    if location is None:
        return {"address": None, "coordinates": None, "hasCoordinates": False}

    has_coordinates = has_usable_coordinates(location)
    return {
        "address": location.address,
        "coordinates": (
            {"lat": location.latitude, "lng": location.longitude} if has_coordinates else None
        ),
        "hasCoordinates": has_coordinates,
    }
