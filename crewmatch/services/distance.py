import math

from crewmatch.services.location import Location, has_usable_coordinates, is_valid_coordinate

EARTH_RADIUS_MILES = 3958.8


def distance_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float | None:
    """Great-circle distance in miles, rounded to one decimal.

    Returns None when either point is not a valid coordinate pair; callers
    must treat that as "incomparable", never as zero.
    """
    if not is_valid_coordinate(lat1, lng1) or not is_valid_coordinate(lat2, lng2):
        return None

    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_MILES * c, 1)


def distance_between(origin: Location | None, target: Location | None) -> float | None:
    if not has_usable_coordinates(origin) or not has_usable_coordinates(target):
        return None
    return distance_miles(origin.latitude, origin.longitude, target.latitude, target.longitude)


def distance_sort_key(distance: float | None) -> tuple[int, float]:
    """Ascending by distance with unknown distances last."""
    if distance is None:
        return (1, 0.0)
    return (0, distance)


def distance_text(distance: float | None) -> str | None:
    return f"{distance} mi" if distance is not None else None
