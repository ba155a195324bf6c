"""Great-circle distance and bearing on a spherical Earth.

Haversine is accurate enough for course replay (< 0.5% error at race
distances) and all distances are in miles to match the course markers.
"""

import math

from race_replay.models import GeoPoint

# Earth's mean radius in miles
EARTH_RADIUS_MI = 3958.8

FEET_PER_MILE = 5280.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points using Haversine formula.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in miles, or 0.0 if any coordinate is not a finite number.
    """
    if not all(math.isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        return 0.0

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    # Rounding can push a marginally above 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return EARTH_RADIUS_MI * c


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate initial bearing from point 1 to point 2.

    Identical points have no direction; they return 0.0.

    Returns:
        Bearing in degrees [0, 360), where 0=North, 90=East
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlon = math.radians(lon2 - lon1)

    x = math.sin(dlon) * math.cos(lat2_rad)
    y = math.cos(lat1_rad) * math.sin(lat2_rad) - math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(dlon)

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def distance(p1: GeoPoint, p2: GeoPoint) -> float:
    """Distance in miles between two GeoPoints."""
    return haversine_distance(p1.lat, p1.lng, p2.lat, p2.lng)


def bearing(p1: GeoPoint, p2: GeoPoint) -> float:
    """Initial bearing in degrees from p1 to p2."""
    return calculate_bearing(p1.lat, p1.lng, p2.lat, p2.lng)
