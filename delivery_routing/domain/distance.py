"""
Distance calculation using the Haversine formula.

Assumption
----------
Great-circle (Haversine) distance is used for on-device estimates: stop
sequencing, radius checks and fee previews.  Actual road distances come
from the routing-service client (``infrastructure.osrm_client``).

Complexity: O(1) per call.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from .entities import Coordinate, Region, Stop

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    # Rounding can push ``a`` past 1 for antipodal points; NaN passes through.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(a, 1.0)))


def distance_km(a: Any, b: Any) -> float:
    """Distance between two objects exposing ``latitude`` / ``longitude``."""
    lat1, lng1 = position(a)
    lat2, lng2 = position(b)
    return haversine_km(lat1, lng1, lat2, lng2)


def position(value: Any) -> tuple[float, float]:
    """Read ``(latitude, longitude)`` from a coordinate, stop, or mapping."""
    if isinstance(value, Mapping):
        return float(value["latitude"]), float(value["longitude"])
    return float(value.latitude), float(value.longitude)


def total_route_distance(waypoints: Sequence[Any]) -> float:
    """Sum of consecutive great-circle legs in km."""
    if not waypoints or len(waypoints) < 2:
        return 0.0
    return sum(
        distance_km(waypoints[i], waypoints[i + 1])
        for i in range(len(waypoints) - 1)
    )


def bearing_deg(start: Any, end: Any) -> float:
    """Initial bearing from *start* to *end*, in degrees ``[0, 360)``."""
    lat1, lng1 = map(math.radians, position(start))
    lat2, lng2 = map(math.radians, position(end))
    dlng = lng2 - lng1

    x = math.sin(dlng) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def is_within_radius(center: Any, point: Any, radius_km: float) -> bool:
    return distance_km(center, point) <= radius_km


def center_point(coordinates: Iterable[Any]) -> Optional[Coordinate]:
    points = [position(c) for c in coordinates]
    if not points:
        return None
    return Coordinate(
        latitude=sum(lat for lat, _ in points) / len(points),
        longitude=sum(lng for _, lng in points) / len(points),
    )


def bounding_region(
    coordinates: Iterable[Any], padding: float = 1.5
) -> Optional[Region]:
    """Map region that fits every coordinate, padded by *padding*."""
    points = [position(c) for c in coordinates]
    if not points:
        return None

    lats = [lat for lat, _ in points]
    lngs = [lng for _, lng in points]
    return Region(
        latitude=(min(lats) + max(lats)) / 2,
        longitude=(min(lngs) + max(lngs)) / 2,
        latitude_delta=max((max(lats) - min(lats)) * padding, 0.01),
        longitude_delta=max((max(lngs) - min(lngs)) * padding, 0.01),
    )


# ── Coordinate parsing ────────────────────────────────────────────────


def parse_coordinate(value: Any) -> Optional[float]:
    """Return *value* as a float, or ``None`` if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    latitude = parse_coordinate(lat)
    longitude = parse_coordinate(lng)
    return (
        latitude is not None
        and longitude is not None
        and -90 <= latitude <= 90
        and -180 <= longitude <= 180
    )


def as_coordinate(value: Any) -> Optional[Coordinate]:
    """Coerce a coordinate-like input; ``None`` when not numeric."""
    if value is None:
        return None
    if isinstance(value, Stop):
        value = value.coordinate
    if isinstance(value, Coordinate):
        return value
    if isinstance(value, Mapping):
        lat, lng = value.get("latitude"), value.get("longitude")
    else:
        lat = getattr(value, "latitude", None)
        lng = getattr(value, "longitude", None)

    latitude, longitude = parse_coordinate(lat), parse_coordinate(lng)
    if latitude is None or longitude is None:
        return None
    return Coordinate(latitude, longitude)


def format_coordinates(lat: float, lng: float) -> str:
    return f"{lat:.6f}, {lng:.6f}"
