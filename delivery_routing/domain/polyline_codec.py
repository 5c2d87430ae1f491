"""
Encoded polyline codec.

Pre-computed routes from other backend endpoints arrive as Google encoded
polylines (signed varint deltas, 5-bit chunks, ``1e5`` scale) rather than
GeoJSON.  The ``polyline`` package implements the standard algorithm; this
module adapts it to ``Coordinate`` lists.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional

import polyline

from .distance import position
from .entities import Coordinate


class PolylineDecodeError(ValueError):
    """Raised when an encoded polyline string is corrupt or truncated."""


def decode_polyline(encoded: Optional[str], precision: int = 5) -> list[Coordinate]:
    if not encoded:
        return []
    try:
        points = polyline.decode(encoded, precision)
    except (IndexError, TypeError, ValueError) as exc:
        raise PolylineDecodeError(f"Invalid encoded polyline: {exc}") from exc
    return [Coordinate(latitude=lat, longitude=lng) for lat, lng in points]


def encode_polyline(coordinates: Iterable[Any], precision: int = 5) -> str:
    return polyline.encode([position(c) for c in coordinates], precision)
