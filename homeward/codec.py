"""String encoding of points for key-value persistence.

A point is stored as ``"<lat>,<lon>"`` and a path as points joined with
``|``. Floats are written with ``repr`` so they are locale independent and
decode back to the identical value.
"""

import math
from typing import Iterable, Optional

from .models import GeoPoint

POINT_SEPARATOR = "|"
COORD_SEPARATOR = ","


def encode(point: GeoPoint) -> str:
    return f"{float(point.lat)!r}{COORD_SEPARATOR}{float(point.lon)!r}"


def decode(text: Optional[str]) -> Optional[GeoPoint]:
    """Parse ``"<lat>,<lon>"``. Returns None for anything else, never raises."""
    if not isinstance(text, str):
        return None
    parts = text.split(COORD_SEPARATOR)
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0])
        lon = float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return GeoPoint(lat, lon)


def encode_list(points: Iterable[GeoPoint]) -> str:
    return POINT_SEPARATOR.join(encode(p) for p in points)


def decode_list(text: Optional[str]) -> Optional[list[GeoPoint]]:
    """Parse a ``|``-separated path, dropping segments that do not decode.

    Only a missing input yields None; an empty string is an empty path.
    """
    if text is None:
        return None
    points = []
    for chunk in text.split(POINT_SEPARATOR):
        point = decode(chunk)
        if point is not None:
            points.append(point)
    return points
