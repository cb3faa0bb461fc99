"""Geographic utility functions."""

import math
from typing import Iterable

from .models import GeoPoint


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    R = 6371000  # Earth's radius in meters

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return R * c


def path_length(points: Iterable[GeoPoint]) -> float:
    """Total length of a polyline in meters"""
    total = 0.0
    prev = None
    for p in points:
        if prev is not None:
            total += haversine_distance(prev.lat, prev.lon, p.lat, p.lon)
        prev = p
    return total


def wrap_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180]. In-range values are returned untouched.

    Leaflet reports longitudes outside that range once the map has been
    panned across the antimeridian.
    """
    if -180.0 <= lon <= 180.0:
        return lon
    return ((lon + 180.0) % 360.0) - 180.0


def clamp_latitude(lat: float) -> float:
    return max(-90.0, min(90.0, lat))
