"""Data classes for Homeward."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    def is_valid(self) -> bool:
        """True when both coordinates are finite and inside the WGS84 ranges"""
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            return False
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lon <= 180.0

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, d: dict) -> "GeoPoint":
        return cls(lat=float(d["lat"]), lon=float(d["lon"]))


class Phase(Enum):
    NO_PERMISSION = "no_permission"
    AWAITING_LOCATION = "awaiting_location"
    READY = "ready"


@dataclass(frozen=True)
class RouteState:
    """Snapshot of everything the map screen shows.

    ``path`` is None when no route has been computed; an empty list means the
    directions service was asked and produced nothing usable.
    """
    phase: Phase = Phase.NO_PERMISSION
    current_location: Optional[GeoPoint] = None
    origin: Optional[GeoPoint] = None
    destination: Optional[GeoPoint] = None
    path: Optional[tuple[GeoPoint, ...]] = field(default=None)

    @property
    def has_route(self) -> bool:
        return bool(self.path)

    @property
    def can_route(self) -> bool:
        return self.origin is not None and self.destination is not None

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "current_location": self.current_location.to_dict() if self.current_location else None,
            "origin": self.origin.to_dict() if self.origin else None,
            "destination": self.destination.to_dict() if self.destination else None,
            "path_points": len(self.path) if self.path is not None else None,
        }
