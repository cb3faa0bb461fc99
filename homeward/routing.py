"""Walking directions via the OpenRouteService API."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import requests

from .config import CONFIG
from .geo import path_length
from .logger import Logger
from .models import GeoPoint


class RouteErrorKind(Enum):
    NETWORK = "network"
    PARSE = "parse"
    EMPTY_RESULT = "empty_result"


@dataclass(frozen=True)
class RouteError:
    kind: RouteErrorKind
    message: str


@dataclass
class RouteResult:
    points: list[GeoPoint] = field(default_factory=list)
    error: Optional[RouteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def format_lonlat(point: GeoPoint) -> str:
    """The directions API takes coordinates as "<lon>,<lat>"."""
    return f"{point.lon!r},{point.lat!r}"


def parse_route(payload) -> list[GeoPoint]:
    """Extract the first feature's coordinates from a GeoJSON response.

    Raises ValueError if the payload does not have the expected shape.
    Missing or empty features give an empty list.
    """
    if not isinstance(payload, dict):
        raise ValueError("response is not a JSON object")
    features = payload.get("features") or []
    if not isinstance(features, list):
        raise ValueError("'features' is not a list")
    if not features:
        return []
    try:
        coordinates = features[0]["geometry"]["coordinates"] or []
        # GeoJSON order is [lon, lat]
        return [GeoPoint(lat=float(c[1]), lon=float(c[0])) for c in coordinates]
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError(f"unexpected feature geometry: {e!r}") from e


class RouteClient:
    """Fetch walking routes between two points"""

    def __init__(self, api_key: str, base_url: Optional[str] = None,
                 profile: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None,
                 logger: Optional[Logger] = None):
        self.api_key = api_key
        self.base_url = (base_url or CONFIG["ors_base_url"]).rstrip("/")
        self.profile = profile or CONFIG["ors_profile"]
        self.timeout = timeout if timeout is not None else CONFIG["route_timeout"]
        self.session = session or requests.Session()
        self.logger = logger

    @property
    def url(self) -> str:
        return f"{self.base_url}/v2/directions/{self.profile}"

    def _log(self, message: str, data: Optional[dict] = None):
        if self.logger:
            self.logger.log(message, data)
        else:
            print(message if not data else f"{message} {data}")

    def fetch_route(self, start: GeoPoint, end: GeoPoint) -> RouteResult:
        """Request a route and classify the outcome.

        Never raises; failures are reported through ``RouteResult.error``.
        """
        params = {
            "api_key": self.api_key,
            "start": format_lonlat(start),
            "end": format_lonlat(end),
        }
        self._log("Requesting walking route", {
            "start": start.to_dict(), "end": end.to_dict(), "profile": self.profile,
        })

        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self._log("Route request failed", {"error": f"{type(e).__name__}: {e}"})
            return RouteResult(error=RouteError(RouteErrorKind.NETWORK, str(e)))

        try:
            points = parse_route(response.json())
        except ValueError as e:
            # requests' JSONDecodeError is a ValueError too
            self._log("Could not parse route response", {"error": str(e)})
            return RouteResult(error=RouteError(RouteErrorKind.PARSE, str(e)))

        if not points:
            self._log("Directions service returned no route points")
            return RouteResult(error=RouteError(RouteErrorKind.EMPTY_RESULT, "no route found"))

        self._log("Route calculated", {
            "points": len(points),
            "distance_m": round(path_length(points), 1),
        })
        return RouteResult(points=points)

    def fetch_walking_route(self, start: GeoPoint, end: GeoPoint) -> list[GeoPoint]:
        """Route points from start to end, or an empty list on any failure"""
        return self.fetch_route(start, end).points

    def close(self):
        self.session.close()
