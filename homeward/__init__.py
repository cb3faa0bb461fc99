"""Homeward - Tap a destination on the map, get a walking route there."""

from .config import CONFIG
from .models import GeoPoint, Phase, RouteState
from .logger import Logger
from .codec import encode, decode, encode_list, decode_list
from .store import PrefsDB, RouteStore, PermissionStore
from .routing import RouteClient, RouteResult, RouteError, RouteErrorKind
from .location import GPS, FixedLocation, LocationError
from .state import AppState, RouteRequest
from .mapview import MapView
from .server import MapServer
from .app import Homeward
from .__main__ import main

__all__ = [
    "CONFIG",
    "GeoPoint",
    "Phase",
    "RouteState",
    "Logger",
    "encode",
    "decode",
    "encode_list",
    "decode_list",
    "PrefsDB",
    "RouteStore",
    "PermissionStore",
    "RouteClient",
    "RouteResult",
    "RouteError",
    "RouteErrorKind",
    "GPS",
    "FixedLocation",
    "LocationError",
    "AppState",
    "RouteRequest",
    "MapView",
    "MapServer",
    "Homeward",
    "main",
]
