"""Application state machine for the map screen."""

import asyncio
import itertools
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from .location import LocationError
from .logger import Logger
from .models import GeoPoint, Phase, RouteState
from .store import PermissionStore, RouteStore

Listener = Callable[[RouteState], None]


@dataclass(frozen=True)
class RouteRequest:
    """A route fetch in flight. Its result only applies while token is current."""
    token: int
    start: GeoPoint
    end: GeoPoint


class AppState:
    """Holds location, origin, destination and route.

    All mutations are expected to happen on one event loop. Every change to
    origin, destination or path is written through to the RouteStore, then
    listeners receive the new snapshot.
    """

    def __init__(self, store: RouteStore, permissions: Optional[PermissionStore] = None,
                 logger: Optional[Logger] = None):
        self.store = store
        self.permissions = permissions
        self.logger = logger or Logger(echo=False)
        self._state = RouteState()
        self._listeners: list[Listener] = []
        self._tokens = itertools.count(1)
        self._current_token: Optional[int] = None

    @property
    def state(self) -> RouteState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def route_pending(self) -> bool:
        return self._current_token is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _update(self, persist: bool = True, **changes):
        old = self._state
        new = replace(old, **changes)
        if new == old:
            return
        self._state = new
        if persist and (new.origin, new.destination, new.path) != (old.origin, old.destination, old.path):
            self.store.save(new.origin, new.destination,
                            list(new.path) if new.path is not None else None)
        for listener in list(self._listeners):
            listener(new)

    def hydrate(self):
        """Load the saved triple. Does not write anything back."""
        origin, destination, path = self.store.load()
        phase = Phase.NO_PERMISSION
        if self.permissions and self.permissions.is_granted():
            phase = Phase.AWAITING_LOCATION
        self.logger.log("Restored saved route", {
            "origin": origin.to_dict() if origin else None,
            "destination": destination.to_dict() if destination else None,
            "path_points": len(path) if path is not None else None,
        })
        self._update(
            persist=False,
            phase=phase,
            origin=origin,
            destination=destination,
            path=tuple(path) if path is not None else None,
        )

    def grant_permission(self, remember: bool = True):
        """Allow location access. With remember=False the grant lasts for this run only."""
        if self.permissions and remember:
            self.permissions.set_granted(True)
        if self.phase == Phase.NO_PERMISSION:
            self.logger.log("Location permission granted")
            self._update(phase=Phase.AWAITING_LOCATION)

    def deny_permission(self):
        """Permission refused. Stays in NO_PERMISSION until granted."""
        if self.permissions:
            self.permissions.set_granted(False)
        self.logger.log("Location permission denied")
        self._update(phase=Phase.NO_PERMISSION)

    def set_location(self, point: GeoPoint):
        if self.phase == Phase.NO_PERMISSION:
            self.logger.log("Ignoring location without permission", point.to_dict())
            return
        self.logger.log("Current location updated", point.to_dict())
        self._update(phase=Phase.READY, current_location=point, origin=point)

    def location_failed(self, reason: str):
        """Location unavailable. Logged only; origin stays as it was."""
        self.logger.log("Could not get location", {"error": reason})

    async def locate(self, source) -> Optional[GeoPoint]:
        """Query a location source without blocking the event loop"""
        if self.phase == Phase.NO_PERMISSION:
            self.logger.log("Location requested without permission")
            return None
        try:
            point = await asyncio.to_thread(source.get_location)
        except LocationError as e:
            self.location_failed(str(e))
            return None
        self.set_location(point)
        return point

    def tap(self, point: GeoPoint) -> bool:
        """Select a destination. Only valid once the screen is READY."""
        if self.phase != Phase.READY:
            self.logger.log("Ignoring map tap", {"phase": self.phase.value})
            return False
        if not point.is_valid():
            self.logger.log("Ignoring invalid destination", {"lat": repr(point.lat), "lon": repr(point.lon)})
            return False
        self._current_token = None
        self.logger.log("Destination selected", point.to_dict())
        self._update(destination=point, path=None)
        return True

    def begin_route(self) -> Optional[RouteRequest]:
        state = self._state
        if not state.can_route:
            self.logger.log("Route needs both origin and destination")
            return None
        request = RouteRequest(token=next(self._tokens), start=state.origin, end=state.destination)
        self._current_token = request.token
        return request

    def apply_route(self, request: RouteRequest, points: Sequence[GeoPoint]) -> bool:
        """Store a route result unless a newer tap or clear superseded it"""
        if request.token != self._current_token:
            self.logger.log("Discarding stale route result", {"token": request.token})
            return False
        self._current_token = None
        if not points:
            self.logger.log("No route found")
        self._update(path=tuple(points))
        return True

    async def compute_route(self, client) -> bool:
        request = self.begin_route()
        if request is None:
            return False
        points = await asyncio.to_thread(client.fetch_walking_route, request.start, request.end)
        return self.apply_route(request, points)

    def clear(self):
        """Drop destination and route and erase the saved triple.

        The origin stays in memory as the current position but is no longer
        stored; a restart before the next fix or tap comes back without it.
        """
        self._current_token = None
        self.store.clear()
        self.logger.log("Saved route cleared")
        self._update(persist=False, destination=None, path=None)
