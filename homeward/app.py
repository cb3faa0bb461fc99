"""Main Homeward application."""

import asyncio
from typing import Optional

from .config import api_key_from_env
from .geo import path_length
from .location import GPS
from .logger import Logger
from .mapview import MapView
from .models import GeoPoint, Phase, RouteState
from .routing import RouteClient
from .server import MapServer
from .state import AppState
from .store import PermissionStore, PrefsDB, RouteStore


class Homeward:
    """Main application"""

    def __init__(self, log_path: Optional[str] = None,
                 db_path: Optional[str] = None,
                 api_key: Optional[str] = None,
                 location_source=None,
                 route_client: Optional[RouteClient] = None,
                 server: Optional[MapServer] = None,
                 echo: bool = True):
        self.server = server
        log_callback = self.server.send_log if self.server else None
        self.logger = Logger(log_path, callback=log_callback, echo=echo)

        self.prefs = PrefsDB(db_path)
        self.store = RouteStore(self.prefs)
        self.permissions = PermissionStore(self.prefs)
        self.location_source = location_source or GPS()
        self.route_client = route_client or RouteClient(
            api_key if api_key is not None else api_key_from_env(),
            logger=self.logger,
        )

        self.state = AppState(self.store, self.permissions, logger=self.logger)
        self.map_view = MapView(sink=self.server.send_scene if self.server else None)
        self.map_view.on_tap(self.state.tap)

        self.state.subscribe(self._on_state)
        self._tasks: set[asyncio.Task] = set()

    def _on_state(self, state: RouteState):
        self.map_view.render_state(state)
        if self.server:
            self.server.send_state(state.to_dict())

    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def handle_message(self, msg_type: str, data: dict):
        """Dispatch one event from the map screen"""
        if not isinstance(data, dict):
            self.logger.log("Malformed event", {"type": msg_type})
            return
        if msg_type == "tap":
            try:
                point = GeoPoint.from_dict(data)
                self.map_view.handle_tap(point.lat, point.lon)
            except (KeyError, TypeError, ValueError):
                self.logger.log("Malformed tap event", {"data": repr(data)})
        elif msg_type == "permission":
            if data.get("granted"):
                self.state.grant_permission()
                self._spawn(self.state.locate(self.location_source))
            else:
                self.state.deny_permission()
        elif msg_type == "locate":
            self._spawn(self.state.locate(self.location_source))
        elif msg_type == "route":
            self._spawn(self.state.compute_route(self.route_client))
        elif msg_type == "clear":
            self.state.clear()
        else:
            self.logger.log("Unknown event", {"type": msg_type})

    def start(self, grant: bool = False):
        """Restore saved state and record a permission given on the command line"""
        self.state.hydrate()
        # Hydration may not change anything, so draw the first frame explicitly
        self._on_state(self.state.state)
        if grant:
            self.state.grant_permission()

    async def run(self, grant: bool = False, open_browser: bool = True):
        """Serve the map screen until interrupted"""
        self.start(grant=grant)
        if self.state.phase == Phase.AWAITING_LOCATION:
            self._spawn(self.state.locate(self.location_source))

        if not self.server:
            raise RuntimeError("Homeward.run needs a MapServer")
        self.server.start_http(open_browser=open_browser)
        try:
            await self.server.serve(self.handle_message)
        finally:
            self.server.stop()

    async def route_once(self, destination: GeoPoint) -> RouteState:
        """Locate, pick a destination and compute a route without the map screen"""
        self.start()
        self.state.grant_permission(remember=False)
        await self.state.locate(self.location_source)
        if not self.state.tap(destination):
            return self.state.state
        await self.state.compute_route(self.route_client)
        return self.state.state

    def clear_saved_route(self):
        self.state.clear()

    def export_html(self, path: str) -> bool:
        state = self._restored()
        if not state.origin and not state.destination:
            print("No saved route to export")
            return False
        self.map_view.save_html(path)
        return True

    def export_gpx(self, path: str) -> bool:
        state = self._restored()
        if not state.has_route:
            print("No saved route to export")
            return False
        self.map_view.save_gpx(path)
        return True

    def _restored(self) -> RouteState:
        self.state.hydrate()
        state = self.state.state
        self.map_view.render_state(state)
        return state

    def summary(self) -> str:
        state = self.state.state
        if not state.has_route:
            return "No route found"
        return (f"Route: {len(state.path)} points, "
                f"{path_length(state.path)/1000:.2f} km")

    def close(self):
        self.route_client.close()
        self.prefs.close()
        self.logger.close()
