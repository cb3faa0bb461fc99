"""Map overlays for the route screen, plus HTML and GPX export."""

import math
from datetime import datetime
from typing import Callable, Optional, Sequence

import folium

from .config import CONFIG
from .geo import clamp_latitude, path_length, wrap_longitude
from .models import GeoPoint, RouteState

ORIGIN_TITLE = "Your location (Point A)"
DESTINATION_TITLE = "Destination (Point B)"


class MapView:
    """Turns map taps into points and state into overlays.

    ``render`` always rebuilds the overlay list from scratch, so rendering the
    same inputs twice gives the same scene. The camera is centered once, on the
    first render that has a position, and left alone afterwards.
    """

    def __init__(self, sink: Optional[Callable[[dict], None]] = None):
        self.sink = sink
        self.overlays: list[dict] = []
        self.center: Optional[GeoPoint] = None
        self.zoom: Optional[int] = None
        self.centered = False
        self._tap_callbacks: list[Callable[[GeoPoint], None]] = []

    def on_tap(self, callback: Callable[[GeoPoint], None]):
        self._tap_callbacks.append(callback)

    def handle_tap(self, lat: float, lon: float) -> GeoPoint:
        """Map raw map-surface coordinates to a point and notify listeners.

        Raises ValueError for coordinates that are not finite numbers.
        """
        lat, lon = float(lat), float(lon)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise ValueError(f"non-finite tap coordinates: {lat}, {lon}")
        point = GeoPoint(lat=clamp_latitude(lat), lon=wrap_longitude(lon))
        for callback in list(self._tap_callbacks):
            callback(point)
        return point

    def render(self, origin: Optional[GeoPoint], destination: Optional[GeoPoint],
               path: Optional[Sequence[GeoPoint]],
               current_location: Optional[GeoPoint] = None) -> dict:
        overlays = []
        if origin is not None:
            overlays.append({"type": "marker", "role": "origin",
                             "title": ORIGIN_TITLE, "position": origin.to_dict()})
        if destination is not None:
            overlays.append({"type": "marker", "role": "destination",
                             "title": DESTINATION_TITLE, "position": destination.to_dict()})
        if path:
            overlays.append({"type": "polyline", "role": "route",
                             "points": [[p.lat, p.lon] for p in path],
                             "color": CONFIG["route_color"],
                             "weight": CONFIG["route_weight"]})
        self.overlays = overlays

        focus = current_location or origin
        recenter = False
        if not self.centered and focus is not None:
            self.center = focus
            self.zoom = CONFIG["center_zoom"]
            self.centered = True
            recenter = True

        scene = self.scene(recenter=recenter)
        if self.sink:
            self.sink(scene)
        return scene

    def render_state(self, state: RouteState) -> dict:
        """Listener for AppState.subscribe"""
        return self.render(state.origin, state.destination, state.path,
                           current_location=state.current_location)

    def scene(self, recenter: bool = False) -> dict:
        return {
            "overlays": list(self.overlays),
            "camera": {
                "center": self.center.to_dict() if self.center else None,
                "zoom": self.zoom,
                "recenter": recenter,
            },
        }

    def _markers(self) -> list[dict]:
        return [o for o in self.overlays if o["type"] == "marker"]

    def _route(self) -> list[list[float]]:
        for o in self.overlays:
            if o["type"] == "polyline":
                return o["points"]
        return []

    def to_folium(self) -> folium.Map:
        """Static map of the current scene"""
        center = self.center
        if center is None:
            lat, lon = CONFIG["default_center"]
            center = GeoPoint(lat, lon)

        m = folium.Map(
            location=[center.lat, center.lon],
            zoom_start=self.zoom or CONFIG["center_zoom"],
            min_zoom=CONFIG["min_zoom"],
            max_zoom=CONFIG["max_zoom"],
            tiles="OpenStreetMap",
        )

        route = self._route()
        if route:
            distance = path_length(GeoPoint(lat, lon) for lat, lon in route)
            folium.PolyLine(
                locations=route,
                color=CONFIG["route_color"],
                weight=CONFIG["route_weight"],
                opacity=0.9,
                tooltip=f"Walking route ({distance/1000:.2f} km)",
            ).add_to(m)

        for marker in self._markers():
            pos = marker["position"]
            color = "blue" if marker["role"] == "origin" else "red"
            folium.Marker(
                location=[pos["lat"], pos["lon"]],
                tooltip=marker["title"],
                icon=folium.Icon(color=color),
            ).add_to(m)

        if route:
            m.fit_bounds(route)
        return m

    def save_html(self, path: str):
        self.to_folium().save(path)
        print(f"\nRoute map saved to: {path}")

    def to_gpx(self) -> str:
        """GPX 1.1 document with the markers as waypoints and the route as a track"""
        route = self._route()
        distance = path_length(GeoPoint(lat, lon) for lat, lon in route)
        timestamp = datetime.now().isoformat()

        gpx_lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<gpx version="1.1" creator="Homeward"',
            '     xmlns="http://www.topografix.com/GPX/1/1"',
            '     xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
            '     xsi:schemaLocation="http://www.topografix.com/GPX/1/1 http://www.topografix.com/GPX/1/1/gpx.xsd">',
            '  <metadata>',
            f'    <name>Homeward Route ({distance/1000:.2f} km)</name>',
            f'    <time>{timestamp}</time>',
            '  </metadata>',
        ]

        for marker in self._markers():
            pos = marker["position"]
            name = "Start" if marker["role"] == "origin" else "Destination"
            gpx_lines.append(f'  <wpt lat="{pos["lat"]:.6f}" lon="{pos["lon"]:.6f}">')
            gpx_lines.append(f'    <name>{name}</name>')
            gpx_lines.append('  </wpt>')

        if route:
            gpx_lines.append('  <trk>')
            gpx_lines.append('    <name>Homeward Route</name>')
            gpx_lines.append('    <trkseg>')
            for lat, lon in route:
                gpx_lines.append(f'      <trkpt lat="{lat:.6f}" lon="{lon:.6f}"/>')
            gpx_lines.append('    </trkseg>')
            gpx_lines.append('  </trk>')
        gpx_lines.append('</gpx>')
        return '\n'.join(gpx_lines)

    def save_gpx(self, path: str):
        with open(path, 'w') as f:
            f.write(self.to_gpx())
        print(f"\nGPX route saved to: {path}")
        print(f"  {len(self._markers())} waypoints, {len(self._route())} track points")
