"""Tests for the MapView adapter."""

import pytest

from homeward.mapview import MapView
from homeward.models import GeoPoint, Phase, RouteState

A = GeoPoint(40.0, -3.0)
B = GeoPoint(40.01, -3.01)
PATH = [A, GeoPoint(40.005, -3.005), B]


def roles(scene):
    return [o["role"] for o in scene["overlays"]]


class TestTaps:
    def test_tap_callback(self):
        view = MapView()
        taps = []
        view.on_tap(taps.append)
        view.handle_tap(40.01, -3.01)
        assert taps == [B]

    def test_in_range_tap_is_exact(self):
        view = MapView()
        assert view.handle_tap(40.01, -3.01) == GeoPoint(40.01, -3.01)
        assert view.handle_tap(-33.8688, 151.2093) == GeoPoint(-33.8688, 151.2093)
        assert view.handle_tap(0.0, 180.0) == GeoPoint(0.0, 180.0)

    def test_non_finite_tap_rejected(self):
        view = MapView()
        taps = []
        view.on_tap(taps.append)
        with pytest.raises(ValueError):
            view.handle_tap(1.0, float("nan"))
        with pytest.raises(ValueError):
            view.handle_tap(float("inf"), 2.0)
        assert taps == []

    def test_tap_longitude_wrapped(self):
        view = MapView()
        assert view.handle_tap(10.0, 190.0) == GeoPoint(10.0, -170.0)
        assert view.handle_tap(10.0, -540.0) == GeoPoint(10.0, -180.0)

    def test_tap_latitude_clamped(self):
        assert MapView().handle_tap(95.0, 0.0) == GeoPoint(90.0, 0.0)


class TestRender:
    def test_full_scene(self):
        scene = MapView().render(A, B, PATH)
        assert roles(scene) == ["origin", "destination", "route"]
        assert scene["overlays"][2]["points"][0] == [40.0, -3.0]

    def test_render_replaces_previous_overlays(self):
        view = MapView()
        view.render(A, B, PATH)
        scene = view.render(A, None, None)
        assert roles(scene) == ["origin"]

    def test_empty_path_draws_no_polyline(self):
        assert roles(MapView().render(A, B, [])) == ["origin", "destination"]

    def test_render_is_idempotent(self):
        view = MapView()
        view.render(A, B, PATH)
        first = view.scene()
        view.render(A, B, PATH)
        assert view.scene() == first

    def test_camera_centers_once(self):
        view = MapView()
        nothing = view.render(None, None, None)
        assert nothing["camera"]["center"] is None

        first = view.render(A, None, None)
        assert first["camera"]["recenter"]
        assert first["camera"]["center"] == A.to_dict()

        later = view.render(B, B, None)
        assert not later["camera"]["recenter"]
        assert later["camera"]["center"] == A.to_dict()

    def test_sink_gets_every_render(self):
        sent = []
        view = MapView(sink=sent.append)
        view.render(A, None, None)
        view.render(A, B, None)
        assert len(sent) == 2

    def test_render_state(self):
        state = RouteState(phase=Phase.READY, current_location=A, origin=A,
                           destination=B, path=tuple(PATH))
        assert roles(MapView().render_state(state)) == ["origin", "destination", "route"]


class TestExport:
    def test_gpx(self):
        view = MapView()
        view.render(A, B, PATH)
        gpx = view.to_gpx()
        assert '<wpt lat="40.000000" lon="-3.000000">' in gpx
        assert gpx.count("<trkpt ") == 3
        assert gpx.strip().endswith("</gpx>")

    def test_gpx_without_route_has_no_track(self):
        view = MapView()
        view.render(A, B, None)
        assert "<trk>" not in view.to_gpx()

    def test_save_gpx(self, tmp_path):
        view = MapView()
        view.render(A, B, PATH)
        out = tmp_path / "route.gpx"
        view.save_gpx(str(out))
        assert "<trkseg>" in out.read_text()

    def test_save_html(self, tmp_path):
        view = MapView()
        view.render(A, B, PATH)
        out = tmp_path / "route.html"
        view.save_html(str(out))
        html = out.read_text()
        assert "leaflet" in html.lower()
        assert "Destination (Point B)" in html
