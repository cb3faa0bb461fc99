"""Tests for the AppState state machine."""

import asyncio

from homeward.location import FixedLocation
from homeward.models import GeoPoint, Phase
from homeward.state import AppState

from helpers import FailingLocation, FakeRouteClient

ORIGIN = GeoPoint(40.0, -3.0)
TAP = GeoPoint(40.01, -3.01)
ROUTE = [ORIGIN, GeoPoint(40.005, -3.005), TAP]


class TestPermissionAndLocation:
    def test_starts_without_permission(self, app_state):
        app_state.hydrate()
        assert app_state.phase == Phase.NO_PERMISSION

    def test_denial_stays_put(self, app_state):
        app_state.hydrate()
        app_state.deny_permission()
        assert app_state.phase == Phase.NO_PERMISSION
        assert not app_state.tap(TAP)

    def test_grant_then_locate(self, app_state, store):
        app_state.hydrate()
        app_state.grant_permission()
        assert app_state.phase == Phase.AWAITING_LOCATION

        asyncio.run(app_state.locate(FixedLocation(40.0, -3.0)))
        assert app_state.phase == Phase.READY
        assert app_state.state.origin == ORIGIN
        assert app_state.state.current_location == ORIGIN
        assert store.load() == (ORIGIN, None, None)

    def test_location_failure_keeps_waiting(self, app_state):
        app_state.hydrate()
        app_state.grant_permission()
        assert asyncio.run(app_state.locate(FailingLocation())) is None
        assert app_state.phase == Phase.AWAITING_LOCATION
        assert app_state.state.origin is None

    def test_locate_requires_permission(self, app_state):
        app_state.hydrate()
        assert asyncio.run(app_state.locate(FixedLocation(1.0, 2.0))) is None
        assert app_state.state.origin is None

    def test_remembered_permission(self, app_state, permissions):
        permissions.set_granted(True)
        app_state.hydrate()
        assert app_state.phase == Phase.AWAITING_LOCATION


class TestDestinationAndRoute:
    def test_tap_ignored_before_ready(self, app_state):
        app_state.hydrate()
        app_state.grant_permission()
        assert not app_state.tap(TAP)
        assert app_state.state.destination is None

    def test_tap_sets_destination(self, ready_state, store):
        assert ready_state.tap(TAP)
        assert ready_state.state.destination == TAP
        assert ready_state.state.path is None
        assert store.load() == (ORIGIN, TAP, None)

    def test_new_destination_clears_path(self, ready_state, store):
        ready_state.tap(TAP)
        asyncio.run(ready_state.compute_route(FakeRouteClient(ROUTE)))
        assert ready_state.state.path is not None

        ready_state.tap(GeoPoint(40.02, -3.02))
        assert ready_state.state.path is None
        assert store.load()[2] is None

    def test_invalid_destination_ignored(self, ready_state, store):
        assert not ready_state.tap(GeoPoint(1.0, float("nan")))
        assert not ready_state.tap(GeoPoint(91.0, 0.0))
        assert ready_state.state.destination is None
        assert store.load() == (ORIGIN, None, None)

    def test_compute_route(self, ready_state, store):
        ready_state.tap(TAP)
        client = FakeRouteClient(ROUTE)
        assert asyncio.run(ready_state.compute_route(client))
        assert client.calls == [(ORIGIN, TAP)]
        assert list(ready_state.state.path) == ROUTE
        assert ready_state.state.has_route
        assert store.load() == (ORIGIN, TAP, ROUTE)

    def test_empty_route_means_no_route(self, ready_state, store):
        ready_state.tap(TAP)
        asyncio.run(ready_state.compute_route(FakeRouteClient([])))
        assert ready_state.state.path == ()
        assert not ready_state.state.has_route
        assert store.load() == (ORIGIN, TAP, [])

    def test_route_needs_destination(self, ready_state):
        client = FakeRouteClient(ROUTE)
        assert not asyncio.run(ready_state.compute_route(client))
        assert client.calls == []

    def test_stale_result_discarded_after_tap(self, ready_state):
        ready_state.tap(TAP)
        request = ready_state.begin_route()
        newer = GeoPoint(40.03, -3.03)
        ready_state.tap(newer)

        assert not ready_state.apply_route(request, ROUTE)
        assert ready_state.state.destination == newer
        assert ready_state.state.path is None

    def test_only_latest_request_applies(self, ready_state):
        ready_state.tap(TAP)
        first = ready_state.begin_route()
        second = ready_state.begin_route()
        assert not ready_state.apply_route(first, ROUTE[:2])
        assert ready_state.apply_route(second, ROUTE)
        assert list(ready_state.state.path) == ROUTE

    def test_stale_result_discarded_after_clear(self, ready_state, store):
        ready_state.tap(TAP)
        request = ready_state.begin_route()
        ready_state.clear()
        assert not ready_state.apply_route(request, ROUTE)
        assert store.load() == (None, None, None)


class TestClearAndHydrate:
    def test_clear(self, ready_state, store):
        ready_state.tap(TAP)
        asyncio.run(ready_state.compute_route(FakeRouteClient(ROUTE)))
        ready_state.clear()

        assert ready_state.state.destination is None
        assert ready_state.state.path is None
        assert ready_state.state.origin == ORIGIN
        assert store.load() == (None, None, None)

    def test_restart_after_clear_has_no_origin(self, ready_state, store, permissions, quiet_logger):
        ready_state.tap(TAP)
        ready_state.clear()

        restarted = AppState(store, permissions, logger=quiet_logger)
        restarted.hydrate()
        assert restarted.state.origin is None
        assert restarted.phase == Phase.AWAITING_LOCATION

    def test_clear_without_permission(self, app_state, store):
        store.save(ORIGIN, TAP, ROUTE)
        app_state.hydrate()
        app_state.clear()
        assert store.load() == (None, None, None)

    def test_hydrate_restores_triple(self, app_state, store):
        store.save(ORIGIN, TAP, ROUTE)
        app_state.hydrate()
        assert app_state.state.origin == ORIGIN
        assert app_state.state.destination == TAP
        assert list(app_state.state.path) == ROUTE

    def test_fix_replaces_saved_origin(self, app_state, store):
        store.save(GeoPoint(1.0, 1.0), TAP, None)
        app_state.hydrate()
        app_state.grant_permission()
        app_state.set_location(ORIGIN)
        assert store.load() == (ORIGIN, TAP, None)


class TestListeners:
    def test_listener_receives_snapshots(self, ready_state):
        seen = []
        unsubscribe = ready_state.subscribe(seen.append)
        ready_state.tap(TAP)
        unsubscribe()
        ready_state.tap(GeoPoint(1.0, 1.0))

        assert len(seen) == 1
        assert seen[0].destination == TAP

    def test_no_notification_without_change(self, ready_state):
        seen = []
        ready_state.subscribe(seen.append)
        ready_state.set_location(ORIGIN)
        assert seen == []
