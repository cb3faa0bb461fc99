"""Shared fixtures for Homeward tests."""

import pytest

from homeward.logger import Logger
from homeward.models import GeoPoint
from homeward.state import AppState
from homeward.store import PermissionStore, PrefsDB, RouteStore


@pytest.fixture
def prefs(tmp_path):
    db = PrefsDB(str(tmp_path / "prefs.db"))
    yield db
    db.close()


@pytest.fixture
def store(prefs):
    return RouteStore(prefs)


@pytest.fixture
def permissions(prefs):
    return PermissionStore(prefs)


@pytest.fixture
def quiet_logger():
    return Logger(echo=False)


@pytest.fixture
def app_state(store, permissions, quiet_logger):
    return AppState(store, permissions, logger=quiet_logger)


@pytest.fixture
def ready_state(app_state):
    """AppState with permission granted and origin at (40.0, -3.0)"""
    app_state.hydrate()
    app_state.grant_permission()
    app_state.set_location(GeoPoint(40.0, -3.0))
    return app_state
