"""Key-value persistence for the saved route."""

import sqlite3
from typing import Optional, Sequence

from . import codec
from .config import CONFIG
from .models import GeoPoint

KEY_POINT_A = "point_a"
KEY_POINT_B = "point_b"
KEY_ROUTE_POINTS = "route_points"
KEY_LOCATION_GRANTED = "location"


class PrefsDB:
    """SQLite-backed string preferences, grouped by namespace"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or CONFIG["db_path"]
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._init_schema()

    def _init_schema(self):
        """Create database tables"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS prefs (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (namespace, key)
            )
        """)
        self.conn.commit()

    def get(self, namespace: str, key: str) -> Optional[str]:
        cursor = self.conn.execute(
            "SELECT value FROM prefs WHERE namespace = ? AND key = ?",
            (namespace, key)
        )
        row = cursor.fetchone()
        return row[0] if row else None

    def set(self, namespace: str, key: str, value: str):
        self.conn.execute("""
            INSERT INTO prefs (namespace, key, value) VALUES (?, ?, ?)
            ON CONFLICT(namespace, key) DO UPDATE SET value = excluded.value
        """, (namespace, key, value))
        self.conn.commit()

    def remove(self, namespace: str, key: str):
        self.conn.execute(
            "DELETE FROM prefs WHERE namespace = ? AND key = ?",
            (namespace, key)
        )
        self.conn.commit()

    def keys(self, namespace: str) -> list[str]:
        cursor = self.conn.execute(
            "SELECT key FROM prefs WHERE namespace = ? ORDER BY key",
            (namespace,)
        )
        return [row[0] for row in cursor.fetchall()]

    def clear(self, namespace: str):
        """Remove every key in a namespace"""
        self.conn.execute("DELETE FROM prefs WHERE namespace = ?", (namespace,))
        self.conn.commit()

    def close(self):
        self.conn.close()


class RouteStore:
    """Saves and restores origin, destination and route.

    Each field lives under its own key. A field that is None is removed
    rather than written, so a missing value is always an absent key.
    """

    def __init__(self, prefs: PrefsDB, namespace: Optional[str] = None):
        self.prefs = prefs
        self.namespace = namespace or CONFIG["prefs_namespace"]

    def _put(self, key: str, value: Optional[str]):
        if value is None:
            self.prefs.remove(self.namespace, key)
        else:
            self.prefs.set(self.namespace, key, value)

    def save(self, origin: Optional[GeoPoint], destination: Optional[GeoPoint],
             path: Optional[Sequence[GeoPoint]]):
        self._put(KEY_POINT_A, codec.encode(origin) if origin is not None else None)
        self._put(KEY_POINT_B, codec.encode(destination) if destination is not None else None)
        self._put(KEY_ROUTE_POINTS, codec.encode_list(path) if path is not None else None)

    def load(self) -> tuple[Optional[GeoPoint], Optional[GeoPoint], Optional[list[GeoPoint]]]:
        """Return (origin, destination, path); malformed values come back as None"""
        return (
            codec.decode(self.prefs.get(self.namespace, KEY_POINT_A)),
            codec.decode(self.prefs.get(self.namespace, KEY_POINT_B)),
            codec.decode_list(self.prefs.get(self.namespace, KEY_ROUTE_POINTS)),
        )

    def clear(self):
        self.prefs.clear(self.namespace)


class PermissionStore:
    """Remembers whether location access was granted.

    Kept in its own namespace so clearing the route never revokes it.
    """

    def __init__(self, prefs: PrefsDB, namespace: Optional[str] = None):
        self.prefs = prefs
        self.namespace = namespace or CONFIG["permission_namespace"]

    def is_granted(self) -> bool:
        return self.prefs.get(self.namespace, KEY_LOCATION_GRANTED) == "granted"

    def set_granted(self, granted: bool):
        if granted:
            self.prefs.set(self.namespace, KEY_LOCATION_GRANTED, "granted")
        else:
            self.prefs.remove(self.namespace, KEY_LOCATION_GRANTED)
