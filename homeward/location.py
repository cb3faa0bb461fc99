"""Device location sources."""

import json
import subprocess
from typing import Optional

from .config import CONFIG
from .models import GeoPoint


class LocationError(Exception):
    """The device position could not be determined"""


class GPS:
    """GPS access via Termux API"""

    def __init__(self, provider: str = "gps"):
        self.provider = provider
        self.last_location: Optional[GeoPoint] = None
        self.last_accuracy: Optional[float] = None
        self.consecutive_failures = 0

    def get_location(self, timeout: Optional[int] = None) -> GeoPoint:
        """Get current location using termux-location.

        Raises LocationError when no fix could be obtained.
        """
        timeout = timeout or CONFIG["location_timeout"]
        try:
            result = subprocess.run(
                ["termux-location", "-p", self.provider, "-r", "once"],
                capture_output=True,
                text=True,
                timeout=timeout
            )
        except subprocess.TimeoutExpired:
            self.consecutive_failures += 1
            raise LocationError(f"no fix within {timeout}s")
        except FileNotFoundError:
            self.consecutive_failures += 1
            raise LocationError("termux-location not installed")

        if result.returncode != 0:
            self.consecutive_failures += 1
            error_msg = result.stderr.strip() if result.stderr else "unknown error"
            raise LocationError(error_msg)

        if not result.stdout or not result.stdout.strip():
            self.consecutive_failures += 1
            raise LocationError("empty response")

        try:
            data = json.loads(result.stdout)
            location = GeoPoint(lat=float(data["latitude"]), lon=float(data["longitude"]))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            self.consecutive_failures += 1
            raise LocationError(f"bad location output: {e}") from e

        self.last_location = location
        self.last_accuracy = data.get("accuracy")
        self.consecutive_failures = 0
        return location

    def get_status(self) -> str:
        """Get GPS status string"""
        if self.consecutive_failures == 0:
            acc = f", accuracy {self.last_accuracy:.0f}m" if self.last_accuracy else ""
            return f"GPS OK{acc}"
        else:
            return f"GPS: {self.consecutive_failures} consecutive failures"


class FixedLocation:
    """Location source that always reports the same point (--lat/--lon)"""

    def __init__(self, lat: float, lon: float):
        self.last_location = GeoPoint(lat, lon)

    def get_location(self, timeout: Optional[int] = None) -> GeoPoint:
        return self.last_location

    def get_status(self) -> str:
        return f"Fixed location {self.last_location.lat:.5f}, {self.last_location.lon:.5f}"
