"""Configuration settings for Homeward."""

import os

CONFIG = {
    # Directions service (OpenRouteService)
    "ors_base_url": "https://api.openrouteservice.org",
    "ors_profile": "foot-walking",
    "ors_api_key_env": "HOMEWARD_ORS_API_KEY",
    "route_timeout": 30,  # seconds
    # Persistence
    "db_path": "homeward.db",
    "prefs_namespace": "homeward",
    "permission_namespace": "permissions",
    # Location
    "location_timeout": 30,  # seconds
    # Map screen
    "http_port": 8080,
    "ws_port": 8765,
    "min_zoom": 3,
    "max_zoom": 19,
    "center_zoom": 16,
    "default_center": (40.4168, -3.7038),  # shown until the first fix
    "route_color": "#3F51B5",
    "route_weight": 6,
}


def api_key_from_env() -> str:
    """Return the directions API key from the environment, or an empty string."""
    return os.environ.get(CONFIG["ors_api_key_env"], "")
