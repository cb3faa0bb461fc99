#!/usr/bin/env python3
"""
Homeward - Tap a destination, get a walking route home

Usage:
    python -m homeward [options]

Options:
    --lat LAT         Current latitude (instead of GPS)
    --lon LON         Current longitude (instead of GPS)
    --grant           Treat location permission as granted
    --api-key KEY     Directions API key (default: $HOMEWARD_ORS_API_KEY)
    --db PATH         Preferences database (default: homeward.db)
    --log FILE        Log file path (default: homeward_TIMESTAMP.log)
    --to LAT LON      Compute a route to this point, save it and exit
    --html FILE       Write the saved route to an HTML map and exit
    --gpx FILE        Write the saved route to a GPX file and exit
    --clear           Erase the saved route and exit
    --no-browser      Do not open the map screen in a browser
"""

import argparse
import asyncio
from datetime import datetime

from .app import Homeward
from .config import CONFIG
from .location import FixedLocation
from .models import GeoPoint
from .server import MapServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Homeward - Tap a destination, get a walking route home"
    )
    parser.add_argument("--lat", type=float, metavar="LAT",
                        help="Current latitude (instead of GPS)")
    parser.add_argument("--lon", type=float, metavar="LON",
                        help="Current longitude (instead of GPS)")
    parser.add_argument("--grant", action="store_true",
                        help="Treat location permission as granted")
    parser.add_argument("--api-key", metavar="KEY",
                        help=f"Directions API key (default: ${CONFIG['ors_api_key_env']})")
    parser.add_argument("--db", metavar="PATH", default=CONFIG["db_path"],
                        help=f"Preferences database (default: {CONFIG['db_path']})")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: homeward_TIMESTAMP.log)")
    parser.add_argument("--http-port", type=int, default=CONFIG["http_port"],
                        help=f"Map page port (default: {CONFIG['http_port']})")
    parser.add_argument("--ws-port", type=int, default=CONFIG["ws_port"],
                        help=f"WebSocket port (default: {CONFIG['ws_port']})")
    parser.add_argument("--to", type=float, nargs=2, metavar=("LAT", "LON"),
                        help="Compute a route to this point, save it and exit")
    parser.add_argument("--html", metavar="FILE",
                        help="Write the saved route to an HTML map and exit")
    parser.add_argument("--gpx", metavar="FILE",
                        help="Write the saved route to a GPX file and exit")
    parser.add_argument("--clear", action="store_true",
                        help="Erase the saved route and exit")
    parser.add_argument("--no-browser", action="store_true",
                        help="Do not open the map screen in a browser")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate lat/lon - must provide both or neither
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be used together")

    if args.to is not None and not GeoPoint(*args.to).is_valid():
        parser.error("--to must be a latitude in [-90, 90] and a longitude in [-180, 180]")

    location_source = FixedLocation(args.lat, args.lon) if args.lat is not None else None
    headless = args.clear or args.html or args.gpx or args.to is not None

    # Determine log path
    log_path = args.log
    if not log_path and not headless:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"homeward_{timestamp}.log"

    server = None if headless else MapServer(args.http_port, args.ws_port)
    app = Homeward(
        log_path=log_path,
        db_path=args.db,
        api_key=args.api_key,
        location_source=location_source,
        server=server,
    )

    try:
        if args.clear:
            app.clear_saved_route()
            print("Saved route cleared.")
        elif args.to is not None:
            asyncio.run(app.route_once(GeoPoint(*args.to)))
            print(app.summary())
        elif args.html or args.gpx:
            if args.html:
                app.export_html(args.html)
            if args.gpx:
                app.export_gpx(args.gpx)
        else:
            try:
                asyncio.run(app.run(grant=args.grant, open_browser=not args.no_browser))
            except KeyboardInterrupt:
                print("\nStopped.")
    finally:
        app.close()


if __name__ == "__main__":
    main()
