"""Local web map screen for Homeward."""

import asyncio
import http.server
import json
import socketserver
import threading
import webbrowser
from functools import partial
from typing import Awaitable, Callable, Optional

import websockets

from .config import CONFIG


# HTML template for the map screen
MAP_SCREEN_HTML = '''<!DOCTYPE html>
<html>
<head>
    <title>Homeward</title>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; height: 100vh; display: flex; flex-direction: column; }
        header { background: #e8eaf6; color: #3F51B5; padding: 12px 20px; display: flex; justify-content: space-between; align-items: center; }
        header h1 { font-size: 18px; font-weight: 600; }
        header button { background: none; border: none; font-size: 20px; cursor: pointer; color: #3F51B5; }
        .status-badge { background: #22c55e; color: white; padding: 4px 12px; border-radius: 12px; font-size: 12px; margin-right: 12px; }
        .status-badge.disconnected { background: #ef4444; }
        #map { flex: 1; min-height: 0; }
        .wide-button { margin: 16px; padding: 14px; border: none; border-radius: 24px; background: #3F51B5; color: white; font-size: 16px; cursor: pointer; }
        .hidden { display: none; }
        #status-line { padding: 6px 20px; font-size: 12px; color: #64748b; background: #f8fafc; border-top: 1px solid #e2e8f0; }
    </style>
</head>
<body>
    <header>
        <h1>Homeward</h1>
        <div>
            <span id="connection-status" class="status-badge disconnected">Disconnected</span>
            <button id="locate-button" title="Find my location">&#8982;</button>
            <button id="clear-button" title="Clear route">&#128465;</button>
        </div>
    </header>
    <button id="permission-button" class="wide-button hidden">Grant location permission</button>
    <div id="map"></div>
    <button id="route-button" class="wide-button hidden">Take me home</button>
    <div id="status-line">-</div>
    <script>
        var map = L.map('map', {minZoom: {{MIN_ZOOM}}, maxZoom: {{MAX_ZOOM}}}).setView([{{CENTER_LAT}}, {{CENTER_LON}}], 13);
        L.tileLayer('https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png', {
            attribution: '&copy; OpenStreetMap contributors'
        }).addTo(map);

        var ws = null;
        var overlayLayer = L.layerGroup().addTo(map);

        function send(type, data) {
            if (ws && ws.readyState === WebSocket.OPEN) {
                ws.send(JSON.stringify({type: type, data: data || {}}));
            }
        }

        function drawScene(scene) {
            // Drop previous markers and route before drawing
            overlayLayer.clearLayers();
            scene.overlays.forEach(function(o) {
                if (o.type === 'marker') {
                    L.marker([o.position.lat, o.position.lon], {title: o.title})
                        .bindTooltip(o.title).addTo(overlayLayer);
                } else if (o.type === 'polyline') {
                    L.polyline(o.points, {color: o.color, weight: o.weight}).addTo(overlayLayer);
                }
            });
            var cam = scene.camera;
            if (cam.recenter && cam.center) {
                map.flyTo([cam.center.lat, cam.center.lon], cam.zoom);
            }
        }

        function applyState(state) {
            document.getElementById('permission-button').classList.toggle('hidden', state.phase !== 'no_permission');
            document.getElementById('route-button').classList.toggle('hidden', !state.destination);
            var text = state.phase.replace('_', ' ');
            if (state.path_points !== null) {
                text += state.path_points > 0 ? ' | route: ' + state.path_points + ' points' : ' | no route found';
            }
            document.getElementById('status-line').textContent = text;
        }

        function connect() {
            ws = new WebSocket('ws://' + location.hostname + ':{{WS_PORT}}');

            ws.onopen = function() {
                document.getElementById('connection-status').textContent = 'Connected';
                document.getElementById('connection-status').classList.remove('disconnected');
            };

            ws.onclose = function() {
                document.getElementById('connection-status').textContent = 'Disconnected';
                document.getElementById('connection-status').classList.add('disconnected');
                setTimeout(connect, 2000);
            };

            ws.onmessage = function(event) {
                var msg = JSON.parse(event.data);
                if (msg.type === 'scene') {
                    drawScene(msg.data);
                } else if (msg.type === 'state') {
                    applyState(msg.data);
                } else if (msg.type === 'log') {
                    console.log(msg.data.message, msg.data.data || '');
                }
            };
        }

        map.on('click', function(e) {
            send('tap', {lat: e.latlng.lat, lon: e.latlng.lng});
        });
        document.getElementById('permission-button').onclick = function() {
            send('permission', {granted: window.confirm('Allow Homeward to use your location?')});
        };
        document.getElementById('locate-button').onclick = function() { send('locate'); };
        document.getElementById('clear-button').onclick = function() { send('clear'); };
        document.getElementById('route-button').onclick = function() { send('route'); };

        connect();
    </script>
</body>
</html>'''

MessageHandler = Callable[[str, dict], Awaitable[None]]


def parse_message(message) -> Optional[tuple[str, dict]]:
    """Decode one browser event into (type, data), or None if it is malformed"""
    try:
        msg = json.loads(message)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(msg, dict) or not isinstance(msg.get("type"), str):
        return None
    data = msg.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None
    return msg["type"], data


class MapServer:
    """HTTP server for the map page and WebSocket server for its events"""

    def __init__(self, http_port: Optional[int] = None, ws_port: Optional[int] = None,
                 host: str = "localhost"):
        self.http_port = http_port or CONFIG["http_port"]
        self.ws_port = ws_port or CONFIG["ws_port"]
        self.host = host
        self.http_thread = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.connected_clients: set = set()
        self.latest: dict[str, str] = {}  # last message of each type, replayed on connect
        self._running = False

    def render_page(self) -> str:
        lat, lon = CONFIG["default_center"]
        return (MAP_SCREEN_HTML
                .replace('{{WS_PORT}}', str(self.ws_port))
                .replace('{{MIN_ZOOM}}', str(CONFIG["min_zoom"]))
                .replace('{{MAX_ZOOM}}', str(CONFIG["max_zoom"]))
                .replace('{{CENTER_LAT}}', str(lat))
                .replace('{{CENTER_LON}}', str(lon)))

    def start_http(self, open_browser: bool = True):
        """Serve the page from a background thread"""
        self._running = True
        self.http_thread = threading.Thread(target=self._run_http_server, daemon=True)
        self.http_thread.start()

        url = f"http://{self.host}:{self.http_port}"
        print(f"Homeward map available at: {url}")
        if open_browser:
            webbrowser.open(url)

    def _run_http_server(self):
        """Run the HTTP server for serving the page"""
        handler = partial(_MapHTTPHandler, self.render_page())
        socketserver.TCPServer.allow_reuse_address = True
        with socketserver.TCPServer((self.host, self.http_port), handler) as httpd:
            httpd.timeout = 0.5
            while self._running:
                httpd.handle_request()

    async def serve(self, on_message: MessageHandler):
        """Run the WebSocket server on the current loop until stop() is called"""
        self.loop = asyncio.get_running_loop()
        self._running = True

        async def handler(websocket):
            self.connected_clients.add(websocket)
            try:
                for message in list(self.latest.values()):
                    await websocket.send(message)
                async for message in websocket:
                    parsed = parse_message(message)
                    if parsed is None:
                        continue
                    await on_message(*parsed)
            finally:
                self.connected_clients.discard(websocket)

        async with websockets.serve(handler, self.host, self.ws_port):
            while self._running:
                await asyncio.sleep(0.1)

    def _send_message(self, msg_type: str, data: dict):
        """Send a message to all connected WebSocket clients.

        Safe to call from any thread.
        """
        message = json.dumps({"type": msg_type, "data": data})
        if msg_type != "log":
            self.latest[msg_type] = message
        if not self.connected_clients or not self.loop:
            return

        async def send_to_all():
            for client in list(self.connected_clients):
                try:
                    await client.send(message)
                except websockets.ConnectionClosed:
                    self.connected_clients.discard(client)

        asyncio.run_coroutine_threadsafe(send_to_all(), self.loop)

    def send_scene(self, scene: dict):
        """Send map overlays and camera to the browser"""
        self._send_message("scene", scene)

    def send_state(self, state: dict):
        """Send state summary to the browser"""
        self._send_message("state", state)

    def send_log(self, message: str, data: Optional[dict] = None):
        """Send log message to the browser console"""
        self._send_message("log", {"message": message, "data": data})

    def stop(self):
        """Stop the servers"""
        self._running = False


class _MapHTTPHandler(http.server.SimpleHTTPRequestHandler):
    """HTTP handler that serves the map page"""

    def __init__(self, page: str, *args, **kwargs):
        self.page = page
        super().__init__(*args, **kwargs)

    def do_GET(self):
        if self.path == '/' or self.path == '/index.html':
            self.send_response(200)
            self.send_header('Content-type', 'text/html')
            self.end_headers()
            self.wfile.write(self.page.encode())
        else:
            self.send_error(404)

    def log_message(self, format, *args):
        pass  # Suppress HTTP log messages
