"""HTTP + WebSocket live preview of the map.

The HTTP server serves the current folium rendering; the WebSocket tells
open pages to reload when layers change and carries map move/zoom events
back to the controller.
"""

import asyncio
import json
import logging
from http.server import HTTPServer, SimpleHTTPRequestHandler
from threading import Thread
from typing import Callable, Optional

import websockets

from hiking_map.core.debounce import Debouncer

logger = logging.getLogger(__name__)

REFRESH_DELAY_SECONDS = 0.2

LIVE_SCRIPT = """
(function() {
  var map = {map};
  var socket = new WebSocket("ws://localhost:%(ws_port)d");
  socket.onmessage = function(event) {
    var msg = JSON.parse(event.data);
    if (msg.event === "refresh") { window.location.reload(); }
  };
  map.on("moveend zoomend", function() {
    if (socket.readyState !== 1) { return; }
    var c = map.getCenter();
    socket.send(JSON.stringify({event: "view", center: [c.lat, c.lng], zoom: map.getZoom()}));
  });
})();
"""


def live_script(ws_port: int) -> str:
    return LIVE_SCRIPT % {"ws_port": ws_port}


class PreviewServer:
    def __init__(
        self,
        render_html: Callable[[str], str],
        on_view_changed: Callable[[tuple[float, float], int], None],
        http_port: int = 3333,
        ws_port: int = 3334,
    ):
        self.render_html = render_html
        self.on_view_changed = on_view_changed
        self.http_port = http_port
        self.ws_port = ws_port
        self.running = False
        self._clients: set = set()
        self._http_server: Optional[HTTPServer] = None
        self._ws_server = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._refresh = Debouncer(REFRESH_DELAY_SECONDS, self.broadcast_refresh)

    @property
    def url(self) -> str:
        return f"http://localhost:{self.http_port}"

    def _page(self) -> bytes:
        """Render on the event loop thread, which owns all map state."""
        script = live_script(self.ws_port)

        async def render() -> str:
            return self.render_html(script)

        future = asyncio.run_coroutine_threadsafe(render(), self._loop)
        return future.result(timeout=30).encode("utf-8")

    def _handler_class(self):
        server = self

        class PreviewHandler(SimpleHTTPRequestHandler):
            def do_GET(self):
                if self.path == "/" or self.path == "/index.html":
                    body = server._page()
                    self.send_response(200)
                    self.send_header("Content-Type", "text/html; charset=utf-8")
                    self.end_headers()
                    self.wfile.write(body)
                else:
                    self.send_response(404)
                    self.end_headers()

            def log_message(self, format, *args):
                pass  # Suppress HTTP logs

        return PreviewHandler

    async def _ws_handler(self, websocket):
        self._clients.add(websocket)
        try:
            async for message in websocket:
                self.handle_message(message)
        finally:
            self._clients.discard(websocket)

    def handle_message(self, message: str) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.debug("Ignoring non-JSON preview message")
            return
        if not isinstance(data, dict) or data.get("event") != "view":
            return
        try:
            lat, lon = data["center"]
            self.on_view_changed((float(lat), float(lon)), int(data["zoom"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed view event: %s", e)

    async def start(self) -> None:
        """Start the HTTP and WebSocket servers."""
        self._loop = asyncio.get_running_loop()

        self._http_server = HTTPServer(("localhost", self.http_port), self._handler_class())
        http_thread = Thread(target=self._http_server.serve_forever, daemon=True)
        http_thread.start()

        self._ws_server = await websockets.serve(self._ws_handler, "localhost", self.ws_port)
        self.running = True
        logger.info("Preview running at %s", self.url)

    def notify_changed(self) -> None:
        """Map listener: schedule one refresh for a burst of layer changes."""
        if self.running and self._clients:
            self._refresh.trigger()

    async def broadcast_refresh(self) -> None:
        if not self._clients:
            return
        data = json.dumps({"event": "refresh"})
        await asyncio.gather(
            *[client.send(data) for client in self._clients],
            return_exceptions=True,
        )

    async def stop(self) -> None:
        self._refresh.cancel()
        if self._ws_server is not None:
            self._ws_server.close()
            await self._ws_server.wait_closed()
            self._ws_server = None
        if self._http_server is not None:
            self._http_server.shutdown()
            self._http_server.server_close()
            self._http_server = None
        self.running = False
