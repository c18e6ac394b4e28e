"""Map tools: fit_all_tracks, set_map_view, export_map, preview."""

import webbrowser
from typing import Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..core.sync import SyncController
from ..map.folium_map import FoliumMap
from ..preview.server import PreviewServer
from ._common import error_text, validate_output_path, with_notices


def register_map_tools(
    mcp: FastMCP,
    controller: SyncController,
    folium_map: FoliumMap,
    preview_server: Optional[PreviewServer] = None,
):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def fit_all_tracks() -> str:
        """Zoom the map so every visible track fits on screen."""
        if controller.fit_all_tracks():
            return f"Map fitted to {len(controller.layers.visible)} visible track(s)."
        return with_notices(controller, "Map not moved.")

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def set_map_view(lat: float, lon: float, zoom: int) -> str:
        """Move the map. The position is saved once the map stops moving.

        Args:
            lat: Center latitude (degrees).
            lon: Center longitude (degrees).
            zoom: Zoom level 0-18.
        """
        try:
            controller.on_map_view_changed((lat, lon), zoom)
        except ValueError as e:
            return error_text(e)
        return f"Map centered on {lat:.5f}, {lon:.5f} at zoom {zoom}."

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    def export_map(output_path: str) -> str:
        """Write the map with all visible tracks to a standalone HTML file.

        Args:
            output_path: Destination .html path inside your home directory.
        """
        try:
            path = validate_output_path(output_path)
            folium_map.save(path, controller.settings)
        except (ValueError, OSError) as e:
            return error_text(e)
        return f"Map exported to {path} ({len(folium_map.attached_layers)} track(s))"

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
    async def preview() -> str:
        """Open or refresh the live map preview in the browser.

        Starts a local HTTP server with WebSocket updates on localhost.
        If the preview is already running, open pages are told to reload.
        """
        if preview_server is None:
            return "Error: Live preview is not available."

        if not preview_server.running:
            try:
                await preview_server.start()
            except OSError as e:
                return error_text(e)
            webbrowser.open(preview_server.url)
            return f"Preview opened at {preview_server.url}"
        await preview_server.broadcast_refresh()
        return f"Preview updated at {preview_server.url}"
