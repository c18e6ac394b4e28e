"""MCP server for hiking-map.

Builds the controller and its collaborators, registers all tools and runs
via stdio transport.
"""

import logging
import sys
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from .config import get_gpx_root, get_log_level, get_preview_port, get_settings_path
from .core.sync import SyncController
from .library import LocalLibrary
from .map.folium_map import FoliumMap
from .preview.server import PreviewServer
from .settings import load_settings
from .tools.library import register_library_tools
from .tools.map import register_map_tools
from .tools.settings import register_settings_tools
from .tools.status import register_status_tools
from .tools.visibility import register_visibility_tools

logger = logging.getLogger(__name__)


def build_server(
    controller: SyncController,
    folium_map: FoliumMap,
    preview_server: PreviewServer | None = None,
) -> FastMCP:
    """Create the FastMCP server around an already-constructed controller."""

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        try:
            await controller.load_file_tree()
        except (ValueError, OSError) as e:
            logger.error("Failed to load GPX files: %s", e)
        try:
            yield controller
        finally:
            await controller.shutdown()
            if preview_server is not None and preview_server.running:
                await preview_server.stop()

    mcp = FastMCP(
        "hiking-map",
        instructions=(
            "Browse a library of GPX hiking tracks, organize them into colored folders "
            "and choose which tracks are drawn on the map"
        ),
        lifespan=lifespan,
    )

    on_settings_change = preview_server.notify_changed if preview_server is not None else None

    register_library_tools(mcp, controller)
    register_visibility_tools(mcp, controller)
    register_map_tools(mcp, controller, folium_map, preview_server)
    register_settings_tools(mcp, controller, on_change=on_settings_change)
    register_status_tools(mcp, controller)
    return mcp


def create_app() -> tuple[FastMCP, SyncController]:
    """Wire the default filesystem library, folium map and live preview."""
    settings_path = get_settings_path()
    library = LocalLibrary(get_gpx_root())
    folium_map = FoliumMap()
    controller = SyncController(
        library,
        folium_map,
        settings=load_settings(settings_path),
        settings_path=settings_path,
    )

    http_port = get_preview_port()
    preview_server = PreviewServer(
        render_html=lambda script: folium_map.render(controller.settings, script).get_root().render(),
        on_view_changed=controller.on_map_view_changed,
        http_port=http_port,
        ws_port=http_port + 1,
    )
    folium_map.subscribe(preview_server.notify_changed)
    return build_server(controller, folium_map, preview_server), controller


def main():
    # stdout carries the MCP protocol; logs go to stderr.
    logging.basicConfig(
        level=get_log_level(),
        stream=sys.stderr,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    mcp, _ = create_app()
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
