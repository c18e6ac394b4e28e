"""Settings tools: get_settings, update_settings."""

import json

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..core.sync import SyncController
from ._common import error_text


def register_settings_tools(mcp: FastMCP, controller: SyncController, on_change=None):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))
    def get_settings() -> str:
        """Return the current map settings (API key masked)."""
        return json.dumps(controller.settings.public_dict(), indent=2)

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def update_settings(
        map_provider: str | None = None,
        mapy_api_key: str | None = None,
        mapy_style: str | None = None,
        desaturate_map: bool | None = None,
    ) -> str:
        """Change the tile provider and display options.

        Args:
            map_provider: 'osm' (OpenStreetMap) or 'mapy' (Mapy.cz, needs an API key).
            mapy_api_key: Mapy.cz API key, 10-200 letters, digits, '-' or '_'.
            mapy_style: 'basic', 'outdoor', 'winter' or 'aerial'.
            desaturate_map: Render the base map in grayscale so tracks stand out.
        """
        changes: dict = {}
        if map_provider is not None:
            changes["map_provider"] = map_provider
        if desaturate_map is not None:
            changes["desaturate_map"] = desaturate_map
        mapy = {}
        if mapy_api_key is not None:
            mapy["api_key"] = mapy_api_key
        if mapy_style is not None:
            mapy["style"] = mapy_style
        if mapy:
            changes["mapy"] = mapy
        if not changes:
            return "Error: Nothing to update."

        try:
            await controller.update_settings(changes)
        except (ValueError, OSError) as e:
            return error_text(e)
        if on_change is not None:
            on_change()
        return "Settings saved successfully!"
