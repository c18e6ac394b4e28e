"""Status tool: get_status."""

import json
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..core.sync import SyncController


def register_status_tools(mcp: FastMCP, controller: SyncController):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))
    def get_status() -> str:
        """Return a summary of the library, visibility and settings.

        Shows how many tracks exist, how many are checked and drawn, the
        current selection, and the map settings.
        """
        return json.dumps(controller.summary(), indent=2)
