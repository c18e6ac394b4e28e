"""Visibility tools: toggle_folder, toggle_track, select_all, deselect_all,
select_item, clear_selection."""

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..core.sync import SyncController
from ._common import error_text, with_notices


def register_visibility_tools(mcp: FastMCP, controller: SyncController):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def toggle_folder(key: str, checked: bool) -> str:
        """Check or uncheck a folder; every track and subfolder beneath it follows.

        Args:
            key: Folder key as shown by list_tracks.
            checked: True to show the folder's tracks, False to hide them.
        """
        try:
            await controller.toggle_folder(key, checked)
        except (ValueError, OSError) as e:
            return error_text(e)
        state = "shown" if checked else "hidden"
        return with_notices(
            controller,
            f"Folder {key} {state}. {len(controller.layers.visible)} track(s) on map.",
        )

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def toggle_track(key: str, checked: bool) -> str:
        """Show or hide a single track.

        Args:
            key: Track key (its path) as shown by list_tracks.
            checked: True to show, False to hide.
        """
        try:
            await controller.toggle_file(key, checked)
        except (ValueError, OSError) as e:
            return error_text(e)
        state = "shown" if controller.layers.is_visible(key) else "hidden"
        return with_notices(controller, f"Track {key} {state}.")

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def select_all() -> str:
        """Check every folder and track and show all tracks."""
        await controller.select_all()
        return with_notices(
            controller, f"All items selected. {len(controller.layers.visible)} track(s) on map."
        )

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def deselect_all() -> str:
        """Uncheck everything and remove every track from the map."""
        hidden = controller.deselect_all()
        return f"All items deselected. {hidden} track(s) hidden."

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def select_item(key: str) -> str:
        """Select a folder or track. Selecting the selected item again clears it.

        A selected folder becomes the target of upload_gpx and create_folder.

        Args:
            key: Item key as shown by list_tracks.
        """
        try:
            node = controller.toggle_selection(key)
        except ValueError as e:
            return error_text(e)
        if node is None:
            return "Selection cleared. Uploads go to the library root."
        if node.type == "folder":
            return f'Selected: "{node.key}" - uploads will go here'
        return f'Selected: "{node.display_name}" (file)'

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    def clear_selection() -> str:
        """Clear the selection. Uploads and new folders go to the library root."""
        controller.clear_selection()
        return "No folder selected - uploads to root"
