"""Library tools: list_tracks, reload_library, create_folder, delete_item,
set_folder_color, upload_gpx."""

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..core.sync import SyncController
from ._common import error_text, render_tree, with_notices


def register_library_tools(mcp: FastMCP, controller: SyncController):

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))
    def list_tracks() -> str:
        """Show the track library as a tree.

        `[x]` marks checked (intended visible) items, `(on map)` marks tracks
        currently drawn, `*` marks the selected item. Use the `key=` values
        with the other tools.
        """
        return render_tree(controller)

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def reload_library() -> str:
        """Re-read the library from disk, keeping checked state and selection."""
        try:
            await controller.load_file_tree()
        except (ValueError, OSError) as e:
            return error_text(e)
        return with_notices(controller, render_tree(controller))

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def create_folder(name: str) -> str:
        """Create a folder inside the selected folder, or at the library root.

        Args:
            name: Folder name. No path separators or characters like <>:"|?*.
        """
        parent = controller.upload_target()
        try:
            folder = await controller.create_folder(name)
        except (ValueError, OSError) as e:
            return error_text(e)
        location = f' in "{parent}"' if parent else ""
        return with_notices(controller, f"Created folder: {folder.name}{location}")

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True))
    async def delete_item(key: str) -> str:
        """Delete a track file, or a folder with everything in it.

        Args:
            key: The item's key as shown by list_tracks.
        """
        try:
            node = await controller.delete_item(key)
        except (ValueError, OSError) as e:
            return error_text(e)
        return with_notices(controller, f"Deleted {node.type} successfully: {node.name}")

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def set_folder_color(key: str, color: str) -> str:
        """Set the track color for a folder and redraw its visible tracks.

        Args:
            key: Folder key as shown by list_tracks.
            color: Hex color like #FF6600.
        """
        try:
            folder = await controller.set_folder_color(key, color)
        except (ValueError, OSError) as e:
            return error_text(e)
        return with_notices(controller, f"Updated color for folder: {folder.name} ({folder.color})")

    @mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False))
    async def upload_gpx(paths: list[str]) -> str:
        """Copy GPX files into the selected folder (or the library root) and show them.

        Files that are not .gpx or are larger than 50MB are skipped.

        Args:
            paths: Absolute paths of the GPX files to import.
        """
        target = controller.upload_target()
        try:
            uploaded = await controller.upload_files(paths)
        except (ValueError, OSError) as e:
            return error_text(e)
        if not uploaded:
            return with_notices(controller, "No files were uploaded.")
        target_text = f' to folder "{target}"' if target else ""
        return with_notices(
            controller, f"Uploaded {len(uploaded)} GPX file(s){target_text}"
        )
