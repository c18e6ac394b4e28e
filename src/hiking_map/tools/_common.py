"""Shared helpers for MCP tools."""

from pathlib import Path

from ..core.sync import SyncController
from ..errors import user_message
from ..models import FileNode, FolderNode


def error_text(error: BaseException) -> str:
    return f"Error: {user_message(error)}"


def with_notices(controller: SyncController, message: str) -> str:
    """Append any track-load failures or other notices raised during the call."""
    notices = controller.drain_notices()
    if not notices:
        return message
    return message + "\nNotices:\n" + "\n".join(f"- {n}" for n in notices)


def render_tree(controller: SyncController) -> str:
    """Plain-text rendering of the library with checked and visible markers."""
    tree = controller.tree
    if not tree.nodes:
        return "No GPX files found. Upload some tracks to get started!"

    lines: list[str] = []

    def render(nodes, depth: int) -> None:
        for node in nodes:
            indent = "  " * depth
            box = "[x]" if tree.is_checked(node.key) else "[ ]"
            selected = " *" if tree.is_selected(node) else ""
            match node:
                case FolderNode(children=children):
                    lines.append(f"{indent}{box} {node.name}/ ({node.color}) key={node.key}{selected}")
                    render(children, depth + 1)
                case FileNode():
                    shown = " (on map)" if controller.layers.is_visible(node.path) else ""
                    lines.append(f"{indent}{box} {node.display_name} key={node.path}{shown}{selected}")

    render(tree.nodes, 0)
    count = tree.track_count()
    lines.append(f"{count} track{'s' if count != 1 else ''} available")
    return "\n".join(lines)


def validate_output_path(output_path: str) -> Path:
    """Raise ValueError if output_path resolves outside the user's home directory."""
    resolved = Path(output_path).expanduser().resolve()
    home = Path.home().resolve()
    try:
        resolved.relative_to(home)
    except ValueError:
        raise ValueError(
            f"Output path {output_path!r} is outside the home directory. "
            "Use a path within your home directory."
        )
    return resolved
