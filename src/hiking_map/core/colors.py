"""Track color resolution from folder configuration."""

from typing import Optional, Sequence

from hiking_map.config import DEFAULT_FOLDER_COLOR
from hiking_map.errors import ValidationError
from hiking_map.models import FileNode, FolderNode, normalize_hex_color


def validate_hex_color(color) -> str:
    """Return the normalized #RRGGBB color or raise ValidationError."""
    try:
        return normalize_hex_color(color)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def find_parent_folder(nodes: Sequence, path: str) -> Optional[FolderNode]:
    """Find the folder that directly contains the file at `path`.

    Each folder's direct children are checked before recursing into its
    subfolders. Root-level files have no parent folder.
    """
    for node in nodes:
        match node:
            case FolderNode(children=children):
                for child in children:
                    match child:
                        case FileNode(path=child_path) if child_path == path:
                            return node
                found = find_parent_folder(children, path)
                if found is not None:
                    return found
    return None


def color_for(path: str, nodes: Sequence) -> str:
    """Display color for the track at `path`: its direct folder's color or the default."""
    folder = find_parent_folder(nodes, path)
    if folder is None:
        return DEFAULT_FOLDER_COLOR
    return folder.color
