"""In-memory library tree, checked set and selection.

The tree is replaced wholesale on every ingest. The checked set and the
selection survive reloads; the checked set is seeded with every node only on
the first ingest of the process.
"""

import logging
from typing import Iterator, Optional, Sequence

from hiking_map.core.colors import validate_hex_color
from hiking_map.core.layers import LayerManager
from hiking_map.errors import ValidationError
from hiking_map.interfaces import Node
from hiking_map.models import FileNode, FolderNode

logger = logging.getLogger(__name__)


def walk(nodes: Sequence[Node]) -> Iterator[Node]:
    """Depth-first, document-order traversal."""
    for node in nodes:
        yield node
        match node:
            case FolderNode(children=children):
                yield from walk(children)


def files_under(folder: FolderNode) -> list[FileNode]:
    """Every file transitively contained in `folder`."""
    return [node for node in walk(folder.children) if isinstance(node, FileNode)]


def same_node(a: Optional[Node], b: Optional[Node]) -> bool:
    """Folders compare by key, files by path; a folder never equals a file."""
    match a, b:
        case FolderNode(), FolderNode():
            return a.key == b.key
        case FileNode(), FileNode():
            return a.path == b.path
    return False


class TreeModel:
    def __init__(self, layers: LayerManager):
        self.layers = layers
        self.nodes: list[Node] = []
        self.checked: set[str] = set()
        self.selected: Optional[Node] = None
        self.seeded = False

    # -- lookups ---------------------------------------------------------

    def walk(self) -> Iterator[Node]:
        return walk(self.nodes)

    def files(self) -> list[FileNode]:
        return [node for node in self.walk() if isinstance(node, FileNode)]

    def track_count(self) -> int:
        return len(self.files())

    def find(self, key: str) -> Optional[Node]:
        for node in self.walk():
            if node.key == key:
                return node
        return None

    def find_folder(self, key: str) -> FolderNode:
        for node in self.walk():
            if isinstance(node, FolderNode) and node.key == key:
                return node
        raise ValidationError(f"Folder not found: {key}")

    def find_file(self, path: str) -> FileNode:
        for node in self.walk():
            if isinstance(node, FileNode) and node.path == path:
                return node
        raise ValidationError(f"Track not found: {path}")

    def is_checked(self, key: str) -> bool:
        return key in self.checked

    # -- ingest ----------------------------------------------------------

    async def ingest(self, snapshot: Sequence[Node]) -> None:
        """Replace the working tree with `snapshot`.

        The first ingest checks every node and shows every track.
        """
        self.nodes = list(snapshot)
        if self.selected is not None:
            self.selected = self.find(self.selected.key)
        if not self.seeded:
            self.seeded = True
            logger.info("Initial load: checking all %d track(s)", self.track_count())
            await self._check_all(self.nodes)

    async def _check_all(self, nodes: Sequence[Node]) -> None:
        for node in nodes:
            match node:
                case FolderNode(children=children):
                    self.checked.add(node.key)
                    await self._check_all(children)
                case FileNode():
                    self.checked.add(node.path)
                    if not self.layers.is_visible(node.path):
                        await self.layers.show_track(node)

    # -- visibility ------------------------------------------------------

    async def toggle_folder(self, key: str, checked: bool) -> None:
        """Set a folder's checked state and apply it to its whole subtree."""
        folder = self.find_folder(key)
        if checked:
            self.checked.add(folder.key)
        else:
            self.checked.discard(folder.key)
        await self._propagate(folder.children, checked)

    async def _propagate(self, children: Sequence[Node], checked: bool) -> None:
        for child in children:
            match child:
                case FolderNode(children=grandchildren):
                    if checked:
                        self.checked.add(child.key)
                    else:
                        self.checked.discard(child.key)
                    await self._propagate(grandchildren, checked)
                case FileNode():
                    await self._set_file(child, checked)

    async def _set_file(self, file: FileNode, checked: bool) -> None:
        if checked:
            self.checked.add(file.path)
            await self.layers.show_track(file)
        else:
            self.checked.discard(file.path)
            self.layers.hide_track(file.path)

    async def toggle_file(self, path: str, checked: bool) -> None:
        await self._set_file(self.find_file(path), checked)

    async def select_all(self) -> None:
        await self._check_all(self.nodes)

    def deselect_all(self) -> int:
        """Uncheck everything and hide every visible track. Returns tracks hidden."""
        self.checked.clear()
        return self.layers.hide_all()

    # -- mutation --------------------------------------------------------

    async def set_folder_color(self, key: str, color: str) -> FolderNode:
        """Recolor a folder and rebuild the layers of the tracks beneath it.

        Visible tracks are rebuilt now; hidden tracks lose their cached
        layer so they pick up the new color on their next show.
        """
        color = validate_hex_color(color)
        folder = self.find_folder(key)
        folder.color = color
        for file in files_under(folder):
            if self.layers.is_visible(file.path):
                await self.layers.force_rebuild(file)
            elif file.path in self.layers.store:
                self.layers.store.evict(file.path)
        return folder

    def forget(self, node: Node) -> None:
        """Drop checked state and layers for `node` and everything beneath it."""
        match node:
            case FolderNode():
                for descendant in walk([node]):
                    self.checked.discard(descendant.key)
                    if isinstance(descendant, FileNode):
                        self.layers.evict(descendant.path)
            case FileNode():
                self.checked.discard(node.path)
                self.layers.evict(node.path)

    # -- selection -------------------------------------------------------

    def is_selected(self, node: Node) -> bool:
        return same_node(self.selected, node)

    def select(self, key: str) -> Node:
        node = self.find(key)
        if node is None:
            raise ValidationError(f"Item not found: {key}")
        self.selected = node
        return node

    def toggle_selection(self, key: str) -> Optional[Node]:
        node = self.find(key)
        if node is None:
            raise ValidationError(f"Item not found: {key}")
        if self.is_selected(node):
            self.selected = None
        else:
            self.selected = node
        return self.selected

    def clear_selection(self) -> None:
        self.selected = None

    def selected_folder_key(self) -> Optional[str]:
        """Key of the selected folder, the default target for uploads and new folders."""
        if isinstance(self.selected, FolderNode):
            return self.selected.key
        return None
