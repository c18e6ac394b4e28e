"""Controller that keeps the tree, the checked set and the map layers consistent.

One SyncController is created at startup and owns all mutable application
state. Every operation that touches more than one of tree, layers and
storage goes through it.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from hiking_map.config import get_save_delay_seconds
from hiking_map.core.colors import color_for, validate_hex_color
from hiking_map.core.debounce import Debouncer
from hiking_map.core.layers import LayerManager
from hiking_map.core.tree import TreeModel, walk
from hiking_map.errors import ValidationError, user_message
from hiking_map.interfaces import Library, MapWidget, Node
from hiking_map.models import FileNode, FolderNode
from hiking_map.settings import MapView, Settings, save_settings

logger = logging.getLogger(__name__)


def _deep_update(base: dict, changes: dict) -> dict:
    merged = dict(base)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_update(merged[key], value)
        else:
            merged[key] = value
    return merged


class SyncController:
    def __init__(
        self,
        library: Library,
        map_widget: MapWidget,
        settings: Optional[Settings] = None,
        settings_path: Optional[Path] = None,
        save_delay: Optional[float] = None,
    ):
        self.library = library
        self.map = map_widget
        self.settings = settings or Settings()
        self.settings_path = settings_path
        self.notices: list[str] = []
        self.layers = LayerManager(
            map_widget, library, resolve_color=self._resolve_color, report=self.notify,
        )
        self.tree = TreeModel(self.layers)
        delay = get_save_delay_seconds() if save_delay is None else save_delay
        self._position_saver = Debouncer(delay, self._write_settings)

    def _resolve_color(self, path: str) -> str:
        return color_for(path, self.tree.nodes)

    # -- notices -----------------------------------------------------------

    def notify(self, message: str) -> None:
        self.notices.append(user_message(message))

    def drain_notices(self) -> list[str]:
        notices, self.notices = self.notices, []
        return notices

    # -- tree --------------------------------------------------------------

    async def load_file_tree(self) -> list[Node]:
        snapshot = await self.library.read_tree()
        await self.tree.ingest(snapshot)
        logger.info("Library loaded: %d track(s)", self.tree.track_count())
        return self.tree.nodes

    def track_count(self) -> int:
        return self.tree.track_count()

    # -- visibility --------------------------------------------------------

    async def toggle_folder(self, key: str, checked: bool) -> None:
        await self.tree.toggle_folder(key, checked)

    async def toggle_file(self, path: str, checked: bool) -> None:
        await self.tree.toggle_file(path, checked)

    async def select_all(self) -> None:
        await self.tree.select_all()

    def deselect_all(self) -> int:
        return self.tree.deselect_all()

    def fit_all_tracks(self) -> bool:
        return self.layers.fit_all_tracks()

    # -- storage-backed operations -----------------------------------------

    async def set_folder_color(self, key: str, color: str) -> FolderNode:
        """Persist a folder color, then refresh the tracks drawn with it."""
        color = validate_hex_color(color)
        folder = self.tree.find_folder(key)
        await self.library.set_folder_color(folder.key, color)
        folder = await self.tree.set_folder_color(folder.key, color)
        logger.info("Updated color for folder %s: %s", folder.name, color)
        return folder

    async def delete_item(self, key: str) -> Node:
        """Drop all bookkeeping for a node and its subtree, then delete it from storage."""
        node = self.tree.find(key)
        if node is None:
            raise ValidationError(f"Item not found: {key}")

        self.tree.forget(node)
        if self.tree.selected is not None and any(
            self.tree.is_selected(n) for n in walk([node])
        ):
            self.tree.clear_selection()

        await self.library.delete(node)
        await self.load_file_tree()
        return node

    async def create_folder(self, name: str) -> FolderNode:
        parent = self.tree.selected_folder_key()
        folder = await self.library.create_folder(name, parent)
        await self.load_file_tree()
        return folder

    async def upload_files(self, paths: Sequence[str]) -> list[FileNode]:
        """Copy files into the selected folder (or the root) and show them."""
        target = self.tree.selected_folder_key()
        uploaded = await self.library.copy_in_files(paths, target)
        if not uploaded:
            return []

        for file in uploaded:
            # A re-uploaded file replaces the old content; drop its stale layer.
            self.layers.evict(file.path)
            self.tree.checked.add(file.path)
        if target:
            self.tree.checked.add(target)

        await self.load_file_tree()

        for file in uploaded:
            if self.tree.is_checked(file.path):
                node = self.tree.find(file.path)
                await self.layers.show_track(node if isinstance(node, FileNode) else file)
        return uploaded

    # -- selection ---------------------------------------------------------

    def select_item(self, key: str) -> Node:
        return self.tree.select(key)

    def toggle_selection(self, key: str) -> Optional[Node]:
        return self.tree.toggle_selection(key)

    def clear_selection(self) -> None:
        self.tree.clear_selection()

    def upload_target(self) -> Optional[str]:
        return self.tree.selected_folder_key()

    # -- settings ----------------------------------------------------------

    async def _write_settings(self) -> None:
        if self.settings_path is None:
            return
        save_settings(self.settings, self.settings_path)

    def on_map_view_changed(self, center: tuple[float, float], zoom: int) -> None:
        """Record the new view now and persist it once the map stops moving."""
        self.settings.map = MapView(center=center, zoom=zoom)
        self._position_saver.trigger()

    async def update_settings(self, changes: dict) -> Settings:
        merged = _deep_update(self.settings.model_dump(), changes)
        self.settings = Settings.model_validate(merged)
        self._position_saver.cancel()
        await self._write_settings()
        return self.settings

    # -- lifecycle ---------------------------------------------------------

    async def shutdown(self) -> None:
        await self._position_saver.flush()

    def summary(self) -> dict:
        selected = self.tree.selected
        return {
            "tracks": self.tree.track_count(),
            "checked": len(self.tree.checked),
            "visible": len(self.layers.visible),
            "cached_layers": len(self.layers.store),
            "selected": (
                {"type": selected.type, "key": selected.key} if selected is not None else None
            ),
            "upload_target": self.upload_target() or "(library root)",
            "settings": self.settings.public_dict(),
        }
