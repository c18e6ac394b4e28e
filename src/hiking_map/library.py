"""Filesystem-backed track library.

A directory of GPX files and folders. Each folder may carry a small JSON
sidecar (`.hiking-map`) holding its track color. All node paths are
slash-joined and relative to the library root.
"""

import asyncio
import json
import logging
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from hiking_map.config import DEFAULT_FOLDER_COLOR, FOLDER_CONFIG_NAME, MAX_GPX_BYTES
from hiking_map.core.colors import validate_hex_color
from hiking_map.errors import StorageError, ValidationError
from hiking_map.interfaces import Node
from hiking_map.models import FileNode, FolderNode, normalize_hex_color

logger = logging.getLogger(__name__)

_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def validate_folder_name(name) -> str:
    """Return the stripped folder name or raise ValidationError."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Please enter a folder name")
    name = name.strip()
    if len(name) > 255:
        raise ValidationError("Folder name too long. Maximum 255 characters.")
    if _INVALID_NAME_CHARS.search(name):
        raise ValidationError(
            "Folder name contains invalid characters. "
            "Use only letters, numbers, spaces, and basic punctuation."
        )
    if re.fullmatch(r"\.+", name) or ".." in name:
        raise ValidationError("Invalid folder name.")
    return name


def read_folder_config(folder: Path) -> dict:
    """Read a folder's sidecar config, defaulting the color when absent or invalid."""
    config_path = folder / FOLDER_CONFIG_NAME
    config = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                config = loaded
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error loading folder config %s: %s", config_path, e)
    try:
        config["color"] = normalize_hex_color(config.get("color", DEFAULT_FOLDER_COLOR))
    except ValueError:
        logger.warning("Invalid color in %s, using default", config_path)
        config["color"] = DEFAULT_FOLDER_COLOR
    return config


def _write_folder_color(folder: Path, color: str) -> None:
    config = read_folder_config(folder)
    config["color"] = color
    with open(folder / FOLDER_CONFIG_NAME, "w") as f:
        json.dump(config, f, indent=2)


class LocalLibrary:
    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def resolve(self, relative: Optional[str]) -> Path:
        """Absolute path for a library-relative path. Rejects paths escaping the root."""
        base = self.root.resolve()
        if not relative:
            return base
        resolved = (base / relative).resolve()
        if resolved != base and base not in resolved.parents:
            raise ValidationError("Invalid path.")
        return resolved

    def relative(self, path: Path) -> str:
        return PurePosixPath(path.resolve().relative_to(self.root.resolve())).as_posix()

    # -- DirectoryReader ---------------------------------------------------

    def _read_directory(self, directory: Path, relative: str = "") -> list[Node]:
        items: list[Node] = []
        for entry in sorted(directory.iterdir(), key=lambda p: p.name.lower()):
            if entry.name.startswith("."):
                continue
            item_path = f"{relative}/{entry.name}" if relative else entry.name
            if entry.is_dir():
                config = read_folder_config(entry)
                items.append(FolderNode(
                    name=entry.name,
                    path=item_path,
                    color=config["color"],
                    children=self._read_directory(entry, item_path),
                ))
            elif entry.is_file() and entry.name.lower().endswith(".gpx"):
                items.append(FileNode(name=entry.name, path=item_path))
        return items

    async def read_tree(self) -> list[Node]:
        self.ensure_root()
        try:
            return await asyncio.to_thread(self._read_directory, self.root)
        except OSError as e:
            raise StorageError(f"Failed to read library: {e}") from e

    # -- FileReader --------------------------------------------------------

    async def read_text(self, path: str) -> str:
        target = self.resolve(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise StorageError(f"File not found: {path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Error reading GPX file {path}: {e}") from e

    # -- StorageMutator ----------------------------------------------------

    async def create_folder(self, name: str, parent_path: Optional[str] = None) -> FolderNode:
        name = validate_folder_name(name)
        parent = self.resolve(parent_path)
        folder = self.resolve(f"{parent_path}/{name}" if parent_path else name)
        if folder.parent != parent:
            raise ValidationError("Invalid folder path.")
        try:
            await asyncio.to_thread(folder.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create folder: {e}") from e
        logger.info("Created folder %s", folder)
        return FolderNode(name=name, path=self.relative(folder))

    async def delete(self, node: Node) -> None:
        target = self.resolve(node.key)
        if target == self.root.resolve():
            raise ValidationError("Refusing to delete the library root.")
        try:
            match node:
                case FolderNode():
                    await asyncio.to_thread(shutil.rmtree, target)
                case FileNode():
                    await asyncio.to_thread(target.unlink)
        except FileNotFoundError as e:
            raise StorageError(f"Item not found: {node.key}") from e
        except OSError as e:
            raise StorageError(f"Failed to delete {node.key}: {e}") from e
        logger.info("Deleted %s: %s", node.type, node.key)

    async def set_folder_color(self, path: str, color: str) -> None:
        color = validate_hex_color(color)
        folder = self.resolve(path)
        if not folder.is_dir():
            raise ValidationError(f"Folder not found: {path}")
        try:
            await asyncio.to_thread(_write_folder_color, folder, color)
        except OSError as e:
            raise StorageError(f"Error saving folder config: {e}") from e
        logger.info("Set color for folder %s: %s", path, color)

    async def copy_in_files(
        self, paths: Sequence[str], dest_folder: Optional[str] = None
    ) -> list[FileNode]:
        """Copy GPX files into the library. Unsuitable files are skipped."""
        dest = self.resolve(dest_folder)
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create destination folder: {e}") from e

        uploaded: list[FileNode] = []
        for raw in paths:
            source = Path(raw).expanduser()
            if not source.name.lower().endswith(".gpx"):
                logger.warning("Skipping invalid file type: %s", source.name)
                continue
            try:
                size = source.stat().st_size
            except OSError as e:
                logger.warning("Error checking file stats: %s (%s)", source.name, e)
                continue
            if size > MAX_GPX_BYTES:
                logger.warning("Skipping file too large: %s", source.name)
                continue
            target = dest / source.name
            try:
                await asyncio.to_thread(shutil.copyfile, source, target)
            except OSError as e:
                logger.warning("Error copying file %s: %s", source.name, e)
                continue
            uploaded.append(FileNode(name=source.name, path=self.relative(target)))
            logger.info("Copied %s into %s", source.name, dest_folder or "library root")
        return uploaded
