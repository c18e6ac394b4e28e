"""Collaborator interfaces consumed by the core.

The core only talks to storage and to the map through these protocols;
`hiking_map.library.LocalLibrary` and `hiking_map.map.folium_map.FoliumMap`
are the shipped implementations.
"""

from typing import Optional, Protocol, Sequence, Union

from hiking_map.models import FileNode, FolderNode, LatLngBounds, Polyline, TrackLayer

Node = Union[FolderNode, FileNode]


class DirectoryReader(Protocol):
    async def read_tree(self) -> list[Node]:
        """Return a full recursive snapshot of the library."""
        ...


class FileReader(Protocol):
    async def read_text(self, path: str) -> str:
        """Return the text of the file at `path`. Raises StorageError."""
        ...


class StorageMutator(Protocol):
    async def delete(self, node: Node) -> None: ...

    async def create_folder(self, name: str, parent_path: Optional[str]) -> FolderNode: ...

    async def set_folder_color(self, path: str, color: str) -> None: ...

    async def copy_in_files(
        self, paths: Sequence[str], dest_folder: Optional[str]
    ) -> list[FileNode]: ...


class Library(DirectoryReader, FileReader, StorageMutator, Protocol):
    """A storage backend providing all three capabilities."""


class MapWidget(Protocol):
    def add_layer(self, layer: TrackLayer) -> None: ...

    def remove_layer(self, layer: TrackLayer) -> None: ...

    def get_bounds(self, polylines: Sequence[Polyline]) -> Optional[LatLngBounds]: ...

    def fit_bounds(self, bounds: LatLngBounds, padding: tuple[int, int]) -> None: ...
