"""Shared fakes for the map widget and the storage collaborators."""

from collections import Counter
from pathlib import PurePosixPath

import pytest

from hiking_map.core.geo import bounds_of
from hiking_map.errors import StorageError, ValidationError
from hiking_map.models import FileNode, FolderNode


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_gpx(*segments, tracks=None) -> str:
    """Build GPX text. Each segment is a list of (lat, lon) or (lat, lon, ele)."""
    def trkpt(point):
        if len(point) == 3:
            return f'<trkpt lat="{point[0]}" lon="{point[1]}"><ele>{point[2]}</ele></trkpt>'
        return f'<trkpt lat="{point[0]}" lon="{point[1]}"></trkpt>'

    if tracks is None:
        tracks = [segments]
    body = "".join(
        "<trk>" + "".join(
            "<trkseg>" + "".join(trkpt(p) for p in seg) + "</trkseg>" for seg in track
        ) + "</trk>"
        for track in tracks
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">'
        f"{body}</gpx>"
    )


SIMPLE_GPX = make_gpx([(49.30, -123.10, 100), (49.31, -123.11, 150), (49.32, -123.12, 120)])


class FakeMap:
    """Records every call the core makes against the map widget."""

    def __init__(self):
        self.attached = {}
        self.added = []
        self.removed = []
        self.fits = []

    def add_layer(self, layer):
        self.added.append(layer.path)
        self.attached[layer.path] = layer

    def remove_layer(self, layer):
        self.removed.append(layer.path)
        self.attached.pop(layer.path, None)

    def get_bounds(self, polylines):
        return bounds_of(p for pl in polylines for p in pl.points)

    def fit_bounds(self, bounds, padding):
        self.fits.append((bounds, padding))


def _remove(nodes, key):
    for node in list(nodes):
        if node.key == key:
            nodes.remove(node)
            return True
        if isinstance(node, FolderNode) and _remove(node.children, key):
            return True
    return False


def _find_folder(nodes, key):
    for node in nodes:
        if isinstance(node, FolderNode):
            if node.key == key:
                return node
            found = _find_folder(node.children, key)
            if found is not None:
                return found
    return None


class FakeLibrary:
    """In-memory library implementing the reader and mutator protocols."""

    def __init__(self, nodes=None, files=None, sources=None):
        self.nodes = list(nodes or [])
        self.files = dict(files or {})
        self.sources = dict(sources or {})
        self.reads = Counter()
        self.deleted = []
        self.colors = {}
        self.calls = []

    async def read_tree(self):
        self.calls.append("read_tree")
        return [node.model_copy(deep=True) for node in self.nodes]

    async def read_text(self, path):
        self.reads[path] += 1
        if path not in self.files:
            raise StorageError(f"File not found: {path}")
        return self.files[path]

    async def delete(self, node):
        self.calls.append(("delete", node.key))
        self.deleted.append(node.key)
        _remove(self.nodes, node.key)

    async def create_folder(self, name, parent_path):
        if "/" in name:
            raise ValidationError("Invalid folder name.")
        path = f"{parent_path}/{name}" if parent_path else name
        folder = FolderNode(name=name, path=path)
        parent = _find_folder(self.nodes, parent_path) if parent_path else None
        (parent.children if parent else self.nodes).append(folder)
        return folder

    async def set_folder_color(self, path, color):
        self.calls.append(("set_folder_color", path, color))
        self.colors[path] = color
        folder = _find_folder(self.nodes, path)
        if folder is not None:
            folder.color = color

    async def copy_in_files(self, paths, dest_folder):
        uploaded = []
        parent = _find_folder(self.nodes, dest_folder) if dest_folder else None
        for source in paths:
            name = PurePosixPath(source).name
            path = f"{dest_folder}/{name}" if dest_folder else name
            self.files[path] = self.sources[source]
            _remove(self.nodes, path)
            node = FileNode(name=name, path=path)
            (parent.children if parent else self.nodes).append(node)
            uploaded.append(FileNode(name=name, path=path))
        return uploaded


def sample_tree():
    """Trips (#112233) with a.gpx and Day Hikes/b.gpx, plus a root-level c.gpx."""
    return [
        FolderNode(
            name="Trips",
            path="Trips",
            color="#112233",
            children=[
                FileNode(name="a.gpx", path="Trips/a.gpx"),
                FolderNode(
                    name="Day Hikes",
                    path="Trips/Day Hikes",
                    color="#00AA00",
                    children=[FileNode(name="b.gpx", path="Trips/Day Hikes/b.gpx")],
                ),
            ],
        ),
        FileNode(name="c.gpx", path="c.gpx"),
    ]


@pytest.fixture
def fake_map():
    return FakeMap()


@pytest.fixture
def fake_library():
    return FakeLibrary(
        nodes=sample_tree(),
        files={
            "Trips/a.gpx": SIMPLE_GPX,
            "Trips/Day Hikes/b.gpx": SIMPLE_GPX,
            "c.gpx": SIMPLE_GPX,
        },
    )


@pytest.fixture
def controller(fake_library, fake_map):
    from hiking_map.core.sync import SyncController
    return SyncController(fake_library, fake_map, save_delay=0.01)
