"""Tests for the filesystem-backed library."""
import json

import pytest

from conftest import SIMPLE_GPX


def _library(tmp_path):
    from hiking_map.library import LocalLibrary
    root = tmp_path / "gpx"
    (root / "Trips" / "Day Hikes").mkdir(parents=True)
    (root / "Trips" / "a.gpx").write_text(SIMPLE_GPX)
    (root / "Trips" / "Day Hikes" / "b.gpx").write_text(SIMPLE_GPX)
    (root / "Trips" / ".hiking-map").write_text(json.dumps({"color": "#112233"}))
    (root / "c.gpx").write_text(SIMPLE_GPX)
    (root / "notes.txt").write_text("not a track")
    (root / ".hidden.gpx").write_text(SIMPLE_GPX)
    return LocalLibrary(root)


@pytest.mark.parametrize("name", ["", "   ", "a/b", "a\\b", "what?", "..", "x" * 256])
def test_invalid_folder_names(name):
    from hiking_map.errors import ValidationError
    from hiking_map.library import validate_folder_name
    with pytest.raises(ValidationError):
        validate_folder_name(name)


def test_folder_name_is_stripped():
    from hiking_map.library import validate_folder_name
    assert validate_folder_name("  Day Hikes ") == "Day Hikes"


def test_folder_config_defaults(tmp_path):
    from hiking_map.library import read_folder_config
    assert read_folder_config(tmp_path)["color"] == "#FF6600"
    (tmp_path / ".hiking-map").write_text("{not json")
    assert read_folder_config(tmp_path)["color"] == "#FF6600"
    (tmp_path / ".hiking-map").write_text(json.dumps({"color": "orange"}))
    assert read_folder_config(tmp_path)["color"] == "#FF6600"


@pytest.mark.anyio
async def test_read_tree(tmp_path):
    library = _library(tmp_path)
    nodes = await library.read_tree()
    assert [n.key for n in nodes] == ["c.gpx", "Trips"]
    trips = nodes[1]
    assert trips.color == "#112233"
    assert [n.key for n in trips.children] == ["Trips/a.gpx", "Trips/Day Hikes"]
    day_hikes = trips.children[1]
    assert day_hikes.color == "#FF6600"
    assert day_hikes.children[0].path == "Trips/Day Hikes/b.gpx"


@pytest.mark.anyio
async def test_read_tree_creates_missing_root(tmp_path):
    from hiking_map.library import LocalLibrary
    library = LocalLibrary(tmp_path / "new-root")
    assert await library.read_tree() == []
    assert (tmp_path / "new-root").is_dir()


@pytest.mark.anyio
async def test_read_text(tmp_path):
    from hiking_map.errors import StorageError
    library = _library(tmp_path)
    assert await library.read_text("Trips/a.gpx") == SIMPLE_GPX
    with pytest.raises(StorageError, match="File not found"):
        await library.read_text("Trips/missing.gpx")


@pytest.mark.anyio
async def test_paths_cannot_escape_root(tmp_path):
    from hiking_map.errors import ValidationError
    library = _library(tmp_path)
    (tmp_path / "outside.gpx").write_text(SIMPLE_GPX)
    with pytest.raises(ValidationError):
        await library.read_text("../outside.gpx")


@pytest.mark.anyio
async def test_create_folder(tmp_path):
    library = _library(tmp_path)
    folder = await library.create_folder("Winter", "Trips")
    assert folder.path == "Trips/Winter"
    assert (library.root / "Trips" / "Winter").is_dir()
    root_folder = await library.create_folder("Summer", None)
    assert root_folder.path == "Summer"


@pytest.mark.anyio
async def test_set_folder_color_writes_sidecar(tmp_path):
    from hiking_map.errors import ValidationError
    library = _library(tmp_path)
    await library.set_folder_color("Trips/Day Hikes", "#00aa00")
    config = json.loads((library.root / "Trips" / "Day Hikes" / ".hiking-map").read_text())
    assert config == {"color": "#00AA00"}
    with pytest.raises(ValidationError):
        await library.set_folder_color("Trips", "red")
    with pytest.raises(ValidationError):
        await library.set_folder_color("Nope", "#000000")


@pytest.mark.anyio
async def test_delete_file_and_folder(tmp_path):
    from hiking_map.models import FileNode, FolderNode
    library = _library(tmp_path)
    await library.delete(FileNode(name="c.gpx", path="c.gpx"))
    assert not (library.root / "c.gpx").exists()
    await library.delete(FolderNode(name="Trips", path="Trips"))
    assert not (library.root / "Trips").exists()


@pytest.mark.anyio
async def test_delete_missing_item(tmp_path):
    from hiking_map.errors import StorageError
    from hiking_map.models import FileNode
    library = _library(tmp_path)
    with pytest.raises(StorageError):
        await library.delete(FileNode(name="x.gpx", path="x.gpx"))


@pytest.mark.anyio
async def test_copy_in_files_skips_unsuitable(tmp_path, monkeypatch):
    import hiking_map.library as library_mod
    library = _library(tmp_path)
    src = tmp_path / "incoming"
    src.mkdir()
    (src / "new.gpx").write_text(SIMPLE_GPX)
    (src / "big.gpx").write_text(SIMPLE_GPX + " " * 100)
    (src / "notes.txt").write_text("x")
    monkeypatch.setattr(library_mod, "MAX_GPX_BYTES", len(SIMPLE_GPX) + 10)

    uploaded = await library.copy_in_files(
        [str(src / "new.gpx"), str(src / "big.gpx"), str(src / "notes.txt"), str(src / "gone.gpx")],
        "Trips",
    )
    assert [f.path for f in uploaded] == ["Trips/new.gpx"]
    assert (library.root / "Trips" / "new.gpx").read_text() == SIMPLE_GPX
    assert not (library.root / "Trips" / "big.gpx").exists()


@pytest.mark.anyio
async def test_folder_writes_run_off_the_event_loop(tmp_path, monkeypatch):
    import asyncio
    import hiking_map.library as library_mod
    library = _library(tmp_path)
    offloaded = []
    real_to_thread = asyncio.to_thread

    async def recording_to_thread(func, *args, **kwargs):
        offloaded.append(getattr(func, "__name__", repr(func)))
        return await real_to_thread(func, *args, **kwargs)

    monkeypatch.setattr(library_mod.asyncio, "to_thread", recording_to_thread)
    await library.create_folder("Winter", "Trips")
    await library.set_folder_color("Trips/Winter", "#123456")
    assert offloaded == ["mkdir", "_write_folder_color"]
    assert (library.root / "Trips" / "Winter").is_dir()
    config = json.loads((library.root / "Trips" / "Winter" / ".hiking-map").read_text())
    assert config == {"color": "#123456"}
