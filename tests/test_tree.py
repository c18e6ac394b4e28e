"""Tests for the tree model: seeding, checked-state propagation and selection."""
import pytest

from conftest import FakeLibrary, SIMPLE_GPX, sample_tree


ALL_KEYS = {"Trips", "Trips/a.gpx", "Trips/Day Hikes", "Trips/Day Hikes/b.gpx", "c.gpx"}
ALL_FILES = {"Trips/a.gpx", "Trips/Day Hikes/b.gpx", "c.gpx"}


def test_walk_is_depth_first_document_order():
    from hiking_map.core.tree import walk
    keys = [node.key for node in walk(sample_tree())]
    assert keys == ["Trips", "Trips/a.gpx", "Trips/Day Hikes", "Trips/Day Hikes/b.gpx", "c.gpx"]


def test_files_under_is_transitive():
    from hiking_map.core.tree import files_under
    trips = sample_tree()[0]
    assert [f.path for f in files_under(trips)] == ["Trips/a.gpx", "Trips/Day Hikes/b.gpx"]


def test_same_node_never_matches_folder_and_file():
    from hiking_map.core.tree import same_node
    from hiking_map.models import FileNode, FolderNode
    folder = FolderNode(name="x", path="x")
    file = FileNode(name="x", path="x")
    assert same_node(folder, FolderNode(name="x", path="x"))
    assert same_node(file, FileNode(name="other", path="x"))
    assert not same_node(folder, file)
    assert not same_node(None, file)


@pytest.mark.anyio
async def test_first_load_checks_and_shows_everything(controller, fake_map, fake_library):
    await controller.load_file_tree()
    assert controller.tree.checked == ALL_KEYS
    assert controller.layers.visible == ALL_FILES
    assert set(fake_map.attached) == ALL_FILES
    assert all(fake_library.reads[path] == 1 for path in ALL_FILES)


@pytest.mark.anyio
async def test_reload_does_not_reseed(controller):
    await controller.load_file_tree()
    await controller.toggle_file("c.gpx", False)
    await controller.load_file_tree()
    assert "c.gpx" not in controller.tree.checked
    assert not controller.layers.is_visible("c.gpx")


@pytest.mark.anyio
async def test_seeding_happens_once_even_for_empty_first_load(fake_map):
    from hiking_map.core.sync import SyncController
    library = FakeLibrary()
    controller = SyncController(library, fake_map, save_delay=0.01)
    await controller.load_file_tree()
    library.nodes = sample_tree()
    library.files = {path: SIMPLE_GPX for path in ALL_FILES}
    await controller.load_file_tree()
    assert controller.tree.checked == set()
    assert controller.layers.visible == set()


@pytest.mark.anyio
async def test_folder_off_then_on_reuses_cached_layers(controller, fake_map, fake_library):
    await controller.load_file_tree()
    assert controller._resolve_color("Trips/a.gpx") == "#112233"

    await controller.toggle_folder("Trips", False)
    assert "Trips/a.gpx" not in controller.layers.visible
    assert "Trips/a.gpx" in fake_map.removed
    assert "Trips/Day Hikes/b.gpx" in fake_map.removed
    assert controller.tree.checked == {"c.gpx"}

    await controller.toggle_folder("Trips", True)
    assert controller.tree.checked == ALL_KEYS
    assert controller.layers.visible == ALL_FILES
    # Cached layers are re-attached without re-reading the GPX source.
    assert fake_library.reads["Trips/a.gpx"] == 1
    assert fake_library.reads["Trips/Day Hikes/b.gpx"] == 1


@pytest.mark.anyio
async def test_folder_toggle_pair_restores_previous_state(controller):
    await controller.load_file_tree()
    before_checked = set(controller.tree.checked)
    before_visible = set(controller.layers.visible)
    await controller.toggle_folder("Trips/Day Hikes", False)
    await controller.toggle_folder("Trips/Day Hikes", True)
    assert controller.tree.checked == before_checked
    assert controller.layers.visible == before_visible


@pytest.mark.anyio
async def test_folder_toggle_leaves_parent_checked(controller):
    await controller.load_file_tree()
    await controller.toggle_folder("Trips/Day Hikes", False)
    assert controller.tree.is_checked("Trips")
    assert not controller.tree.is_checked("Trips/Day Hikes")
    assert controller.layers.visible == {"Trips/a.gpx", "c.gpx"}


@pytest.mark.anyio
async def test_toggle_unknown_folder_raises(controller):
    from hiking_map.errors import ValidationError
    await controller.load_file_tree()
    with pytest.raises(ValidationError):
        await controller.toggle_folder("Nope", True)
    with pytest.raises(ValidationError):
        await controller.toggle_file("nope.gpx", True)


@pytest.mark.anyio
async def test_toggle_file_shows_and_hides(controller, fake_map):
    await controller.load_file_tree()
    await controller.toggle_file("c.gpx", False)
    assert not controller.layers.is_visible("c.gpx")
    assert "c.gpx" not in fake_map.attached
    await controller.toggle_file("c.gpx", True)
    assert controller.layers.is_visible("c.gpx")
    assert "c.gpx" in fake_map.attached


@pytest.mark.anyio
async def test_select_all_after_deselect_all(controller):
    await controller.load_file_tree()
    assert controller.deselect_all() == 3
    assert controller.tree.checked == set()
    await controller.select_all()
    assert controller.tree.checked == ALL_KEYS
    assert controller.layers.visible == ALL_FILES


@pytest.mark.anyio
async def test_checked_file_that_fails_to_load_stays_checked(fake_map):
    from hiking_map.core.sync import SyncController
    library = FakeLibrary(
        nodes=sample_tree(),
        files={"Trips/a.gpx": SIMPLE_GPX, "Trips/Day Hikes/b.gpx": "<gpx></gpx>"},
    )
    controller = SyncController(library, fake_map, save_delay=0.01)
    await controller.load_file_tree()
    assert controller.tree.is_checked("Trips/Day Hikes/b.gpx")
    assert controller.tree.is_checked("c.gpx")
    assert controller.layers.visible == {"Trips/a.gpx"}
    notices = controller.drain_notices()
    assert "Failed to load track: b.gpx" in notices
    assert "Failed to load track: c.gpx" in notices


@pytest.mark.anyio
async def test_selection_survives_reload(controller):
    await controller.load_file_tree()
    controller.select_item("Trips/Day Hikes")
    await controller.load_file_tree()
    assert controller.tree.selected.key == "Trips/Day Hikes"
    assert controller.tree.selected is controller.tree.find("Trips/Day Hikes")


@pytest.mark.anyio
async def test_toggle_selection_clears_on_second_call(controller):
    await controller.load_file_tree()
    assert controller.toggle_selection("Trips").key == "Trips"
    assert controller.toggle_selection("Trips") is None
    assert controller.tree.selected is None


@pytest.mark.anyio
async def test_only_selected_folder_is_upload_target(controller):
    await controller.load_file_tree()
    assert controller.upload_target() is None
    controller.select_item("c.gpx")
    assert controller.upload_target() is None
    controller.select_item("Trips")
    assert controller.upload_target() == "Trips"
    controller.clear_selection()
    assert controller.upload_target() is None


@pytest.mark.anyio
async def test_select_unknown_key_raises(controller):
    from hiking_map.errors import ValidationError
    await controller.load_file_tree()
    with pytest.raises(ValidationError):
        controller.select_item("missing")


def test_folder_without_path_is_keyed_by_name():
    from hiking_map.models import FolderNode
    assert FolderNode(name="Loose").key == "Loose"
    assert FolderNode(name="Day Hikes", path="Trips/Day Hikes").key == "Trips/Day Hikes"


@pytest.mark.anyio
async def test_unencodable_track_does_not_stop_first_load(fake_map):
    from hiking_map.core.sync import SyncController
    bad = SIMPLE_GPX.replace("<trk>", "<trk><name>\udcff</name>", 1)
    library = FakeLibrary(
        nodes=sample_tree(),
        files={"Trips/a.gpx": bad, "Trips/Day Hikes/b.gpx": SIMPLE_GPX, "c.gpx": SIMPLE_GPX},
    )
    controller = SyncController(library, fake_map, save_delay=0.01)
    await controller.load_file_tree()
    assert controller.layers.visible == {"Trips/Day Hikes/b.gpx", "c.gpx"}
    assert controller.tree.checked == ALL_KEYS
    assert "Failed to load track: a.gpx" in controller.drain_notices()
