"""
Tests for the bundled in-memory and JSON stores, and for open_store().
"""

import json
import threading

import pytest

from tagger.errors import InvalidArgument, ScopeNotFound, StorageFailure
from tagger.stores import InMemoryTagStore, JsonSceneStore, PlaceableObject, SceneEntity, open_store


# ---------------------------------------------------------------------------
# InMemoryTagStore
# ---------------------------------------------------------------------------
def test_scene_listing_is_grouped_by_kind() -> None:
    store = InMemoryTagStore()
    store.create_entity("s", "wall", "w1")
    store.create_entity("s", "token", "t1")
    store.create_entity("s", "tile", "p1")
    store.create_entity("s", "token", "t2")

    assert [e.id for e in store.list_entities_in_scope("s")] == ["t1", "t2", "p1", "w1"]


def test_first_scene_becomes_active() -> None:
    store = InMemoryTagStore()
    store.add_scene("first")
    store.add_scene("second")

    assert store.default_scope_id == "first"
    assert store.list_scope_ids() == ["first", "second"]


def test_unknown_scene_raises(store) -> None:
    with pytest.raises(ScopeNotFound):
        store.list_entities_in_scope("missing")


def test_non_string_scene_is_invalid(store) -> None:
    with pytest.raises(InvalidArgument):
        store.list_entities_in_scope(None)


def test_add_entity_validation(store) -> None:
    with pytest.raises(InvalidArgument, match="unknown entity kind"):
        store.create_entity("scene-1", "actor", "a1")
    with pytest.raises(InvalidArgument, match="duplicate entity id"):
        store.create_entity("scene-1", "token", "tok-1")


def test_handles_resolve_to_documents(store, entity) -> None:
    doc = entity("tok-1")
    live = PlaceableObject(doc)

    assert store.resolve_entity_handle(doc) is doc
    assert store.resolve_entity_handle(live) is doc
    assert store.resolve_entity_handle("tok-1") is doc
    with pytest.raises(InvalidArgument, match="unknown entity id"):
        store.resolve_entity_handle("nope")
    with pytest.raises(InvalidArgument, match="cannot resolve int"):
        store.resolve_entity_handle(3)


def test_scope_of(store, entity) -> None:
    assert store.scope_of(entity("lig-1")) == "scene-2"


@pytest.mark.asyncio
async def test_clear_removes_the_module_namespace(store, entity) -> None:
    doc = entity("tok-1")
    doc.flags["other-module"] = {"x": 1}

    await store.clear_flag(doc)

    assert "tagger" not in doc.flags
    assert doc.flags == {"other-module": {"x": 1}}


@pytest.mark.asyncio
async def test_clear_keeps_other_module_keys(store, entity) -> None:
    doc = entity("tok-1")
    doc.flags["tagger"]["note"] = "keep"

    await store.clear_flag(doc)

    assert doc.flags["tagger"] == {"note": "keep"}


# ---------------------------------------------------------------------------
# JsonSceneStore
# ---------------------------------------------------------------------------
def test_missing_file_loads_empty(tmp_path) -> None:
    store = JsonSceneStore.load(tmp_path / "none.json")
    assert store.list_scope_ids() == []
    assert store.default_scope_id is None


def test_load_reads_scenes(scene_file) -> None:
    store = JsonSceneStore.load(scene_file)

    assert store.default_scope_id == "scene-1"
    assert store.list_scope_ids() == ["scene-1", "scene-2"]
    assert store.read_flag(store.resolve_entity_handle("tok-3")) == ["enemy", "orc"]
    assert store.read_flag(store.resolve_entity_handle("wal-1")) is None


@pytest.mark.asyncio
async def test_writes_are_saved(scene_file) -> None:
    store = JsonSceneStore.load(scene_file)

    await store.write_flag(store.resolve_entity_handle("wal-1"), ["cracked"])
    await store.clear_flag(store.resolve_entity_handle("tok-1"))

    reloaded = JsonSceneStore.load(scene_file)
    assert reloaded.read_flag(reloaded.resolve_entity_handle("wal-1")) == ["cracked"]
    assert reloaded.read_flag(reloaded.resolve_entity_handle("tok-1")) is None


@pytest.mark.asyncio
async def test_writes_save_off_the_event_loop(scene_file, monkeypatch) -> None:
    store = JsonSceneStore.load(scene_file)
    original_save = store.save
    save_threads = []

    def recording_save() -> None:
        save_threads.append(threading.get_ident())
        original_save()

    monkeypatch.setattr(store, "save", recording_save)

    await store.write_flag(store.resolve_entity_handle("wal-1"), ["cracked"])

    assert len(save_threads) == 1
    assert save_threads[0] != threading.get_ident()

    reloaded = JsonSceneStore.load(scene_file)
    assert reloaded.read_flag(reloaded.resolve_entity_handle("wal-1")) == ["cracked"]


def test_save_creates_parent_directories(tmp_path) -> None:
    path = tmp_path / "nested" / "scenes.json"
    store = JsonSceneStore(path)
    store.create_entity("s", "note", "n1", tags=["clue"])

    store.save()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["active_scene"] == "s"
    assert data["scenes"]["s"][0]["flags"] == {"tagger": {"tags": ["clue"]}}


def test_save_failure_is_a_storage_failure(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    store = JsonSceneStore(blocker / "scenes.json")

    with pytest.raises(StorageFailure):
        store.save()


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"scenes": []}),
        json.dumps({"scenes": {"s": [{"kind": "token"}]}}),
    ],
)
def test_bad_scene_files_are_rejected(tmp_path, content) -> None:
    path = tmp_path / "scenes.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(InvalidArgument, match="^load: "):
        JsonSceneStore.load(path)


# ---------------------------------------------------------------------------
# open_store
# ---------------------------------------------------------------------------
def test_open_store_uses_env_path(scene_file) -> None:
    store = open_store()
    assert isinstance(store, JsonSceneStore)
    assert store.path == scene_file


def test_open_store_active_scene_override(scene_file, monkeypatch) -> None:
    monkeypatch.setenv("TAGGER_ACTIVE_SCENE", "scene-2")
    assert open_store().default_scope_id == "scene-2"


def test_open_store_explicit_path_wins(scene_file, tmp_path) -> None:
    other = tmp_path / "other.json"
    assert open_store(other).path == other


def test_unknown_backend(monkeypatch) -> None:
    monkeypatch.setenv("TAGGER_BACKEND", "sqlite")
    with pytest.raises(RuntimeError, match="Unknown TAGGER_BACKEND"):
        open_store()


def test_scene_entity_identity() -> None:
    a = SceneEntity(id="x", kind="token", scene_id="s")
    b = SceneEntity(id="x", kind="token", scene_id="s")
    assert a != b
