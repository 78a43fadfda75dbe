"""
Shared pytest configuration for the tagger test suite.

This file centralizes reusable fixtures so that:
    • Engine and facade tests share one deterministic scene layout
    • CLI tests run against a temporary JSON scene file
    • Rule tests get predictable "{id}" values

Scene layout (scene-1 is active):

    scene-1
        tok-1  token   ["enemy", "goblin_1"]
        tok-2  token   ["enemy", "Goblin_2", "boss"]
        til-1  tile    ["door", "locked"]
        wal-1  wall    (no tags)
    scene-2
        tok-3  token   ["enemy", "orc"]
        lig-1  light   ["torch"]
"""

import itertools
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tagger.stores import InMemoryTagStore, SceneEntity
from tagger.tagger import Tagger

SCENE_LAYOUT = {
    "scene-1": [
        {"id": "tok-1", "kind": "token", "tags": ["enemy", "goblin_1"]},
        {"id": "tok-2", "kind": "token", "tags": ["enemy", "Goblin_2", "boss"]},
        {"id": "til-1", "kind": "tile", "tags": ["door", "locked"]},
        {"id": "wal-1", "kind": "wall", "tags": []},
    ],
    "scene-2": [
        {"id": "tok-3", "kind": "token", "tags": ["enemy", "orc"]},
        {"id": "lig-1", "kind": "light", "tags": ["torch"]},
    ],
}


def _entity_dict(raw: dict) -> dict:
    flags = {"tagger": {"tags": list(raw["tags"])}} if raw["tags"] else {}
    return {"id": raw["id"], "kind": raw["kind"], "name": raw["id"], "flags": flags}


# ============================================================================
# CLI
# ============================================================================
@pytest.fixture
def cli_runner() -> CliRunner:
    """Provides a fresh Typer CliRunner instance for CLI tests."""
    return CliRunner()


@pytest.fixture
def scene_file(tmp_path: Path, monkeypatch) -> Path:
    """
    Write the standard scene layout to a temporary JSON file and point the
    json backend at it.
    """
    path = tmp_path / "scenes.json"
    data = {
        "active_scene": "scene-1",
        "scenes": {
            scene_id: [_entity_dict(raw) for raw in entities]
            for scene_id, entities in SCENE_LAYOUT.items()
        },
    }
    path.write_text(json.dumps(data), encoding="utf-8")

    monkeypatch.setenv("TAGGER_BACKEND", "json")
    monkeypatch.setenv("TAGGER_SCENES_PATH", str(path))
    monkeypatch.delenv("TAGGER_ACTIVE_SCENE", raising=False)
    return path


# ============================================================================
# STORES + FACADE
# ============================================================================
@pytest.fixture
def store() -> InMemoryTagStore:
    """In-memory store holding the standard scene layout."""
    memory = InMemoryTagStore(active_scene="scene-1")
    for scene_id, entities in SCENE_LAYOUT.items():
        for raw in entities:
            memory.create_entity(scene_id, raw["kind"], raw["id"], tags=raw["tags"], name=raw["id"])
    return memory


@pytest.fixture
def sequential_ids():
    """Deterministic "{id}" generator: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def tagger(store, sequential_ids) -> Tagger:
    return Tagger(store, id_factory=sequential_ids)


@pytest.fixture
def entity(store):
    """Returns a helper resolving entity ids against the store."""

    def _get(entity_id: str) -> SceneEntity:
        return store.resolve_entity_handle(entity_id)

    return _get
