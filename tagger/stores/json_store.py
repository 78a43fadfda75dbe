"""
JSON scene-file store.

Loads scenes from a JSON artifact and writes the whole file back after every
tag write. This is the store the CLI uses by default.

File shape:

    {
        "active_scene": "scene-1",
        "scenes": {
            "scene-1": [
                {"id": "tok-1", "kind": "token", "name": "Goblin",
                 "flags": {"tagger": {"tags": ["enemy", "goblin_1"]}}}
            ]
        }
    }

A missing file loads as an empty store; it is created on the first save.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

from tagger.errors import InvalidArgument, StorageFailure
from tagger.stores.memory import InMemoryTagStore, SceneEntity


class JsonSceneStore(InMemoryTagStore):
    def __init__(self, path: Path, active_scene: Optional[str] = None) -> None:
        super().__init__(active_scene=active_scene)
        self.path = Path(path)

    @classmethod
    def load(cls, path: Path) -> "JsonSceneStore":
        """
        Load a scene file.

        Raises
        ------
        InvalidArgument
            If the file is not valid JSON or does not have the expected shape.
        """
        path = Path(path)
        store = cls(path)
        if not path.exists():
            return store

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidArgument("load", f"invalid JSON in scene file: {path}") from e

        scenes = data.get("scenes", {}) if isinstance(data, dict) else None
        if not isinstance(scenes, dict):
            raise InvalidArgument("load", f"scene file must contain a 'scenes' object: {path}")

        for scene_id, entities in scenes.items():
            store.add_scene(scene_id)
            for raw in entities:
                try:
                    entity = SceneEntity(
                        id=raw["id"],
                        kind=raw["kind"],
                        scene_id=scene_id,
                        name=raw.get("name", ""),
                        flags=raw.get("flags") or {},
                    )
                except (KeyError, TypeError, AttributeError) as e:
                    raise InvalidArgument("load", f"malformed entity in scene {scene_id!r}: {raw!r}") from e
                store.add_entity(entity)

        store.active_scene = data.get("active_scene") or store.active_scene
        return store

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_scene": self.active_scene,
            "scenes": {
                scene_id: [entity.to_dict() for entity in entities]
                for scene_id, entities in self.scenes.items()
            },
        }

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageFailure(f"save: could not write scene file {self.path}: {e}") from e

    async def _persist(self) -> None:
        await asyncio.to_thread(self.save)
