"""
In-memory scene store.

A minimal host adapter that keeps scenes of placeable entities in memory.
It implements TagStoreInterface and is the base for the JSON-file store used
by the CLI. Tests use it directly.

Tags live where the host keeps module data: entity.flags["tagger"]["tags"].
An empty tag list is never stored; clearing removes the key, and removes the
module namespace too once it is empty.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from tagger.errors import InvalidArgument, ScopeNotFound
from tagger.types import FLAG_NAME, MODULE_NAME, PLACEABLE_KINDS


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
# eq=False keeps the default identity comparison: two entities with the same
# fields are still different handles.
# ---------------------------------------------------------------------------
@dataclass(eq=False)
class SceneEntity:
    id: str
    kind: str
    scene_id: str
    name: str = ""
    flags: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    live_object: Optional["PlaceableObject"] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "kind": self.kind, "name": self.name, "flags": self.flags}


@dataclass(eq=False)
class PlaceableObject:
    """The host's live, on-canvas object wrapping a persisted SceneEntity."""

    document: SceneEntity


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
class InMemoryTagStore:
    """
    Scenes of SceneEntity objects held in memory.

    Parameters
    ----------
    entities : Iterable[SceneEntity], optional
        Initial entities; their scene_id decides which scene they join.
    active_scene : str, optional
        The scene searched when a query names none. Defaults to the first
        scene seen.
    """

    def __init__(
        self,
        entities: Optional[Iterable[SceneEntity]] = None,
        active_scene: Optional[str] = None,
    ) -> None:
        self.scenes: Dict[str, List[SceneEntity]] = {}
        self._by_id: Dict[str, SceneEntity] = {}
        self.active_scene = active_scene

        for entity in entities or []:
            self.add_entity(entity)

    # -----------------------------------------------------------------------
    # Scene management
    # -----------------------------------------------------------------------
    def add_scene(self, scene_id: str) -> None:
        if not isinstance(scene_id, str) or not scene_id:
            raise InvalidArgument("add_scene", "scene_id must be a non-empty string")
        self.scenes.setdefault(scene_id, [])
        if self.active_scene is None:
            self.active_scene = scene_id

    def add_entity(self, entity: SceneEntity) -> SceneEntity:
        if entity.kind not in PLACEABLE_KINDS:
            raise InvalidArgument("add_entity", f"unknown entity kind {entity.kind!r}")
        if entity.id in self._by_id:
            raise InvalidArgument("add_entity", f"duplicate entity id {entity.id!r}")

        self.add_scene(entity.scene_id)
        self.scenes[entity.scene_id].append(entity)
        self._by_id[entity.id] = entity
        return entity

    def create_entity(
        self,
        scene_id: str,
        kind: str,
        entity_id: str,
        tags: Optional[List[str]] = None,
        name: str = "",
    ) -> SceneEntity:
        """Create and register an entity, storing tags only when non-empty."""
        entity = SceneEntity(id=entity_id, kind=kind, scene_id=scene_id, name=name)
        if tags:
            entity.flags[MODULE_NAME] = {FLAG_NAME: list(tags)}
        return self.add_entity(entity)

    # -----------------------------------------------------------------------
    # TagStoreInterface
    # -----------------------------------------------------------------------
    @property
    def default_scope_id(self) -> Optional[str]:
        return self.active_scene

    def read_flag(self, entity: SceneEntity) -> Optional[List[str]]:
        return entity.flags.get(MODULE_NAME, {}).get(FLAG_NAME)

    async def write_flag(self, entity: SceneEntity, tags: List[str]) -> None:
        entity.flags.setdefault(MODULE_NAME, {})[FLAG_NAME] = list(tags)
        await self._persist()

    async def clear_flag(self, entity: SceneEntity) -> None:
        module = entity.flags.get(MODULE_NAME)
        if module is not None:
            module.pop(FLAG_NAME, None)
            if not module:
                del entity.flags[MODULE_NAME]
        await self._persist()

    async def _persist(self) -> None:
        # Nothing to flush for a purely in-memory store.
        return None

    def resolve_entity_handle(self, raw: Any) -> SceneEntity:
        if isinstance(raw, SceneEntity):
            return raw
        if isinstance(raw, PlaceableObject):
            return raw.document
        if isinstance(raw, str):
            entity = self._by_id.get(raw)
            if entity is None:
                raise InvalidArgument("resolve_entity_handle", f"unknown entity id {raw!r}")
            return entity
        raise InvalidArgument("resolve_entity_handle", f"cannot resolve {type(raw).__name__} to an entity")

    def list_entities_in_scope(self, scope_id: str) -> List[SceneEntity]:
        if not isinstance(scope_id, str):
            raise InvalidArgument("list_entities_in_scope", "scope_id must be a string")
        if scope_id not in self.scenes:
            raise ScopeNotFound("list_entities_in_scope", scope_id)

        # Grouped by kind, in PLACEABLE_KINDS order; stable within a kind.
        return sorted(self.scenes[scope_id], key=lambda e: PLACEABLE_KINDS.index(e.kind))

    def list_scope_ids(self) -> List[str]:
        return list(self.scenes)

    def scope_of(self, entity: SceneEntity) -> Optional[str]:
        return entity.scene_id

    def project_entity(self, entity: SceneEntity) -> Any:
        return entity.live_object or entity
