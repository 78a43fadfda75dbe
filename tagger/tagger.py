"""
The Tagger facade.

This is the interface UI, CLI, and automation callers use. It binds the
host-agnostic engine to one store (the host adapter) and adds the argument
validation every public operation performs before doing any work:

    • tags are normalized with the operation name as error context
    • entities are resolved through store.resolve_entity_handle()
    • option conflicts and malformed scope ids raise InvalidArgument

Reads are synchronous. Writes are coroutines because each one waits for
the store to acknowledge it.

    tagger = Tagger(store)
    await tagger.add_tags(entity, "door, locked")
    doors = tagger.get_by_tag("door*", case_insensitive=True)
"""

from typing import Any, Callable, Iterable, List, Optional, Pattern

from tagger.engine.matcher import build_matcher, matches
from tagger.engine.mutation import update_tags, write_resolved_tags
from tagger.engine.normalizer import dedupe, normalize_query_tags, normalize_stored_tags
from tagger.engine.query import query
from tagger.engine.rules import RuleBatch, TagRule, random_id
from tagger.errors import InvalidArgument
from tagger.types import (
    Entity,
    MatchOptions,
    QueryResult,
    Scope,
    TagOperation,
    TagPattern,
    TagStoreInterface,
)


class Tagger:
    """
    Tag operations bound to one host store.

    Parameters
    ----------
    store : TagStoreInterface
        The host adapter providing flag storage and scene enumeration.
    rules : Iterable[TagRule], optional
        Tag rules applied on create/update. Defaults to "{#}" then "{id}".
    id_factory : Callable[[], str], optional
        Generator for "{id}" values.
    """

    def __init__(
        self,
        store: TagStoreInterface,
        rules: Optional[Iterable[TagRule]] = None,
        id_factory: Callable[[], str] = random_id,
    ) -> None:
        self.store = store
        self.rules = None if rules is None else list(rules)
        self.id_factory = id_factory

    # -----------------------------------------------------------------------
    # Entity resolution
    # -----------------------------------------------------------------------
    def _resolve(self, raw: Any, operation: str) -> Entity:
        if raw is None:
            raise InvalidArgument(operation, "entity must not be None")
        return self.store.resolve_entity_handle(raw)

    def _resolve_many(self, raw: Any, operation: str) -> List[Entity]:
        items = list(raw) if isinstance(raw, (list, tuple)) else [raw]
        return [self._resolve(item, operation) for item in items]

    def _read(self, entity: Entity) -> List[str]:
        return list(self.store.read_flag(entity) or [])

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------
    def get_tags(self, entity: Any) -> List[str]:
        """Return the entity's tags, trimmed and deduplicated; [] when unset."""
        handle = self._resolve(entity, "get_tags")
        return normalize_stored_tags(self._read(handle), "get_tags")

    def _scope(
        self,
        operation: str,
        objects: Optional[List[Any]],
        all_scenes: bool,
        scene_id: Optional[str],
    ) -> Scope:
        if objects:
            return self._resolve_many(objects, operation)

        if all_scenes:
            return {sid: self.store.list_entities_in_scope(sid) for sid in self.store.list_scope_ids()}

        if scene_id is None:
            scene_id = self.store.default_scope_id
        if not isinstance(scene_id, str) or not scene_id:
            raise InvalidArgument(operation, "scene_id must be a non-empty string")
        return self.store.list_entities_in_scope(scene_id)

    def get_by_tag(
        self,
        tags: Any,
        *,
        match_any: bool = False,
        match_exactly: bool = False,
        case_insensitive: bool = False,
        all_scenes: bool = False,
        objects: Optional[List[Any]] = None,
        ignore: Optional[List[Any]] = None,
        scene_id: Optional[str] = None,
    ) -> QueryResult:
        """
        Find entities whose tags satisfy a query.

        Args:
            tags:
                Comma-separated string, compiled pattern, or a list of both.
                Literal tags support "*" wildcards.
            match_any / match_exactly / case_insensitive:
                See MatchOptions.
            all_scenes:
                Search every scene; the result is a dict of scene id → hits
                containing only scenes with at least one hit.
            objects:
                Search these entities instead of enumerating a scene.
            ignore:
                Entities excluded from the result.
            scene_id:
                Scene to enumerate; defaults to the store's active scene.

        Returns:
            Matching entities, projected through store.project_entity().

        Raises:
            InvalidArgument, ScopeNotFound
            An empty query is an InvalidArgument rather than a request for
            every entity in scope.
        """
        operation = "get_by_tag"
        options = MatchOptions(match_any, match_exactly, case_insensitive).check(operation)
        query_tags = normalize_query_tags(tags, operation)
        if not query_tags:
            raise InvalidArgument(operation, "tags must contain at least one tag")

        if objects is not None and not isinstance(objects, (list, tuple)):
            raise InvalidArgument(operation, "objects must be a list")
        if ignore is not None and not isinstance(ignore, (list, tuple)):
            raise InvalidArgument(operation, "ignore must be a list")
        if scene_id is not None and not isinstance(scene_id, str):
            raise InvalidArgument(operation, "scene_id must be a string")

        ignored = self._resolve_many(ignore, operation) if ignore else []
        scope = self._scope(operation, objects, all_scenes, scene_id)

        return query(
            scope,
            query_tags,
            options,
            read_tags=self._read,
            ignore=ignored,
            project=self.store.project_entity,
        )

    def has_tags(
        self,
        entity: Any,
        tags: Any,
        *,
        match_any: bool = False,
        match_exactly: bool = False,
        case_insensitive: bool = False,
    ) -> bool:
        """Membership test for a single entity, with get_by_tag semantics."""
        operation = "has_tags"
        options = MatchOptions(match_any, match_exactly, case_insensitive).check(operation)
        compiled = build_matcher(normalize_query_tags(tags, operation), case_insensitive)
        return matches(self.get_tags(entity), compiled, options)

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------
    async def _update(self, operation: TagOperation, entities: Any, tags: Any) -> None:
        name = f"{operation.value}_tags"
        canonical = normalize_stored_tags(tags, name)
        handles = self._resolve_many(entities, name)
        await update_tags(handles, operation, canonical, self.store)

    async def set_tags(self, entities: Any, tags: Any) -> None:
        await self._update(TagOperation.SET, entities, tags)

    async def add_tags(self, entities: Any, tags: Any) -> None:
        await self._update(TagOperation.ADD, entities, tags)

    async def remove_tags(self, entities: Any, tags: Any) -> None:
        await self._update(TagOperation.REMOVE, entities, tags)

    async def toggle_tags(self, entities: Any, tags: Any) -> None:
        await self._update(TagOperation.TOGGLE, entities, tags)

    async def clear_all_tags(self, entities: Any) -> None:
        handles = self._resolve_many(entities, "clear_all_tags")
        await update_tags(handles, TagOperation.CLEAR, [], self.store)

    async def fix_up_tags(self, entity: Any) -> None:
        """
        Rewrite an entity's stored tags in canonical form.

        Run after a host edit form closes: a flag left holding only blanks or
        duplicates is rewritten, and an empty one is unset.
        """
        handle = self._resolve(entity, "fix_up_tags")
        await write_resolved_tags(handle, self.get_tags(handle), self.store)

    # -----------------------------------------------------------------------
    # Tag rules
    # -----------------------------------------------------------------------
    def _batch(self, operation: str, entity: Entity, scene_id: Optional[str]) -> RuleBatch:
        # Counters are taken from canonical tags, as get_tags() shows them.
        def read_canonical(other: Entity) -> List[str]:
            return normalize_stored_tags(self._read(other), operation)

        def lookup(pattern: Pattern[str]) -> List[Entity]:
            if scene_id is None:
                return []
            hits = query(
                self.store.list_entities_in_scope(scene_id),
                [TagPattern(pattern)],
                MatchOptions(match_any=True),
                read_tags=read_canonical,
                ignore=[entity],
            )
            return list(hits)

        return RuleBatch(lookup, read_canonical, self.rules, self.id_factory)

    def _rule_scene(self, entity: Entity, scene_id: Optional[str]) -> Optional[str]:
        if scene_id is not None:
            return scene_id
        return self.store.scope_of(entity) or self.store.default_scope_id

    def _apply_rules(self, operation: str, entity: Entity, proposed_tags: Any, skip_rules: bool, scene_id: Optional[str]) -> List[str]:
        tags = normalize_stored_tags(proposed_tags, operation)
        if skip_rules:
            return tags

        with self._batch(operation, entity, self._rule_scene(entity, scene_id)) as batch:
            return dedupe(batch.resolve(tags))

    def on_before_create(
        self,
        entity: Any,
        proposed_tags: Any,
        skip_rules: bool = False,
        scene_id: Optional[str] = None,
    ) -> List[str]:
        """
        Resolve the tags an entity is about to be created with.

        This is a pure transformation; the host persists the returned list as
        part of the creation. skip_rules leaves placeholders untouched (the
        "don't apply tag rules on drop" modifier).

        The entity is resolved through the store like every other handle, so
        live objects and ids are accepted. A document the store does not know
        yet is used as is.
        """
        handle = self._resolve(entity, "on_before_create")
        return self._apply_rules("on_before_create", handle, proposed_tags, skip_rules, scene_id)

    def on_before_update(
        self,
        entity: Any,
        proposed_tags: Any,
        skip_rules: bool = False,
        scene_id: Optional[str] = None,
    ) -> List[str]:
        """Resolve the tags an existing entity is about to be updated with."""
        handle = self._resolve(entity, "on_before_update")
        return self._apply_rules("on_before_update", handle, proposed_tags, skip_rules, scene_id)

    async def apply_tag_rules(self, entities: Any) -> None:
        """
        Rewrite every entity's stored tags through the tag rules.

        Each entity is its own creation event: it gets a fresh batch, so ids
        are never shared between entities. Entities are processed in order
        and each write completes before the next entity is resolved, so later
        counters see earlier results.
        """
        handles = self._resolve_many(entities, "apply_tag_rules")
        for handle in handles:
            resolved = self._apply_rules("apply_tag_rules", handle, self._read(handle), False, None)
            await write_resolved_tags(handle, resolved, self.store)
