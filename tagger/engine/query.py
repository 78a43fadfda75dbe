"""
Collection queries.

Runs the matcher across a scope. A scope is either a flat sequence of
entities (one scene) or a mapping of scope id → entities (all scenes). The
query never talks to the host: the caller supplies the entities, a tag
reader, and an optional projection back to live objects.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Pattern, Sequence

from tagger.engine.matcher import build_matcher, matches
from tagger.engine.normalizer import normalize_query_tags
from tagger.errors import InvalidArgument
from tagger.types import Entity, MatchOptions, Projection, QueryResult, Scope, TagReader


def _filter_entities(
    entities: Sequence[Entity],
    compiled: Sequence[Pattern[str]],
    options: MatchOptions,
    read_tags: TagReader,
    ignored: set,
    project: Optional[Projection],
) -> List[Any]:
    hits: List[Any] = []
    for entity in entities:
        if id(entity) in ignored:
            continue
        if not matches(read_tags(entity), compiled, options):
            continue
        hits.append(project(entity) if project else entity)
    return hits


def query(
    scope: Scope,
    query_tags: Any,
    options: Optional[MatchOptions] = None,
    *,
    read_tags: TagReader,
    ignore: Iterable[Entity] = (),
    project: Optional[Projection] = None,
) -> QueryResult:
    """
    Return the entities in scope whose tags satisfy the query.

    Args:
        scope:
            A sequence of entities, or a mapping of scope id to entities.
        query_tags:
            Any tag input accepted by normalize_query_tags().
        options:
            MatchOptions; defaults to contains-all, case sensitive.
        read_tags:
            Callable returning an entity's current tag list.
        ignore:
            Entities to drop before matching, compared by identity.
        project:
            Optional callable mapping each hit to the object returned.

    Returns:
        A list of hits for a sequence scope. For a mapping scope, a dict
        containing only the scope ids with at least one hit.
    """
    options = (options or MatchOptions()).check("query")
    tags = normalize_query_tags(query_tags, "query")
    compiled = build_matcher(tags, options.case_insensitive)
    ignored = {id(entity) for entity in ignore}

    if isinstance(scope, Mapping):
        results: Dict[str, List[Any]] = {}
        for scope_id, entities in scope.items():
            if not isinstance(scope_id, str):
                raise InvalidArgument("query", "scope ids must be strings")
            hits = _filter_entities(entities, compiled, options, read_tags, ignored, project)
            if hits:
                results[scope_id] = hits
        return results

    return _filter_entities(scope, compiled, options, read_tags, ignored, project)
