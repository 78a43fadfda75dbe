"""
Unit tests for collection queries over plain objects.

The engine never talks to a store here: entities are SimpleNamespace
objects and the tag reader simply returns their .tags attribute.
"""

from types import SimpleNamespace

import pytest

from tagger.engine.query import query
from tagger.errors import InvalidArgument
from tagger.types import MatchOptions


def read_tags(entity):
    return entity.tags


@pytest.fixture
def entities():
    return [
        SimpleNamespace(name="a", tags=["red", "round"]),
        SimpleNamespace(name="b", tags=["red", "square"]),
        SimpleNamespace(name="c", tags=["blue"]),
    ]


def names(hits):
    return [hit.name for hit in hits]


def test_flat_scope_returns_matches_in_order(entities) -> None:
    assert names(query(entities, "red", read_tags=read_tags)) == ["a", "b"]


def test_options_are_honored(entities) -> None:
    hits = query(entities, "round, blue", MatchOptions(match_any=True), read_tags=read_tags)
    assert names(hits) == ["a", "c"]


def test_no_hits_is_an_empty_list(entities) -> None:
    assert query(entities, "green", read_tags=read_tags) == []


def test_ignore_compares_by_identity() -> None:
    first = SimpleNamespace(name="first", tags=["x"])
    twin = SimpleNamespace(name="first", tags=["x"])
    assert first == twin

    hits = query([first, twin], "x", read_tags=read_tags, ignore=[first])
    assert len(hits) == 1
    assert hits[0] is twin


def test_projection_is_applied_to_hits(entities) -> None:
    hits = query(entities, "blue", read_tags=read_tags, project=lambda e: e.name.upper())
    assert hits == ["C"]


def test_mapping_scope_keeps_only_scopes_with_hits(entities) -> None:
    scope = {"s1": entities[:2], "s2": entities[2:], "s3": []}

    result = query(scope, "red", read_tags=read_tags)

    assert list(result) == ["s1"]
    assert names(result["s1"]) == ["a", "b"]


def test_mapping_scope_rejects_non_string_ids(entities) -> None:
    with pytest.raises(InvalidArgument, match="scope ids must be strings"):
        query({1: entities}, "red", read_tags=read_tags)


def test_empty_query_uses_contains_all(entities) -> None:
    assert names(query(entities, "", read_tags=read_tags)) == ["a", "b", "c"]
    assert query(entities, " , ", MatchOptions(match_any=True), read_tags=read_tags) == []
