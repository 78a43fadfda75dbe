"""
tagger/types.py

Centralized type definitions for the tagging core.

This module defines the value types, enums, and Protocols shared by the
normalizer, match engine, rule resolver, mutation coordinator, and the
bundled stores. Keeping them in one place gives:

    • A single source of truth for query and option shapes
    • Clear contracts between the core and the host adapter (the store)
    • Easy dependency injection of fake stores in tests
"""

import enum
import re
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Pattern,
    Protocol,
    Sequence,
    Union,
)

from tagger.errors import InvalidArgument

# ---------------------------------------------------------------------------
# Flag location
# ---------------------------------------------------------------------------
# Tags live in one logical field per entity: flags[MODULE_NAME][FLAG_NAME].
# ---------------------------------------------------------------------------
MODULE_NAME = "tagger"
FLAG_NAME = "tags"

# ---------------------------------------------------------------------------
# Placeable kinds
# ---------------------------------------------------------------------------
# Scene object kinds that carry tags and are enumerated when a whole scene is
# searched. Order matters: scene enumeration returns entities grouped by kind
# in this order.
# ---------------------------------------------------------------------------
PLACEABLE_KINDS = (
    "token",
    "light",
    "sound",
    "template",
    "tile",
    "wall",
    "drawing",
    "note",
)


# ---------------------------------------------------------------------------
# Query tags
# ---------------------------------------------------------------------------
# A query tag is either a literal (compiled later with wildcard semantics) or
# a pre-compiled regular expression that is matched as-is. The normalizer is
# the only place that inspects runtime types; everything downstream works on
# this tagged variant.
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TagLiteral:
    value: str


@dataclass(frozen=True)
class TagPattern:
    pattern: Pattern[str]


QueryTag = Union[TagLiteral, TagPattern]

# Anything the public API accepts as tag input.
TagInput = Union[str, Pattern[str], TagLiteral, TagPattern, Sequence[Any]]


# ---------------------------------------------------------------------------
# MatchOptions
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MatchOptions:
    """
    Options governing how a single entity is tested against a query.

    match_any
        The entity matches when at least one query tag hits.
    match_exactly
        The entity matches when every query tag hits and the entity carries
        exactly as many tags as the query has.
    case_insensitive
        Entity tags and literal query tags are lowercased before comparison.

    With neither flag set the entity must contain every query tag.
    """

    match_any: bool = False
    match_exactly: bool = False
    case_insensitive: bool = False

    def check(self, operation: str) -> "MatchOptions":
        if self.match_any and self.match_exactly:
            raise InvalidArgument(
                operation, "match_any and match_exactly are mutually exclusive"
            )
        return self


# ---------------------------------------------------------------------------
# TagOperation
# ---------------------------------------------------------------------------
class TagOperation(enum.Enum):
    SET = "set"
    ADD = "add"
    REMOVE = "remove"
    TOGGLE = "toggle"
    CLEAR = "clear"


# ---------------------------------------------------------------------------
# Callable aliases
# ---------------------------------------------------------------------------
Entity = Any
TagReader = Callable[[Entity], List[str]]
Projection = Callable[[Entity], Any]
Lookup = Callable[[Pattern[str]], List[Entity]]
QueryResult = Union[List[Any], Dict[str, List[Any]]]
Scope = Union[Sequence[Entity], Mapping[str, Sequence[Entity]]]


def is_pattern(value: Any) -> bool:
    return isinstance(value, re.Pattern)


# ---------------------------------------------------------------------------
# TagStoreInterface
# ---------------------------------------------------------------------------
# Protocol describing what the core needs from the host application.
#
# The host owns the scene/document model; the core only reads and writes one
# flag per entity and enumerates scenes. Any object implementing these members
# is accepted, including the bundled InMemoryTagStore, JsonSceneStore, and
# SupabaseTagStore, and the fakes used in tests.
#
# Writes are coroutines: the store acknowledges each write before the
# coordinator moves on to the next entity.
# ---------------------------------------------------------------------------
class TagStoreInterface(Protocol):
    @property
    def default_scope_id(self) -> Optional[str]:
        """The scene searched when a query names none (the host's active scene)."""
        ...

    def read_flag(self, entity: Entity) -> Optional[List[str]]:
        """Return the stored tag list, or None when the flag is unset."""
        ...

    async def write_flag(self, entity: Entity, tags: List[str]) -> None:
        """Persist a non-empty tag list."""
        ...

    async def clear_flag(self, entity: Entity) -> None:
        """Unset the tag flag entirely."""
        ...

    def resolve_entity_handle(self, raw: Any) -> Entity:
        """Map a live UI object (or an id) to its persisted-document handle."""
        ...

    def list_entities_in_scope(self, scope_id: str) -> List[Entity]:
        """Enumerate candidate entities; raises ScopeNotFound for unknown ids."""
        ...

    def list_scope_ids(self) -> List[str]:
        """Enumerate every scope, used by all-scenes queries."""
        ...

    def scope_of(self, entity: Entity) -> Optional[str]:
        """The scope an entity lives in, or None when the host cannot tell."""
        ...

    def project_entity(self, entity: Entity) -> Any:
        """Map a matched handle back to the host's richer live object."""
        ...
