"""
Tag rules: template expansion at creation time.

A tag rule pairs a placeholder with a resolver. When an entity is created or
updated, every proposed tag is run through the registered rules in order and
each rule rewrites every occurrence of its own placeholder.

Built-in rules:

    • "{#}"  — the smallest positive number not already used by an entity
               whose tag has the same shape. With "foo_1_tag" and
               "foo_2_tag" in the scene, "foo_{#}_tag" becomes "foo_3_tag".
               With "foo_1_tag" and "foo_3_tag" it becomes "foo_2_tag".
    • "{id}" — a random 16-character alphanumeric id.

Counter uniqueness holds only against the entities the lookup can see when
the rule runs. Two entities created in the same batch before either is
persisted can receive the same number; nothing here serializes against that.

Ids are cached per (template, index) inside one RuleBatch so the same
template at the same position resolves to one id for the whole batch. The
batch is a context manager and empties its cache on entry and exit, so ids
never leak from one creation event into the next.
"""

import re
import secrets
import string
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Set, Tuple

from tagger.errors import InvalidArgument
from tagger.types import Lookup, TagReader

COUNTER = "{#}"
UNIQUE_ID = "{id}"

ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 16


def random_id(length: int = ID_LENGTH) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class TagRule:
    pattern: str
    resolver: Callable[[str, int, "RuleBatch"], str]


# ---------------------------------------------------------------------------
# RuleBatch: per creation event context
# ---------------------------------------------------------------------------
class RuleBatch:
    """
    Context for one rule-application pass.

    Parameters
    ----------
    lookup : Callable[[Pattern], list]
        Returns the entities whose tags match a pattern. The counter rule uses
        it to find numbers already taken.
    read_tags : Callable[[entity], list[str]]
        Returns an entity's current tags.
    rules : Iterable[TagRule], optional
        Rules in application order. Defaults to DEFAULT_RULES.
    id_factory : Callable[[], str], optional
        Generator for "{id}" values. Defaults to random_id.
    """

    def __init__(
        self,
        lookup: Lookup,
        read_tags: TagReader,
        rules: Optional[Iterable[TagRule]] = None,
        id_factory: Callable[[], str] = random_id,
    ) -> None:
        self.lookup = lookup
        self.read_tags = read_tags
        self.rules: List[TagRule] = list(DEFAULT_RULES if rules is None else rules)
        self.id_factory = id_factory
        self.template: Optional[str] = None
        self._ids: Dict[Tuple[str, int], str] = {}

    def __enter__(self) -> "RuleBatch":
        self.clear()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clear()

    def clear(self) -> None:
        self._ids.clear()

    @property
    def placeholders(self) -> List[str]:
        return [rule.pattern for rule in self.rules]

    def unique_id(self, template: str, index: int) -> str:
        key = (template, index)
        if key not in self._ids:
            self._ids[key] = self.id_factory()
        return self._ids[key]

    def resolve(self, tags: Sequence[str]) -> List[str]:
        """Run every tag through the rules; tags without placeholders pass through."""
        resolved: List[str] = []
        for index, tag in enumerate(tags):
            self.template = tag
            for rule in self.rules:
                if rule.pattern in tag:
                    tag = rule.resolver(tag, index, self)
            resolved.append(tag)
        self.template = None
        return resolved


# ---------------------------------------------------------------------------
# Counter rule
# ---------------------------------------------------------------------------
def counter_search_pattern(tag: str, placeholders: Iterable[str] = (COUNTER,)) -> Pattern[str]:
    """
    Build the pattern that finds existing tags shaped like a counter template.

    The first "{#}" becomes a capture group for a number without leading
    zeros, later ones must repeat the same number, and any other registered
    placeholder matches any text.
    """
    tokens = sorted(set(placeholders) | {COUNTER}, key=len, reverse=True)
    token_re = re.compile("|".join(re.escape(token) for token in tokens))

    parts: List[str] = []
    position = 0
    seen_counter = False
    for found in token_re.finditer(tag):
        parts.append(re.escape(tag[position:found.start()]))
        if found.group() == COUNTER:
            parts.append("(?P=n)" if seen_counter else "(?P<n>[1-9][0-9]*)")
            seen_counter = True
        else:
            parts.append(".+?")
        position = found.end()
    parts.append(re.escape(tag[position:]))

    return re.compile("^" + "".join(parts) + "$")


def next_free_number(taken: Set[int]) -> int:
    number = 1
    while number in taken:
        number += 1
    return number


def resolve_counter(tag: str, index: int, batch: RuleBatch) -> str:
    search = counter_search_pattern(tag, batch.placeholders)

    taken: Set[int] = set()
    for entity in batch.lookup(search):
        for existing in batch.read_tags(entity):
            found = search.match(existing)
            if found:
                taken.add(int(found.group("n")))

    return tag.replace(COUNTER, str(next_free_number(taken)))


# ---------------------------------------------------------------------------
# Unique id rule
# ---------------------------------------------------------------------------
def resolve_unique_id(tag: str, index: int, batch: RuleBatch) -> str:
    return tag.replace(UNIQUE_ID, batch.unique_id(batch.template or tag, index))


DEFAULT_RULES: Tuple[TagRule, ...] = (
    TagRule(COUNTER, resolve_counter),
    TagRule(UNIQUE_ID, resolve_unique_id),
)


def apply_rules(
    tags: Sequence[str],
    lookup: Optional[Lookup] = None,
    read_tags: Optional[TagReader] = None,
    rules: Optional[Iterable[TagRule]] = None,
    batch: Optional[RuleBatch] = None,
) -> List[str]:
    """
    Expand rule placeholders in a list of tags.

    Pass either lookup and read_tags (plus optional rules), in which case a
    fresh batch is opened and closed around this call, or an existing batch,
    whose own lookup, reader, rules, and id cache are used. The id cache of a
    supplied batch is shared with the caller and left untouched.

    Raises:
        InvalidArgument: if a batch is combined with lookup, read_tags, or
        rules, or if neither a batch nor both lookup and read_tags are given.
    """
    if batch is not None:
        if lookup is not None or read_tags is not None or rules is not None:
            raise InvalidArgument("apply_rules", "pass either a batch or lookup/read_tags/rules, not both")
        return batch.resolve(tags)

    if lookup is None or read_tags is None:
        raise InvalidArgument("apply_rules", "lookup and read_tags are required without a batch")

    with RuleBatch(lookup, read_tags, rules) as fresh:
        return fresh.resolve(tags)
