"""
Tag matching.

Query tags are compiled once per query and then tested against the tags of
every candidate entity. Three semantics are supported:

    • contains-all (default) — every query tag matches some entity tag
    • match-any              — at least one query tag matches some entity tag
    • match-exact            — every query tag matches and the entity carries
                               exactly as many tags as the query

Literal query tags use a small wildcard syntax: "*" matches any run of
characters and everything else is literal. Literals are anchored at both
ends so "foo" never matches "foobar".
"""

import re
from typing import Iterable, List, Optional, Pattern, Sequence

from tagger.types import MatchOptions, QueryTag, TagLiteral

WILDCARD = "*"


def compile_literal(value: str, case_insensitive: bool = False) -> Pattern[str]:
    """
    Compile one literal query tag into an anchored pattern.

    Example:
        "foo*.png" → ^foo.*?\\.png$
    """
    if case_insensitive:
        value = value.lower()
    body = ".*?".join(re.escape(part) for part in value.split(WILDCARD))
    return re.compile(f"^{body}$")


def build_matcher(query_tags: Iterable[QueryTag], case_insensitive: bool = False) -> List[Pattern[str]]:
    """
    Compile query tags into patterns.

    Literals are compiled with compile_literal(). Pre-supplied patterns pass
    through untouched; their case sensitivity is the caller's business.
    """
    compiled: List[Pattern[str]] = []
    for tag in query_tags:
        if isinstance(tag, TagLiteral):
            compiled.append(compile_literal(tag.value, case_insensitive))
        else:
            compiled.append(tag.pattern)
    return compiled


def count_matched(entity_tags: Sequence[str], compiled_query: Sequence[Pattern[str]]) -> int:
    """Number of query patterns that match at least one entity tag."""
    return sum(
        1 for pattern in compiled_query if any(pattern.search(tag) for tag in entity_tags)
    )


def matches(
    entity_tags: Sequence[str],
    compiled_query: Sequence[Pattern[str]],
    options: Optional[MatchOptions] = None,
) -> bool:
    """
    Decide whether one entity's tags satisfy a compiled query.

    The match-exact test compares sizes only: it does not check that distinct
    query patterns hit distinct entity tags. An empty query goes
    through the same formulas, so contains-all accepts every entity and
    match-exact accepts untagged ones.

    Raises:
        InvalidArgument: if both match_any and match_exactly are set.
    """
    options = (options or MatchOptions()).check("matches")

    if options.case_insensitive:
        entity_tags = [tag.lower() for tag in entity_tags]

    matched = count_matched(entity_tags, compiled_query)

    if options.match_any:
        return matched > 0

    if options.match_exactly:
        return matched == len(compiled_query) and len(entity_tags) == len(compiled_query)

    return matched >= len(compiled_query)
