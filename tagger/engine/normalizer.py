"""
Tag input normalization.

Callers hand tags to the core in several shapes:

    • "a, b ,c"                 — a comma-separated string
    • ["a", "b"]                — a sequence of strings
    • re.compile("^foo")        — a single compiled pattern (queries only)
    • ["a", re.compile("b.*")]  — a mix of both (queries only)

This module turns all of them into an ordered list of canonical tokens.

Design goals:
    • Pure functions (no side effects)
    • Deterministic output that preserves caller order
    • Trimmed, non-empty tag names
    • A clear InvalidArgument naming the calling operation on bad input
"""

from typing import Any, List, Pattern, Union

from tagger.errors import InvalidArgument
from tagger.types import QueryTag, TagLiteral, TagPattern, is_pattern

Token = Union[str, Pattern[str]]


# ---------------------------------------------------------------------------
# Canonical tokens
# ---------------------------------------------------------------------------
def normalize_tags(value: Any, context: str) -> List[Token]:
    """
    Normalize any accepted tag input into a list of strings and patterns.

    Normalization rules:
        • A string is split on commas
        • Every string piece is stripped of surrounding whitespace
        • Empty pieces are dropped
        • Patterns pass through untouched
        • TagLiteral / TagPattern elements are unwrapped

    Args:
        value:
            A string, a compiled pattern, or a list/tuple/set of strings and
            patterns.
        context:
            Name of the public operation doing the normalizing. It is only
            used to build the error message.

    Returns:
        The ordered list of canonical tokens. Duplicates are kept; callers
        that store tags collapse them.

    Raises:
        InvalidArgument:
            If value is not one of the accepted shapes, or a sequence
            contains an element that is neither a string nor a pattern.
    """
    if isinstance(value, str):
        pieces: List[Any] = value.split(",")
    elif is_pattern(value) or isinstance(value, (TagLiteral, TagPattern)):
        pieces = [value]
    elif isinstance(value, (list, tuple, set, frozenset)):
        pieces = list(value)
    else:
        raise InvalidArgument(context, "tags must be a string, a pattern, or a list")

    tokens: List[Token] = []
    for piece in pieces:
        if isinstance(piece, TagLiteral):
            piece = piece.value
        elif isinstance(piece, TagPattern):
            piece = piece.pattern

        if is_pattern(piece):
            tokens.append(piece)
            continue

        if not isinstance(piece, str):
            raise InvalidArgument(context, "tags in a list must be strings or patterns")

        stripped = piece.strip()
        if stripped:
            tokens.append(stripped)

    return tokens


# ---------------------------------------------------------------------------
# Query tags (tagged variant)
# ---------------------------------------------------------------------------
def normalize_query_tags(value: Any, context: str) -> List[QueryTag]:
    """Normalize input and wrap every token as a TagLiteral or TagPattern."""
    return [
        TagPattern(token) if is_pattern(token) else TagLiteral(token)  # type: ignore[arg-type]
        for token in normalize_tags(value, context)
    ]


# ---------------------------------------------------------------------------
# Stored tags
# ---------------------------------------------------------------------------
def normalize_stored_tags(value: Any, context: str) -> List[str]:
    """
    Normalize input destined for storage.

    Patterns are rejected because only literal tags can be written, and
    duplicates collapse to their first occurrence.
    """
    literals: List[str] = []
    for token in normalize_tags(value, context):
        if not isinstance(token, str):
            raise InvalidArgument(context, "patterns cannot be stored as tags")
        literals.append(token)
    return dedupe(literals)


def dedupe(tags: List[str]) -> List[str]:
    # dict preserves insertion order, so the first occurrence wins
    return list(dict.fromkeys(tags))
