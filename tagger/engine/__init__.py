"""
Public API for the tagging engine.

The engine is host-agnostic: it never enumerates scenes or touches storage
itself. Callers can rely on:

    from tagger.engine import normalize_tags, build_matcher, matches, query
    from tagger.engine import apply_rules, RuleBatch, update_tags

without needing to know the internal module layout.
"""

from .matcher import build_matcher, compile_literal, matches
from .mutation import compute_tags, update_tags, write_resolved_tags
from .normalizer import normalize_query_tags, normalize_stored_tags, normalize_tags
from .query import query
from .rules import COUNTER, DEFAULT_RULES, UNIQUE_ID, RuleBatch, TagRule, apply_rules

__all__ = [
    "COUNTER",
    "DEFAULT_RULES",
    "UNIQUE_ID",
    "RuleBatch",
    "TagRule",
    "apply_rules",
    "build_matcher",
    "compile_literal",
    "compute_tags",
    "matches",
    "normalize_query_tags",
    "normalize_stored_tags",
    "normalize_tags",
    "query",
    "update_tags",
    "write_resolved_tags",
]
