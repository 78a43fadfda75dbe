"""
Tagger: free-form tags on scene entities.

Public surface:

    from tagger import Tagger, MatchOptions, TagLiteral, TagPattern
    from tagger import InvalidArgument, ScopeNotFound, StorageFailure
"""

from .errors import InvalidArgument, ScopeNotFound, StorageFailure, TaggerError
from .tagger import Tagger
from .types import MatchOptions, TagLiteral, TagOperation, TagPattern

__all__ = [
    "InvalidArgument",
    "MatchOptions",
    "ScopeNotFound",
    "StorageFailure",
    "TagLiteral",
    "TagOperation",
    "TagPattern",
    "Tagger",
    "TaggerError",
]
