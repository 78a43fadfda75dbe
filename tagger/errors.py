"""
tagger/errors.py

Exception taxonomy for the tagging core.

Every failure raised by the core belongs to one of three families:

    • InvalidArgument  — malformed tag input, conflicting options, bad scope
                         identifiers, or a missing entity reference
    • ScopeNotFound    — a scope identifier that does not resolve to a scene
    • StorageFailure   — an error surfaced by the persistence collaborator

Each class also inherits from the closest builtin exception so callers that
already catch ValueError / LookupError / RuntimeError keep working.

Messages follow one shape: "<operation>: <problem>".
"""


class TaggerError(Exception):
    """Base class for every error raised by the tagging core."""


class InvalidArgument(TaggerError, ValueError):
    """Raised before any query or mutation work begins; never partially applied."""

    def __init__(self, operation: str, problem: str) -> None:
        self.operation = operation
        self.problem = problem
        super().__init__(f"{operation}: {problem}")


class ScopeNotFound(TaggerError, LookupError):
    """Raised when a scope identifier does not resolve to a live scope."""

    def __init__(self, operation: str, scope_id: str) -> None:
        self.operation = operation
        self.scope_id = scope_id
        super().__init__(f"{operation}: could not find scene with id {scope_id!r}")


class StorageFailure(TaggerError, RuntimeError):
    """
    Raised by a store when a durable write fails.

    The core never retries; the error propagates and aborts the remainder of
    an in-flight batch.
    """
