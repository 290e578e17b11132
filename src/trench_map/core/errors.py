"""Error taxonomy for the annotation engine.

Nothing here is fatal: each error is scoped to the one operation that raised
it and leaves session state as it was.
"""
from __future__ import annotations


class TrenchMapError(Exception):
    """Base class for all engine errors."""


class NotFound(TrenchMapError, LookupError):
    """An operation referenced a line id that does not exist."""

    def __init__(self, line_id: str):
        super().__init__(f"Line not found: {line_id}")
        self.line_id = line_id


class InvalidInput(TrenchMapError, ValueError):
    """Malformed input (typically an import document); nothing was changed."""


class PreconditionNotMet(TrenchMapError):
    """A capture action was requested before its prerequisites exist."""


class SourceUnavailable(TrenchMapError):
    """The GPS source is missing or currently reporting errors."""
