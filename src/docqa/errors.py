from __future__ import annotations


class DocQAError(Exception):
    """Base class for errors reported to callers of the core API."""


class InvalidArgument(DocQAError, ValueError):
    """Blank question, non-positive sizes, empty id lists."""


class NotFound(DocQAError, LookupError):
    """Unknown document, or a document owned by another user."""


class PreconditionFailed(DocQAError):
    """The document is not in a state the operation needs (e.g. no text yet)."""


class DimensionMismatch(DocQAError, ValueError):
    """Two vectors of different length were compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vectors must have same dimension: {left} vs {right}")
        self.left = left
        self.right = right


class ProviderUnavailable(DocQAError):
    """A remote provider could not produce a usable response."""
