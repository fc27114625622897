"""Error taxonomy for the citation engine.

Only ``InvalidInputError`` is fatal for a request. The others are recorded on
the citation they belong to and never abort sibling citations in a batch.
"""

from __future__ import annotations


class GeoError(Exception):
    """Base class for engine errors."""


class InvalidInputError(GeoError):
    """Request rejected before processing (missing brand name, empty batch, ...)."""


class NetworkFailure(GeoError):
    """Verification timeout or connection error."""


class UpstreamFailure(GeoError):
    """External capability returned a non-success status or a malformed body."""

    def __init__(self, message: str, *, status_code: int | None = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class PersistenceFailure(GeoError):
    """A store write failed."""
