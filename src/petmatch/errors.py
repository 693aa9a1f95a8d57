"""Error taxonomy for the matching core."""

from __future__ import annotations

from typing import Optional


class MatchingError(Exception):
    """Base class for matching engine errors."""


class InvalidInput(MatchingError):
    """The orchestrator was handed something it cannot match."""


class EmbeddingError(MatchingError):
    """The embedding provider did not produce a usable vector."""


class TransientUnavailable(EmbeddingError):
    """Provider stayed unavailable (warming up) for the whole retry budget."""

    def __init__(self, message: str, attempts: int = 0, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.retry_after = retry_after


class BadResponse(EmbeddingError):
    """Provider answered with a malformed or non-vector payload."""


class StoreUnavailable(MatchingError):
    """The document store could not be reached."""


class InvalidTransition(MatchingError):
    """Illegal match alert status change."""

    def __init__(self, match_id: str, current: str, requested: str) -> None:
        super().__init__(f"Cannot move match {match_id} from {current!r} to {requested!r}")
        self.match_id = match_id
        self.current = current
        self.requested = requested


class AlertNotFound(MatchingError):
    """No match alert exists for the given id."""
