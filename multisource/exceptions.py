"""
Exception hierarchy for the multi-source aggregation engine.

Every error raised inside the engine inherits from MultiSourceError so callers
can catch one type. Source-level errors carry the outcome they map to; they are
recovered at the source boundary and only ever surface as per-source metadata.

Exception Hierarchy:
    MultiSourceError (base)
    ├── InvalidQueryError
    ├── ConfigurationError
    └── SourceError
        ├── SourceUnreachable
        │   └── SourceTimeout
        ├── SourceBlocked
        ├── SourceMalformedResponse
        └── SourceRateLimited

Usage:
    from multisource.exceptions import SourceBlocked, SourceError

    raise SourceBlocked("catlotus", "Captcha redirect", detail={"url": final_url})

    try:
        offers = adapter.parse(payload, query)
    except SourceError as e:
        logger.warning("Source failed", extra={"outcome": e.outcome})
"""

from typing import Optional, Dict, Any


class MultiSourceError(Exception):
    """
    Base exception for all aggregation engine errors.

    Attributes:
        message: Human-readable error message
        detail: Optional dict with additional error context
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class InvalidQueryError(MultiSourceError):
    """
    Raised when the caller submits a query that cannot be searched.

    Examples:
        raise InvalidQueryError("Query must not be blank")
    """


class ConfigurationError(MultiSourceError):
    """
    Raised when the source catalogue or settings are inconsistent.

    Examples:
        raise ConfigurationError("Unknown source", detail={"source": "foo"})
    """


class SourceError(MultiSourceError):
    """
    Base class for failures attributable to a single source.

    Attributes:
        source_name: Source that failed
        outcome: Per-source outcome this failure is reported as
    """

    outcome = "unreachable"

    def __init__(
        self,
        source_name: str,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, detail=detail)
        self.source_name = source_name

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["source"] = self.source_name
        result["outcome"] = self.outcome
        return result


class SourceUnreachable(SourceError):
    """
    Raised on connection failures or non-success HTTP statuses.

    Examples:
        raise SourceUnreachable("tcgmatch", "Connection refused")
    """

    outcome = "unreachable"


class SourceTimeout(SourceUnreachable):
    """Raised when a source does not answer within its time budget."""

    outcome = "timed_out"


class SourceBlocked(SourceError):
    """
    Raised when anti-bot interception is detected (captcha redirect, challenge page).

    Retrying immediately is pointless, so a blocked response ends the tier chain.
    """

    outcome = "blocked"


class SourceMalformedResponse(SourceError):
    """
    Raised when a response does not match the schema the source's parser expects.

    Examples:
        raise SourceMalformedResponse("lacripta", "Expected a product array")
    """

    outcome = "malformed_response"


class SourceRateLimited(SourceError):
    """Raised when the upstream explicitly throttles us (HTTP 429)."""

    outcome = "rate_limited"
