# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: errors.py
# -----------------------------------------------------------------------------
from typing import Optional


class CivicRagError(Exception):
    """Base class for errors raised by the retrieval core."""


class SourceUnavailable(CivicRagError):
    """The civic data API could not serve a page (HTTP error, timeout, bad body)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimited(CivicRagError):
    """Provider answered 429. retry_after is in seconds when the provider sent one."""

    def __init__(self, message: str, *, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ProviderError(CivicRagError):
    """Any other non-2xx / transport failure from the embedding or chat provider."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InsufficientContent(CivicRagError):
    """Text too short to embed. A skip condition, not a failure."""


class StoreConflict(CivicRagError):
    """Insert raced with an existing (meeting_id, content_type) record."""


class SearchDegraded(CivicRagError):
    """Vector stage unavailable; the search falls back to text stages."""
