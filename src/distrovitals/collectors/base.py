"""Shared pieces of the HTTP collectors."""

from datetime import datetime


class CollectorError(Exception):
    """Base class for collection failures."""


class RateLimitedError(CollectorError):
    """Raised when a platform refuses requests until a rate limit resets."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limited, retry after {retry_after} seconds")


class CollectorApiError(CollectorError):
    """Raised when a platform answers with an unusable response."""

    def __init__(self, platform: str, status_code: int, target: str) -> None:
        self.platform = platform
        self.status_code = status_code
        self.target = target
        super().__init__(f"{platform} API error {status_code} for {target}")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the GitHub API."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
