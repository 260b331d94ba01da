"""Collectors that fetch snapshots from GitHub and Reddit."""

from distrovitals.collectors.base import CollectorApiError, CollectorError, RateLimitedError
from distrovitals.collectors.github import GitHubCollector
from distrovitals.collectors.reddit import RedditCollector

__all__ = [
    "CollectorApiError",
    "CollectorError",
    "GitHubCollector",
    "RateLimitedError",
    "RedditCollector",
]
