"""Pydantic models for distributions, snapshots and health scores."""

import os
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Timestamped(BaseModel):
    """Base for models whose datetime fields are always aware UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value):
        if isinstance(value, datetime):
            return as_utc(value)
        return value


class Trend(str, Enum):
    """Direction of the overall score since the previous calculation."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"
    UNKNOWN = "unknown"  # Display only: entity has no score yet


# --- Tracked entities ---


class Distribution(_Timestamped):
    """A Linux distribution being tracked."""

    id: int
    name: str
    slug: str
    homepage: str | None = None
    github_org: str | None = None
    gitlab_group: str | None = None
    subreddit: str | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# --- Snapshots (append-only) ---


class ActivitySnapshot(_Timestamped):
    """Source repository activity for one sub-repository at one collection time."""

    id: int | None = None
    distro_id: int
    repo_name: str
    stars: int = Field(default=0, ge=0)
    forks: int = Field(default=0, ge=0)
    open_issues: int = Field(default=0, ge=0)
    open_prs: int = Field(default=0, ge=0)
    commits_30d: int = Field(default=0, ge=0)
    commits_365d: int = Field(default=0, ge=0)
    contributors_30d: int = Field(default=0, ge=0)
    last_commit_at: datetime | None = None
    collected_at: datetime = Field(default_factory=utc_now)


class CommunitySnapshot(_Timestamped):
    """Community metrics from one named source (e.g. ``reddit:r/archlinux``)."""

    id: int | None = None
    distro_id: int
    source: str
    active_users_30d: int | None = Field(default=None, ge=0)
    posts_30d: int | None = Field(default=None, ge=0)
    response_time_avg_hours: float | None = None
    collected_at: datetime = Field(default_factory=utc_now)


class ReleaseSnapshot(_Timestamped):
    """A release tag of one sub-repository as seen at one collection time."""

    id: int | None = None
    distro_id: int
    repo_name: str
    tag_name: str
    release_name: str | None = None
    published_at: datetime | None = None
    is_prerelease: bool = False
    collected_at: datetime = Field(default_factory=utc_now)


# --- Scoring ---


class HealthScore(_Timestamped):
    """Calculated health score for a distribution. Never mutated once stored."""

    id: int | None = None
    distro_id: int
    overall_score: float = Field(ge=0, le=100)
    development_score: float = Field(ge=0, le=100)
    community_score: float = Field(ge=0, le=100)
    maintenance_score: float = Field(ge=0, le=100)
    trend: Trend = Trend.STABLE
    calculated_at: datetime = Field(default_factory=utc_now)


class AggregatedMetrics(_Timestamped):
    """Raw metrics flattened from one distribution's latest snapshot sets."""

    repos_tracked: int = 0
    total_stars: int = 0
    total_forks: int = 0
    total_contributors: int = 0
    commits_30d: int = 0
    commits_365d: int = 0
    open_issues: int = 0
    open_prs: int = 0
    last_commit_at: datetime | None = None
    total_releases: int = 0
    releases_30d: int = 0
    latest_release: str | None = None
    days_since_release: int | None = None
    # Reddit metrics
    reddit_subscribers: int = 0
    reddit_posts_30d: int = 0
    reddit_sources: int = 0
    subreddit: str | None = None


class DistroHealthSummary(BaseModel):
    """One row of the rankings view."""

    slug: str
    name: str
    overall_score: float
    development_score: float
    community_score: float
    maintenance_score: float
    trend: Trend
    rank: int
    metrics: AggregatedMetrics = Field(default_factory=AggregatedMetrics)
    github_org: str | None = None
    subreddit: str | None = None
    description: str | None = None


# --- Configuration ---


class CollectorConfig(BaseModel):
    """Settings shared by the HTTP collectors."""

    github_token: str | None = None
    user_agent: str = "DistroVitals/0.1 (Linux distribution health tracker)"
    request_timeout: float = 30.0
    max_repos: int = Field(default=30, ge=1, le=100)
    reddit_delay_seconds: float = Field(default=2.0, ge=0)

    @classmethod
    def from_env(cls) -> "CollectorConfig":
        """Build a config from environment variables (``GITHUB_TOKEN``)."""
        return cls(github_token=os.environ.get("GITHUB_TOKEN") or None)
