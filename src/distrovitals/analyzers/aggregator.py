"""Snapshot aggregation: latest-per-key selection and metric summaries."""

from collections.abc import Callable, Hashable, Iterable, Sequence
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from distrovitals.models.schemas import (
    ActivitySnapshot,
    AggregatedMetrics,
    CommunitySnapshot,
    ReleaseSnapshot,
)

# Community sources are named "<platform>:<channel>", e.g. "reddit:r/archlinux"
REDDIT_SOURCE_PREFIX = "reddit:"
SUBREDDIT_PREFIX = "reddit:r/"

RELEASE_WINDOW_DAYS = 30

S = TypeVar("S", ActivitySnapshot, CommunitySnapshot, ReleaseSnapshot)


def activity_key(snapshot: ActivitySnapshot) -> str:
    return snapshot.repo_name


def community_key(snapshot: CommunitySnapshot) -> str:
    return snapshot.source


def release_key(snapshot: ReleaseSnapshot) -> tuple[str, str]:
    return (snapshot.repo_name, snapshot.tag_name)


def select_latest(snapshots: Iterable[S], key: Callable[[S], Hashable]) -> list[S]:
    """Keep the most recently collected snapshot for each distinguishing key.

    Sub-repositories and sources are collected independently, so "latest" is
    decided per key rather than by one global collection time. Ties on
    ``collected_at`` go to the higher row id (the later append).

    Args:
        snapshots: Snapshots for a single distribution, in any order.
        key: Function returning the distinguishing key of a snapshot.

    Returns:
        One snapshot per key, ordered by key.
    """
    latest: dict[Hashable, S] = {}
    for snap in snapshots:
        k = key(snap)
        current = latest.get(k)
        if current is None or _is_newer(snap, current):
            latest[k] = snap
    return [latest[k] for k in sorted(latest, key=str)]


def _is_newer(candidate: S, current: S) -> bool:
    if candidate.collected_at != current.collected_at:
        return candidate.collected_at > current.collected_at
    return (candidate.id or 0) > (current.id or 0)


def is_reddit_source(snapshot: CommunitySnapshot) -> bool:
    """Whether a community snapshot came from a subreddit."""
    return snapshot.source.startswith(REDDIT_SOURCE_PREFIX)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed, truncated toward zero."""
    return int((later - earlier).total_seconds() / 86400)


def aggregate_activity(snapshots: Sequence[ActivitySnapshot]) -> dict:
    """Sum activity metrics across all sub-repositories."""
    commit_times = [s.last_commit_at for s in snapshots if s.last_commit_at is not None]
    return {
        "repos_tracked": len(snapshots),
        "total_stars": sum(s.stars for s in snapshots),
        "total_forks": sum(s.forks for s in snapshots),
        "total_contributors": sum(s.contributors_30d for s in snapshots),
        "commits_30d": sum(s.commits_30d for s in snapshots),
        "commits_365d": sum(s.commits_365d for s in snapshots),
        "open_issues": sum(s.open_issues for s in snapshots),
        "open_prs": sum(s.open_prs for s in snapshots),
        "last_commit_at": max(commit_times) if commit_times else None,
    }


def aggregate_community(snapshots: Sequence[CommunitySnapshot]) -> dict:
    """Sum subreddit metrics and pick the first subreddit name for display.

    Sources that are not subreddits are ignored, and missing optional fields
    count as zero.
    """
    reddit = [s for s in snapshots if is_reddit_source(s)]
    subreddit = None
    for snap in reddit:
        if snap.source.startswith(SUBREDDIT_PREFIX):
            subreddit = snap.source[len(SUBREDDIT_PREFIX):]
            break
    return {
        "reddit_subscribers": sum(s.active_users_30d or 0 for s in reddit),
        "reddit_posts_30d": sum(s.posts_30d or 0 for s in reddit),
        "reddit_sources": len(reddit),
        "subreddit": subreddit,
    }


def aggregate_releases(snapshots: Sequence[ReleaseSnapshot], now: datetime) -> dict:
    """Count releases and find the most recently published stable release."""
    cutoff = now - timedelta(days=RELEASE_WINDOW_DAYS)
    stable = [r for r in snapshots if not r.is_prerelease and r.published_at is not None]

    result = {
        "total_releases": len(snapshots),
        "releases_30d": sum(1 for r in stable if r.published_at > cutoff),
        "latest_release": None,
        "days_since_release": None,
    }

    if stable:
        # Tag name breaks publish-time ties so the pick is order independent
        latest = max(stable, key=lambda r: (r.published_at, r.tag_name))
        result["latest_release"] = latest.tag_name
        result["days_since_release"] = max(0, days_between(latest.published_at, now))

    return result


def aggregate_metrics(
    activity: Sequence[ActivitySnapshot] = (),
    community: Sequence[CommunitySnapshot] = (),
    releases: Sequence[ReleaseSnapshot] = (),
    now: datetime | None = None,
) -> AggregatedMetrics:
    """Flatten one distribution's latest snapshot sets into a metrics summary.

    Inputs may hold older snapshots too; only the latest per key is counted.
    Never fails on empty input: absent data yields zero totals and ``None``
    optional fields.

    Args:
        activity: Activity snapshots, keyed by sub-repository.
        community: Community snapshots, keyed by source.
        releases: Release snapshots, keyed by (sub-repository, tag).
        now: Reference time for release windows. Defaults to current UTC time.

    Returns:
        AggregatedMetrics for the distribution.
    """
    now = now or datetime.now(timezone.utc)
    return AggregatedMetrics(
        **aggregate_activity(select_latest(activity, activity_key)),
        **aggregate_community(select_latest(community, community_key)),
        **aggregate_releases(select_latest(releases, release_key), now),
    )
