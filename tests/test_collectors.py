"""
Tests for the GitHub and Reddit collectors.

HTTP traffic is served by httpx.MockTransport; snapshots are written to an
in-memory store.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from distrovitals.collectors import (
    CollectorApiError,
    GitHubCollector,
    RateLimitedError,
    RedditCollector,
)
from distrovitals.collectors.base import parse_timestamp
from distrovitals.models.schemas import CollectorConfig


# =============================================================================
# Helpers
# =============================================================================

def mock_client(routes: dict) -> httpx.AsyncClient:
    """Client answering from a path -> JSON body (or handler) mapping; 404 otherwise."""
    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def commit(login=None, email=None) -> dict:
    return {
        "author": {"login": login} if login else None,
        "commit": {"author": {"email": email}},
    }


def weekly_totals(totals: list[int]) -> list[dict]:
    """stats/commit_activity body, oldest week first."""
    return [{"week": i, "total": total, "days": [0] * 7} for i, total in enumerate(totals)]


REPO_PACMAN = {
    "name": "pacman",
    "stargazers_count": 120,
    "forks_count": 30,
    "open_issues_count": 12,
    "pushed_at": "2025-05-30T08:00:00Z",
}

REPO_ARCHWIKI = {
    "name": "archwiki",
    "stargazers_count": 5,
    "forks_count": 1,
    "open_issues_count": 0,
    "pushed_at": None,
}


@pytest.fixture
def config():
    return CollectorConfig(github_token="test-token", reddit_delay_seconds=0)


# =============================================================================
# GitHub
# =============================================================================

class TestGitHubActivity:

    def test_collects_snapshot_per_repository(self, store, arch, config):
        seen_auth = []

        def repos(request):
            seen_auth.append(request.headers.get("Authorization"))
            assert request.url.params["type"] == "sources"
            return httpx.Response(200, json=[REPO_PACMAN])

        client = mock_client({
            "/orgs/archlinux/repos": repos,
            "/search/issues": {"total_count": 4},
            "/repos/archlinux/pacman/commits": [
                commit(login="alice"),
                commit(login="alice"),
                commit(email="bob@example.com"),
                commit(),
            ],
            "/repos/archlinux/pacman/stats/commit_activity": weekly_totals([10] * 48 + [1, 0, 2, 1]),
        })
        collector = GitHubCollector(config, client=client)

        ids = asyncio.run(collector.collect_org_repos(store, arch.id, "archlinux"))

        assert len(ids) == 1
        assert seen_auth == ["Bearer test-token"]

        snap = store.latest_activity_snapshots(arch.id)[0]
        assert snap.repo_name == "archlinux/pacman"
        assert snap.stars == 120
        assert snap.forks == 30
        assert snap.open_issues == 12
        assert snap.open_prs == 4
        assert snap.commits_30d == 4
        assert snap.contributors_30d == 2
        assert snap.commits_365d == 484
        assert snap.last_commit_at == datetime(2025, 5, 30, 8, 0, tzinfo=timezone.utc)

    def test_recent_commits_paginate(self, config):
        pages = {1: [commit(login=f"dev{i}") for i in range(100)], 2: [commit(login="dev0")] * 20}

        def commits(request):
            return httpx.Response(200, json=pages.get(int(request.url.params["page"]), []))

        client = mock_client({"/repos/o/r/commits": commits})
        collector = GitHubCollector(config, client=client)

        count, authors = asyncio.run(
            collector._fetch_recent_commits("o", "r", datetime.now(timezone.utc))
        )

        assert count == 120
        assert authors == 100

    def test_busy_repository_uses_weekly_stats(self, store, arch, config):
        """Recent commits beyond the listing page cap still reach the top bucket."""
        def commits(request):
            return httpx.Response(200, json=[commit(login=f"dev{i % 40}") for i in range(100)])

        client = mock_client({
            "/repos/archlinux/pacman": REPO_PACMAN,
            "/search/issues": {"total_count": 0},
            "/repos/archlinux/pacman/commits": commits,
            "/repos/archlinux/pacman/stats/commit_activity": weekly_totals([50] * 48 + [300] * 4),
        })
        collector = GitHubCollector(config, client=client)

        asyncio.run(collector.collect_repo(store, arch.id, "archlinux", "pacman"))

        snap = store.latest_activity_snapshots(arch.id)[0]
        assert snap.commits_30d == 1200
        assert snap.commits_365d == 3600
        assert snap.contributors_30d == 40

    def test_stats_pending_falls_back_to_commit_listing(self, store, arch, config):
        now = datetime.now(timezone.utc)

        def commits(request):
            since = parse_timestamp(request.url.params["since"])
            if since < now - timedelta(days=300):
                return httpx.Response(200, json=[commit(login="a")] * 7)
            return httpx.Response(200, json=[commit(login="a"), commit(login="b"), commit(login="a")])

        client = mock_client({
            "/repos/archlinux/pacman": REPO_PACMAN,
            "/search/issues": {"total_count": 0},
            "/repos/archlinux/pacman/stats/commit_activity": lambda request: httpx.Response(202, json={}),
            "/repos/archlinux/pacman/commits": commits,
        })
        collector = GitHubCollector(config, client=client)

        asyncio.run(collector.collect_repo(store, arch.id, "archlinux", "pacman"))

        snap = store.latest_activity_snapshots(arch.id)[0]
        assert snap.commits_30d == 3
        assert snap.commits_365d == 7
        assert snap.contributors_30d == 2

    def test_empty_stats_fall_back_to_commit_listing(self, config):
        client = mock_client({"/repos/o/r/stats/commit_activity": weekly_totals([0] * 52)})
        collector = GitHubCollector(config, client=client)

        assert asyncio.run(collector._fetch_commit_activity_totals("o", "r")) is None

    def test_failed_repository_is_skipped(self, store, arch, config):
        def search(request):
            if "archwiki" in request.url.params["q"]:
                return httpx.Response(500, json={"message": "boom"})
            return httpx.Response(200, json={"total_count": 0})

        client = mock_client({
            "/orgs/archlinux/repos": [REPO_ARCHWIKI, REPO_PACMAN],
            "/search/issues": search,
            "/repos/archlinux/pacman/commits": [],
            "/repos/archlinux/pacman/stats/commit_activity": [{"total": 1}],
        })
        collector = GitHubCollector(config, client=client)

        ids = asyncio.run(collector.collect_org_repos(store, arch.id, "archlinux"))

        assert len(ids) == 1
        assert [s.repo_name for s in store.latest_activity_snapshots(arch.id)] == ["archlinux/pacman"]

    def test_rate_limit_aborts(self, store, arch, config):
        reset = int((datetime.now(timezone.utc) + timedelta(minutes=5)).timestamp())

        def limited(request):
            return httpx.Response(
                403,
                json={"message": "API rate limit exceeded"},
                headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset)},
            )

        client = mock_client({"/orgs/archlinux/repos": limited})
        collector = GitHubCollector(config, client=client)

        with pytest.raises(RateLimitedError) as exc_info:
            asyncio.run(collector.collect_org_repos(store, arch.id, "archlinux"))

        assert 0 < exc_info.value.retry_after <= 300
        assert collector.rate_limit_remaining == 0
        assert store.latest_activity_snapshots(arch.id) == []

    def test_unknown_org(self, store, arch, config):
        collector = GitHubCollector(config, client=mock_client({}))

        with pytest.raises(CollectorApiError) as exc_info:
            asyncio.run(collector.collect_org_repos(store, arch.id, "nope"))

        assert exc_info.value.status_code == 404

    def test_collect_single_repo(self, store, arch, config):
        client = mock_client({
            "/repos/archlinux/archwiki": REPO_ARCHWIKI,
            "/search/issues": {"total_count": 0},
            "/repos/archlinux/archwiki/commits": [],
            "/repos/archlinux/archwiki/stats/commit_activity": lambda request: httpx.Response(204),
        })
        collector = GitHubCollector(config, client=client)

        snapshot_id = asyncio.run(collector.collect_repo(store, arch.id, "archlinux", "archwiki"))

        snap = store.latest_activity_snapshots(arch.id)[0]
        assert snap.id == snapshot_id
        assert snap.last_commit_at is None
        assert snap.commits_365d == 0


class TestGitHubReleases:

    def test_collects_releases(self, store, arch, config):
        client = mock_client({
            "/orgs/archlinux/repos": [REPO_PACMAN, REPO_ARCHWIKI],
            "/repos/archlinux/pacman/releases": [
                {"tag_name": "v7.0.0", "name": "Pacman 7", "published_at": "2025-05-20T00:00:00Z",
                 "prerelease": False},
                {"tag_name": "v7.1.0rc1", "name": None, "published_at": "2025-05-28T00:00:00Z",
                 "prerelease": True},
            ],
        })
        collector = GitHubCollector(config, client=client)

        ids = asyncio.run(collector.collect_org_releases(store, arch.id, "archlinux"))

        # archwiki has no releases endpoint (404) and contributes nothing
        assert len(ids) == 2
        releases = store.latest_release_snapshots(arch.id)
        assert [(r.tag_name, r.is_prerelease) for r in releases] == [("v7.0.0", False), ("v7.1.0rc1", True)]
        assert releases[0].release_name == "Pacman 7"


# =============================================================================
# Reddit
# =============================================================================

def reddit_routes(subreddit: str, subscribers: int, post_ages_days: list[float]) -> dict:
    now = datetime.now(timezone.utc)
    children = [
        {"data": {"created_utc": (now - timedelta(days=age)).timestamp()}}
        for age in post_ages_days
    ]
    return {
        f"/r/{subreddit}/about.json": {"data": {"subscribers": subscribers}},
        f"/r/{subreddit}/new.json": {"data": {"children": children}},
    }


class TestRedditCollector:

    def test_source_name(self):
        assert RedditCollector.source_name("archlinux") == "reddit:r/archlinux"

    def test_collect_subreddit(self, store, arch, config):
        client = mock_client(reddit_routes("archlinux", 310000, [0.5, 3, 29, 45, 90]))
        collector = RedditCollector(config, client=client)

        asyncio.run(collector.collect_subreddit(store, arch.id, "archlinux"))

        snap = store.latest_community_snapshots(arch.id)[0]
        assert snap.source == "reddit:r/archlinux"
        assert snap.active_users_30d == 310000
        assert snap.posts_30d == 3

    def test_rate_limited(self, store, arch, config):
        client = mock_client({
            "/r/archlinux/about.json": lambda request: httpx.Response(429, headers={"Retry-After": "12"}),
        })
        collector = RedditCollector(config, client=client)

        with pytest.raises(RateLimitedError) as exc_info:
            asyncio.run(collector.collect_subreddit(store, arch.id, "archlinux"))

        assert exc_info.value.retry_after == 12

    def test_post_count_failure_propagates(self, store, arch, config):
        routes = reddit_routes("archlinux", 100, [])
        routes["/r/archlinux/new.json"] = lambda request: httpx.Response(503)
        collector = RedditCollector(config, client=mock_client(routes))

        with pytest.raises(CollectorApiError):
            asyncio.run(collector.collect_subreddit(store, arch.id, "archlinux"))

        assert store.latest_community_snapshots(arch.id) == []

    def test_collect_all_skips_failures(self, empty_store, config):
        ok = empty_store.create_distribution("Void Linux", "void", subreddit="voidlinux")
        broken = empty_store.create_distribution("Gone", "gone", subreddit="gone")
        silent = empty_store.create_distribution("No Reddit", "noreddit")

        requested = []
        routes = reddit_routes("voidlinux", 20000, [1, 2])

        def record(request):
            requested.append(request.url.path)
            return httpx.Response(403)

        routes["/r/gone/about.json"] = record
        collector = RedditCollector(config, client=mock_client(routes))

        ids = asyncio.run(collector.collect_all(empty_store))

        assert len(ids) == 1
        assert requested == ["/r/gone/about.json"]
        assert empty_store.latest_community_snapshots(ok.id)[0].posts_30d == 2
        assert empty_store.latest_community_snapshots(broken.id) == []
        assert empty_store.latest_community_snapshots(silent.id) == []


class TestParseTimestamp:

    def test_zulu_suffix(self):
        assert parse_timestamp("2025-01-02T03:04:05Z") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
