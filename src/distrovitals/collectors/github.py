"""GitHub collector for repository activity and releases."""

import logging
from datetime import datetime, timedelta, timezone

import httpx

from distrovitals.collectors.base import (
    CollectorApiError,
    CollectorError,
    RateLimitedError,
    parse_timestamp,
)
from distrovitals.models.schemas import ActivitySnapshot, CollectorConfig, ReleaseSnapshot
from distrovitals.storage.base import SnapshotStore

logger = logging.getLogger(__name__)


class GitHubCollector:
    """Collects activity and release snapshots for a GitHub organization.

    A token raises the API rate limit from 60 to 5000 requests per hour.
    Set GITHUB_TOKEN or pass a CollectorConfig with ``github_token``.

    Usage:
        collector = GitHubCollector(CollectorConfig.from_env())
        ids = await collector.collect_org_repos(store, distro.id, "archlinux")
    """

    BASE_URL = "https://api.github.com"

    # Commit listings are paginated at 100 per page
    MAX_COMMIT_PAGES_30D = 5
    MAX_COMMIT_PAGES_365D = 10

    RELEASES_PER_REPO = 30

    def __init__(
        self,
        config: CollectorConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the collector.

        Args:
            config: Collector settings. Defaults to CollectorConfig.from_env().
            client: Optional httpx client. If not provided, one is created per request.
        """
        self.config = config or CollectorConfig.from_env()
        self._client = client

        # Rate limit tracking
        self.rate_limit_remaining: int | None = None
        self.rate_limit_reset: datetime | None = None

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self.config.user_agent,
        }
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self.config.request_timeout, headers=self._headers())

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Track rate limit headers and raise once the limit is exhausted."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if reset is not None:
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

        if response.status_code in (403, 429) and remaining == "0":
            wait = 60
            if self.rate_limit_reset is not None:
                wait = max(0, int((self.rate_limit_reset - datetime.now(timezone.utc)).total_seconds()))
            raise RateLimitedError(wait)

    async def _request(self, path: str, params: dict | None = None) -> httpx.Response:
        """GET a GitHub API path, raising on rate limiting."""
        client = await self._get_client()
        url = f"{self.BASE_URL}{path}"

        try:
            logger.debug(f"GET {url} {params or ''}")
            response = await client.get(url, params=params, headers=self._headers())
            self._update_rate_limits(response)
            return response
        finally:
            if self._client is None:
                await client.aclose()

    async def _fetch(self, path: str, params: dict | None = None) -> dict | list | None:
        """Fetch JSON from the GitHub API.

        Returns None if 404 (or 409, which GitHub uses for empty repositories),
        raises on other errors.
        """
        response = await self._request(path, params)
        if response.status_code in (404, 409):
            return None
        response.raise_for_status()
        return response.json()

    async def _fetch_all_pages(
        self,
        path: str,
        params: dict | None = None,
        max_pages: int = 10,
    ) -> list:
        """Fetch all pages from a paginated endpoint."""
        params = dict(params or {})
        params.setdefault("per_page", 100)

        results = []
        page = 1

        while page <= max_pages:
            params["page"] = page
            data = await self._fetch(path, params)
            if not data:
                break

            results.extend(data)

            if len(data) < params["per_page"]:
                break
            page += 1

        return results

    # --- Activity ---

    async def list_org_repos(self, org: str) -> list[dict]:
        """Source repositories of an organization, most recently pushed first."""
        data = await self._fetch(
            f"/orgs/{org}/repos",
            params={"type": "sources", "sort": "pushed", "per_page": self.config.max_repos},
        )
        if data is None:
            raise CollectorApiError("GitHub", 404, f"org {org}")
        return data

    async def collect_org_repos(self, store: SnapshotStore, distro_id: int, org: str) -> list[int]:
        """Append one activity snapshot per repository of an organization.

        Repositories that fail to collect are logged and skipped; rate
        limiting aborts the whole organization.

        Returns:
            Ids of the appended snapshots.
        """
        logger.info(f"Collecting GitHub metrics for {org}")

        repos = await self.list_org_repos(org)
        snapshot_ids = []

        for repo_data in repos:
            name = repo_data.get("name", "")
            try:
                snapshot = await self._build_activity_snapshot(distro_id, org, name, repo_data)
            except RateLimitedError:
                raise
            except (CollectorError, httpx.HTTPError) as e:
                logger.warning(f"Failed to collect {org}/{name}: {e}")
                continue
            snapshot_ids.append(store.append_activity_snapshot(snapshot))

        logger.info(f"Collected {len(snapshot_ids)} GitHub snapshots for {org}")
        return snapshot_ids

    async def collect_repo(self, store: SnapshotStore, distro_id: int, owner: str, repo: str) -> int:
        """Append an activity snapshot for a single repository."""
        repo_data = await self._fetch(f"/repos/{owner}/{repo}")
        if repo_data is None:
            raise CollectorApiError("GitHub", 404, f"{owner}/{repo}")
        snapshot = await self._build_activity_snapshot(distro_id, owner, repo, repo_data)
        return store.append_activity_snapshot(snapshot)

    async def _build_activity_snapshot(
        self,
        distro_id: int,
        owner: str,
        repo: str,
        repo_data: dict,
    ) -> ActivitySnapshot:
        now = datetime.now(timezone.utc)

        open_prs = await self._count_open_prs(owner, repo)
        listed_30d, contributors_30d = await self._fetch_recent_commits(owner, repo, now)

        totals = await self._fetch_commit_activity_totals(owner, repo)
        if totals is not None:
            commits_30d, commits_365d = totals
        else:
            commits_30d = listed_30d
            commits_365d = await self._count_commits_since(
                owner, repo, now - timedelta(days=365), self.MAX_COMMIT_PAGES_365D
            )

        return ActivitySnapshot(
            distro_id=distro_id,
            repo_name=f"{owner}/{repo}",
            stars=repo_data.get("stargazers_count", 0),
            forks=repo_data.get("forks_count", 0),
            open_issues=repo_data.get("open_issues_count", 0),
            open_prs=open_prs,
            commits_30d=commits_30d,
            commits_365d=commits_365d,
            contributors_30d=contributors_30d,
            last_commit_at=parse_timestamp(repo_data.get("pushed_at")),
            collected_at=now,
        )

    async def _count_open_prs(self, owner: str, repo: str) -> int:
        """Open pull requests, via the search API's total count."""
        data = await self._fetch(
            "/search/issues",
            params={"q": f"repo:{owner}/{repo} type:pr state:open", "per_page": 1},
        )
        if not data:
            return 0
        return int(data.get("total_count", 0))

    async def _fetch_recent_commits(self, owner: str, repo: str, now: datetime) -> tuple[int, int]:
        """Listed commits and distinct authors in the last 30 days.

        The listing stops after MAX_COMMIT_PAGES_30D pages, so the count is a
        lower bound for busy repositories.
        """
        since = (now - timedelta(days=30)).isoformat()
        commits = await self._fetch_all_pages(
            f"/repos/{owner}/{repo}/commits",
            params={"since": since},
            max_pages=self.MAX_COMMIT_PAGES_30D,
        )
        if len(commits) >= self.MAX_COMMIT_PAGES_30D * 100:
            logger.debug(f"{owner}/{repo}: commit listing truncated at {len(commits)} commits")

        authors = set()
        for commit in commits:
            author = commit.get("author") or {}
            login = author.get("login")
            if login:
                authors.add(login)
                continue
            # Commits by unlinked accounts only carry the git author
            email = commit.get("commit", {}).get("author", {}).get("email")
            if email:
                authors.add(email)

        return len(commits), len(authors)

    async def _fetch_commit_activity_totals(self, owner: str, repo: str) -> tuple[int, int] | None:
        """Commits in the last 4 weeks and the last year, from weekly statistics.

        Returns None when GitHub answers 202 (still computing) or 204, or the
        statistics are empty, so the caller can count the commit listing.
        """
        response = await self._request(f"/repos/{owner}/{repo}/stats/commit_activity")
        if response.status_code in (202, 204):
            return None
        response.raise_for_status()

        weeks = response.json() or []
        total = sum(week.get("total", 0) for week in weeks)
        if total == 0:
            return None
        return sum(week.get("total", 0) for week in weeks[-4:]), total

    async def _count_commits_since(self, owner: str, repo: str, since: datetime, max_pages: int) -> int:
        commits = await self._fetch_all_pages(
            f"/repos/{owner}/{repo}/commits",
            params={"since": since.isoformat()},
            max_pages=max_pages,
        )
        return len(commits)

    # --- Releases ---

    async def collect_org_releases(self, store: SnapshotStore, distro_id: int, org: str) -> list[int]:
        """Append release snapshots for every repository of an organization.

        Returns:
            Ids of the appended snapshots.
        """
        logger.info(f"Collecting GitHub releases for {org}")

        repos = await self.list_org_repos(org)
        release_ids = []

        for repo_data in repos:
            name = repo_data.get("name", "")
            try:
                release_ids.extend(await self.collect_repo_releases(store, distro_id, org, name))
            except RateLimitedError:
                raise
            except (CollectorError, httpx.HTTPError) as e:
                logger.warning(f"Failed to collect releases for {org}/{name}: {e}")

        logger.info(f"Collected {len(release_ids)} releases for {org}")
        return release_ids

    async def collect_repo_releases(
        self,
        store: SnapshotStore,
        distro_id: int,
        owner: str,
        repo: str,
    ) -> list[int]:
        """Append the most recent releases of one repository."""
        releases = await self._fetch(
            f"/repos/{owner}/{repo}/releases",
            params={"per_page": self.RELEASES_PER_REPO},
        )
        now = datetime.now(timezone.utc)
        ids = []

        for release in releases or []:
            snapshot = ReleaseSnapshot(
                distro_id=distro_id,
                repo_name=f"{owner}/{repo}",
                tag_name=release["tag_name"],
                release_name=release.get("name"),
                published_at=parse_timestamp(release.get("published_at")),
                is_prerelease=release.get("prerelease", False),
                collected_at=now,
            )
            ids.append(store.append_release_snapshot(snapshot))

        logger.debug(f"Collected {len(ids)} releases for {owner}/{repo}")
        return ids
