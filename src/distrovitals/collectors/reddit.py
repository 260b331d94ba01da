"""Reddit collector for community metrics."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import httpx

from distrovitals.collectors.base import CollectorApiError, CollectorError, RateLimitedError
from distrovitals.models.schemas import CollectorConfig, CommunitySnapshot
from distrovitals.storage.base import SnapshotStore

logger = logging.getLogger(__name__)


class RedditCollector:
    """Collects subscriber and post counts from public subreddit listings."""

    BASE_URL = "https://www.reddit.com"

    POSTS_WINDOW_DAYS = 30
    LISTING_LIMIT = 100

    def __init__(
        self,
        config: CollectorConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or CollectorConfig()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(
            timeout=self.config.request_timeout,
            headers={"User-Agent": self.config.user_agent},
        )

    async def _fetch(self, path: str, params: dict | None = None) -> dict:
        client = await self._get_client()
        url = f"{self.BASE_URL}{path}"

        try:
            response = await client.get(url, params=params)
        finally:
            if self._client is None:
                await client.aclose()

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "60")
            raise RateLimitedError(int(float(retry_after)))
        if response.status_code != 200:
            raise CollectorApiError("Reddit", response.status_code, path)
        return response.json()

    @staticmethod
    def source_name(subreddit: str) -> str:
        """Community source name for a subreddit, e.g. ``reddit:r/archlinux``."""
        return f"reddit:r/{subreddit}"

    async def collect_subreddit(self, store: SnapshotStore, distro_id: int, subreddit: str) -> int:
        """Append a community snapshot for one subreddit.

        The subscriber count is recorded as ``active_users_30d``.

        Returns:
            Id of the appended snapshot.
        """
        logger.info(f"Collecting Reddit metrics for r/{subreddit}")

        about = await self._fetch(f"/r/{subreddit}/about.json")
        subscribers = about.get("data", {}).get("subscribers") or 0
        posts_30d = await self.count_recent_posts(subreddit)

        logger.debug(f"r/{subreddit}: {subscribers} subscribers, {posts_30d} posts in 30d")

        snapshot = CommunitySnapshot(
            distro_id=distro_id,
            source=self.source_name(subreddit),
            active_users_30d=subscribers,
            posts_30d=posts_30d,
        )
        return store.append_community_snapshot(snapshot)

    async def count_recent_posts(self, subreddit: str, now: datetime | None = None) -> int:
        """Posts among the newest listing entries created within the window."""
        now = now or datetime.now(timezone.utc)
        cutoff = (now - timedelta(days=self.POSTS_WINDOW_DAYS)).timestamp()

        listing = await self._fetch(f"/r/{subreddit}/new.json", params={"limit": self.LISTING_LIMIT})
        children = listing.get("data", {}).get("children", [])

        return sum(1 for post in children if post.get("data", {}).get("created_utc", 0) >= cutoff)

    async def collect_all(self, store: SnapshotStore) -> list[int]:
        """Collect every distribution that has a subreddit configured.

        Failures are logged and skipped. Requests are spaced by
        ``reddit_delay_seconds`` to stay under Reddit's anonymous rate limit.
        """
        snapshot_ids = []

        for distro in store.get_distributions():
            if not distro.subreddit:
                continue
            try:
                snapshot_ids.append(await self.collect_subreddit(store, distro.id, distro.subreddit))
            except (CollectorError, httpx.HTTPError) as e:
                logger.warning(f"Failed to collect Reddit metrics for {distro.slug} (r/{distro.subreddit}): {e}")
            await asyncio.sleep(self.config.reddit_delay_seconds)

        logger.info(f"Collected {len(snapshot_ids)} Reddit snapshots")
        return snapshot_ids
