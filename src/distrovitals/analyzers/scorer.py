"""Health score calculator for distribution metrics."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from distrovitals.analyzers.aggregator import days_between
from distrovitals.models.schemas import AggregatedMetrics, HealthScore, Trend

# Score used when a sub-score has no data to work with. No data is not bad data.
NEUTRAL_SCORE = 50.0

# Overall score change needed before the trend leaves "stable"
TREND_THRESHOLD = 2.0


class InsufficientDataError(Exception):
    """Reserved for a stricter scoring mode.

    The default engine never raises this: every sub-score falls back to
    NEUTRAL_SCORE when its snapshot set is empty.
    """

    def __init__(self, distro_id: int, reason: str) -> None:
        self.distro_id = distro_id
        self.reason = reason
        super().__init__(f"Insufficient data for distribution {distro_id}: {reason}")


@dataclass(frozen=True)
class BucketTable:
    """Monotonic step function mapping a raw count to a score.

    ``breakpoints`` holds (inclusive upper bound, score) pairs in ascending
    bound order; values above the last bound get ``ceiling``. Negative values
    land in the first bucket.
    """

    breakpoints: tuple[tuple[int, float], ...]
    ceiling: float

    def score(self, value: int) -> float:
        for upper, score in self.breakpoints:
            if value <= upper:
                return score
        return self.ceiling


@dataclass(frozen=True)
class SubScore:
    """A score that was either computed from data or defaulted to neutral."""

    value: float
    neutral: bool = False

    @classmethod
    def computed(cls, value: float) -> "SubScore":
        return cls(value=clamp(value))

    @classmethod
    def neutral_default(cls) -> "SubScore":
        return cls(value=NEUTRAL_SCORE, neutral=True)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score into [low, high]."""
    return max(low, min(high, value))


def neutral_unless(has_data: bool, compute: Callable[[], float]) -> SubScore:
    """Run ``compute`` only when there is data, otherwise return the neutral score."""
    if not has_data:
        return SubScore.neutral_default()
    return SubScore.computed(compute())


# --- Bucket tables ---

COMMIT_BUCKETS = BucketTable(((10, 20.0), (50, 40.0), (200, 60.0), (500, 80.0)), 95.0)
CONTRIBUTOR_BUCKETS = BucketTable(((2, 20.0), (10, 40.0), (30, 60.0), (100, 80.0)), 95.0)

STAR_BUCKETS = BucketTable(((100, 20.0), (1000, 40.0), (5000, 60.0), (20000, 80.0)), 95.0)
FORK_BUCKETS = BucketTable(((10, 20.0), (100, 40.0), (500, 60.0), (2000, 80.0)), 95.0)

# Distro subreddits range from ~1k to ~350k subscribers
SUBSCRIBER_BUCKETS = BucketTable(
    (
        (1000, 20.0),
        (5000, 30.0),
        (15000, 45.0),
        (50000, 60.0),
        (100000, 75.0),
        (200000, 85.0),
    ),
    95.0,
)
POST_BUCKETS = BucketTable(((10, 20.0), (30, 40.0), (60, 60.0), (100, 80.0)), 95.0)

# Inverted: fewer open items is better
ISSUE_BUCKETS = BucketTable(
    ((10, 90.0), (50, 80.0), (200, 70.0), (500, 50.0), (1000, 30.0)), 20.0
)
PR_BUCKETS = BucketTable(((5, 90.0), (20, 80.0), (50, 70.0), (100, 50.0)), 30.0)

# Days since the last commit, inverted
RECENCY_BUCKETS = BucketTable(((7, 100.0), (30, 80.0), (90, 60.0), (180, 40.0)), 20.0)


def determine_trend(current: float, previous: HealthScore | None) -> Trend:
    """Classify the change in overall score since the previous record.

    The first score for a distribution is always stable. Changes of exactly
    TREND_THRESHOLD stay stable.
    """
    if previous is None:
        return Trend.STABLE

    # Weighted sums carry float noise, e.g. 56.6 - 54.6 > 2.0
    diff = round(current - previous.overall_score, 6)
    if diff > TREND_THRESHOLD:
        return Trend.UP
    if diff < -TREND_THRESHOLD:
        return Trend.DOWN
    return Trend.STABLE


class Scorer:
    """Calculates health scores from aggregated distribution metrics.

    Scoring weights (total 100%):
    - Development: 40%
    - Community: 30%
    - Maintenance: 30%

    The scorer is a pure function of its inputs: it reads no configuration
    and no stored state, and the caller supplies ``now``.
    """

    WEIGHTS = {
        "development": 0.4,
        "community": 0.3,
        "maintenance": 0.3,
    }

    # Weights inside the community score when a subreddit signal exists
    COMMUNITY_BLEND = {
        "github": 0.4,
        "reddit": 0.6,
    }

    def calculate_scores(
        self,
        distro_id: int,
        metrics: AggregatedMetrics,
        previous: HealthScore | None = None,
        now: datetime | None = None,
    ) -> HealthScore:
        """Calculate a new health score record.

        Args:
            distro_id: Distribution the score belongs to.
            metrics: Aggregated latest snapshot metrics.
            previous: Most recent prior score for the distribution, if any.
            now: Calculation time. Defaults to current UTC time.

        Returns:
            Unsaved HealthScore with sub-scores, overall score and trend.
        """
        now = now or datetime.now(timezone.utc)

        development = self.development_score(metrics)
        community = self.community_score(metrics)
        maintenance = self.maintenance_score(metrics, now)

        overall = self.overall_score(development.value, community.value, maintenance.value)

        return HealthScore(
            distro_id=distro_id,
            overall_score=overall,
            development_score=development.value,
            community_score=community.value,
            maintenance_score=maintenance.value,
            trend=determine_trend(overall, previous),
            calculated_at=now,
        )

    def overall_score(self, development: float, community: float, maintenance: float) -> float:
        """Weighted blend of the three sub-scores, clamped to [0, 100]."""
        return clamp(
            development * self.WEIGHTS["development"]
            + community * self.WEIGHTS["community"]
            + maintenance * self.WEIGHTS["maintenance"]
        )

    def development_score(self, metrics: AggregatedMetrics) -> SubScore:
        """Calculate development activity score.

        Factors:
        - Commits in the last 30 days across all repos (60%)
        - Distinct contributors in the last 30 days across all repos (40%)
        """
        return neutral_unless(
            metrics.repos_tracked > 0,
            lambda: COMMIT_BUCKETS.score(metrics.commits_30d) * 0.6
            + CONTRIBUTOR_BUCKETS.score(metrics.total_contributors) * 0.4,
        )

    def github_community_score(self, metrics: AggregatedMetrics) -> SubScore:
        """Stars and forks, equally weighted."""
        return neutral_unless(
            metrics.repos_tracked > 0,
            lambda: STAR_BUCKETS.score(metrics.total_stars) * 0.5
            + FORK_BUCKETS.score(metrics.total_forks) * 0.5,
        )

    def reddit_score(self, metrics: AggregatedMetrics) -> SubScore | None:
        """Subscribers (70%) and posts in the last 30 days (30%).

        Returns None when no subreddit snapshot exists.
        """
        if metrics.reddit_sources == 0:
            return None
        return SubScore.computed(
            SUBSCRIBER_BUCKETS.score(metrics.reddit_subscribers) * 0.7
            + POST_BUCKETS.score(metrics.reddit_posts_30d) * 0.3
        )

    def community_score(self, metrics: AggregatedMetrics) -> SubScore:
        """Calculate community engagement score.

        Reddit is the stronger signal of a user community, so when a subreddit
        is tracked the score is 40% GitHub and 60% Reddit. Without one the
        GitHub component stands alone; a missing subreddit is not scored as 0.
        """
        github = self.github_community_score(metrics)
        reddit = self.reddit_score(metrics)

        if reddit is None:
            return github

        return SubScore.computed(
            github.value * self.COMMUNITY_BLEND["github"]
            + reddit.value * self.COMMUNITY_BLEND["reddit"]
        )

    def recency_score(self, metrics: AggregatedMetrics, now: datetime) -> SubScore:
        """Score days since the most recent commit in any repo."""
        if metrics.last_commit_at is None:
            return SubScore.neutral_default()
        days_ago = max(0, days_between(metrics.last_commit_at, now))
        return SubScore.computed(RECENCY_BUCKETS.score(days_ago))

    def maintenance_score(self, metrics: AggregatedMetrics, now: datetime) -> SubScore:
        """Calculate maintenance health score.

        Factors:
        - Open issues across all repos (30%, fewer is better)
        - Open pull requests across all repos (30%, fewer is better)
        - Recency of the last commit (40%)
        """
        return neutral_unless(
            metrics.repos_tracked > 0,
            lambda: ISSUE_BUCKETS.score(metrics.open_issues) * 0.3
            + PR_BUCKETS.score(metrics.open_prs) * 0.3
            + self.recency_score(metrics, now).value * 0.4,
        )
