"""Scoring pipeline: from stored snapshots to persisted health scores."""

import logging
from datetime import datetime, timezone

from distrovitals.analyzers.aggregator import aggregate_metrics
from distrovitals.analyzers.ranking import build_rankings
from distrovitals.analyzers.scorer import Scorer
from distrovitals.models.schemas import (
    ActivitySnapshot,
    AggregatedMetrics,
    Distribution,
    DistroHealthSummary,
    HealthScore,
)
from distrovitals.storage.base import SnapshotStore

logger = logging.getLogger(__name__)


class HealthPipeline:
    """Orchestrates scoring for tracked distributions.

    Pipeline stages for one distribution:
    1. Read the latest activity, community and release snapshot sets
    2. Read the previous health score (the latest one calculated at or before ``now``)
    3. Aggregate snapshots into metrics
    4. Calculate scores and trend
    5. Append the new score

    Store errors propagate. A distribution whose snapshots cannot be read is
    not scored, so a failed read is never mistaken for "no data".
    """

    def __init__(self, store: SnapshotStore, scorer: Scorer | None = None) -> None:
        self.store = store
        self.scorer = scorer or Scorer()

    def metrics_for(self, distro_id: int, now: datetime | None = None) -> AggregatedMetrics:
        """Aggregate the latest snapshot sets of a distribution."""
        return aggregate_metrics(
            activity=self.store.latest_activity_snapshots(distro_id),
            community=self.store.latest_community_snapshots(distro_id),
            releases=self.store.latest_release_snapshots(distro_id),
            now=now,
        )

    def calculate_health_score(self, distro_id: int, now: datetime | None = None) -> HealthScore:
        """Compute and persist a new health score for a distribution.

        Args:
            distro_id: Distribution to score.
            now: Calculation time. Defaults to current UTC time.

        Returns:
            The appended HealthScore, including its id.
        """
        now = now or datetime.now(timezone.utc)

        metrics = self.metrics_for(distro_id, now)
        # Backfilled runs compare against the score just before ``now``
        previous = self.store.latest_score(distro_id, as_of=now)

        score = self.scorer.calculate_scores(distro_id, metrics, previous, now)
        score_id = self.store.append_score(score)

        logger.info(
            f"Calculated health score for distro {distro_id}: "
            f"{score.overall_score:.1f} ({score.trend.value})"
        )
        return score.model_copy(update={"id": score_id})

    def rankings(self, now: datetime | None = None) -> list[DistroHealthSummary]:
        """All distributions ranked by latest overall score."""
        return build_rankings(
            self.store.get_distributions(),
            self.store.latest_scores(),
            metrics_for=lambda distro: self.metrics_for(distro.id, now),
        )

    def history(self, slug: str, days: int = 30, now: datetime | None = None) -> list[HealthScore]:
        """Scores for a distribution within the trailing ``days``, oldest first."""
        distro = self.store.get_distribution_by_slug(slug)
        return self.store.score_history(distro.id, days, now)

    def status(self, slug: str) -> tuple[Distribution, HealthScore | None, list[ActivitySnapshot]]:
        """Distribution, its latest score and its latest activity snapshots."""
        distro = self.store.get_distribution_by_slug(slug)
        return (
            distro,
            self.store.latest_score(distro.id),
            self.store.latest_activity_snapshots(distro.id),
        )
