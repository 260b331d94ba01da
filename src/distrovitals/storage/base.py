"""Abstract base class for snapshot stores."""

from abc import ABC, abstractmethod
from datetime import datetime

from distrovitals.models.schemas import (
    ActivitySnapshot,
    CommunitySnapshot,
    Distribution,
    HealthScore,
    ReleaseSnapshot,
)


class SnapshotStore(ABC):
    """Append-only storage for distributions, snapshots and health scores.

    Snapshots and scores are only ever appended. "Latest" queries return the
    most recent record per distinguishing key: sub-repository for activity,
    source name for community, (sub-repository, tag) for releases.
    """

    # --- Distributions ---

    @abstractmethod
    def get_distributions(self) -> list[Distribution]:
        """Return all tracked distributions ordered by name."""
        ...

    @abstractmethod
    def get_distribution_by_slug(self, slug: str) -> Distribution:
        """Fetch a distribution by slug.

        Raises:
            DistributionNotFoundError: If no distribution has this slug.
        """
        ...

    @abstractmethod
    def get_distribution_by_id(self, distro_id: int) -> Distribution:
        """Fetch a distribution by id.

        Raises:
            DistributionNotFoundError: If no distribution has this id.
        """
        ...

    # --- Appends ---

    @abstractmethod
    def append_activity_snapshot(self, snapshot: ActivitySnapshot) -> int:
        """Append an activity snapshot and return its id."""
        ...

    @abstractmethod
    def append_community_snapshot(self, snapshot: CommunitySnapshot) -> int:
        """Append a community snapshot and return its id."""
        ...

    @abstractmethod
    def append_release_snapshot(self, snapshot: ReleaseSnapshot) -> int:
        """Append a release snapshot and return its id."""
        ...

    @abstractmethod
    def append_score(self, score: HealthScore) -> int:
        """Append a health score and return its id."""
        ...

    # --- Latest views ---

    @abstractmethod
    def latest_activity_snapshots(self, distro_id: int) -> list[ActivitySnapshot]:
        """Most recent activity snapshot per sub-repository."""
        ...

    @abstractmethod
    def latest_community_snapshots(self, distro_id: int) -> list[CommunitySnapshot]:
        """Most recent community snapshot per source."""
        ...

    @abstractmethod
    def latest_release_snapshots(self, distro_id: int) -> list[ReleaseSnapshot]:
        """Most recent release snapshot per (sub-repository, tag)."""
        ...

    @abstractmethod
    def latest_score(self, distro_id: int, as_of: datetime | None = None) -> HealthScore | None:
        """Most recently calculated score, or None if never scored.

        With ``as_of``, only scores calculated at or before that time count.
        """
        ...

    @abstractmethod
    def latest_scores(self) -> list[HealthScore]:
        """Most recently calculated score of every scored distribution."""
        ...

    @abstractmethod
    def score_history(self, distro_id: int, days: int, now: datetime | None = None) -> list[HealthScore]:
        """Scores calculated within the trailing ``days``, oldest first."""
        ...


class StoreError(Exception):
    """Raised when the snapshot store cannot be read or written."""


class DistributionNotFoundError(StoreError):
    """Raised when a distribution cannot be found."""

    def __init__(self, key: str | int) -> None:
        self.key = key
        super().__init__(f"Distribution not found: {key}")
