"""
Tests for the SQLite snapshot store.

Tests seeding, append-only behaviour, latest-per-key views, score history
windows and error translation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from distrovitals.models.schemas import HealthScore, Trend
from distrovitals.storage import DistributionNotFoundError, SQLiteStore, StoreError
from distrovitals.storage.seed import DEFAULT_DISTRIBUTIONS


def make_score(distro_id: int, overall: float, calculated_at: datetime, trend=Trend.STABLE) -> HealthScore:
    return HealthScore(
        distro_id=distro_id,
        overall_score=overall,
        development_score=overall,
        community_score=overall,
        maintenance_score=overall,
        trend=trend,
        calculated_at=calculated_at,
    )


# =============================================================================
# Distributions
# =============================================================================

class TestDistributions:

    def test_seeded(self, store):
        distros = store.get_distributions()

        assert len(distros) == len(DEFAULT_DISTRIBUTIONS)
        assert [d.name for d in distros] == sorted(d.name for d in distros)

    def test_seed_is_idempotent(self, tmp_path):
        path = tmp_path / "dv.db"
        with SQLiteStore(path) as s:
            first = s.get_distributions()
        with SQLiteStore(path) as s:
            second = s.get_distributions()

        assert [d.id for d in first] == [d.id for d in second]

    def test_lookup_by_slug_and_id(self, store):
        arch = store.get_distribution_by_slug("arch")

        assert arch.name == "Arch Linux"
        assert arch.github_org == "archlinux"
        assert arch.subreddit == "archlinux"
        assert store.get_distribution_by_id(arch.id) == arch

    def test_unknown_slug(self, store):
        with pytest.raises(DistributionNotFoundError) as exc_info:
            store.get_distribution_by_slug("templeos")

        assert exc_info.value.key == "templeos"
        assert isinstance(exc_info.value, StoreError)

    def test_unknown_id(self, store):
        with pytest.raises(DistributionNotFoundError):
            store.get_distribution_by_id(99999)

    def test_create_distribution(self, empty_store):
        created = empty_store.create_distribution("Void Linux", "void", github_org="void-linux")

        assert created.id is not None
        assert empty_store.get_distributions() == [created]

    def test_duplicate_slug_is_store_error(self, empty_store):
        empty_store.create_distribution("Void Linux", "void")
        with pytest.raises(StoreError):
            empty_store.create_distribution("Void again", "void")


# =============================================================================
# Appends and latest views
# =============================================================================

class TestSnapshots:

    def test_appends_return_increasing_ids(self, store, arch, make_activity):
        first = store.append_activity_snapshot(make_activity(distro_id=arch.id))
        second = store.append_activity_snapshot(make_activity(distro_id=arch.id))

        assert second > first

    def test_latest_activity_is_per_repository(self, store, arch, now, make_activity):
        """A stale repository survives next to one collected more recently."""
        store.append_activity_snapshot(
            make_activity("archlinux/a", distro_id=arch.id, stars=1, collected_at=now - timedelta(days=3))
        )
        store.append_activity_snapshot(
            make_activity("archlinux/a", distro_id=arch.id, stars=2, collected_at=now)
        )
        store.append_activity_snapshot(
            make_activity("archlinux/b", distro_id=arch.id, stars=7, collected_at=now - timedelta(days=10))
        )

        latest = store.latest_activity_snapshots(arch.id)

        assert [(s.repo_name, s.stars) for s in latest] == [("archlinux/a", 2), ("archlinux/b", 7)]
        assert all(s.id is not None for s in latest)

    def test_same_collection_time_prefers_later_append(self, store, arch, now, make_community):
        store.append_community_snapshot(make_community(distro_id=arch.id, active_users_30d=1, collected_at=now))
        store.append_community_snapshot(make_community(distro_id=arch.id, active_users_30d=2, collected_at=now))

        latest = store.latest_community_snapshots(arch.id)

        assert len(latest) == 1
        assert latest[0].active_users_30d == 2

    def test_latest_releases_per_tag(self, store, arch, now, make_release):
        store.append_release_snapshot(make_release("v1", distro_id=arch.id, collected_at=now - timedelta(days=1)))
        store.append_release_snapshot(
            make_release("v1", distro_id=arch.id, is_prerelease=True, collected_at=now)
        )
        store.append_release_snapshot(
            make_release("v2", distro_id=arch.id, published_at=now, collected_at=now)
        )

        latest = store.latest_release_snapshots(arch.id)

        assert [(r.tag_name, r.is_prerelease) for r in latest] == [("v1", True), ("v2", False)]
        assert latest[1].published_at == now

    def test_latest_is_scoped_to_distribution(self, store, arch, make_activity):
        debian = store.get_distribution_by_slug("debian")
        store.append_activity_snapshot(make_activity(distro_id=debian.id))

        assert store.latest_activity_snapshots(arch.id) == []
        assert len(store.latest_activity_snapshots(debian.id)) == 1

    def test_timestamps_round_trip_as_utc(self, store, arch, make_activity):
        naive = datetime(2025, 1, 2, 3, 4, 5, 678901)
        store.append_activity_snapshot(make_activity(distro_id=arch.id, last_commit_at=naive, collected_at=naive))

        snap = store.latest_activity_snapshots(arch.id)[0]

        assert snap.collected_at == naive.replace(tzinfo=timezone.utc)
        assert snap.last_commit_at.tzinfo is not None


# =============================================================================
# Scores
# =============================================================================

class TestScores:

    def test_latest_score(self, store, arch, now):
        assert store.latest_score(arch.id) is None

        store.append_score(make_score(arch.id, 40.0, now - timedelta(days=1)))
        store.append_score(make_score(arch.id, 45.0, now, Trend.UP))

        latest = store.latest_score(arch.id)
        assert latest.overall_score == 45.0
        assert latest.trend == Trend.UP

    def test_latest_score_as_of(self, store, arch, now):
        store.append_score(make_score(arch.id, 40.0, now - timedelta(days=10)))
        store.append_score(make_score(arch.id, 45.0, now - timedelta(days=5)))
        store.append_score(make_score(arch.id, 60.0, now))

        assert store.latest_score(arch.id, as_of=now - timedelta(days=5)).overall_score == 45.0
        assert store.latest_score(arch.id, as_of=now - timedelta(days=7)).overall_score == 40.0
        assert store.latest_score(arch.id, as_of=now - timedelta(days=11)) is None
        assert store.latest_score(arch.id).overall_score == 60.0

    def test_latest_scores_one_per_distribution(self, store, arch, now):
        debian = store.get_distribution_by_slug("debian")
        store.append_score(make_score(arch.id, 40.0, now - timedelta(days=1)))
        store.append_score(make_score(arch.id, 60.0, now))
        store.append_score(make_score(debian.id, 50.0, now))

        latest = store.latest_scores()

        assert [(s.distro_id, s.overall_score) for s in latest] == [(arch.id, 60.0), (debian.id, 50.0)]

    def test_history_window(self, store, arch, now):
        for days_ago in (40, 20, 5, 0):
            store.append_score(make_score(arch.id, 50.0 + days_ago, now - timedelta(days=days_ago)))

        history = store.score_history(arch.id, 30, now=now)

        assert [s.overall_score for s in history] == [70.0, 55.0, 50.0]
        assert [s.calculated_at for s in history] == sorted(s.calculated_at for s in history)

    def test_history_includes_window_start(self, store, arch, now):
        store.append_score(make_score(arch.id, 50.0, now - timedelta(days=7)))
        assert len(store.score_history(arch.id, 7, now=now)) == 1

    @pytest.mark.parametrize("days", [0, -3])
    def test_history_rejects_non_positive_window(self, store, arch, days):
        with pytest.raises(ValueError):
            store.score_history(arch.id, days)

    def test_scores_are_never_overwritten(self, store, arch, now):
        store.append_score(make_score(arch.id, 40.0, now))
        store.append_score(make_score(arch.id, 41.0, now))

        history = store.score_history(arch.id, 1, now=now)

        assert [s.overall_score for s in history] == [40.0, 41.0]


# =============================================================================
# Errors
# =============================================================================

class TestStoreErrors:

    def test_closed_store_raises_store_error(self):
        s = SQLiteStore(":memory:")
        s.close()

        with pytest.raises(StoreError):
            s.get_distributions()
