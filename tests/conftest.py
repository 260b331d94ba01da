"""
Shared fixtures for the DistroVitals test suite.

Provides an in-memory store seeded with the default distributions, a fixed
reference time, and factories for building snapshots.
"""

from datetime import datetime, timezone

import pytest

from distrovitals.models.schemas import (
    ActivitySnapshot,
    CommunitySnapshot,
    ReleaseSnapshot,
)
from distrovitals.storage import SQLiteStore


NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def now():
    """Fixed reference time for scoring and windows."""
    return NOW


@pytest.fixture
def store():
    """In-memory store seeded with the default distributions."""
    with SQLiteStore(":memory:") as s:
        yield s


@pytest.fixture
def empty_store():
    """In-memory store with no distributions."""
    with SQLiteStore(":memory:", seed=False) as s:
        yield s


@pytest.fixture
def arch(store):
    """The seeded Arch Linux distribution."""
    return store.get_distribution_by_slug("arch")


# =============================================================================
# Snapshot Factories
# =============================================================================

@pytest.fixture
def make_activity():
    """Factory for ActivitySnapshot with sensible defaults."""
    def _make(repo_name="archlinux/repo", distro_id=1, collected_at=NOW, **kwargs):
        return ActivitySnapshot(
            distro_id=distro_id,
            repo_name=repo_name,
            collected_at=collected_at,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_community():
    """Factory for CommunitySnapshot with sensible defaults."""
    def _make(source="reddit:r/archlinux", distro_id=1, collected_at=NOW, **kwargs):
        return CommunitySnapshot(
            distro_id=distro_id,
            source=source,
            collected_at=collected_at,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_release():
    """Factory for ReleaseSnapshot with sensible defaults."""
    def _make(tag_name="v1.0", repo_name="archlinux/repo", distro_id=1, collected_at=NOW, **kwargs):
        return ReleaseSnapshot(
            distro_id=distro_id,
            repo_name=repo_name,
            tag_name=tag_name,
            collected_at=collected_at,
            **kwargs,
        )
    return _make
