"""SQLite-backed snapshot store."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from distrovitals.models.schemas import (
    ActivitySnapshot,
    CommunitySnapshot,
    Distribution,
    HealthScore,
    ReleaseSnapshot,
    as_utc,
)
from distrovitals.storage.base import DistributionNotFoundError, SnapshotStore, StoreError
from distrovitals.storage.seed import DEFAULT_DISTRIBUTIONS

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS distributions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    homepage TEXT,
    github_org TEXT,
    gitlab_group TEXT,
    subreddit TEXT,
    description TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS github_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    distro_id INTEGER NOT NULL REFERENCES distributions(id),
    repo_name TEXT NOT NULL,
    stars INTEGER NOT NULL DEFAULT 0,
    forks INTEGER NOT NULL DEFAULT 0,
    open_issues INTEGER NOT NULL DEFAULT 0,
    open_prs INTEGER NOT NULL DEFAULT 0,
    commits_30d INTEGER NOT NULL DEFAULT 0,
    commits_365d INTEGER NOT NULL DEFAULT 0,
    contributors_30d INTEGER NOT NULL DEFAULT 0,
    last_commit_at TEXT,
    collected_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_github_snapshots_distro
    ON github_snapshots(distro_id, repo_name, collected_at DESC);

CREATE TABLE IF NOT EXISTS community_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    distro_id INTEGER NOT NULL REFERENCES distributions(id),
    source TEXT NOT NULL,
    active_users_30d INTEGER,
    posts_30d INTEGER,
    response_time_avg_hours REAL,
    collected_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_community_snapshots_distro
    ON community_snapshots(distro_id, source, collected_at DESC);

CREATE TABLE IF NOT EXISTS release_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    distro_id INTEGER NOT NULL REFERENCES distributions(id),
    repo_name TEXT NOT NULL,
    tag_name TEXT NOT NULL,
    release_name TEXT,
    published_at TEXT,
    is_prerelease INTEGER NOT NULL DEFAULT 0,
    collected_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_release_snapshots_distro
    ON release_snapshots(distro_id, repo_name, tag_name, collected_at DESC);

CREATE TABLE IF NOT EXISTS health_scores (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    distro_id INTEGER NOT NULL REFERENCES distributions(id),
    overall_score REAL NOT NULL,
    development_score REAL NOT NULL,
    community_score REAL NOT NULL,
    maintenance_score REAL NOT NULL,
    trend TEXT NOT NULL DEFAULT 'stable',
    calculated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_health_scores_distro
    ON health_scores(distro_id, calculated_at DESC);
"""


def _ts(value: datetime | None) -> str | None:
    """Serialize a datetime so that string order matches time order."""
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="microseconds")


class SQLiteStore(SnapshotStore):
    """Snapshot store on a single SQLite database file.

    Usage:
        with SQLiteStore(Path("distrovitals.db")) as store:
            distros = store.get_distributions()
    """

    def __init__(self, path: Path | str = ":memory:", seed: bool = True) -> None:
        """Open (or create) the database and apply the schema.

        Args:
            path: Database file path, or ":memory:" for a throwaway store.
            seed: Insert the default distribution list if missing.
        """
        self.path = str(path)
        try:
            self._conn = sqlite3.connect(self.path)
        except sqlite3.Error as e:
            raise StoreError(f"Could not open database {self.path}: {e}") from e
        self._conn.row_factory = sqlite3.Row

        with self._transaction() as conn:
            if self.path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)

        if seed:
            self.seed_distributions()

        logger.debug(f"Database ready: {self.path}")

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements in a transaction, translating sqlite errors."""
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._transaction() as conn:
            return conn.execute(sql, params).fetchall()

    def _insert(self, sql: str, params: tuple) -> int:
        with self._transaction() as conn:
            rowid = conn.execute(sql, params).lastrowid
        if rowid is None:
            raise StoreError("Insert did not return a row id")
        return rowid

    # ==================== Distributions ====================

    def seed_distributions(self) -> None:
        """Insert the default distributions, keeping any that already exist."""
        now = _ts(datetime.now(timezone.utc))
        with self._transaction() as conn:
            conn.executemany(
                """INSERT OR IGNORE INTO distributions
                   (name, slug, homepage, github_org, subreddit, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                [(*seed, now, now) for seed in DEFAULT_DISTRIBUTIONS],
            )

    def get_distributions(self) -> list[Distribution]:
        rows = self._query("SELECT * FROM distributions ORDER BY name")
        return [Distribution(**dict(row)) for row in rows]

    def get_distribution_by_slug(self, slug: str) -> Distribution:
        rows = self._query("SELECT * FROM distributions WHERE slug = ?", (slug,))
        if not rows:
            raise DistributionNotFoundError(slug)
        return Distribution(**dict(rows[0]))

    def get_distribution_by_id(self, distro_id: int) -> Distribution:
        rows = self._query("SELECT * FROM distributions WHERE id = ?", (distro_id,))
        if not rows:
            raise DistributionNotFoundError(distro_id)
        return Distribution(**dict(rows[0]))

    def create_distribution(
        self,
        name: str,
        slug: str,
        homepage: str | None = None,
        github_org: str | None = None,
        subreddit: str | None = None,
        description: str | None = None,
    ) -> Distribution:
        """Add a new distribution and return it."""
        now = _ts(datetime.now(timezone.utc))
        distro_id = self._insert(
            """INSERT INTO distributions
               (name, slug, homepage, github_org, subreddit, description, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (name, slug, homepage, github_org, subreddit, description, now, now),
        )
        return self.get_distribution_by_id(distro_id)

    # ==================== Appends ====================

    def append_activity_snapshot(self, snapshot: ActivitySnapshot) -> int:
        return self._insert(
            """INSERT INTO github_snapshots
               (distro_id, repo_name, stars, forks, open_issues, open_prs,
                commits_30d, commits_365d, contributors_30d, last_commit_at, collected_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                snapshot.distro_id,
                snapshot.repo_name,
                snapshot.stars,
                snapshot.forks,
                snapshot.open_issues,
                snapshot.open_prs,
                snapshot.commits_30d,
                snapshot.commits_365d,
                snapshot.contributors_30d,
                _ts(snapshot.last_commit_at),
                _ts(snapshot.collected_at),
            ),
        )

    def append_community_snapshot(self, snapshot: CommunitySnapshot) -> int:
        return self._insert(
            """INSERT INTO community_snapshots
               (distro_id, source, active_users_30d, posts_30d, response_time_avg_hours, collected_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                snapshot.distro_id,
                snapshot.source,
                snapshot.active_users_30d,
                snapshot.posts_30d,
                snapshot.response_time_avg_hours,
                _ts(snapshot.collected_at),
            ),
        )

    def append_release_snapshot(self, snapshot: ReleaseSnapshot) -> int:
        return self._insert(
            """INSERT INTO release_snapshots
               (distro_id, repo_name, tag_name, release_name, published_at, is_prerelease, collected_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                snapshot.distro_id,
                snapshot.repo_name,
                snapshot.tag_name,
                snapshot.release_name,
                _ts(snapshot.published_at),
                int(snapshot.is_prerelease),
                _ts(snapshot.collected_at),
            ),
        )

    def append_score(self, score: HealthScore) -> int:
        return self._insert(
            """INSERT INTO health_scores
               (distro_id, overall_score, development_score, community_score,
                maintenance_score, trend, calculated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                score.distro_id,
                score.overall_score,
                score.development_score,
                score.community_score,
                score.maintenance_score,
                score.trend.value,
                _ts(score.calculated_at),
            ),
        )

    # ==================== Latest views ====================

    def _latest_per_key(self, table: str, key_columns: tuple[str, ...], distro_id: int) -> list[dict[str, Any]]:
        """Newest row per key within one distribution; ties go to the higher id."""
        match = " AND ".join(f"inner_t.{col} = t.{col}" for col in key_columns)
        order = ", ".join(key_columns)
        rows = self._query(
            f"""SELECT * FROM {table} t
                WHERE t.distro_id = ?
                AND t.id = (
                    SELECT inner_t.id FROM {table} inner_t
                    WHERE inner_t.distro_id = t.distro_id AND {match}
                    ORDER BY inner_t.collected_at DESC, inner_t.id DESC
                    LIMIT 1
                )
                ORDER BY {order}""",
            (distro_id,),
        )
        return [dict(row) for row in rows]

    def latest_activity_snapshots(self, distro_id: int) -> list[ActivitySnapshot]:
        rows = self._latest_per_key("github_snapshots", ("repo_name",), distro_id)
        return [ActivitySnapshot(**row) for row in rows]

    def latest_community_snapshots(self, distro_id: int) -> list[CommunitySnapshot]:
        rows = self._latest_per_key("community_snapshots", ("source",), distro_id)
        return [CommunitySnapshot(**row) for row in rows]

    def latest_release_snapshots(self, distro_id: int) -> list[ReleaseSnapshot]:
        rows = self._latest_per_key("release_snapshots", ("repo_name", "tag_name"), distro_id)
        return [ReleaseSnapshot(**{**row, "is_prerelease": bool(row["is_prerelease"])}) for row in rows]

    def latest_score(self, distro_id: int, as_of: datetime | None = None) -> HealthScore | None:
        sql = "SELECT * FROM health_scores WHERE distro_id = ?"
        params: tuple = (distro_id,)
        if as_of is not None:
            sql += " AND calculated_at <= ?"
            params += (_ts(as_of),)
        rows = self._query(sql + " ORDER BY calculated_at DESC, id DESC LIMIT 1", params)
        return HealthScore(**dict(rows[0])) if rows else None

    def latest_scores(self) -> list[HealthScore]:
        rows = self._query(
            """SELECT * FROM health_scores h
               WHERE h.id = (
                   SELECT latest.id FROM health_scores latest
                   WHERE latest.distro_id = h.distro_id
                   ORDER BY latest.calculated_at DESC, latest.id DESC
                   LIMIT 1
               )
               ORDER BY h.overall_score DESC"""
        )
        return [HealthScore(**dict(row)) for row in rows]

    def score_history(self, distro_id: int, days: int, now: datetime | None = None) -> list[HealthScore]:
        if days <= 0:
            raise ValueError(f"History window must be a positive number of days, got {days}")
        now = now or datetime.now(timezone.utc)
        cutoff = _ts(now - timedelta(days=days))
        rows = self._query(
            """SELECT * FROM health_scores
               WHERE distro_id = ? AND calculated_at >= ?
               ORDER BY calculated_at ASC, id ASC""",
            (distro_id, cutoff),
        )
        return [HealthScore(**dict(row)) for row in rows]
