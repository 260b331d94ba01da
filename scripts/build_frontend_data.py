#!/usr/bin/env python3
"""Build frontend data from the scores database."""

import json
import os
from collections import Counter
from pathlib import Path

from distrovitals.analyzers.pipeline import HealthPipeline
from distrovitals.models.schemas import DistroHealthSummary, Trend
from distrovitals.storage import SQLiteStore

HISTORY_DAYS = 90


def calculate_stats(rankings: list[DistroHealthSummary]) -> dict:
    """Calculate score distribution statistics across scored distributions."""
    scored = [r for r in rankings if r.trend != Trend.UNKNOWN]

    if not scored:
        return {}

    scores_sorted = sorted(r.overall_score for r in scored)
    n = len(scores_sorted)

    return {
        "total_distributions": len(rankings),
        "scored_distributions": n,
        "score_distribution": {
            "min": round(scores_sorted[0], 1),
            "max": round(scores_sorted[-1], 1),
            "median": round(scores_sorted[n // 2], 1),
            "p25": round(scores_sorted[n // 4], 1),
            "p75": round(scores_sorted[3 * n // 4], 1),
        },
        "trend_distribution": dict(Counter(r.trend.value for r in scored)),
    }


def main():
    # Paths
    database = Path(os.environ.get("DISTROVITALS_DB", "distrovitals.db"))
    frontend_public = Path("frontend/public/data")
    history_dest = frontend_public / "history"

    # Ensure frontend data directory exists
    history_dest.mkdir(parents=True, exist_ok=True)

    with SQLiteStore(database) as store:
        pipeline = HealthPipeline(store)
        rankings = pipeline.rankings()

        rankings_file = frontend_public / "rankings.json"
        rankings_file.write_text(json.dumps([r.model_dump(mode="json") for r in rankings], indent=2))
        print(f"Created rankings: {rankings_file} ({len(rankings)} distributions)")

        for row in rankings:
            if row.trend == Trend.UNKNOWN:
                continue
            scores = pipeline.history(row.slug, HISTORY_DAYS)
            history_file = history_dest / f"{row.slug}.json"
            history_file.write_text(
                json.dumps([s.model_dump(mode="json", exclude={"id"}) for s in scores], indent=2)
            )

    stats = calculate_stats(rankings)
    if stats:
        stats_file = frontend_public / "stats.json"
        stats_file.write_text(json.dumps(stats, indent=2))
        print(f"Created stats: {stats_file}")


if __name__ == "__main__":
    main()
