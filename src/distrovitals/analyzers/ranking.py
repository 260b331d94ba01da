"""Rankings view over the latest score of every distribution."""

from collections.abc import Callable, Iterable, Sequence

from distrovitals.models.schemas import (
    AggregatedMetrics,
    Distribution,
    DistroHealthSummary,
    HealthScore,
    Trend,
)


def build_rankings(
    distributions: Sequence[Distribution],
    latest_scores: Iterable[HealthScore],
    metrics_for: Callable[[Distribution], AggregatedMetrics] | None = None,
) -> list[DistroHealthSummary]:
    """Order distributions by their latest overall score.

    Scored distributions come first, highest score first, with 1-based ranks.
    Equal scores keep the order of ``distributions``. Distributions without
    any score follow in input order with zero scores and trend "unknown".

    Args:
        distributions: All tracked distributions.
        latest_scores: The latest score per distribution.
        metrics_for: Optional callback producing aggregated metrics for a
            scored distribution.

    Returns:
        List of DistroHealthSummary in rank order.
    """
    by_distro = {score.distro_id: score for score in latest_scores}
    position = {d.id: i for i, d in enumerate(distributions)}

    scored = [d for d in distributions if d.id in by_distro]
    scored.sort(key=lambda d: (-by_distro[d.id].overall_score, position[d.id]))

    rankings: list[DistroHealthSummary] = []

    for distro in scored:
        score = by_distro[distro.id]
        rankings.append(
            DistroHealthSummary(
                slug=distro.slug,
                name=distro.name,
                overall_score=score.overall_score,
                development_score=score.development_score,
                community_score=score.community_score,
                maintenance_score=score.maintenance_score,
                trend=score.trend,
                rank=len(rankings) + 1,
                metrics=metrics_for(distro) if metrics_for else AggregatedMetrics(),
                github_org=distro.github_org,
                subreddit=distro.subreddit,
                description=distro.description,
            )
        )

    # Add distros without scores
    for distro in distributions:
        if distro.id in by_distro:
            continue
        rankings.append(
            DistroHealthSummary(
                slug=distro.slug,
                name=distro.name,
                overall_score=0.0,
                development_score=0.0,
                community_score=0.0,
                maintenance_score=0.0,
                trend=Trend.UNKNOWN,
                rank=len(rankings) + 1,
                github_org=distro.github_org,
                subreddit=distro.subreddit,
                description=distro.description,
            )
        )

    return rankings
