"""Data models and schemas."""

from distrovitals.models.schemas import (
    ActivitySnapshot,
    AggregatedMetrics,
    CollectorConfig,
    CommunitySnapshot,
    Distribution,
    DistroHealthSummary,
    HealthScore,
    ReleaseSnapshot,
    Trend,
)

__all__ = [
    "ActivitySnapshot",
    "AggregatedMetrics",
    "CollectorConfig",
    "CommunitySnapshot",
    "Distribution",
    "DistroHealthSummary",
    "HealthScore",
    "ReleaseSnapshot",
    "Trend",
]
