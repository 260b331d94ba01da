"""Aggregation, scoring and ranking of distribution metrics."""

from distrovitals.analyzers.aggregator import aggregate_metrics, select_latest
from distrovitals.analyzers.pipeline import HealthPipeline
from distrovitals.analyzers.ranking import build_rankings
from distrovitals.analyzers.scorer import InsufficientDataError, Scorer, determine_trend

__all__ = [
    "HealthPipeline",
    "InsufficientDataError",
    "Scorer",
    "aggregate_metrics",
    "build_rankings",
    "determine_trend",
    "select_latest",
]
