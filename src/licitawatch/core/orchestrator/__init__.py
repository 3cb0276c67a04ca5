"""Orchestrator - ingestion cycle coordination."""

from .runner import CycleStats, FeedAggregator, FeedStats, fetch_tenders, sort_newest_first

__all__ = [
    "FeedAggregator",
    "CycleStats",
    "FeedStats",
    "fetch_tenders",
    "sort_newest_first",
]
