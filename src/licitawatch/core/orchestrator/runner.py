"""
Feed ingestion orchestrator.

Coordinates one ingestion cycle: fetch (via relays) → parse → extract,
for every feed at once, then merge and sort newest first.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from licitawatch.core.backends.base import Backend
from licitawatch.core.backends.http_backend import HttpBackend
from licitawatch.core.config.models import AppConfig, FeedSource, SourceType
from licitawatch.core.extract.pipeline import FieldExtractor
from licitawatch.core.feeds.atom import FeedParser
from licitawatch.core.fetch.relays import TransportResolver
from licitawatch.core.logging import ContextualLogger
from licitawatch.core.normalize.canonical import TenderRecord


logger = logging.getLogger(__name__)

# Records with unreadable timestamps sort after everything else
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class FeedStats:
    """Outcome of one feed in one cycle."""
    
    source_type: SourceType
    fetched: bool = False
    records: int = 0
    error: str | None = None
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_type": self.source_type.value,
            "fetched": self.fetched,
            "records": self.records,
            "error": self.error,
        }


@dataclass
class CycleStats:
    """Statistics for one ingestion cycle."""
    
    feeds: list[FeedStats] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    
    @property
    def total_records(self) -> int:
        return sum(feed.records for feed in self.feeds)
    
    @property
    def failed_feeds(self) -> list[SourceType]:
        return [feed.source_type for feed in self.feeds if not feed.fetched or feed.error]
    
    @property
    def duration_seconds(self) -> float | None:
        """Get cycle duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None


def sort_newest_first(records: list[TenderRecord]) -> list[TenderRecord]:
    """Sort records by ``updated`` descending; unreadable timestamps go last."""
    return sorted(records, key=lambda record: record.updated_at or _OLDEST, reverse=True)


class FeedAggregator:
    """Runs the ingestion pipeline across all configured feeds.
    
    Coordinates:
    - Relay-based fetching per feed
    - Atom parsing and field extraction
    - Concurrent fan-out and a join that waits for every feed
    - Merge and newest-first ordering
    """
    
    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        backend: Backend | None = None,
    ) -> None:
        """Initialize the aggregator.
        
        Args:
            config: Application configuration (defaults if None)
            backend: Fetch backend; an HttpBackend is created per cycle if None
        """
        self.config = config or AppConfig()
        self._backend = backend
        self.last_stats: CycleStats | None = None
    
    def _create_backend(self) -> Backend:
        fetch = self.config.fetch
        return HttpBackend(
            timeout=fetch.timeout_seconds,
            max_attempts=fetch.max_attempts,
            user_agent=fetch.user_agent,
        )
    
    async def _ingest_feed(
        self,
        feed: FeedSource,
        resolver: TransportResolver,
        parser: FeedParser,
        stats: FeedStats,
    ) -> list[TenderRecord]:
        """Fetch and parse a single feed."""
        log = ContextualLogger(logger, feed=feed.source_type.value)
        
        document = await resolver.fetch_document(feed.url, feed_name=feed.source_type.value)
        if document is None:
            return []
        
        stats.fetched = True
        records = parser.parse(document, feed.source_type)
        stats.records = len(records)
        log.info(f"Parsed {len(records)} entries", extra={"records": len(records)})
        return records
    
    async def ingest_all(
        self,
        feeds: list[FeedSource] | None = None,
        keywords: list[str] | None = None,
    ) -> list[TenderRecord]:
        """Run one ingestion cycle.
        
        A feed that fails contributes no records; it never aborts the
        others and nothing is raised for it.
        
        Args:
            feeds: Feeds to ingest (enabled config feeds if None)
            keywords: Flattened keyword list (config keywords if None)
            
        Returns:
            All records, newest first
        """
        feeds = feeds if feeds is not None else self.config.enabled_feeds
        keywords = keywords if keywords is not None else self.config.flat_keywords
        
        cycle = CycleStats(feeds=[FeedStats(source_type=feed.source_type) for feed in feeds])
        self.last_stats = cycle
        
        parser = FeedParser(FieldExtractor(keywords))
        owns_backend = self._backend is None
        backend = self._backend or self._create_backend()
        
        try:
            resolver = TransportResolver(
                backend,
                relays=self.config.relays,
                fetch_config=self.config.fetch,
            )
            results = await asyncio.gather(
                *(
                    self._ingest_feed(feed, resolver, parser, feed_stats)
                    for feed, feed_stats in zip(feeds, cycle.feeds)
                ),
                return_exceptions=True,
            )
        finally:
            if owns_backend:
                await backend.close()
        
        merged: list[TenderRecord] = []
        for feed_stats, result in zip(cycle.feeds, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                feed_stats.error = str(result) or type(result).__name__
                logger.error(
                    f"Error processing feed {feed_stats.source_type.value}: {feed_stats.error}",
                    exc_info=result,
                    extra={"feed": feed_stats.source_type.value},
                )
                continue
            merged.extend(result)
        
        cycle.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"Ingested {len(merged)} records from {len(feeds)} feeds "
            f"in {cycle.duration_seconds:.1f}s"
        )
        
        return sort_newest_first(merged)


async def fetch_tenders(
    config: AppConfig | None = None,
    *,
    keywords: list[str] | None = None,
) -> list[TenderRecord]:
    """Convenience function: one ingestion cycle with the given config.
    
    Args:
        config: Application configuration (defaults if None)
        keywords: Override the configured keyword list
        
    Returns:
        All records, newest first
    """
    aggregator = FeedAggregator(config)
    return await aggregator.ingest_all(keywords=keywords)
