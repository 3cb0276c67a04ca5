"""
Browsing helpers over an ingested record list.

Filtering, ordering, pagination and "new since" checks used by the CLI
and by any dashboard built on top of the aggregator. Nothing here
mutates the records.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from licitawatch.core.config.models import SourceType
from licitawatch.core.normalize.canonical import TenderRecord
from licitawatch.core.normalize.parsing import amount_value, parse_timestamp


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class SortOrder(str, Enum):
    """Orderings offered to the user."""

    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST_BUDGET = "highest_budget"
    LOWEST_BUDGET = "lowest_budget"


@dataclass
class Page:
    """One page of results."""
    
    items: list[TenderRecord]
    page: int
    per_page: int
    total: int
    
    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))
    
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def matches_search(record: TenderRecord, search: str) -> bool:
    """Case-insensitive match on title, summary or any matched keyword."""
    needle = search.lower()
    return (
        needle in record.title.lower()
        or needle in record.summary.lower()
        or any(needle in keyword.lower() for keyword in record.keywords_found)
    )


def filter_tenders(
    records: list[TenderRecord],
    *,
    search: str | None = None,
    source_type: SourceType | None = None,
    only_relevant: bool = False,
) -> list[TenderRecord]:
    """Filter records, keeping their order.
    
    Args:
        records: Records to filter
        search: Free-text search term
        source_type: Keep only records from this feed
        only_relevant: Keep only records with at least one keyword
        
    Returns:
        Matching records
    """
    result = []
    for record in records:
        if only_relevant and not record.keywords_found:
            continue
        if source_type is not None and record.source_type != source_type:
            continue
        if search and not matches_search(record, search):
            continue
        result.append(record)
    return result


def sort_tenders(records: list[TenderRecord], order: SortOrder = SortOrder.NEWEST) -> list[TenderRecord]:
    """Return a sorted copy of the records."""
    if order == SortOrder.OLDEST:
        return sorted(records, key=lambda r: r.updated_at or _OLDEST)
    if order == SortOrder.HIGHEST_BUDGET:
        return sorted(records, key=lambda r: amount_value(r.amount), reverse=True)
    if order == SortOrder.LOWEST_BUDGET:
        return sorted(records, key=lambda r: amount_value(r.amount))
    return sorted(records, key=lambda r: r.updated_at or _OLDEST, reverse=True)


def paginate(records: list[TenderRecord], page: int = 1, per_page: int = 20) -> Page:
    """Slice one 1-based page; out-of-range pages are clamped."""
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    
    total_pages = max(1, math.ceil(len(records) / per_page))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    
    return Page(
        items=records[start:start + per_page],
        page=page,
        per_page=per_page,
        total=len(records),
    )


def is_new(record: TenderRecord, watermark: datetime | str | None) -> bool:
    """Whether a record was updated strictly after the watermark.
    
    Without a watermark every record counts as new.
    """
    if watermark is None:
        return True
    if isinstance(watermark, str):
        watermark = parse_timestamp(watermark)
        if watermark is None:
            return True
    elif watermark.tzinfo is None:
        watermark = watermark.replace(tzinfo=timezone.utc)
    
    updated = record.updated_at
    return updated is not None and updated > watermark


def newest_timestamp(records: list[TenderRecord]) -> str | None:
    """``updated`` of the first record of a newest-first list.
    
    This is the value to remember as the next watermark.
    """
    return records[0].updated if records else None
