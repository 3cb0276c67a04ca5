"""
Canonical tender record.

Provides the clean, immutable shape handed to the presentation layer.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from licitawatch.core.config.models import ContractType, SourceType
from .parsing import parse_timestamp


SUMMARY_LIMIT = 300


@dataclass(frozen=True)
class TenderRecord:
    """One tender announcement from one fetch cycle.
    
    Records are snapshots: consumers track favorites and read state
    on their side, keyed by ``id``.
    """
    
    id: str
    title: str
    summary: str
    link: str
    updated: str
    source_type: SourceType
    contract_type: ContractType = ContractType.OTROS
    amount: str | None = None
    organism: str | None = None
    keywords_found: tuple[str, ...] = field(default_factory=tuple)
    is_read: bool = False
    
    @property
    def updated_at(self) -> datetime | None:
        """``updated`` as an aware datetime (None if unparseable)."""
        return parse_timestamp(self.updated)
    
    @property
    def is_relevant(self) -> bool:
        """Whether any configured keyword matched."""
        return bool(self.keywords_found)
    
    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase shape used by the dashboard."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "link": self.link,
            "updated": self.updated,
            "contractType": self.contract_type.value,
            "sourceType": self.source_type.value,
            "keywordsFound": list(self.keywords_found),
            "isRead": self.is_read,
        }
        if self.amount is not None:
            data["amount"] = self.amount
        if self.organism is not None:
            data["organism"] = self.organism
        return data


def fallback_id(source_type: SourceType, title: str, link: str, updated: str) -> str:
    """Generate a stable id for entries that carry no ``<id>``.
    
    Entries with identical title, link and timestamp in the same feed
    share the generated id.
    """
    content = "|".join([source_type.value, title, link, updated])
    return "gen-" + hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]
