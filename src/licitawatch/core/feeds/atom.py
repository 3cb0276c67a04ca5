"""
Atom feed parsing.

Turns a syndication document into TenderRecords. Parsing is permissive:
broken markup is recovered by lxml and missing entry elements fall back
to defaults instead of dropping the entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lxml import etree

from licitawatch.core.config.models import SourceType
from licitawatch.core.extract.pipeline import FieldExtractor
from licitawatch.core.normalize.canonical import SUMMARY_LIMIT, TenderRecord, fallback_id
from licitawatch.core.normalize.parsing import truncate, utc_now_iso


logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Sin título"

_BOM = "\ufeff"


@dataclass
class RawEntry:
    """Entry fields as found in the document, before extraction."""
    
    title: str | None
    description: str
    link: str | None
    updated: str | None
    id: str | None


def looks_like_markup(document: str | None) -> bool:
    """Cheap sniff: markup documents start with '<' once whitespace is trimmed."""
    if not document:
        return False
    return document.strip().lstrip(_BOM).lstrip().startswith("<")


def _parse_tree(document: str) -> etree._Element | None:
    """Parse a document leniently and return its root element."""
    text = document.strip().lstrip(_BOM).lstrip()
    parser = etree.XMLParser(
        recover=True,
        encoding="utf-8",
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
    )
    try:
        return etree.fromstring(text.encode("utf-8"), parser)
    except etree.XMLSyntaxError as e:
        logger.warning(f"Unparseable feed document: {e}")
        return None


def _first(element: etree._Element, name: str) -> etree._Element | None:
    """First descendant with the given local name, in document order."""
    found = element.xpath(".//*[local-name() = $name]", name=name)
    return found[0] if found else None


def _text(element: etree._Element | None) -> str | None:
    """Concatenated text content, or None when empty or missing."""
    if element is None:
        return None
    text = "".join(element.itertext())
    return text or None


def iter_entries(document: str) -> list[RawEntry]:
    """Read raw entries from an Atom document.
    
    Args:
        document: Feed document text
        
    Returns:
        Raw entries in document order (empty for non-markup input)
    """
    if not looks_like_markup(document):
        return []
    
    root = _parse_tree(document)
    if root is None:
        return []
    
    entries: list[RawEntry] = []
    
    for node in root.xpath("descendant-or-self::*[local-name() = 'entry']"):
        # Content is usually richer than summary when both are present
        description = _text(_first(node, "content")) or _text(_first(node, "summary")) or ""
        
        link_node = _first(node, "link")
        link = link_node.get("href") if link_node is not None else None
        
        entries.append(
            RawEntry(
                title=_text(_first(node, "title")),
                description=description,
                link=link,
                updated=_text(_first(node, "updated")),
                id=_text(_first(node, "id")),
            )
        )
    
    return entries


class FeedParser:
    """Build TenderRecords from Atom documents."""
    
    def __init__(self, extractor: FieldExtractor | None = None) -> None:
        """Initialize the parser.
        
        Args:
            extractor: Field extractor (no keyword tagging if None)
        """
        self.extractor = extractor or FieldExtractor()
    
    def to_record(self, entry: RawEntry, source_type: SourceType) -> TenderRecord:
        """Apply field extraction and defaults to one raw entry."""
        title = (entry.title or "").strip() or DEFAULT_TITLE
        link = (entry.link or "").strip()
        raw_updated = (entry.updated or "").strip()
        updated = raw_updated or utc_now_iso()
        
        fields = self.extractor.extract(title, entry.description)
        
        entry_id = (entry.id or "").strip()
        if not entry_id:
            entry_id = fallback_id(source_type, title, link, raw_updated)
        
        return TenderRecord(
            id=entry_id,
            title=title,
            summary=truncate(fields.summary, SUMMARY_LIMIT),
            link=link,
            updated=updated,
            source_type=source_type,
            contract_type=fields.contract_type,
            amount=fields.amount,
            organism=fields.organism,
            keywords_found=tuple(fields.keywords_found),
        )
    
    def parse(self, document: str | None, source_type: SourceType) -> list[TenderRecord]:
        """Parse a feed document into records.
        
        Args:
            document: Atom document text (None or non-markup yields [])
            source_type: Label of the feed that produced the document
            
        Returns:
            Records in document order
        """
        if not document or not looks_like_markup(document):
            logger.debug(f"Skipping non-markup document for {source_type.value}")
            return []
        
        return [self.to_record(entry, source_type) for entry in iter_entries(document)]


def parse_feed(
    document: str | None,
    source_type: SourceType,
    keywords: list[str] | None = None,
) -> list[TenderRecord]:
    """Parse one Atom document into TenderRecords.
    
    Args:
        document: Feed document text
        source_type: Feed label attached to every record
        keywords: Flattened keyword list for tagging
        
    Returns:
        Records in document order
    """
    return FeedParser(FieldExtractor(keywords)).parse(document, source_type)
