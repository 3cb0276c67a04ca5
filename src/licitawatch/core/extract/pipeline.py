"""
Field extraction pipeline for feed entries.

Runs the amount, organism, summary, contract-type and keyword rules
over one entry and returns the combined fields.
"""

from __future__ import annotations

import logging

from licitawatch.core.config.models import ContractType
from licitawatch.core.normalize.parsing import parse_amount, strip_tags
from .base import ExtractedFields, RuleChain
from .rules import amount_chain, contract_type_chain, keyword_chain, organism_chain


logger = logging.getLogger(__name__)


def clean_summary(text: str) -> str:
    """Strip markup from a description."""
    return strip_tags(text)


def combined_text(title: str, summary: str, organism: str | None) -> str:
    """Text surface scanned by the contract-type and keyword rules."""
    return f"{title} {summary} {organism or ''}"


class FieldExtractor:
    """Recover structured fields from an entry's free text."""

    def __init__(self, keywords: list[str] | None = None) -> None:
        """Initialize the extractor.

        Args:
            keywords: Flattened keyword list to tag records with
        """
        self.keywords = list(keywords or [])
        self.amount_rules: RuleChain[str] = amount_chain()
        self.organism_rules: RuleChain[str] = organism_chain()
        self.contract_type_rules: RuleChain[ContractType] = contract_type_chain()
        self.keyword_rules: RuleChain[str] = keyword_chain(self.keywords)

    def _match_amount(self, text: str) -> tuple[str | None, str | None]:
        """Name of the matching amount rule and the formatted amount."""
        match = self.amount_rules.first_match(text)
        if match is None:
            return None, None

        rule_name, token = match
        parsed = parse_amount(token)
        if not parsed.ok:
            logger.debug(f"Rule {rule_name} captured unparseable amount {token!r}")
        return rule_name, parsed.formatted

    def extract_amount(self, text: str) -> str | None:
        """Formatted euro amount from the first matching amount rule.

        A rule that matches but captures an unparseable token leaves the
        amount absent; later rules are not consulted.
        """
        return self._match_amount(text)[1]

    def extract_organism(self, text: str) -> str | None:
        return self.organism_rules.first(text)

    def classify(self, text: str) -> ContractType:
        """Contract type of a text, ``Otros`` when nothing matches."""
        return self.contract_type_rules.first(text) or ContractType.OTROS

    def find_keywords(self, text: str) -> list[str]:
        """Configured keywords contained in the text."""
        return self.keyword_rules.collect(text)

    def extract(self, title: str, description: str) -> ExtractedFields:
        """Extract every field for one entry.

        Args:
            title: Entry title
            description: Raw entry description (content or summary)

        Returns:
            ExtractedFields with an untruncated cleaned summary
        """
        fields = ExtractedFields()

        rule_name, fields.amount = self._match_amount(description)
        if rule_name:
            fields.matched_rules["amount"] = rule_name
        fields.organism = self.extract_organism(description)
        fields.summary = clean_summary(description)

        surface = combined_text(title, fields.summary, fields.organism)
        fields.contract_type = self.classify(surface)
        fields.keywords_found = self.find_keywords(surface)

        return fields
