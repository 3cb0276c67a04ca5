"""Field extraction from free-text tender descriptions."""

from .base import ExtractedFields, Rule, RuleChain
from .pipeline import FieldExtractor, clean_summary, combined_text
from .rules import (
    contract_type_chain,
    contracting_body,
    currency_amount,
    keyword_chain,
    labeled_amount,
)

__all__ = [
    "ExtractedFields",
    "Rule",
    "RuleChain",
    "FieldExtractor",
    "clean_summary",
    "combined_text",
    "contract_type_chain",
    "contracting_body",
    "currency_amount",
    "keyword_chain",
    "labeled_amount",
]
