"""
Heuristic text rules for tender descriptions.

Feed entries carry most of their structured data as loose text such as
"Id licitación: 2024/123; Órgano de Contratación: Ayuntamiento de X;
Importe: 40631.78 EUR; Estado: PUB". The rules below pull single fields
out of that text.
"""

from __future__ import annotations

import re

from licitawatch.core.config.models import ContractType
from .base import Rule, RuleChain


# =============================================================================
# Amount
# =============================================================================


AMOUNT_LABEL_PATTERN = re.compile(
    r"(?:Importe|Valor estimado|Presupuesto base|Importe total)(?:.*?):\s*([\d.,]+)",
    re.IGNORECASE,
)

AMOUNT_CURRENCY_PATTERN = re.compile(
    r"([\d.,]+)\s?(?:€|EUR|euros)",
    re.IGNORECASE,
)


def labeled_amount(text: str) -> str | None:
    """Numeric token after an amount label ("Importe: 45.000,00")."""
    match = AMOUNT_LABEL_PATTERN.search(text)
    return match.group(1) if match else None


def currency_amount(text: str) -> str | None:
    """Numeric token directly followed by a currency marker ("3000 EUR")."""
    match = AMOUNT_CURRENCY_PATTERN.search(text)
    return match.group(1) if match else None


def amount_chain() -> RuleChain[str]:
    """Amount token rules, label first."""
    return RuleChain(
        field_name="amount",
        rules=[
            Rule("labeled_amount", labeled_amount),
            Rule("currency_amount", currency_amount),
        ],
    )


# =============================================================================
# Organism
# =============================================================================


ORGANISM_PATTERN = re.compile(
    r"Órgano de Contratación:\s*(.*?)(?:;|,|\. |\n|$)",
    re.IGNORECASE,
)


def contracting_body(text: str) -> str | None:
    """Contracting authority named after "Órgano de Contratación:"."""
    match = ORGANISM_PATTERN.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def organism_chain() -> RuleChain[str]:
    return RuleChain(
        field_name="organism",
        rules=[Rule("contracting_body", contracting_body)],
    )


# =============================================================================
# Contract type
# =============================================================================


# Checked in order; the first term found decides
CONTRACT_TYPE_TERMS: list[tuple[str, ContractType]] = [
    ("servicios", ContractType.SERVICIOS),
    ("suministros", ContractType.SUMINISTROS),
    ("obras", ContractType.OBRAS),
]


def _contains_rule(term: str, value):
    def apply(text: str):
        return value if term in text.lower() else None
    return apply


def contract_type_chain() -> RuleChain[ContractType]:
    """Substring rules per contract type, in priority order."""
    return RuleChain(
        field_name="contract_type",
        rules=[
            Rule(f"contains_{term}", _contains_rule(term, contract_type))
            for term, contract_type in CONTRACT_TYPE_TERMS
        ],
    )


# =============================================================================
# Keywords
# =============================================================================


def keyword_chain(keywords: list[str]) -> RuleChain[str]:
    """One case-insensitive containment rule per keyword.
    
    Collecting the chain yields the matched keywords in list order,
    each at most once.
    """
    return RuleChain(
        field_name="keywords_found",
        rules=[
            Rule(f"keyword:{keyword}", _contains_rule(keyword.lower(), keyword))
            for keyword in keywords
            if keyword
        ],
    )
