"""
Extraction base classes and data structures.

A rule is a pure function ``text -> value | None``. Rules for one field
are grouped in a RuleChain, read either up to the first hit (amounts,
contract type) or in full (keyword tags).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from licitawatch.core.config.models import ContractType


T = TypeVar("T")


@dataclass(frozen=True)
class Rule(Generic[T]):
    """A named extraction rule."""
    
    name: str
    apply: Callable[[str], T | None]
    
    def __call__(self, text: str) -> T | None:
        return self.apply(text)


@dataclass
class RuleChain(Generic[T]):
    """Ordered rules for a single field."""
    
    field_name: str
    rules: list[Rule[T]]
    
    def first_match(self, text: str) -> tuple[str, T] | None:
        """Name and value of the first rule that matches, or None."""
        for rule in self.rules:
            value = rule(text)
            if value is not None:
                return rule.name, value
        return None
    
    def first(self, text: str) -> T | None:
        """Value of the first rule that matches, or None."""
        match = self.first_match(text)
        return match[1] if match else None
    
    def collect(self, text: str) -> list[T]:
        """Values of every matching rule, duplicates dropped, in rule order."""
        found: list[T] = []
        for rule in self.rules:
            value = rule(text)
            if value is not None and value not in found:
                found.append(value)
        return found


@dataclass
class ExtractedFields:
    """Fields recovered from one entry."""
    
    summary: str = ""
    amount: str | None = None
    organism: str | None = None
    contract_type: ContractType = ContractType.OTROS
    keywords_found: list[str] = field(default_factory=list)
    
    # Names of the rules that produced a value, for debugging
    matched_rules: dict[str, str] = field(default_factory=dict)
