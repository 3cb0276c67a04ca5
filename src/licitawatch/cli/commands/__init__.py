"""CLI command modules."""

from . import config, tenders

__all__ = [
    "config",
    "tenders",
]
