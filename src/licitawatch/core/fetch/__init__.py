"""Fetch utilities - relay chain and ordered fallback."""

from .relays import Strategy, TransportResolver, first_successful, wrap_url

__all__ = [
    "Strategy",
    "TransportResolver",
    "first_successful",
    "wrap_url",
]
