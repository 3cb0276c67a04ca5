"""Syndication feed parsing."""

from .atom import FeedParser, RawEntry, iter_entries, looks_like_markup, parse_feed

__all__ = [
    "FeedParser",
    "RawEntry",
    "iter_entries",
    "looks_like_markup",
    "parse_feed",
]
