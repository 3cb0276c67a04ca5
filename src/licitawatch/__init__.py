"""
LicitaWatch - Terminal-first aggregator for Spanish public tender feeds.

Fetches the Atom syndication feeds of the Plataforma de Contratación del
Sector Público, extracts amounts, contracting bodies, contract types and
keyword tags from the entry text, and lists everything newest first.
"""

__version__ = "0.1.0"
__app_name__ = "licitawatch"
