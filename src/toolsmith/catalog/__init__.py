"""
Tool catalog: loading and keyword matching.

This module contains:
- loader.py: Catalog container, JSON parsing, bundled catalog access
- matcher.py: Additive keyword scoring of queries against entries
"""

from toolsmith.catalog.loader import Catalog, load_catalog, parse_catalog
from toolsmith.catalog.matcher import classify_band, score, score_tool

__all__ = [
    "Catalog",
    "load_catalog",
    "parse_catalog",
    "classify_band",
    "score",
    "score_tool",
]
