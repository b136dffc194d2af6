"""
Gap Filling Package

Idempotent backfill of practice items, baseline assessments and
enrichment links for modules below baseline.
"""

from src.gap_filling.content_strategy import ContentStrategy, PlaceholderContentStrategy
from src.gap_filling.errors import SubjectNotFoundError
from src.gap_filling.filler import GapFiller, GapFillReport

__all__ = [
    "ContentStrategy",
    "PlaceholderContentStrategy",
    "SubjectNotFoundError",
    "GapFiller",
    "GapFillReport",
]
