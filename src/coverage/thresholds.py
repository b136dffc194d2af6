"""
Threshold Policy

Maps a grade/subject cell to its full ("ready") and relaxed ("beta")
threshold tiers, and answers whether a cell is in launch scope.
All functions are pure; the tables live in config/coverage_policy.py.
"""

import math

from config import coverage_policy
from src.schemas.coverage import CoverageThresholds


def normalize_grade(grade: str | int) -> str:
    """Canonical grade label: 'k' -> 'K', 7 -> '7', ' 10 ' -> '10'."""
    label = str(grade).strip()
    return "K" if label.upper() == "K" else label


def grade_rank(grade: str | int) -> int:
    """Position in the fixed K-12 ordering; unknown grades sort last."""
    label = normalize_grade(grade)
    try:
        return coverage_policy.GRADE_ORDER.index(label)
    except ValueError:
        return len(coverage_policy.GRADE_ORDER)


def get_thresholds(grade: str | int, subject: str) -> CoverageThresholds:
    """
    Effective full-tier thresholds for a cell.

    Override fields win; unspecified fields fall back to the defaults.
    """
    key = (normalize_grade(grade), subject)
    overrides = coverage_policy.COVERAGE_OVERRIDES.get(key, {})
    return CoverageThresholds(**{**coverage_policy.DEFAULT_THRESHOLDS, **overrides})


def get_beta_thresholds(grade: str | int, subject: str) -> CoverageThresholds:
    """
    Relaxed tier derived proportionally from the full tier.

    Each field is min(hard floor, ceil(full * factor)), so beta is never
    stricter than full.
    """
    full = get_thresholds(grade, subject).model_dump()
    derived = {
        name: min(
            coverage_policy.BETA_FLOORS[name],
            math.ceil(value * coverage_policy.BETA_FACTORS[name]),
        )
        for name, value in full.items()
    }
    return CoverageThresholds(**derived)


def is_in_scope(grade: str | int, subject: str) -> bool:
    """Whether the cell is part of the currently launched scope."""
    return (normalize_grade(grade), subject) in coverage_policy.IN_SCOPE_GRADE_SUBJECTS
