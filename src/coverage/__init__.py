"""
Content Coverage Package

Threshold policy, status evaluation and the cached coverage reporter.

Flow:
ThresholdPolicy -> CoverageEvaluator -> CoverageReporter (snapshot + summary)
"""

from src.coverage.cache import CoverageCache
from src.coverage.evaluator import describe_shortfalls, evaluate_coverage_status
from src.coverage.reporter import CoverageReporter, aggregate_coverage
from src.coverage.thresholds import (
    get_beta_thresholds,
    get_thresholds,
    is_in_scope,
    normalize_grade,
)

__all__ = [
    "CoverageCache",
    "CoverageReporter",
    "aggregate_coverage",
    "describe_shortfalls",
    "evaluate_coverage_status",
    "get_beta_thresholds",
    "get_thresholds",
    "is_in_scope",
    "normalize_grade",
]
