"""
Coverage Evaluator

Turns raw counts for a grade/subject cell into a CoverageStatus.
Nothing is stored: the status is recomputed from its inputs on every call.

Evaluation order: empty -> ready -> beta -> thin.
"""

import math

from config import coverage_policy
from src.coverage.thresholds import get_beta_thresholds, get_thresholds
from src.schemas.base import CoverageStatus
from src.schemas.coverage import CoverageThresholds


def _meets_counts(
    thresholds: CoverageThresholds,
    module_count: int,
    lesson_count: int,
    avg_questions_per_lesson: float,
) -> bool:
    return (
        module_count >= thresholds.min_modules
        and lesson_count >= thresholds.min_total_lessons
        and avg_questions_per_lesson >= thresholds.min_questions_per_lesson
    )


def required_strands(total_strands: int) -> int:
    """Strands that must meet the per-strand lesson minimum for 'ready'."""
    return math.ceil(total_strands * coverage_policy.STRAND_COVERAGE_RATIO)


def evaluate_coverage_status(
    grade: str,
    subject: str,
    module_count: int,
    lesson_count: int,
    avg_questions_per_lesson: float,
    strands_with_content: int,
    total_strands: int,
) -> CoverageStatus:
    """
    Classify a cell.

    - empty: no modules or no lessons; thresholds do not apply
    - ready: full tier on counts and >= 70% of strands covered
    - beta: relaxed tier on counts (strand coverage not required)
    - thin: anything else
    """
    if module_count == 0 or lesson_count == 0:
        return CoverageStatus.EMPTY

    full = get_thresholds(grade, subject)
    if (
        _meets_counts(full, module_count, lesson_count, avg_questions_per_lesson)
        and strands_with_content >= required_strands(total_strands)
    ):
        return CoverageStatus.READY

    beta = get_beta_thresholds(grade, subject)
    if _meets_counts(beta, module_count, lesson_count, avg_questions_per_lesson):
        return CoverageStatus.BETA

    return CoverageStatus.THIN


def describe_shortfalls(
    grade: str,
    subject: str,
    module_count: int,
    lesson_count: int,
    avg_questions_per_lesson: float,
    strands_with_content: int,
    total_strands: int,
) -> list[str]:
    """
    Operator-facing list of shortfalls against the full tier.

    Returns an empty list for ready cells.
    """
    status = evaluate_coverage_status(
        grade, subject, module_count, lesson_count,
        avg_questions_per_lesson, strands_with_content, total_strands,
    )
    if status == CoverageStatus.READY:
        return []

    if status == CoverageStatus.EMPTY:
        return ["No modules" if module_count == 0 else "No lessons"]

    full = get_thresholds(grade, subject)
    details: list[str] = []
    if module_count < full.min_modules:
        details.append(f"Only {module_count}/{full.min_modules} modules")
    if lesson_count < full.min_total_lessons:
        details.append(f"Only {lesson_count}/{full.min_total_lessons} lessons")
    if avg_questions_per_lesson < full.min_questions_per_lesson:
        details.append(
            f"Avg {avg_questions_per_lesson:.1f}/{full.min_questions_per_lesson} questions/lesson"
        )
    needed = required_strands(total_strands)
    if strands_with_content < needed:
        details.append(f"Only {strands_with_content}/{needed} strands with enough lessons")
    return details
