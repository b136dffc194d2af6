"""
Content Coverage Reporter

Aggregates module, lesson and practice-item counts per grade/subject
cell, classifies each cell, and serves the result to dashboards and
recommendation gating.

Reporter calls never raise to their callers: a failed refresh degrades
to the last good snapshot, or to an empty report if there is none.
"""

import logging
from collections import Counter, defaultdict
from typing import Iterable

from src.coverage.cache import CoverageCache
from src.coverage.evaluator import describe_shortfalls, evaluate_coverage_status
from src.coverage.thresholds import (
    get_thresholds,
    grade_rank,
    is_in_scope,
    normalize_grade,
)
from src.schemas.base import CoverageStatus, DegradeMode
from src.schemas.content import LessonRecord, ModuleRecord, PracticeItemRecord
from src.schemas.coverage import CoverageGap, CoverageSummary, GradeSubjectCoverage
from src.storage.content_store import ContentStore
from src.storage.pagination import fetch_all_paginated
from src.utils.config import PipelineSettings

logger = logging.getLogger(__name__)

COVERAGE_CACHE_KEY = "content_coverage"

# Strand bucket for modules with neither a strand nor a topic
UNASSIGNED_STRAND = "(unassigned)"


def _strand_of(module: ModuleRecord) -> str:
    return (module.strand or module.topic or UNASSIGNED_STRAND).strip() or UNASSIGNED_STRAND


def aggregate_coverage(
    modules: Iterable[ModuleRecord],
    lessons: Iterable[LessonRecord],
    practice_items: Iterable[PracticeItemRecord],
) -> list[GradeSubjectCoverage]:
    """
    Build one GradeSubjectCoverage per (grade, subject) present in `modules`.

    A practice item counts toward the module owning its lesson, then the
    module named by its provenance slug, then its own module_id. Results
    are sorted by K-12 grade order, then subject name.
    """
    modules = list(modules)
    lesson_module: dict[int, int] = {}
    lesson_counts: Counter[int] = Counter()
    for lesson in lessons:
        if lesson.module_id is None:
            continue
        lesson_module[lesson.id] = lesson.module_id
        lesson_counts[lesson.module_id] += 1

    module_by_slug = {module.slug: module.id for module in modules}
    module_ids = set(module_by_slug.values())
    question_counts: Counter[int] = Counter()
    for item in practice_items:
        module_id = lesson_module.get(item.lesson_id) if item.lesson_id is not None else None
        if module_id is None and item.provenance.module_slug:
            module_id = module_by_slug.get(item.provenance.module_slug)
        if module_id is None and item.module_id in module_ids:
            module_id = item.module_id
        if module_id is not None:
            question_counts[module_id] += 1

    cells: dict[tuple[str, str], list[ModuleRecord]] = defaultdict(list)
    for module in modules:
        cells[(normalize_grade(module.grade_band), module.subject)].append(module)

    results: list[GradeSubjectCoverage] = []
    for (grade, subject), cell_modules in cells.items():
        strand_lessons: Counter[str] = Counter()
        total_lessons = 0
        total_questions = 0
        for module in cell_modules:
            module_lessons = lesson_counts[module.id]
            total_lessons += module_lessons
            total_questions += question_counts[module.id]
            strand_lessons[_strand_of(module)] += module_lessons

        avg_questions = total_questions / total_lessons if total_lessons > 0 else 0.0
        thresholds = get_thresholds(grade, subject)
        strands_with_content = sum(
            1 for count in strand_lessons.values()
            if count >= thresholds.min_lessons_per_strand
        )
        counts = (
            len(cell_modules), total_lessons, avg_questions,
            strands_with_content, len(strand_lessons),
        )
        status = evaluate_coverage_status(grade, subject, *counts)
        results.append(
            GradeSubjectCoverage(
                grade=grade,
                subject=subject,
                status=status,
                module_count=len(cell_modules),
                lesson_count=total_lessons,
                question_count=total_questions,
                strands_with_content=strands_with_content,
                total_strands=len(strand_lessons),
                details=describe_shortfalls(grade, subject, *counts),
            )
        )

    results.sort(key=lambda c: (grade_rank(c.grade), c.subject))
    return results


class CoverageReporter:
    """
    Cached coverage report over a ContentStore.

    The cache is injected so callers control the TTL and the clock.
    """

    def __init__(
        self,
        store: ContentStore,
        cache: CoverageCache | None = None,
        settings: PipelineSettings | None = None,
    ):
        self.store = store
        self.settings = settings or PipelineSettings()
        self.cache = cache or CoverageCache(ttl=self.settings.coverage_cache_ttl)

    async def _fetch(self, query_window, label: str) -> list:
        return await fetch_all_paginated(
            query_window,
            page_size=self.settings.fetch_page_size,
            max_retries=self.settings.fetch_max_retries,
            base_delay=self.settings.fetch_base_delay,
            label=label,
        )

    async def _compute_coverage(self) -> list[GradeSubjectCoverage]:
        modules = await self._fetch(self.store.fetch_modules_window, "modules")
        lessons = await self._fetch(self.store.fetch_lessons_window, "lessons")
        items = await self._fetch(self.store.fetch_practice_items_window, "practice_items")
        return aggregate_coverage(modules, lessons, items)

    async def _snapshot(self, force_refresh: bool = False) -> list[GradeSubjectCoverage] | None:
        """Fresh or last good coverage; None when the store failed with nothing cached."""
        cached, fresh = self.cache.get(COVERAGE_CACHE_KEY)
        if fresh and not force_refresh:
            return list(cached)

        try:
            coverage = await self._compute_coverage()
        except Exception as e:
            logger.error("[ContentCoverage] Error fetching coverage: %s", e)
            if cached is not None:
                logger.warning("[ContentCoverage] Serving last good snapshot")
                return list(cached)
            return None

        self.cache.set(COVERAGE_CACHE_KEY, coverage)
        return list(coverage)

    async def get_content_coverage(self, force_refresh: bool = False) -> list[GradeSubjectCoverage]:
        """Coverage for every grade/subject cell, cached for the configured TTL."""
        coverage = await self._snapshot(force_refresh)
        return coverage if coverage is not None else []

    async def is_grade_subject_ready(
        self,
        grade: str | int,
        subject: str,
        allow_beta: bool = True,
    ) -> bool:
        """True if the cell is in scope and at or above the requested tier."""
        if not is_in_scope(grade, subject):
            return False

        key = (normalize_grade(grade), subject)
        coverage = await self.get_content_coverage()
        entry = next((c for c in coverage if c.key == key), None)
        if entry is None:
            return False
        if allow_beta:
            return entry.meets_minimum
        return entry.status == CoverageStatus.READY

    async def get_coverage_summary(self, top_n: int | None = None) -> CoverageSummary:
        """Per-status counts, in-scope readiness and the worst in-scope gaps."""
        top_n = self.settings.coverage_top_gaps if top_n is None else top_n
        coverage = await self.get_content_coverage()

        status_counts = Counter(c.status for c in coverage)
        in_scope_total = 0
        in_scope_ready = 0
        gaps: list[CoverageGap] = []
        for entry in coverage:
            if not is_in_scope(entry.grade, entry.subject):
                continue
            in_scope_total += 1
            if entry.meets_minimum:
                in_scope_ready += 1
            elif entry.details:
                gaps.append(CoverageGap(grade=entry.grade, subject=entry.subject, issue=entry.details[0]))

        return CoverageSummary(
            total_grade_subjects=len(coverage),
            ready_count=status_counts[CoverageStatus.READY],
            beta_count=status_counts[CoverageStatus.BETA],
            thin_count=status_counts[CoverageStatus.THIN],
            empty_count=status_counts[CoverageStatus.EMPTY],
            in_scope_ready=in_scope_ready,
            in_scope_total=in_scope_total,
            readiness_percent=round(in_scope_ready / in_scope_total * 100) if in_scope_total else 0,
            top_gaps=gaps[:top_n],
        )

    async def filter_modules_by_readiness(
        self,
        module_ids: list[int],
        allow_beta: bool = True,
        degrade_to: DegradeMode = DegradeMode.PASS_THROUGH,
    ) -> list[int]:
        """
        Keep only modules whose cell is in scope and ready (or beta).

        This gates recommendation surfacing, so by default a failed module
        lookup, or coverage that cannot be computed with no snapshot to fall
        back on, passes the input through unfiltered (DegradeMode.PASS_THROUGH).
        """
        if not module_ids:
            return []

        coverage = await self._snapshot()
        if coverage is None:
            logger.warning(
                "[ContentCoverage] Coverage unavailable; degrading to %s", degrade_to.value
            )
            return list(module_ids) if degrade_to == DegradeMode.PASS_THROUGH else []

        ready_cells = {
            entry.key
            for entry in coverage
            if (entry.status == CoverageStatus.READY
                or (allow_beta and entry.status == CoverageStatus.BETA))
            and is_in_scope(entry.grade, entry.subject)
        }

        try:
            modules = await self.store.fetch_modules_by_ids(module_ids)
        except Exception as e:
            logger.warning(
                "[ContentCoverage] Module lookup failed (%s); degrading to %s",
                e, degrade_to.value,
            )
            if degrade_to == DegradeMode.PASS_THROUGH:
                return list(module_ids)
            return []

        cell_of = {m.id: (normalize_grade(m.grade_band), m.subject) for m in modules}
        return [
            module_id for module_id in module_ids
            if cell_of.get(module_id) in ready_cells
        ]
