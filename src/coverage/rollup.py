"""
Coverage roll-up report.

Usage:
    python scripts/coverage_rollup.py [--grades 3,4,5] [--readiness]

Groups the coverage baseline view by grade/subject and prints how many
modules miss each baseline. With --readiness, also prints the
grade/subject readiness summary.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass

from src.coverage.reporter import CoverageReporter
from src.coverage.thresholds import grade_rank, normalize_grade
from src.gap_filling.cli import parse_grade_list
from src.schemas.content import CoverageCell
from src.schemas.coverage import CoverageSummary
from src.storage.content_store import ContentStore
from src.storage.database import COVERAGE_VIEW, get_engine
from src.storage.pagination import fetch_all_paginated
from src.utils.config import PipelineSettings
from src.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


@dataclass
class RollupRow:
    grade: str
    subject: str
    modules: int = 0
    fully_covered: int = 0
    missing_practice: int = 0
    missing_assessment: int = 0
    missing_external: int = 0

    @property
    def coverage_percent(self) -> int:
        return round(self.fully_covered / self.modules * 100) if self.modules else 0

    @property
    def needs_attention(self) -> int:
        return self.modules - self.fully_covered


def rollup_cells(cells: list[CoverageCell]) -> list[RollupRow]:
    """One row per grade/subject; each module counted once."""
    rows: dict[tuple[str, str], RollupRow] = {}
    seen: set[int] = set()
    for cell in cells:
        if cell.module_id in seen:
            continue
        seen.add(cell.module_id)
        key = (normalize_grade(cell.grade_band or ""), cell.subject)
        row = rows.setdefault(key, RollupRow(grade=key[0], subject=key[1]))
        row.modules += 1
        if not cell.is_deficient:
            row.fully_covered += 1
        if not cell.meets_practice_baseline:
            row.missing_practice += 1
        if not cell.meets_assessment_baseline:
            row.missing_assessment += 1
        if not cell.meets_external_baseline:
            row.missing_external += 1
    return sorted(rows.values(), key=lambda r: (grade_rank(r.grade), r.subject))


def format_rollup(rows: list[RollupRow]) -> list[str]:
    lines = []
    for row in rows:
        lines.append(
            f"{row.grade} {row.subject}: modules {row.modules}, missing practice "
            f"{row.missing_practice}, assessments {row.missing_assessment}, "
            f"external {row.missing_external}"
        )
        lines.append(
            f"  -> fully covered {row.fully_covered} ({row.coverage_percent}%), "
            f"needs attention {row.needs_attention}"
        )
    return lines


def format_summary(summary: CoverageSummary) -> list[str]:
    lines = [
        f"Readiness: {summary.in_scope_ready}/{summary.in_scope_total} in-scope cells "
        f"({summary.readiness_percent}%)",
        f"  ready {summary.ready_count}, beta {summary.beta_count}, "
        f"thin {summary.thin_count}, empty {summary.empty_count}",
    ]
    for gap in summary.top_gaps:
        lines.append(f"  gap: {gap.grade} {gap.subject}: {gap.issue}")
    return lines


async def load_cells(
    store: ContentStore,
    settings: PipelineSettings,
    grade_bands: list[str] | None,
) -> list[CoverageCell]:
    async def window(start: int, end: int) -> list[CoverageCell]:
        return await store.fetch_coverage_cells_window(
            start, end, grade_bands=grade_bands, deficient_only=False
        )

    return await fetch_all_paginated(
        window,
        page_size=settings.fetch_page_size,
        max_retries=settings.fetch_max_retries,
        base_delay=settings.fetch_base_delay,
        label=COVERAGE_VIEW,
    )


async def _report(store: ContentStore, settings: PipelineSettings, args) -> list[str]:
    lines = format_rollup(rollup_cells(await load_cells(store, settings, args.grades)))
    if args.readiness:
        reporter = CoverageReporter(store, settings=settings)
        lines.extend(format_summary(await reporter.get_coverage_summary()))
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="coverage_rollup", description=__doc__.splitlines()[1])
    parser.add_argument("--grades", "--grade-bands", dest="grades", type=parse_grade_list, default=None)
    parser.add_argument("--readiness", action="store_true", help="Also print the readiness summary")
    args = parser.parse_args(argv)

    configure_logging()
    settings = PipelineSettings.from_env()
    engine = get_engine(settings.database_url)
    try:
        lines = asyncio.run(_report(ContentStore(engine), settings, args))
    except Exception:
        logger.exception("Coverage roll-up failed")
        return 1
    finally:
        engine.dispose()

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
