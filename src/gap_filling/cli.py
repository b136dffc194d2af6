"""
Gap filling batch entry point.

Usage:
    python scripts/fill_gaps.py [--grades K,1,2] [--init-db]

Prints a one-line summary when done. Exits 1 only if the run aborted
on a fatal error; work already committed stays, and re-running is safe.
"""

import argparse
import asyncio
import logging
import sys

from src.coverage.thresholds import normalize_grade
from src.gap_filling.filler import GapFiller
from src.storage.content_store import ContentStore
from src.storage.database import get_engine, init_db
from src.utils.config import PipelineSettings
from src.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def parse_grade_list(value: str) -> list[str]:
    grades = [normalize_grade(g) for g in value.split(",") if g.strip()]
    if not grades:
        raise argparse.ArgumentTypeError("expected comma-separated grades, e.g. K,1,2")
    return grades


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fill_gaps",
        description="Backfill practice, assessments and enrichment links for modules below baseline.",
    )
    parser.add_argument(
        "--grades", "--grade-bands",
        dest="grades",
        type=parse_grade_list,
        default=None,
        help="Comma-separated grade bands to process (default: all)",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables and the coverage view before running",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    settings = PipelineSettings.from_env()

    engine = get_engine(settings.database_url)
    if args.init_db:
        init_db(engine, settings.practice_target_default)

    filler = GapFiller(ContentStore(engine), settings)
    exit_code = 0
    try:
        asyncio.run(filler.run(args.grades))
    except Exception:
        logger.exception("Gap filling aborted")
        exit_code = 1
    finally:
        engine.dispose()

    report = filler.report
    if exit_code:
        print(f"Gap filling aborted: {report.modules_processed} modules processed.")
    else:
        print(report.summary_line())
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
