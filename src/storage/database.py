"""
Database Setup

Engine construction and schema bootstrap, including the
`coverage_dashboard_cells` view the gap filler reads its work list from.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from src.storage.models import Base

logger = logging.getLogger(__name__)

COVERAGE_VIEW = "coverage_dashboard_cells"

# One row per (module, standard code). Modules without standards get a
# single row with a NULL code. Flags are 0/1 integers on every backend.
_COVERAGE_VIEW_SELECT = """
SELECT
    m.id AS module_id,
    m.slug AS module_slug,
    m.title AS module_title,
    m.subject AS subject,
    m.grade_band AS grade_band,
    ms.standard_code AS standard_code,
    COALESCE(p.aligned, 0) AS practice_items_aligned,
    COALESCE(m.practice_target, {practice_target}) AS practice_target,
    CASE WHEN COALESCE(p.aligned, 0) >= COALESCE(m.practice_target, {practice_target})
         THEN 1 ELSE 0 END AS meets_practice_baseline,
    CASE WHEN COALESCE(a.assessment_count, 0) > 0 THEN 1 ELSE 0 END AS meets_assessment_baseline,
    COALESCE(x.external_count, 0) AS external_resource_count,
    CASE WHEN COALESCE(x.external_count, 0) > 0 THEN 1 ELSE 0 END AS meets_external_baseline
FROM modules m
LEFT JOIN module_standards ms ON ms.module_id = m.id
LEFT JOIN (
    SELECT module_slug, COUNT(*) AS aligned
    FROM practice_items
    WHERE module_slug IS NOT NULL
    GROUP BY module_slug
) p ON p.module_slug = m.slug
LEFT JOIN (
    SELECT module_id, COUNT(*) AS assessment_count
    FROM assessments
    WHERE module_id IS NOT NULL
    GROUP BY module_id
) a ON a.module_id = m.id
LEFT JOIN (
    SELECT module_id, COUNT(*) AS external_count
    FROM assets
    WHERE LOWER(storage_mode) IN ('link', 'embed')
    GROUP BY module_id
) x ON x.module_id = m.id
"""


def get_engine(database_url: str) -> Engine:
    """Create an engine usable from worker threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def init_db(engine: Engine, practice_target_default: int = 20) -> None:
    """Create tables and the coverage baseline view if missing."""
    Base.metadata.create_all(engine)

    select_sql = _COVERAGE_VIEW_SELECT.format(practice_target=int(practice_target_default))
    if engine.dialect.name == "sqlite":
        ddl = f"CREATE VIEW IF NOT EXISTS {COVERAGE_VIEW} AS {select_sql}"
    else:
        ddl = f"CREATE OR REPLACE VIEW {COVERAGE_VIEW} AS {select_sql}"

    with engine.begin() as conn:
        conn.execute(text(ddl))
    logger.info("Schema ready (%s)", engine.dialect.name)
