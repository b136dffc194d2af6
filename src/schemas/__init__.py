"""
Coverage Pipeline Schemas Package

Pydantic models shared by the coverage reporter, the content store and
the gap filler. Rows that do not match these schemas are rejected at
the store boundary.
"""

from src.schemas.base import (
    AssessmentPurpose,
    CoverageStatus,
    DegradeMode,
    GeneratedBy,
    StorageMode,
)
from src.schemas.coverage import (
    CoverageGap,
    CoverageSummary,
    CoverageThresholds,
    GradeSubjectCoverage,
)
from src.schemas.content import (
    AssessmentRecord,
    AssetRecord,
    CoverageCell,
    LessonRecord,
    ModuleRecord,
    PracticeItemRecord,
    Provenance,
    SubjectRecord,
)

__all__ = [
    "AssessmentPurpose",
    "CoverageStatus",
    "DegradeMode",
    "GeneratedBy",
    "StorageMode",
    "CoverageGap",
    "CoverageSummary",
    "CoverageThresholds",
    "GradeSubjectCoverage",
    "AssessmentRecord",
    "AssetRecord",
    "CoverageCell",
    "LessonRecord",
    "ModuleRecord",
    "PracticeItemRecord",
    "Provenance",
    "SubjectRecord",
]
