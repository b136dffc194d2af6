"""
Coverage Data Model

Thresholds, per-cell coverage results and the dashboard summary.
GradeSubjectCoverage is derived on every evaluation and never persisted.
"""

from pydantic import BaseModel, Field

from src.schemas.base import CoverageStatus, NonNegativeInt


class CoverageThresholds(BaseModel):
    """One tier of readiness thresholds for a grade/subject cell."""
    min_lessons_per_strand: NonNegativeInt = Field(
        description="Minimum lessons per strand/topic"
    )
    min_questions_per_lesson: NonNegativeInt = Field(
        description="Minimum practice questions per lesson"
    )
    min_total_lessons: NonNegativeInt = Field(
        description="Minimum total lessons in the cell"
    )
    min_modules: NonNegativeInt = Field(
        description="Minimum modules in the cell"
    )

    model_config = {"frozen": True}

    def is_at_most(self, other: "CoverageThresholds") -> bool:
        """True if every field is <= the matching field of `other`."""
        return (
            self.min_lessons_per_strand <= other.min_lessons_per_strand
            and self.min_questions_per_lesson <= other.min_questions_per_lesson
            and self.min_total_lessons <= other.min_total_lessons
            and self.min_modules <= other.min_modules
        )


class GradeSubjectCoverage(BaseModel):
    """Coverage of one grade band crossed with one subject."""
    grade: str
    subject: str
    status: CoverageStatus
    module_count: NonNegativeInt = 0
    lesson_count: NonNegativeInt = 0
    question_count: NonNegativeInt = 0
    strands_with_content: NonNegativeInt = 0
    total_strands: NonNegativeInt = 0
    details: tuple[str, ...] = Field(
        default=(),
        description="Shortfalls against the full tier, empty when ready"
    )

    model_config = {"frozen": True}

    @property
    def meets_minimum(self) -> bool:
        return self.status in (CoverageStatus.READY, CoverageStatus.BETA)

    @property
    def key(self) -> tuple[str, str]:
        return (self.grade, self.subject)


class CoverageGap(BaseModel):
    """An in-scope cell below the relaxed tier, with its first shortfall."""
    grade: str
    subject: str
    issue: str


class CoverageSummary(BaseModel):
    """Admin dashboard roll-up of a coverage snapshot."""
    total_grade_subjects: NonNegativeInt = 0
    ready_count: NonNegativeInt = 0
    beta_count: NonNegativeInt = 0
    thin_count: NonNegativeInt = 0
    empty_count: NonNegativeInt = 0
    in_scope_ready: NonNegativeInt = 0
    in_scope_total: NonNegativeInt = 0
    readiness_percent: int = Field(default=0, ge=0, le=100)
    top_gaps: list[CoverageGap] = Field(default_factory=list)
