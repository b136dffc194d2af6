"""
Content Data Model

Records read from the content store and payloads written back by the
gap filler. Provenance (who generated a row, which standards it covers,
why it exists) is a typed record validated at the store boundary, not a
free-form metadata bag.
"""

from typing import Any, Iterable

from pydantic import BaseModel, Field, field_validator

from src.schemas.base import AssessmentPurpose, GeneratedBy, NonEmptyStr, StorageMode


def dedupe_codes(values: Iterable[str | None]) -> list[str]:
    """Trim, drop blanks and de-duplicate while keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        trimmed = (value or "").strip()
        if trimmed:
            seen.setdefault(trimmed, None)
    return list(seen)


class Provenance(BaseModel):
    """
    Structured origin of a content row.

    `standards` behaves like a set: values are trimmed and de-duplicated
    on construction so merges are always unions.
    """
    generated_by: GeneratedBy | None = None
    standards: list[str] = Field(default_factory=list)
    purpose: AssessmentPurpose | None = None
    module_slug: str | None = None

    @field_validator("standards", mode="before")
    @classmethod
    def _normalize_standards(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return dedupe_codes([value])
        return dedupe_codes(value)

    def with_standards(self, codes: Iterable[str | None]) -> "Provenance":
        """Return a copy whose standards are the union with `codes`."""
        return self.model_copy(
            update={"standards": dedupe_codes([*self.standards, *codes])}
        )


# =============================================================================
# RECORDS (read side)
# =============================================================================

class SubjectRecord(BaseModel):
    id: int
    name: NonEmptyStr


class ModuleRecord(BaseModel):
    """A curriculum module. Read-only to this subsystem."""
    id: int
    slug: NonEmptyStr
    title: str | None = None
    subject: NonEmptyStr
    grade_band: NonEmptyStr
    strand: str | None = None
    topic: str | None = None


class LessonRecord(BaseModel):
    id: int
    module_id: int | None = None


class PracticeItemRecord(BaseModel):
    id: int
    lesson_id: int | None = None
    module_id: int | None = None
    tags: list[str] = Field(default_factory=list)
    provenance: Provenance = Field(default_factory=Provenance)


class AssessmentRecord(BaseModel):
    id: int
    module_id: int | None = None
    title: str | None = None
    assessment_type: str | None = None
    provenance: Provenance = Field(default_factory=Provenance)


class AssetRecord(BaseModel):
    id: int
    module_id: int
    title: str | None = None
    url: str | None = None
    storage_mode: str | None = None
    provenance: Provenance = Field(default_factory=Provenance)

    @property
    def is_external(self) -> bool:
        """Linked or embedded assets count toward the external baseline."""
        mode = (self.storage_mode or "").strip().lower()
        return mode in {m.value for m in StorageMode.external_modes()}


class CoverageCell(BaseModel):
    """
    One row of the coverage baseline view: a module crossed with one of
    its standard codes, plus its three baseline flags.
    """
    module_id: int
    module_slug: NonEmptyStr
    module_title: str | None = None
    subject: NonEmptyStr
    grade_band: str | None = None
    standard_code: str | None = None
    practice_items_aligned: int | None = None
    practice_target: int | None = None
    meets_practice_baseline: bool = False
    meets_assessment_baseline: bool = False
    external_resource_count: int | None = None
    meets_external_baseline: bool = False
    # Codes from other view rows of the same module
    additional_standard_codes: list[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.module_title or self.module_slug

    @property
    def standard_codes(self) -> list[str]:
        return dedupe_codes([self.standard_code, *self.additional_standard_codes])

    @property
    def is_deficient(self) -> bool:
        return not (
            self.meets_practice_baseline
            and self.meets_assessment_baseline
            and self.meets_external_baseline
        )


# =============================================================================
# PAYLOADS (write side)
# =============================================================================

class NewQuestionOption(BaseModel):
    option_order: int = Field(ge=1)
    content: NonEmptyStr
    is_correct: bool
    feedback: str | None = None


class NewPracticeItem(BaseModel):
    subject_id: int
    module_id: int | None = None
    prompt: NonEmptyStr
    solution_explanation: str | None = None
    difficulty: int = Field(default=2, ge=1, le=5)
    question_type: str = "multiple_choice"
    tags: list[str] = Field(default_factory=list)
    provenance: Provenance
    options: list[NewQuestionOption] = Field(default_factory=list)


class NewAssessment(BaseModel):
    subject_id: int
    module_id: int
    title: NonEmptyStr
    description: str | None = None
    is_adaptive: bool = False
    estimated_duration_minutes: int = 15
    assessment_type: str = "unit_assessment"
    provenance: Provenance


class NewAssessmentSection(BaseModel):
    section_order: int = 1
    title: NonEmptyStr
    instructions: str | None = None


class NewAsset(BaseModel):
    module_id: int
    title: NonEmptyStr
    description: str | None = None
    url: NonEmptyStr
    kind: str = "link"
    license: str | None = None
    license_url: str | None = None
    attribution_text: str | None = None
    storage_mode: str = "link"
    source_provider: str | None = None
    provenance: Provenance
