"""
Content Store

Async read/write access to modules, lessons, practice items, assessments
and assets. Every call runs its blocking SQLAlchemy work in a worker
thread, so each round trip is a suspension point for the event loop.

Windowed reads (`fetch_*_window`) plug into fetch_all_paginated.
Provenance columns are validated here; rows with invalid provenance
raise InvalidProvenanceError instead of leaking untyped data upward.
"""

import asyncio
import logging
from typing import Any, Iterable

from pydantic import ValidationError
from sqlalchemy import func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from src.schemas.base import GeneratedBy
from src.schemas.content import (
    AssessmentRecord,
    AssetRecord,
    CoverageCell,
    LessonRecord,
    ModuleRecord,
    NewAssessment,
    NewAssessmentSection,
    NewAsset,
    NewPracticeItem,
    PracticeItemRecord,
    Provenance,
    SubjectRecord,
)
from src.storage.database import COVERAGE_VIEW
from src.storage.errors import InvalidProvenanceError
from src.storage.models import (
    Assessment,
    AssessmentQuestion,
    AssessmentSection,
    Asset,
    Lesson,
    Module,
    PracticeItem,
    QuestionOption,
    Subject,
)

logger = logging.getLogger(__name__)

_COVERAGE_COLUMNS = (
    "module_id, module_slug, module_title, subject, grade_band, standard_code, "
    "practice_items_aligned, practice_target, meets_practice_baseline, "
    "meets_assessment_baseline, external_resource_count, meets_external_baseline"
)


def _provenance(table: str, row: Any) -> Provenance:
    try:
        return Provenance(
            generated_by=getattr(row, "generated_by", None),
            standards=getattr(row, "standards", None),
            purpose=getattr(row, "purpose", None),
            module_slug=getattr(row, "module_slug", None),
        )
    except ValidationError as e:
        raise InvalidProvenanceError(table, row.id, str(e)) from e


def _provenance_columns(provenance: Provenance) -> dict[str, Any]:
    return {
        "module_slug": provenance.module_slug,
        "generated_by": provenance.generated_by.value if provenance.generated_by else None,
        "standards": list(provenance.standards),
    }


class ContentStore:
    """Async facade over the relational content store."""

    def __init__(self, engine: Engine):
        self.engine = engine

    # ------------------------------------------------------------------
    # Windowed bulk reads
    # ------------------------------------------------------------------

    async def fetch_modules_window(self, start: int, end: int) -> list[ModuleRecord]:
        return await asyncio.to_thread(self._fetch_modules_window, start, end)

    def _fetch_modules_window(self, start: int, end: int) -> list[ModuleRecord]:
        stmt = select(Module).order_by(Module.id).offset(start).limit(end - start + 1)
        with Session(self.engine) as session:
            return [self._module_record(m) for m in session.scalars(stmt)]

    async def fetch_lessons_window(self, start: int, end: int) -> list[LessonRecord]:
        return await asyncio.to_thread(self._fetch_lessons_window, start, end)

    def _fetch_lessons_window(self, start: int, end: int) -> list[LessonRecord]:
        stmt = (
            select(Lesson.id, Lesson.module_id)
            .where(Lesson.module_id.is_not(None))
            .order_by(Lesson.id)
            .offset(start)
            .limit(end - start + 1)
        )
        with Session(self.engine) as session:
            return [LessonRecord(id=r.id, module_id=r.module_id) for r in session.execute(stmt)]

    async def fetch_practice_items_window(self, start: int, end: int) -> list[PracticeItemRecord]:
        return await asyncio.to_thread(self._fetch_practice_items_window, start, end)

    def _fetch_practice_items_window(self, start: int, end: int) -> list[PracticeItemRecord]:
        stmt = select(PracticeItem).order_by(PracticeItem.id).offset(start).limit(end - start + 1)
        with Session(self.engine) as session:
            return [self._practice_record(item) for item in session.scalars(stmt)]

    async def fetch_coverage_cells_window(
        self,
        start: int,
        end: int,
        grade_bands: list[str] | None = None,
        deficient_only: bool = True,
    ) -> list[CoverageCell]:
        return await asyncio.to_thread(
            self._fetch_coverage_cells_window, start, end, grade_bands, deficient_only
        )

    def _fetch_coverage_cells_window(
        self,
        start: int,
        end: int,
        grade_bands: list[str] | None,
        deficient_only: bool,
    ) -> list[CoverageCell]:
        clauses: list[str] = []
        params: dict[str, Any] = {"limit": end - start + 1, "offset": start}
        if deficient_only:
            clauses.append(
                "(meets_practice_baseline = 0 OR meets_assessment_baseline = 0 "
                "OR meets_external_baseline = 0)"
            )
        if grade_bands:
            names = []
            for i, band in enumerate(grade_bands):
                params[f"g{i}"] = band.strip().upper()
                names.append(f":g{i}")
            clauses.append(f"UPPER(TRIM(grade_band)) IN ({', '.join(names)})")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = text(
            f"SELECT {_COVERAGE_COLUMNS} FROM {COVERAGE_VIEW} {where} "
            "ORDER BY module_slug, standard_code LIMIT :limit OFFSET :offset"
        )
        with self.engine.connect() as conn:
            rows = conn.execute(sql, params).mappings().all()
        return [CoverageCell(**row) for row in rows]

    # ------------------------------------------------------------------
    # Point lookups
    # ------------------------------------------------------------------

    async def fetch_modules_by_ids(self, module_ids: Iterable[int]) -> list[ModuleRecord]:
        return await asyncio.to_thread(self._fetch_modules_by_ids, list(module_ids))

    def _fetch_modules_by_ids(self, module_ids: list[int]) -> list[ModuleRecord]:
        if not module_ids:
            return []
        stmt = select(Module).where(Module.id.in_(module_ids)).order_by(Module.id)
        with Session(self.engine) as session:
            return [self._module_record(m) for m in session.scalars(stmt)]

    async def fetch_subjects(self) -> dict[str, SubjectRecord]:
        """Subjects keyed by trimmed name."""
        return await asyncio.to_thread(self._fetch_subjects)

    def _fetch_subjects(self) -> dict[str, SubjectRecord]:
        with Session(self.engine) as session:
            subjects: dict[str, SubjectRecord] = {}
            for subject in session.scalars(select(Subject)):
                name = (subject.name or "").strip()
                if name:
                    subjects[name] = SubjectRecord(id=subject.id, name=name)
            return subjects

    async def find_practice_items(self, module_slug: str) -> list[PracticeItemRecord]:
        """Practice items tagged with the module's slug, oldest first."""
        return await asyncio.to_thread(self._find_practice_items, module_slug)

    def _find_practice_items(self, module_slug: str) -> list[PracticeItemRecord]:
        stmt = (
            select(PracticeItem)
            .where(PracticeItem.module_slug == module_slug)
            .order_by(PracticeItem.id)
        )
        with Session(self.engine) as session:
            return [self._practice_record(item) for item in session.scalars(stmt)]

    async def find_assessment_for_module(self, module_id: int) -> AssessmentRecord | None:
        return await asyncio.to_thread(self._find_assessment_for_module, module_id)

    def _find_assessment_for_module(self, module_id: int) -> AssessmentRecord | None:
        stmt = (
            select(Assessment)
            .where(Assessment.module_id == module_id)
            .order_by(Assessment.id)
            .limit(1)
        )
        with Session(self.engine) as session:
            assessment = session.scalars(stmt).first()
            if assessment is None:
                return None
            return AssessmentRecord(
                id=assessment.id,
                module_id=assessment.module_id,
                title=assessment.title,
                assessment_type=assessment.assessment_type,
                provenance=_provenance("assessments", assessment),
            )

    async def find_assets_for_module(self, module_id: int) -> list[AssetRecord]:
        return await asyncio.to_thread(self._find_assets_for_module, module_id)

    def _find_assets_for_module(self, module_id: int) -> list[AssetRecord]:
        stmt = select(Asset).where(Asset.module_id == module_id).order_by(Asset.id)
        with Session(self.engine) as session:
            return [
                AssetRecord(
                    id=asset.id,
                    module_id=asset.module_id,
                    title=asset.title,
                    url=asset.url,
                    storage_mode=asset.storage_mode,
                    provenance=_provenance("assets", asset),
                )
                for asset in session.scalars(stmt)
            ]

    async def count_rows(self, table: str, generated_by: GeneratedBy | None = None) -> int:
        """Row count for an audit of authored vs. backfilled content."""
        return await asyncio.to_thread(self._count_rows, table, generated_by)

    def _count_rows(self, table: str, generated_by: GeneratedBy | None) -> int:
        model = {
            "practice_items": PracticeItem,
            "assessments": Assessment,
            "assets": Asset,
        }[table]
        stmt = select(func.count()).select_from(model)
        if generated_by is not None:
            stmt = stmt.where(model.generated_by == generated_by.value)
        with Session(self.engine) as session:
            return session.scalar(stmt) or 0

    # ------------------------------------------------------------------
    # Writes (each call commits independently)
    # ------------------------------------------------------------------

    async def update_practice_provenance(self, item_id: int, provenance: Provenance) -> None:
        await asyncio.to_thread(self._update_practice_provenance, item_id, provenance)

    def _update_practice_provenance(self, item_id: int, provenance: Provenance) -> None:
        with Session(self.engine) as session, session.begin():
            item = session.get(PracticeItem, item_id)
            if item is None:
                raise LookupError(f"practice item {item_id} not found")
            item.standards = list(provenance.standards)
            if provenance.module_slug and not item.module_slug:
                item.module_slug = provenance.module_slug

    async def insert_practice_items(self, items: list[NewPracticeItem]) -> list[int]:
        """Insert items and their options in one transaction; returns ids in input order."""
        return await asyncio.to_thread(self._insert_practice_items, items)

    def _insert_practice_items(self, items: list[NewPracticeItem]) -> list[int]:
        with Session(self.engine) as session, session.begin():
            rows = []
            for item in items:
                row = PracticeItem(
                    subject_id=item.subject_id,
                    module_id=item.module_id,
                    question_type=item.question_type,
                    prompt=item.prompt,
                    solution_explanation=item.solution_explanation,
                    difficulty=item.difficulty,
                    tags=list(item.tags),
                    extra={},
                    **_provenance_columns(item.provenance),
                )
                rows.append(row)
            session.add_all(rows)
            session.flush()

            for row, item in zip(rows, items):
                session.add_all(
                    QuestionOption(
                        question_id=row.id,
                        option_order=option.option_order,
                        content=option.content,
                        is_correct=option.is_correct,
                        feedback=option.feedback,
                    )
                    for option in item.options
                )
            logger.debug("Inserted %d practice items", len(rows))
            return [row.id for row in rows]

    async def update_assessment_provenance(
        self,
        assessment_id: int,
        provenance: Provenance,
        assessment_type: str | None = None,
    ) -> None:
        await asyncio.to_thread(
            self._update_assessment_provenance, assessment_id, provenance, assessment_type
        )

    def _update_assessment_provenance(
        self,
        assessment_id: int,
        provenance: Provenance,
        assessment_type: str | None,
    ) -> None:
        with Session(self.engine) as session, session.begin():
            assessment = session.get(Assessment, assessment_id)
            if assessment is None:
                raise LookupError(f"assessment {assessment_id} not found")
            columns = _provenance_columns(provenance)
            assessment.module_slug = columns["module_slug"]
            assessment.generated_by = columns["generated_by"]
            assessment.standards = columns["standards"]
            assessment.purpose = provenance.purpose.value if provenance.purpose else None
            if assessment_type:
                assessment.assessment_type = assessment_type

    async def create_assessment(
        self,
        assessment: NewAssessment,
        section: NewAssessmentSection,
    ) -> tuple[int, int]:
        """Create an assessment with its first section; returns (assessment_id, section_id)."""
        return await asyncio.to_thread(self._create_assessment, assessment, section)

    def _create_assessment(
        self,
        assessment: NewAssessment,
        section: NewAssessmentSection,
    ) -> tuple[int, int]:
        with Session(self.engine) as session, session.begin():
            row = Assessment(
                module_id=assessment.module_id,
                subject_id=assessment.subject_id,
                title=assessment.title,
                description=assessment.description,
                is_adaptive=assessment.is_adaptive,
                estimated_duration_minutes=assessment.estimated_duration_minutes,
                assessment_type=assessment.assessment_type,
                purpose=assessment.provenance.purpose.value if assessment.provenance.purpose else None,
                extra={},
                **_provenance_columns(assessment.provenance),
            )
            session.add(row)
            session.flush()
            section_row = AssessmentSection(
                assessment_id=row.id,
                section_order=section.section_order,
                title=section.title,
                instructions=section.instructions,
            )
            session.add(section_row)
            session.flush()
            return row.id, section_row.id

    async def link_assessment_questions(
        self,
        section_id: int,
        question_ids: list[int],
        provenance: Provenance,
    ) -> None:
        await asyncio.to_thread(self._link_assessment_questions, section_id, question_ids, provenance)

    def _link_assessment_questions(
        self,
        section_id: int,
        question_ids: list[int],
        provenance: Provenance,
    ) -> None:
        columns = _provenance_columns(provenance)
        with Session(self.engine) as session, session.begin():
            session.add_all(
                AssessmentQuestion(
                    section_id=section_id,
                    question_id=question_id,
                    question_order=index + 1,
                    weight=1.0,
                    module_slug=columns["module_slug"],
                    generated_by=columns["generated_by"],
                )
                for index, question_id in enumerate(question_ids)
            )

    async def insert_asset(self, asset: NewAsset) -> int:
        return await asyncio.to_thread(self._insert_asset, asset)

    def _insert_asset(self, asset: NewAsset) -> int:
        with Session(self.engine) as session, session.begin():
            row = Asset(
                module_id=asset.module_id,
                title=asset.title,
                description=asset.description,
                url=asset.url,
                kind=asset.kind,
                license=asset.license,
                license_url=asset.license_url,
                attribution_text=asset.attribution_text,
                storage_mode=asset.storage_mode,
                source_provider=asset.source_provider,
                extra={},
                **_provenance_columns(asset.provenance),
            )
            session.add(row)
            session.flush()
            return row.id

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _module_record(module: Module) -> ModuleRecord:
        return ModuleRecord(
            id=module.id,
            slug=module.slug,
            title=module.title,
            subject=module.subject,
            grade_band=module.grade_band,
            strand=module.strand,
            topic=module.topic,
        )

    @staticmethod
    def _practice_record(item: PracticeItem) -> PracticeItemRecord:
        return PracticeItemRecord(
            id=item.id,
            lesson_id=item.lesson_id,
            module_id=item.module_id,
            tags=list(item.tags or []),
            provenance=_provenance("practice_items", item),
        )
