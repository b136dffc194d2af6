"""
Gap Filler

Brings every deficient, in-scope module up to the practice, assessment
and external-resource baselines, creating only what is missing.

Idempotence comes from existence checks keyed on module identity:
re-running against an unchanged module adds no rows. Runs are assumed
to be single-writer; each write commits on its own, so a fatal error
leaves earlier work in place and a re-run picks up where it stopped.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, TypeVar

from src.coverage.thresholds import is_in_scope
from src.gap_filling.catalog import external_for_subject
from src.gap_filling.content_strategy import ContentStrategy, PlaceholderContentStrategy
from src.gap_filling.errors import SubjectNotFoundError
from src.schemas.base import AssessmentPurpose, GeneratedBy, StorageMode
from src.schemas.content import (
    CoverageCell,
    NewAssessment,
    NewAsset,
    NewPracticeItem,
    Provenance,
    SubjectRecord,
    dedupe_codes,
)
from src.storage.content_store import ContentStore
from src.storage.database import COVERAGE_VIEW
from src.storage.errors import StoreWriteError
from src.storage.pagination import fetch_all_paginated
from src.utils.config import PipelineSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

GAP_FILL_TAG = "auto_fill_baseline"
ASSESSMENT_QUESTION_LIMIT = 5
ASSESSMENT_TYPE = "unit_assessment"


@dataclass
class GapFillReport:
    """Counters for one gap-filling run."""
    modules_processed: int = 0
    modules_skipped: int = 0
    modules_out_of_scope: int = 0
    practice_items_created: int = 0
    assessments_created: int = 0
    assessments_updated: int = 0
    assets_created: int = 0
    skipped_modules: list[str] = field(default_factory=list)

    def summary_line(self) -> str:
        return f"Gap filling complete: {self.modules_processed} modules processed."


def merge_module_rows(cells: list[CoverageCell]) -> list[CoverageCell]:
    """
    Collapse view rows to one cell per module, in first-seen order.

    The first row is kept; standard codes from later rows of the same
    module are folded into it.
    """
    merged: dict[int, CoverageCell] = {}
    for cell in cells:
        first = merged.get(cell.module_id)
        if first is None:
            merged[cell.module_id] = cell
            continue
        extra = dedupe_codes([*first.additional_standard_codes, cell.standard_code])
        merged[cell.module_id] = first.model_copy(update={"additional_standard_codes": extra})
    return list(merged.values())


class GapFiller:
    """Idempotent backfill of practice items, baseline assessments and enrichment links."""

    def __init__(
        self,
        store: ContentStore,
        settings: PipelineSettings | None = None,
        strategy: ContentStrategy | None = None,
    ):
        self.store = store
        self.settings = settings or PipelineSettings()
        self.strategy = strategy or PlaceholderContentStrategy()
        self.report = GapFillReport()

    async def _write(self, action: str, cell: CoverageCell, pending: Awaitable[T]) -> T:
        try:
            return await pending
        except Exception as e:
            raise StoreWriteError(action, cell.module_slug, e) from e

    # ------------------------------------------------------------------
    # Work list
    # ------------------------------------------------------------------

    async def fetch_deficient_cells(self, grade_bands: list[str] | None = None) -> list[CoverageCell]:
        """Rows of the baseline view failing any baseline, ordered by module slug."""
        async def window(start: int, end: int) -> list[CoverageCell]:
            return await self.store.fetch_coverage_cells_window(
                start, end, grade_bands=grade_bands, deficient_only=True
            )

        return await fetch_all_paginated(
            window,
            page_size=self.settings.fetch_page_size,
            max_retries=self.settings.fetch_max_retries,
            base_delay=self.settings.fetch_base_delay,
            label=COVERAGE_VIEW,
        )

    # ------------------------------------------------------------------
    # Baselines
    # ------------------------------------------------------------------

    async def ensure_practice(self, subject_id: int, cell: CoverageCell) -> list[int]:
        """
        Top the module's tagged practice items up to its target.

        Existing items get the module's standard codes merged into their
        standards. Returns existing ids followed by newly inserted ids.
        """
        target = (
            cell.practice_target
            if cell.practice_target is not None
            else self.settings.practice_target_default
        )
        existing = await self.store.find_practice_items(cell.module_slug)
        existing_ids = [item.id for item in existing]

        codes = cell.standard_codes
        if codes:
            for item in existing:
                merged = item.provenance.with_standards(codes)
                if merged.standards != item.provenance.standards:
                    await self._write(
                        "update practice metadata", cell,
                        self.store.update_practice_provenance(item.id, merged),
                    )

        needed = max(0, target - len(existing))
        if needed == 0:
            logger.info(
                "Practice already meets target for %s (%d/%d).",
                cell.module_slug, len(existing), target,
            )
            return existing_ids

        standards = dedupe_codes(
            [*codes, *(code for item in existing for code in item.provenance.standards)]
        )
        provenance = Provenance(
            generated_by=GeneratedBy.GAP_FILLER,
            standards=standards,
            module_slug=cell.module_slug,
        )
        new_items = [
            NewPracticeItem(
                subject_id=subject_id,
                module_id=cell.module_id,
                prompt=self.strategy.practice_prompt(cell, len(existing) + i + 1, target),
                solution_explanation=self.strategy.practice_explanation(cell),
                difficulty=2,
                tags=[GAP_FILL_TAG, cell.module_slug],
                provenance=provenance,
                options=self.strategy.practice_options(cell),
            )
            for i in range(needed)
        ]

        inserted_ids: list[int] = []
        batch_size = self.settings.practice_batch_size
        for start in range(0, len(new_items), batch_size):
            batch = new_items[start:start + batch_size]
            inserted_ids.extend(
                await self._write(
                    "insert practice", cell, self.store.insert_practice_items(batch)
                )
            )

        self.report.practice_items_created += len(inserted_ids)
        logger.info("Added %d practice items for %s.", len(inserted_ids), cell.module_slug)
        return existing_ids + inserted_ids

    async def ensure_assessment(
        self,
        subject_id: int,
        cell: CoverageCell,
        question_ids: list[int],
    ) -> int | None:
        """
        Make sure the module has one baseline assessment.

        An existing assessment only has its metadata merged. Returns the
        assessment id, or None when skipped.
        """
        if cell.meets_assessment_baseline:
            return None

        existing = await self.store.find_assessment_for_module(cell.module_id)
        if existing is not None:
            current = existing.provenance
            merged = current.model_copy(
                update={
                    "purpose": current.purpose or AssessmentPurpose.BASELINE,
                    "module_slug": current.module_slug or cell.module_slug,
                }
            ).with_standards(cell.standard_codes)
            await self._write(
                "update assessment", cell,
                self.store.update_assessment_provenance(
                    existing.id, merged, existing.assessment_type or ASSESSMENT_TYPE
                ),
            )
            self.report.assessments_updated += 1
            return existing.id

        selected = list(question_ids[:ASSESSMENT_QUESTION_LIMIT])
        if len(selected) < ASSESSMENT_QUESTION_LIMIT:
            for item in await self.store.find_practice_items(cell.module_slug):
                if len(selected) >= ASSESSMENT_QUESTION_LIMIT:
                    break
                if item.id not in selected:
                    selected.append(item.id)

        if not selected:
            logger.warning(
                "No questions available for assessment on %s; skipping assessment creation.",
                cell.module_slug,
            )
            return None

        provenance = Provenance(
            generated_by=GeneratedBy.GAP_FILLER,
            purpose=AssessmentPurpose.BASELINE,
            standards=cell.standard_codes,
            module_slug=cell.module_slug,
        )
        assessment_id, section_id = await self._write(
            "create assessment", cell,
            self.store.create_assessment(
                NewAssessment(
                    subject_id=subject_id,
                    module_id=cell.module_id,
                    title=self.strategy.assessment_title(cell),
                    description="Baseline assessment to meet coverage requirements.",
                    estimated_duration_minutes=15,
                    assessment_type=ASSESSMENT_TYPE,
                    provenance=provenance,
                ),
                self.strategy.assessment_section(cell),
            ),
        )
        await self._write(
            "link assessment questions", cell,
            self.store.link_assessment_questions(section_id, selected, provenance),
        )
        self.report.assessments_created += 1
        logger.info(
            "Created assessment %d for %s with %d questions.",
            assessment_id, cell.module_slug, len(selected),
        )
        return assessment_id

    async def ensure_external(self, cell: CoverageCell) -> int | None:
        """Add one catalog link unless the module already has a link or embed asset."""
        if cell.meets_external_baseline:
            return None

        assets = await self.store.find_assets_for_module(cell.module_id)
        if any(asset.is_external for asset in assets):
            return None

        resource = external_for_subject(cell.subject)
        asset_id = await self._write(
            "insert external", cell,
            self.store.insert_asset(
                NewAsset(
                    module_id=cell.module_id,
                    title=resource.title,
                    description="Baseline enrichment link",
                    url=resource.url,
                    kind=StorageMode.LINK.value,
                    license=resource.license,
                    license_url=resource.license_url,
                    attribution_text=resource.attribution_text,
                    storage_mode=StorageMode.LINK.value,
                    source_provider=resource.source_provider,
                    provenance=Provenance(
                        generated_by=GeneratedBy.GAP_FILLER,
                        standards=cell.standard_codes,
                        module_slug=cell.module_slug,
                    ),
                )
            ),
        )
        self.report.assets_created += 1
        logger.info("Added external resource for %s (%s).", cell.module_slug, resource.source_provider)
        return asset_id

    # ------------------------------------------------------------------
    # Batch run
    # ------------------------------------------------------------------

    @staticmethod
    def _subject_id(subjects: dict[str, SubjectRecord], cell: CoverageCell) -> int:
        subject = subjects.get(cell.subject.strip())
        if subject is None:
            raise SubjectNotFoundError(cell.subject, cell.module_slug)
        return subject.id

    async def process_cell(self, subject_id: int, cell: CoverageCell) -> None:
        question_ids = await self.ensure_practice(subject_id, cell)
        await self.ensure_assessment(subject_id, cell, question_ids)
        await self.ensure_external(cell)

    async def run(self, grade_bands: list[str] | None = None) -> GapFillReport:
        """
        Process each deficient in-scope module once.

        Missing subjects skip the module; any other error aborts the run.
        `self.report` holds the counters so far even when the run aborts.
        """
        self.report = GapFillReport()
        cells = merge_module_rows(await self.fetch_deficient_cells(grade_bands))
        subjects = await self.store.fetch_subjects()
        logger.info("Gap filling %d modules below baseline.", len(cells))

        for cell in cells:
            if not is_in_scope(cell.grade_band or "", cell.subject):
                logger.debug("Skipping out-of-scope module %s.", cell.module_slug)
                self.report.modules_out_of_scope += 1
                continue

            try:
                subject_id = self._subject_id(subjects, cell)
            except SubjectNotFoundError as e:
                logger.warning("%s", e)
                self.report.modules_skipped += 1
                self.report.skipped_modules.append(cell.module_slug)
                continue

            await self.process_cell(subject_id, cell)
            self.report.modules_processed += 1

        return self.report
