# tests/services/test_content_store.py
import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from src.coverage.reporter import CoverageReporter
from src.schemas.base import GeneratedBy
from src.schemas.content import NewPracticeItem, NewQuestionOption, Provenance
from src.storage.errors import InvalidProvenanceError
from src.storage.models import Asset, PracticeItem
from src.storage.pagination import fetch_all_paginated
from src.utils.config import PipelineSettings


class TestCoverageView:

    @pytest.mark.asyncio
    async def test_one_row_per_module_standard(self, store, seed_module):
        seed_module("g6-math-ratios", standards=("6.RP.A.3", "6.RP.A.1"))
        seed_module("g6-math-stats", standards=())

        cells = await store.fetch_coverage_cells_window(0, 99, deficient_only=False)

        assert [(c.module_slug, c.standard_code) for c in cells] == [
            ("g6-math-ratios", "6.RP.A.1"),
            ("g6-math-ratios", "6.RP.A.3"),
            ("g6-math-stats", None),
        ]

    @pytest.mark.asyncio
    async def test_baseline_flags(self, engine, store, seed_module):
        module_id = seed_module("g6-math-ratios", practice_target=3, existing_items=3)
        seed_module("g6-math-stats", practice_target=3, existing_items=2)
        with Session(engine) as session, session.begin():
            session.add(Asset(module_id=module_id, title="Sim", storage_mode="Embed"))

        cells = {c.module_slug: c for c in await store.fetch_coverage_cells_window(0, 99, deficient_only=False)}

        ratios = cells["g6-math-ratios"]
        assert ratios.practice_items_aligned == 3
        assert ratios.meets_practice_baseline is True
        assert ratios.meets_assessment_baseline is False
        assert ratios.external_resource_count == 1
        assert ratios.meets_external_baseline is True
        assert cells["g6-math-stats"].meets_practice_baseline is False
        assert cells["g6-math-stats"].meets_external_baseline is False

    @pytest.mark.asyncio
    async def test_default_practice_target(self, store, seed_module):
        seed_module("g6-math-ratios", practice_target=None)

        cells = await store.fetch_coverage_cells_window(0, 99)

        assert cells[0].practice_target == 20

    @pytest.mark.asyncio
    async def test_deficient_only_and_grade_filter(self, engine, store, seed_module):
        covered = seed_module("g6-math-ratios", practice_target=0)
        seed_module("g7-math-equations", grade_band="7")
        seed_module("g8-math-functions", grade_band="8")
        with Session(engine) as session, session.begin():
            session.execute(
                text("INSERT INTO assessments (module_id, title) VALUES (:m, 'Quiz')"), {"m": covered}
            )
            session.add(Asset(module_id=covered, title="Link", storage_mode="link"))

        deficient = await store.fetch_coverage_cells_window(0, 99)
        filtered = await store.fetch_coverage_cells_window(0, 99, grade_bands=["6", "8"])

        assert [c.module_slug for c in deficient] == ["g7-math-equations", "g8-math-functions"]
        assert [c.module_slug for c in filtered] == ["g8-math-functions"]

    @pytest.mark.asyncio
    async def test_grade_filter_ignores_case(self, store, seed_module):
        seed_module("gk-math-counting", grade_band="K")
        seed_module("gk-ela-letters", subject="English Language Arts", grade_band="k")
        seed_module("g1-math-addition", grade_band="1")

        cells = await store.fetch_coverage_cells_window(0, 99, grade_bands=[" k "])

        assert [c.module_slug for c in cells] == ["gk-ela-letters", "gk-math-counting"]


    @pytest.mark.asyncio
    async def test_windows_page_through_view(self, store, seed_module):
        for n in range(5):
            seed_module(f"g6-math-{n}")

        cells = await fetch_all_paginated(
            lambda start, end: store.fetch_coverage_cells_window(start, end),
            page_size=2,
        )

        assert [c.module_slug for c in cells] == [f"g6-math-{n}" for n in range(5)]


class TestPracticeItems:

    @pytest.mark.asyncio
    async def test_insert_returns_ids_in_order(self, store, add_subject, seed_module):
        subject_id = add_subject("Mathematics")
        module_id = seed_module("g6-math-ratios")
        provenance = Provenance(
            generated_by=GeneratedBy.GAP_FILLER, standards=[" 6.RP.A.1 "], module_slug="g6-math-ratios"
        )
        items = [
            NewPracticeItem(
                subject_id=subject_id,
                module_id=module_id,
                prompt=f"Prompt {n}",
                provenance=provenance,
                options=[NewQuestionOption(option_order=1, content="Yes", is_correct=True)],
            )
            for n in range(3)
        ]

        ids = await store.insert_practice_items(items)
        found = await store.find_practice_items("g6-math-ratios")

        assert ids == sorted(ids)
        assert [item.id for item in found] == ids
        assert found[0].provenance.standards == ["6.RP.A.1"]

    @pytest.mark.asyncio
    async def test_invalid_provenance_rejected_at_boundary(self, engine, store, seed_module):
        seed_module("g6-math-ratios")
        with Session(engine) as session, session.begin():
            session.add(PracticeItem(prompt="Q", module_slug="g6-math-ratios", generated_by="robot"))

        with pytest.raises(InvalidProvenanceError) as exc_info:
            await store.find_practice_items("g6-math-ratios")

        assert exc_info.value.table == "practice_items"

    @pytest.mark.asyncio
    async def test_collaborator_items_read_with_module_id(self, engine, store, seed_module):
        module_id = seed_module("g6-math-ratios")
        with Session(engine) as session, session.begin():
            session.add_all([
                PracticeItem(prompt="Q1", module_id=module_id, generated_by="fill_priority_gaps"),
                PracticeItem(prompt="Q2", module_slug="g6-math-ratios", generated_by="fill_gaps_from_dashboard"),
            ])

        items = await store.fetch_practice_items_window(0, 99)

        assert [i.provenance.generated_by for i in items] == [
            GeneratedBy.FILL_PRIORITY_GAPS,
            GeneratedBy.FILL_GAPS_FROM_DASHBOARD,
        ]
        assert [i.module_id for i in items] == [module_id, None]
        assert all(i.lesson_id is None for i in items)


    @pytest.mark.asyncio
    async def test_update_provenance_missing_row(self, store):
        with pytest.raises(LookupError):
            await store.update_practice_provenance(999, Provenance(standards=["X"]))


class TestLookups:

    @pytest.mark.asyncio
    async def test_subjects_keyed_by_trimmed_name(self, store, add_subject):
        add_subject(" Science ")
        add_subject("Mathematics")

        subjects = await store.fetch_subjects()

        assert set(subjects) == {"Science", "Mathematics"}

    @pytest.mark.asyncio
    async def test_modules_by_ids(self, store, seed_module):
        first = seed_module("g6-math-ratios", strand="Ratios")
        seed_module("g7-math-equations", grade_band="7")

        modules = await store.fetch_modules_by_ids([first, 404])

        assert [m.slug for m in modules] == ["g6-math-ratios"]
        assert modules[0].strand == "Ratios"
        assert await store.fetch_modules_by_ids([]) == []

    @pytest.mark.asyncio
    async def test_lessons_window_skips_unassigned(self, engine, store, seed_module):
        seed_module("g6-math-ratios", lessons=2)
        with Session(engine) as session, session.begin():
            session.execute(text("INSERT INTO lessons (module_id, title) VALUES (NULL, 'Orphan')"))

        lessons = await store.fetch_lessons_window(0, 99)

        assert len(lessons) == 2
        assert all(lesson.module_id is not None for lesson in lessons)


class TestReporterOverStore:

    @pytest.mark.asyncio
    async def test_coverage_includes_collaborator_items(self, engine, store, seed_module):
        module_id = seed_module("g6-math-ratios", lessons=2, existing_items=2)
        with Session(engine) as session, session.begin():
            session.add(PracticeItem(prompt="Q", module_id=module_id, generated_by="fill_priority_gaps"))
        settings = PipelineSettings(fetch_max_retries=0, fetch_base_delay=0.0)

        coverage = await CoverageReporter(store, settings=settings).get_content_coverage()

        assert [c.key for c in coverage] == [("6", "Mathematics")]
        assert coverage[0].lesson_count == 2
        assert coverage[0].question_count == 3
