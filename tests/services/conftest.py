"""
Content Store Fixtures

File-backed SQLite store with the coverage view installed, plus a
helper for seeding modules and their existing content.
"""

import pytest
from sqlalchemy.orm import Session

from src.storage.content_store import ContentStore
from src.storage.database import get_engine, init_db
from src.storage.models import Lesson, Module, ModuleStandard, PracticeItem, Subject


@pytest.fixture
def engine(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'content.db'}")
    init_db(engine, practice_target_default=20)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return ContentStore(engine)


@pytest.fixture
def add_subject(engine):
    """Insert a subject row and return its id."""
    def _add(name: str) -> int:
        with Session(engine) as session, session.begin():
            subject = Subject(name=name)
            session.add(subject)
            session.flush()
            return subject.id
    return _add


@pytest.fixture
def seed_module(engine):
    """
    Insert a module with optional standards, lessons and existing
    practice items tagged with its slug. Returns the module id.
    """
    def _seed(
        slug: str,
        subject: str = "Mathematics",
        grade_band: str = "6",
        standards: tuple[str, ...] = ("6.RP.A.1",),
        practice_target: int | None = 20,
        lessons: int = 0,
        existing_items: int = 0,
        strand: str | None = None,
        subject_id: int | None = None,
    ) -> int:
        with Session(engine) as session, session.begin():
            module = Module(
                slug=slug,
                title=slug.replace("-", " ").title(),
                subject=subject,
                grade_band=grade_band,
                strand=strand,
                practice_target=practice_target,
            )
            session.add(module)
            session.flush()
            session.add_all(
                ModuleStandard(module_id=module.id, standard_code=code) for code in standards
            )
            lesson_ids = []
            for n in range(lessons):
                lesson = Lesson(module_id=module.id, title=f"{slug} lesson {n + 1}")
                session.add(lesson)
                session.flush()
                lesson_ids.append(lesson.id)
            session.add_all(
                PracticeItem(
                    subject_id=subject_id,
                    module_id=module.id,
                    lesson_id=lesson_ids[n % len(lesson_ids)] if lesson_ids else None,
                    prompt=f"Authored question {n + 1}",
                    tags=[slug],
                    module_slug=slug,
                    standards=[],
                )
                for n in range(existing_items)
            )
            return module.id
    return _seed
