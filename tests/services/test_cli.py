# tests/services/test_cli.py
from sqlalchemy.orm import Session

from src.coverage import rollup
from src.gap_filling import cli
from src.gap_filling.filler import GapFiller
from src.storage.database import get_engine, init_db
from src.storage.models import Module, Subject


def use_database(tmp_path, monkeypatch) -> str:
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("FETCH_BASE_DELAY", "0")
    return url


def test_fill_gaps_prints_summary(tmp_path, monkeypatch, capsys):
    url = use_database(tmp_path, monkeypatch)
    assert cli.main(["--init-db"]) == 0

    engine = get_engine(url)
    with Session(engine) as session, session.begin():
        session.add(Subject(name="Mathematics"))
        session.add(Module(slug="g3-math-area", subject="Mathematics", grade_band="3", practice_target=2))
        session.add(Module(slug="g4-math-angles", subject="Mathematics", grade_band="4", practice_target=2))
    engine.dispose()
    capsys.readouterr()

    assert cli.main(["--grades", "3"]) == 0
    assert capsys.readouterr().out.strip() == "Gap filling complete: 1 modules processed."

    assert cli.main([]) == 0
    assert capsys.readouterr().out.strip() == "Gap filling complete: 1 modules processed."


def test_fill_gaps_fatal_error_exits_nonzero(tmp_path, monkeypatch, capsys):
    use_database(tmp_path, monkeypatch)

    async def boom(self, grade_bands=None):
        self.report.modules_processed = 2
        raise RuntimeError("insert failed")

    monkeypatch.setattr(GapFiller, "run", boom)

    assert cli.main(["--init-db"]) == 1
    assert capsys.readouterr().out.strip() == "Gap filling aborted: 2 modules processed."


def test_parse_grade_list():
    assert cli.parse_grade_list(" K, 1,,2 ") == ["K", "1", "2"]
    assert cli.parse_grade_list("k,1") == ["K", "1"]


def test_rollup_reports_per_grade_subject(tmp_path, monkeypatch, capsys):
    url = use_database(tmp_path, monkeypatch)
    engine = get_engine(url)
    init_db(engine)
    with Session(engine) as session, session.begin():
        session.add(Module(slug="g5-math-fractions", subject="Mathematics", grade_band="5"))
    engine.dispose()
    capsys.readouterr()

    assert rollup.main(["--readiness"]) == 0
    out = capsys.readouterr().out.splitlines()

    assert out[0] == (
        "5 Mathematics: modules 1, missing practice 1, assessments 1, external 1"
    )
    assert out[1] == "  -> fully covered 0 (0%), needs attention 1"
    assert out[2] == "Readiness: 0/1 in-scope cells (0%)"
    assert out[3] == "  ready 0, beta 0, thin 0, empty 1"
    assert out[4] == "  gap: 5 Mathematics: No lessons"


def test_rollup_missing_view_fails(tmp_path, monkeypatch):
    use_database(tmp_path, monkeypatch)
    monkeypatch.setenv("FETCH_MAX_RETRIES", "0")

    assert rollup.main([]) == 1
