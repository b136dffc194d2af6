"""
Unit tests for environment-driven pipeline settings.
"""

import pytest

from src.utils.config import PipelineSettings


class TestPipelineSettings:

    def test_defaults(self, monkeypatch) -> None:
        for name in ("DATABASE_URL", "FETCH_PAGE_SIZE", "COVERAGE_CACHE_TTL"):
            monkeypatch.delenv(name, raising=False)

        settings = PipelineSettings.from_env(load_dotenv_file=False)

        assert settings.database_url == "sqlite:///coverage.db"
        assert settings.fetch_page_size == 1000
        assert settings.coverage_cache_ttl == 300.0

    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/content")
        monkeypatch.setenv("FETCH_PAGE_SIZE", "250")
        monkeypatch.setenv("FETCH_BASE_DELAY", "0.1")
        monkeypatch.setenv("PRACTICE_BATCH_SIZE", " ")

        settings = PipelineSettings.from_env(load_dotenv_file=False)

        assert settings.database_url == "postgresql://localhost/content"
        assert settings.fetch_page_size == 250
        assert settings.fetch_base_delay == 0.1
        assert settings.practice_batch_size == 25

    def test_bad_integer_raises(self, monkeypatch) -> None:
        monkeypatch.setenv("FETCH_MAX_RETRIES", "three")

        with pytest.raises(ValueError, match="FETCH_MAX_RETRIES"):
            PipelineSettings.from_env(load_dotenv_file=False)
