"""
Pipeline Settings

Environment-driven configuration. Values may come from a local .env file.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class PipelineSettings:
    database_url: str = "sqlite:///coverage.db"
    coverage_cache_ttl: float = 300.0
    fetch_page_size: int = 1000
    fetch_max_retries: int = 3
    fetch_base_delay: float = 0.5
    practice_target_default: int = 20
    practice_batch_size: int = 25
    coverage_top_gaps: int = 5

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "PipelineSettings":
        if load_dotenv_file:
            load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            coverage_cache_ttl=_env_float("COVERAGE_CACHE_TTL", cls.coverage_cache_ttl),
            fetch_page_size=_env_int("FETCH_PAGE_SIZE", cls.fetch_page_size),
            fetch_max_retries=_env_int("FETCH_MAX_RETRIES", cls.fetch_max_retries),
            fetch_base_delay=_env_float("FETCH_BASE_DELAY", cls.fetch_base_delay),
            practice_target_default=_env_int("PRACTICE_TARGET_DEFAULT", cls.practice_target_default),
            practice_batch_size=_env_int("PRACTICE_BATCH_SIZE", cls.practice_batch_size),
            coverage_top_gaps=_env_int("COVERAGE_TOP_GAPS", cls.coverage_top_gaps),
        )
