"""
Unit tests for the paginated fetcher.

Sleep and jitter are injected so retry timing is checked without waiting.
"""

import logging

import pytest

from src.storage.errors import InvalidProvenanceError, PaginationError
from src.storage.pagination import backoff_delay, fetch_all_paginated


class WindowedSource:
    """In-memory rows served by inclusive window, optionally failing first."""

    def __init__(self, rows, failures: int = 0):
        self.rows = list(rows)
        self.failures = failures
        self.calls: list[tuple[int, int]] = []
        self.page_sizes: list[int] = []

    async def __call__(self, start: int, end: int):
        self.calls.append((start, end))
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("connection reset")
        page = self.rows[start:end + 1]
        self.page_sizes.append(len(page))
        return page


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def no_jitter() -> float:
    return 0.0


class TestFetchAllPaginated:

    @pytest.mark.asyncio
    async def test_short_page_ends_fetch(self) -> None:
        source = WindowedSource(["a", "b", "c", "d", "e"])

        rows = await fetch_all_paginated(source, page_size=2)

        assert rows == ["a", "b", "c", "d", "e"]
        assert source.page_sizes == [2, 2, 1]
        assert source.calls == [(0, 1), (2, 3), (4, 5)]

    @pytest.mark.asyncio
    async def test_exact_multiple_reads_one_empty_page(self) -> None:
        source = WindowedSource(range(4))

        rows = await fetch_all_paginated(source, page_size=2)

        assert rows == [0, 1, 2, 3]
        assert source.page_sizes == [2, 2, 0]

    @pytest.mark.asyncio
    async def test_empty_source(self) -> None:
        assert await fetch_all_paginated(WindowedSource([]), page_size=10) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_size", [1, 2, 3, 7, 50, 1000])
    async def test_same_rows_for_any_page_size(self, page_size) -> None:
        source = list(range(23))
        assert await fetch_all_paginated(WindowedSource(source), page_size=page_size) == source

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self) -> None:
        source = WindowedSource(["a"], failures=2)
        sleep = SleepRecorder()

        rows = await fetch_all_paginated(
            source, page_size=5, base_delay=0.5, sleep=sleep, jitter=no_jitter
        )

        assert rows == ["a"]
        assert sleep.delays == [0.5, 1.0]
        assert source.calls == [(0, 4)] * 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_one_error(self) -> None:
        source = WindowedSource(["a"], failures=100)
        sleep = SleepRecorder()

        with pytest.raises(PaginationError) as exc_info:
            await fetch_all_paginated(
                source, max_retries=3, base_delay=0.5, label="lessons",
                sleep=sleep, jitter=no_jitter,
            )

        error = exc_info.value
        assert error.resource == "lessons"
        assert error.attempts == 4
        assert isinstance(error.last_error, ConnectionError)
        assert "lessons" in str(error)
        assert len(source.calls) == 4
        assert sleep.delays == [0.5, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_failure_after_first_page_returns_nothing_partial(self) -> None:
        calls = []

        async def query(start, end):
            calls.append(start)
            if start > 0:
                raise TimeoutError("slow")
            return [1, 2]

        with pytest.raises(PaginationError):
            await fetch_all_paginated(
                query, page_size=2, max_retries=1, sleep=SleepRecorder(), jitter=no_jitter
            )
        assert calls == [0, 2, 2]

    @pytest.mark.asyncio
    async def test_invalid_row_data_is_not_retried(self) -> None:
        calls = []
        sleep = SleepRecorder()

        async def query(start, end):
            calls.append(start)
            raise InvalidProvenanceError("practice_items", 7, "unknown generated_by")

        with pytest.raises(InvalidProvenanceError, match="practice_items#7"):
            await fetch_all_paginated(query, max_retries=3, sleep=sleep, jitter=no_jitter)
        assert calls == [0]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_warns_once_per_retry_when_labelled(self, caplog) -> None:
        source = WindowedSource(["a"], failures=2)

        with caplog.at_level(logging.WARNING, logger="src.storage.pagination"):
            await fetch_all_paginated(
                source, label="modules", sleep=SleepRecorder(), jitter=no_jitter
            )

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2
        assert all("[modules]" in r.getMessage() for r in warnings)

    @pytest.mark.asyncio
    async def test_silent_without_label(self, caplog) -> None:
        source = WindowedSource(["a"], failures=1)

        with caplog.at_level(logging.WARNING, logger="src.storage.pagination"):
            await fetch_all_paginated(source, sleep=SleepRecorder(), jitter=no_jitter)

        assert caplog.records == []

    @pytest.mark.asyncio
    async def test_rejects_non_positive_page_size(self) -> None:
        with pytest.raises(ValueError):
            await fetch_all_paginated(WindowedSource([]), page_size=0)


class TestBackoffDelay:

    def test_doubles_each_attempt(self) -> None:
        assert [backoff_delay(n, 0.5) for n in (1, 2, 3, 4)] == [0.5, 1.0, 2.0, 4.0]

    def test_adds_jitter(self) -> None:
        assert backoff_delay(2, 0.5, 0.1) == pytest.approx(1.1)
