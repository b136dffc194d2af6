"""
Paginated Fetcher

Walks a bulk data source in fixed-size windows until a short page
signals end-of-data, retrying transient failures with exponential
backoff and jitter. Callers receive the complete row set or a single
PaginationError; partial results are never returned. A ValueError from
the query means bad row data and propagates at once without a retry.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Sequence, TypeVar

from src.storage.errors import PaginationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Async callable returning the rows of the inclusive window [start, end].
# Raises on a query error.
QueryWindow = Callable[[int, int], Awaitable[Sequence[T]]]

DEFAULT_PAGE_SIZE = 1000
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 0.5
DEFAULT_MAX_JITTER = 0.25


def backoff_delay(attempt: int, base_delay: float, jitter: float = 0.0) -> float:
    """Delay before retry number `attempt` (1-based)."""
    return base_delay * 2 ** (attempt - 1) + jitter


async def fetch_all_paginated(
    query_window: QueryWindow,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    label: str | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    jitter: Callable[[], float] | None = None,
) -> list[T]:
    """
    Fetch every row from a windowed query.

    Args:
        query_window: Async (start, end) -> rows, raising on failure
        page_size: Rows requested per window
        max_retries: Retries per window after the first failed attempt
        base_delay: Seconds before the first retry; doubles each retry
        label: Resource name used in retry warnings and the final error
        sleep: Awaitable sleep, injectable for tests
        jitter: Returns the random component added to each delay

    Raises:
        PaginationError: When a window still fails after `max_retries` retries
    """
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    jitter = jitter or (lambda: random.uniform(0, DEFAULT_MAX_JITTER))
    resource = label or "paginated query"
    rows: list[T] = []
    offset = 0

    while True:
        page = await _fetch_window(
            query_window, offset, offset + page_size - 1,
            max_retries=max_retries,
            base_delay=base_delay,
            label=label,
            resource=resource,
            sleep=sleep,
            jitter=jitter,
        )
        rows.extend(page)
        if len(page) < page_size:
            return rows
        offset += page_size


async def _fetch_window(
    query_window: QueryWindow,
    start: int,
    end: int,
    *,
    max_retries: int,
    base_delay: float,
    label: str | None,
    resource: str,
    sleep: Callable[[float], Awaitable[None]],
    jitter: Callable[[], float],
) -> Sequence[T]:
    last_error: Exception | None = None
    for attempt in range(max_retries + 1):
        if attempt > 0:
            delay = backoff_delay(attempt, base_delay, jitter())
            if label:
                logger.warning(
                    "[%s] window %d-%d failed (%s); retry %d/%d in %.2fs",
                    label, start, end, last_error, attempt, max_retries, delay,
                )
            await sleep(delay)
        try:
            return await query_window(start, end)
        except ValueError:
            # bad rows fail the same way on every attempt
            raise
        except Exception as e:
            last_error = e

    raise PaginationError(resource, max_retries + 1, last_error)
