"""Bounded-concurrency worker pool shared by sitemap fetching and risk detection."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Coroutine, List, Optional, Sequence, Tuple, TypeVar

from .errors import attach_task_errors

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


def chunk_items(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    """Split ``items`` into contiguous chunks of at most ``chunk_size``."""

    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]


async def run_tasks(
    items: Sequence[T],
    concurrency: int,
    worker: Callable[[T], Awaitable[R]],
    on_progress: Optional[ProgressCallback] = None,
) -> List[Optional[R]]:
    """Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    Workers claim the next unclaimed index from a shared cursor, so a slow
    item never stalls a statically assigned partition. Results are written
    to the slot of their input index and come back in input order.

    A failing item does not stop its worker. Once every worker has drained,
    the first error by input index is raised with all collected errors
    attached as ``task_errors``; the result list must then be discarded.

    ``on_progress(completed, total)`` fires each time another ``concurrency``
    items complete and once more at the end when the last block was partial.
    """

    total = len(items)
    if concurrency <= 0 or total == 0:
        return []

    results: List[Optional[R]] = [None] * total
    errors: List[Tuple[int, BaseException]] = []
    cursor = itertools.count()
    completed = 0

    def _report() -> None:
        if on_progress is None:
            return
        if completed % concurrency == 0 or completed == total:
            on_progress(completed, total)

    async def _worker() -> None:
        nonlocal completed
        while True:
            # Claimed without an intervening await, so no two workers share an index.
            index = next(cursor)
            if index >= total:
                return
            try:
                results[index] = await worker(items[index])
            except Exception as exc:
                errors.append((index, exc))
                logger.debug("task %d/%d failed: %s", index + 1, total, exc)
            completed += 1
            _report()

    workers = [asyncio.create_task(_worker()) for _ in range(min(concurrency, total))]
    await asyncio.gather(*workers)

    if errors:
        errors.sort(key=lambda item: item[0])
        logger.warning("Processed %d items with %d errors", total, len(errors))
        first = errors[0][1]
        raise attach_task_errors(first, errors)
    return results


# ---------------- Single event loop helper for synchronous callers ----------
_LOOP: asyncio.AbstractEventLoop | None = None


def run_in_loop(coro: Coroutine[Any, Any, R]) -> R:
    """Drive ``coro`` to completion on a module-owned event loop."""

    global _LOOP
    if _LOOP is None or _LOOP.is_closed():
        _LOOP = asyncio.new_event_loop()
    return _LOOP.run_until_complete(coro)


__all__ = ["ProgressCallback", "chunk_items", "run_in_loop", "run_tasks"]
