import asyncio
import random

import pytest

from sitemap_qa.workflows.task_pool import chunk_items, run_tasks


def test_run_tasks_preserves_input_order():
    items = list(range(20))

    async def worker(value):
        # Finish in scrambled order
        await asyncio.sleep(random.random() / 100)
        return value * 10

    results = asyncio.run(run_tasks(items, 4, worker))

    assert results == [value * 10 for value in items]


def test_run_tasks_short_circuits_on_empty_or_zero_concurrency():
    calls = []

    async def worker(value):
        calls.append(value)
        return value

    assert asyncio.run(run_tasks([], 4, worker)) == []
    assert asyncio.run(run_tasks([1, 2, 3], 0, worker)) == []
    assert asyncio.run(run_tasks([1, 2, 3], -1, worker)) == []
    assert calls == []


def test_run_tasks_never_exceeds_concurrency():
    state = {"active": 0, "peak": 0}

    async def worker(value):
        state["active"] += 1
        state["peak"] = max(state["peak"], state["active"])
        await asyncio.sleep(0)
        state["active"] -= 1
        return value

    asyncio.run(run_tasks(list(range(50)), 3, worker))

    assert state["peak"] == 3


def test_run_tasks_raises_first_error_by_index_after_draining():
    seen = []

    async def worker(value):
        # Later index fails first in wall-clock time
        await asyncio.sleep(0.02 if value == 1 else 0)
        seen.append(value)
        if value in (1, 4):
            raise ValueError(f"boom {value}")
        return value

    with pytest.raises(ValueError) as excinfo:
        asyncio.run(run_tasks(list(range(6)), 3, worker))

    assert str(excinfo.value) == "boom 1"
    assert sorted(seen) == list(range(6))
    task_errors = excinfo.value.task_errors
    assert [index for index, _ in task_errors] == [1, 4]
    assert str(task_errors[1][1]) == "boom 4"


def test_run_tasks_progress_cadence():
    reports = []

    async def worker(value):
        return value

    asyncio.run(run_tasks(list(range(10)), 4, worker, on_progress=lambda done, total: reports.append((done, total))))

    assert reports == [(4, 10), (8, 10), (10, 10)]


def test_run_tasks_progress_without_partial_tail():
    reports = []

    async def worker(value):
        return value

    asyncio.run(run_tasks(list(range(6)), 3, worker, on_progress=lambda done, total: reports.append(done)))

    assert reports == [3, 6]


def test_chunk_items_splits_contiguously():
    assert chunk_items([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunk_items([], 3) == []
    with pytest.raises(ValueError):
        chunk_items([1], 0)
