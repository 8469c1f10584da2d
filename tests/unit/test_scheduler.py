"""Unit tests for TaskQueue and AsyncioScheduler."""

import asyncio

import pytest

from viewsync import AsyncioScheduler, TaskQueue


@pytest.mark.unit
@pytest.mark.scheduler
def test_nothing_runs_until_flushed():
    queue = TaskQueue()
    ran = []

    queue.call_soon(lambda: ran.append("soon"))

    assert ran == []
    assert queue.pending == 1
    assert queue.flush() == 1
    assert ran == ["soon"]
    assert queue.pending == 0


@pytest.mark.unit
@pytest.mark.scheduler
def test_tasks_run_in_due_then_scheduling_order():
    queue = TaskQueue()
    ran = []

    queue.call_later(20, lambda: ran.append("late"))
    queue.call_later(10, lambda: ran.append("early"))
    queue.call_soon(lambda: ran.append("first"))
    queue.call_soon(lambda: ran.append("second"))

    queue.advance(5)
    assert ran == ["first", "second"]

    queue.advance(15)
    assert ran == ["first", "second", "early", "late"]
    assert queue.now == 20


@pytest.mark.unit
@pytest.mark.scheduler
def test_cancelled_task_never_runs():
    queue = TaskQueue()
    ran = []

    task = queue.call_soon(lambda: ran.append(1))
    task.cancel()

    assert queue.pending == 0
    assert queue.flush() == 0
    assert ran == []
    assert task.cancelled and not task.done


@pytest.mark.unit
@pytest.mark.scheduler
def test_flush_includes_tasks_scheduled_by_running_tasks():
    queue = TaskQueue()
    ran = []

    def outer():
        ran.append("outer")
        queue.call_soon(lambda: ran.append("inner"))

    queue.call_soon(outer)

    assert queue.flush() == 2
    assert ran == ["outer", "inner"]


@pytest.mark.unit
@pytest.mark.scheduler
def test_task_runs_at_most_once():
    queue = TaskQueue()
    ran = []

    task = queue.call_soon(lambda: ran.append(1))
    queue.flush()

    assert task.done
    assert task.run() is False
    assert ran == [1]


@pytest.mark.unit
@pytest.mark.scheduler
@pytest.mark.edge_case
def test_negative_delays_are_rejected():
    queue = TaskQueue()

    with pytest.raises(ValueError):
        queue.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        queue.advance(-1)


@pytest.mark.unit
@pytest.mark.scheduler
def test_asyncio_scheduler_runs_on_the_loop():
    async def scenario():
        scheduler = AsyncioScheduler()
        ran = []

        scheduler.call_soon(lambda: ran.append("soon"))
        cancelled = scheduler.call_later(1, lambda: ran.append("cancelled"))
        cancelled.cancel()
        scheduler.call_later(1, lambda: ran.append("later"))

        await asyncio.sleep(0.05)
        return ran

    assert asyncio.run(scenario()) == ["soon", "later"]


@pytest.mark.unit
@pytest.mark.scheduler
@pytest.mark.edge_case
def test_asyncio_scheduler_requires_running_loop():
    with pytest.raises(RuntimeError):
        AsyncioScheduler()
