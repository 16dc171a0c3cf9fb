# tests/test_session.py

from __future__ import annotations

import asyncio

import pytest

from daily_tasks.core.ports import ResolvedItem
from daily_tasks.core.state import AppState
from daily_tasks.errors import InvalidTransitionError
from daily_tasks.tasks.session import sort_tasks
from daily_tasks.tasks.status import StatusAction
from daily_tasks.tasks.task_models import ReviewState, Task, TaskPriority, TaskStatus

from .conftest import TODAY, make_pr, make_task
from .fakes import ScriptedResolver


@pytest.mark.asyncio
async def test_add_update_delete_with_undo_redo(state: AppState) -> None:
    session = await state.open_session(TODAY, "Default")

    first = await session.add("Write report", "draft", priority=TaskPriority.HIGH)
    second = await session.add("Call bank")
    assert [t.id for t in session.tasks] == [first.id, second.id]

    await session.apply(first.id, StatusAction.START)
    await session.delete(second.id)
    before_undo = list(session.tasks)
    assert [(t.id, t.status) for t in before_undo] == [(first.id, TaskStatus.IN_PROGRESS)]

    assert await session.undo() is True
    assert [t.id for t in session.tasks] == [first.id, second.id]
    assert await session.redo() is True
    assert session.tasks == before_undo
    assert await state.store.load(TODAY, "Default") == before_undo


@pytest.mark.asyncio
async def test_mutation_after_undo_drops_redo(state: AppState) -> None:
    session = await state.open_session(TODAY, "Default")
    await session.add("one")
    await session.undo()
    await session.add("two")

    assert await session.redo() is False
    assert [t.title for t in session.tasks] == ["two"]


@pytest.mark.asyncio
async def test_new_session_has_fresh_history(state: AppState) -> None:
    session = await state.open_session(TODAY, "Default")
    await session.add("one")

    other = await state.open_session(TODAY, "Default")
    assert other is not session
    assert other.history.can_undo is False
    assert [t.title for t in other.tasks] == ["one"]


@pytest.mark.asyncio
async def test_add_rejects_blank_title(state: AppState) -> None:
    session = await state.open_session(TODAY, "Default")
    with pytest.raises(ValueError):
        await session.add("   ")
    assert session.history.can_undo is False


@pytest.mark.asyncio
async def test_illegal_transition_writes_nothing(state: AppState) -> None:
    session = await state.open_session(TODAY, "Default")
    task = await session.add("one")

    with pytest.raises(InvalidTransitionError):
        await session.apply(task.id, StatusAction.PAUSE)
    assert session.find(task.id).status == TaskStatus.TODO
    assert await session.apply("missing", StatusAction.START) is None


@pytest.mark.asyncio
async def test_add_from_github_url_fills_title_and_status(state: AppState, resolver: ScriptedResolver) -> None:
    meta = make_pr(12, review_state=ReviewState.APPROVED)
    resolver.results[meta.url] = ResolvedItem(metadata=meta, body="Fixes the thing")
    session = await state.open_session(TODAY, "Default")

    task = await session.add("", github_url=meta.url)

    assert task.title == "PR 12"
    assert task.description == "Fixes the thing"
    assert task.github == meta
    assert task.status == TaskStatus.READY_TO_MERGE


@pytest.mark.asyncio
async def test_add_from_unresolvable_url_keeps_the_link(state: AppState) -> None:
    session = await state.open_session(TODAY, "Default")
    url = "https://github.com/acme/app/issues/404"

    task = await session.add("Look into it", github_url=url)

    assert task.github is None
    assert task.description == url


@pytest.mark.asyncio
async def test_background_reconcile_refreshes_session(state: AppState, resolver: ScriptedResolver) -> None:
    cached = make_pr(review_state=None)
    await state.store.create(TODAY, "Default", make_task("a", github=cached))
    resolver.results[cached.url] = ResolvedItem(metadata=make_pr(review_state=ReviewState.APPROVED), body="")
    session = await state.open_session(TODAY, "Default")
    changed: list[str] = []

    job = session.reconcile_in_background(lambda applied: changed.extend(t.id for t in applied))
    assert job is not None
    await asyncio.wait_for(job, timeout=1.0)

    assert changed == ["a"]
    assert session.tasks[0].status == TaskStatus.READY_TO_MERGE


def test_sort_tasks_deadline_then_priority() -> None:
    tasks = [
        make_task("low", priority=TaskPriority.LOW),
        make_task("high", priority=TaskPriority.HIGH),
        make_task("late", deadline=2_000),
        make_task("soon", deadline=1_000),
    ]
    assert [t.id for t in sort_tasks(tasks)] == ["soon", "late", "high", "low"]


def test_helper_return_types_are_declared() -> None:
    from typing import get_type_hints

    from daily_tasks.tasks.session import TaskSession

    assert get_type_hints(TaskSession._resolve)["return"] == ResolvedItem | None
    assert get_type_hints(TaskSession.reconcile_in_background)["return"] == asyncio.Task[list[Task]] | None
