# tests/conftest.py

from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest

from daily_tasks.core.background import BackgroundTasks
from daily_tasks.core.state import AppState
from daily_tasks.profiles import ProfileDirectory
from daily_tasks.tasks.reconcile import Reconciler
from daily_tasks.tasks.task_models import (
    GithubItemType,
    GithubMetadata,
    LinkedPR,
    LinkedPRState,
    ReviewState,
    Task,
    TaskPriority,
    TaskStatus,
)
from daily_tasks.tasks.task_store import TaskStore

from .fakes import MemoryKeyValueStore, RecordingNoteSink, ScriptedResolver

TODAY = date(2024, 5, 10)


def make_task(
    task_id: str,
    *,
    title: str | None = None,
    status: TaskStatus = TaskStatus.TODO,
    priority: TaskPriority = TaskPriority.MEDIUM,
    github: GithubMetadata | None = None,
    deadline: int | None = None,
) -> Task:
    return Task(
        id=task_id,
        title=title or f"task {task_id}",
        description="",
        priority=priority,
        status=status,
        created_at=1_715_000_000_000,
        deadline=deadline,
        github=github,
    )


def make_pr(
    number: int = 7,
    *,
    state: str = "open",
    review_state: ReviewState | None = ReviewState.PENDING_REVIEW,
) -> GithubMetadata:
    return GithubMetadata(
        url=f"https://github.com/acme/app/pull/{number}",
        number=number,
        repo="app",
        owner="acme",
        state=state,
        title=f"PR {number}",
        type=GithubItemType.PULL_REQUEST,
        review_state=review_state,
    )


def make_issue(
    number: int = 3,
    *,
    state: str = "open",
    linked: list[LinkedPR] | None = None,
) -> GithubMetadata:
    return GithubMetadata(
        url=f"https://github.com/acme/app/issues/{number}",
        number=number,
        repo="app",
        owner="acme",
        state=state,
        title=f"Issue {number}",
        type=GithubItemType.ISSUE,
        linked_prs=tuple(linked) if linked is not None else None,
    )


def make_linked(
    number: int,
    *,
    state: LinkedPRState = LinkedPRState.OPEN,
    review_state: ReviewState | None = None,
) -> LinkedPR:
    return LinkedPR(
        number=number,
        title=f"PR {number}",
        url=f"https://github.com/acme/app/pull/{number}",
        state=state,
        review_state=review_state,
    )


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def note_sink() -> RecordingNoteSink:
    return RecordingNoteSink()


@pytest.fixture()
def background() -> BackgroundTasks:
    return BackgroundTasks()


@pytest.fixture()
def store(kv: MemoryKeyValueStore, note_sink: RecordingNoteSink, background: BackgroundTasks) -> TaskStore:
    return TaskStore(kv, note_sink=note_sink, background=background, today=lambda: TODAY)


@pytest.fixture()
def resolver() -> ScriptedResolver:
    return ScriptedResolver()


@pytest.fixture()
def reconciler(store: TaskStore, resolver: ScriptedResolver, background: BackgroundTasks) -> Reconciler:
    return Reconciler(store, resolver, background=background)


@pytest.fixture()
def state(
    kv: MemoryKeyValueStore,
    store: TaskStore,
    resolver: ScriptedResolver,
    reconciler: Reconciler,
    background: BackgroundTasks,
) -> AppState:
    """
    AppState wired with in-memory fakes.

    Settings are a SimpleNamespace rather than the real config, to keep unit
    tests isolated from the environment.
    """
    settings = SimpleNamespace(history_limit=10, github_token=None)
    return AppState(
        settings=settings,
        kv=kv,
        store=store,
        profiles=ProfileDirectory(kv),
        background=background,
        resolver=resolver,
        reconciler=reconciler,
    )
