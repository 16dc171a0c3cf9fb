# src/daily_tasks/tasks/session.py

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import date

from ..core.ports import RemoteStatusResolver, ResolvedItem
from .history import History
from .reconcile import Reconciler
from .status import StatusAction, apply_action, derive_status
from .task_models import Task, TaskPriority, TaskStatus
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def sort_tasks(tasks: list[Task]) -> list[Task]:
    """Tasks with a deadline first (earliest first), then priority high -> low."""
    return sorted(
        tasks,
        key=lambda t: (t.deadline is None, t.deadline or 0, -t.priority.rank),
    )


class TaskSession:
    """
    Working view of one (date, profile) partition.

    Owns its own History; create a new session whenever the active date or
    profile changes. Every mutation snapshots the current list first, then
    writes through the TaskStore, then reloads.
    """

    def __init__(
        self,
        store: TaskStore,
        day: date,
        profile: str,
        *,
        resolver: RemoteStatusResolver | None = None,
        reconciler: Reconciler | None = None,
        history_limit: int = 50,
    ) -> None:
        self.store = store
        self.day = day
        self.profile = profile
        self.history = History(store, day, profile, limit=history_limit)
        self._resolver = resolver
        self._reconciler = reconciler
        self.tasks: list[Task] = []

    @property
    def is_today(self) -> bool:
        return self.day == self.store.today()

    async def refresh(self) -> list[Task]:
        self.tasks = await self.store.load(self.day, self.profile)
        return self.tasks

    def sorted_tasks(self) -> list[Task]:
        return sort_tasks(self.tasks)

    def find(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    # ---- mutations ----

    async def add(
        self,
        title: str,
        description: str = "",
        *,
        priority: TaskPriority = TaskPriority.MEDIUM,
        deadline: int | None = None,
        github_url: str | None = None,
    ) -> Task:
        """
        Create a task. With `github_url`, remote metadata is attached and an
        empty title/description is filled from the issue or PR.
        """
        github = None
        status = TaskStatus.TODO
        if github_url:
            resolved = await self._resolve(github_url)
            if resolved is not None:
                github = resolved.metadata
                title = title or github.title
                description = description or resolved.body
                status = derive_status(status, github)
            elif not description:
                description = github_url

        title = (title or "").strip()
        if not title:
            raise ValueError("title is required")

        task = Task(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            priority=priority,
            status=status,
            created_at=now_ms(),
            deadline=deadline,
            github=github,
        )
        self.history.snapshot(self.tasks)
        await self.store.create(self.day, self.profile, task)
        await self.refresh()
        logger.info("Task added id=%s profile=%s day=%s", task.id, self.profile, self.day)
        return task

    async def _resolve(self, url: str) -> ResolvedItem | None:
        if self._resolver is None:
            return None
        try:
            return await self._resolver.resolve(url)
        except Exception:
            logger.exception("GitHub lookup failed url=%s", url)
            return None

    async def update(self, task: Task) -> bool:
        self.history.snapshot(self.tasks)
        found = await self.store.update(self.day, self.profile, task)
        await self.refresh()
        return found

    async def delete(self, task_id: str) -> None:
        self.history.snapshot(self.tasks)
        await self.store.delete(self.day, self.profile, task_id)
        await self.refresh()

    async def apply(self, task_id: str, action: StatusAction) -> Task | None:
        """
        Apply an explicit status transition. Unknown ids are ignored (None);
        illegal transitions raise InvalidTransitionError before anything is written.
        """
        task = self.find(task_id)
        if task is None:
            return None
        updated = replace(task, status=apply_action(task.status, action))
        await self.update(updated)
        return updated

    # ---- history ----

    async def undo(self) -> bool:
        restored = await self.history.undo(self.tasks)
        if restored is None:
            return False
        self.tasks = restored
        return True

    async def redo(self) -> bool:
        restored = await self.history.redo(self.tasks)
        if restored is None:
            return False
        self.tasks = restored
        return True

    # ---- reconciliation ----

    async def reconcile(self) -> list[Task]:
        if self._reconciler is None:
            return []
        applied = await self._reconciler.reconcile(self.day, self.profile, self.tasks)
        if applied:
            await self.refresh()
        return applied

    def reconcile_in_background(
        self,
        on_change: Callable[[list[Task]], Awaitable[None] | None] | None = None,
    ) -> asyncio.Task[list[Task]] | None:
        """Start reconciliation detached; the session reloads before `on_change` runs."""
        if self._reconciler is None:
            return None

        async def _changed(applied: list[Task]) -> None:
            await self.refresh()
            if on_change is not None:
                result = on_change(applied)
                if result is not None:
                    await result

        return self._reconciler.reconcile_in_background(
            self.day, self.profile, list(self.tasks), on_change=_changed
        )
