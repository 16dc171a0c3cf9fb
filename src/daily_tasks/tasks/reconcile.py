# src/daily_tasks/tasks/reconcile.py

"""
Reconciliation of cached GitHub metadata.

For every task that carries a GitHub link:
- fetch fresh metadata (all fetches run concurrently, each one guarded),
- derive the task status from the remote state,
- persist the task only if something relevant changed.

Fresh metadata is merged onto the task as stored right before the write
(TaskStore.update_where), so edits made while fetching are kept and a task
the user paused or finished meanwhile is not auto-transitioned.
A reconciliation that finishes after an undo may still write its fresh
metadata back: last fetch wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from datetime import date

from ..core.background import BackgroundTasks
from ..core.ports import RemoteStatusResolver
from .status import derive_status
from .task_models import GithubMetadata, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[list[Task]], Awaitable[None] | None]


def metadata_changed(cached: GithubMetadata, fresh: GithubMetadata) -> bool:
    return (
        cached.state != fresh.state
        or cached.review_state != fresh.review_state
        or cached.linked_prs != fresh.linked_prs
    )


def reconcile_task(task: Task, fresh: GithubMetadata) -> Task | None:
    """
    Return the updated task, or None when nothing relevant changed.

    The returned task always carries the fresh metadata, even if only the
    status changed, so metadata and status never drift apart.
    """
    if task.github is None:
        return None
    status = derive_status(task.status, fresh)
    if status == task.status and not metadata_changed(task.github, fresh):
        return None
    return replace(task, github=fresh, status=status)


class Reconciler:
    def __init__(
        self,
        store: TaskStore,
        resolver: RemoteStatusResolver,
        *,
        background: BackgroundTasks | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._background = background or BackgroundTasks()

    async def _fetch(self, task: Task) -> GithubMetadata | None:
        assert task.github is not None
        try:
            resolved = await self._resolver.resolve(task.github.url)
        except Exception:
            logger.exception("GitHub fetch failed task_id=%s url=%s", task.id, task.github.url)
            return None
        if resolved is None:
            logger.debug("No remote update task_id=%s url=%s", task.id, task.github.url)
            return None
        return resolved.metadata

    async def reconcile(
        self,
        day: date,
        profile: str,
        tasks: Sequence[Task] | None = None,
    ) -> list[Task]:
        """
        Refresh GitHub-linked tasks of one partition.

        `tasks` defaults to the stored partition. Returns the tasks that were
        persisted (empty when nothing changed).
        """
        if tasks is None:
            tasks = await self._store.load(day, profile)
        linked = [t for t in tasks if t.github is not None]
        if not linked:
            return []

        fresh_all = await asyncio.gather(*(self._fetch(t) for t in linked))

        fresh_by_id: dict[str, GithubMetadata] = {}
        for task, fresh in zip(linked, fresh_all):
            if fresh is not None and reconcile_task(task, fresh) is not None:
                fresh_by_id[task.id] = fresh

        if not fresh_by_id:
            logger.debug("Reconcile: no changes profile=%s day=%s", profile, day)
            return []

        def merge(current: Task) -> Task | None:
            fresh = fresh_by_id.get(current.id)
            return None if fresh is None else reconcile_task(current, fresh)

        applied = await self._store.update_where(day, profile, merge)
        logger.info(
            "Reconcile: updated %d/%d linked tasks profile=%s day=%s",
            len(applied),
            len(linked),
            profile,
            day,
        )
        return applied

    def reconcile_in_background(
        self,
        day: date,
        profile: str,
        tasks: Sequence[Task] | None = None,
        *,
        on_change: ChangeCallback | None = None,
    ) -> asyncio.Task[list[Task]]:
        """
        Start `reconcile` as a detached task.

        `on_change` is called with the persisted tasks when something changed.
        Failures are logged by the background registry.
        """

        async def _run() -> list[Task]:
            applied = await self.reconcile(day, profile, tasks)
            if applied and on_change is not None:
                result = on_change(applied)
                if asyncio.iscoroutine(result):
                    await result
            return applied

        return self._background.spawn(_run(), name=f"reconcile:{profile}:{day.isoformat()}")
