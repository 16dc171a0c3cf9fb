# src/daily_tasks/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date

from ..core.background import BackgroundTasks
from ..core.ports import KeyValueStore, NoteSink
from .partition import (
    DEFAULT_PROFILE,
    LEGACY_TASKS_KEY,
    partition_date,
    partition_key,
)
from .task_models import Task, dumps_tasks, loads_tasks

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Date/profile partitioned task storage on top of a KeyValueStore.

    Every partition holds the full JSON list of one (date, profile) pair.
    Callers must go through this class instead of touching partition keys
    directly, so that:
    - the legacy undated list is migrated before any read,
    - every write is followed by a note export,
    - rollover sees a consistent key layout.

    Writes are whole-list read-modify-write; there is a single local writer.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        note_sink: NoteSink | None = None,
        background: BackgroundTasks | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._kv = kv
        self._note_sink = note_sink
        self._background = background or BackgroundTasks()
        self._today = today

    def today(self) -> date:
        return self._today()

    # ---- migration ----

    async def migrate_legacy(self) -> bool:
        """
        Move the pre-partitioning `tasks` list into the default profile's today.

        Tasks whose id is already present in today's partition are skipped.
        The legacy key is deleted afterwards, so this runs at most once;
        later calls see no legacy key and return False.
        """
        raw = await self._kv.get(LEGACY_TASKS_KEY)
        if raw is None:
            return False

        legacy = loads_tasks(raw)
        today_key = partition_key(self.today(), DEFAULT_PROFILE)
        current = loads_tasks(await self._kv.get(today_key))
        known = {t.id for t in current}
        moved = [t for t in legacy if t.id not in known]

        if moved:
            await self._kv.set(today_key, dumps_tasks(current + moved))
        await self._kv.delete(LEGACY_TASKS_KEY)
        logger.info("TaskStore migration: moved %d legacy tasks into %s", len(moved), today_key)
        return True

    # ---- load / save ----

    async def load(self, day: date, profile: str = DEFAULT_PROFILE) -> list[Task]:
        await self.migrate_legacy()
        key = partition_key(day, profile)
        return loads_tasks(await self._kv.get(key))

    async def save(self, day: date, profile: str, tasks: Sequence[Task]) -> None:
        key = partition_key(day, profile)
        snapshot = tuple(tasks)
        await self._kv.set(key, dumps_tasks(snapshot))
        logger.debug("Saved %d tasks to %s", len(snapshot), key)
        self._start_export(day, profile, snapshot)

    def _start_export(self, day: date, profile: str, tasks: tuple[Task, ...]) -> None:
        if self._note_sink is None:
            return
        self._background.spawn(
            self._note_sink.export(day, tasks, profile),
            name=f"export:{profile}:{day.isoformat()}",
        )

    async def drain_exports(self) -> None:
        await self._background.drain()

    # ---- mutations ----

    async def create(self, day: date, profile: str, task: Task) -> None:
        tasks = await self.load(day, profile)
        tasks.append(task)
        await self.save(day, profile, tasks)
        logger.debug("Task created id=%s profile=%s day=%s", task.id, profile, day)

    async def update(self, day: date, profile: str, task: Task) -> bool:
        """Replace the task with the same id. Nothing is written when the id is unknown."""
        return bool(await self.update_many(day, profile, [task]))

    async def update_many(self, day: date, profile: str, updated: Sequence[Task]) -> list[Task]:
        """
        Replace every task whose id matches one of `updated` in a single write.

        Returns the tasks that were actually applied; when none matched,
        nothing is written.
        """
        by_id = {t.id: t for t in updated}
        return await self.update_where(day, profile, lambda t: by_id.get(t.id))

    async def update_where(
        self,
        day: date,
        profile: str,
        change: Callable[[Task], Task | None],
    ) -> list[Task]:
        """
        Single read-modify-write over one partition.

        `change` receives each task as stored right now and returns its
        replacement, or None to keep it. Returns the replacements; nothing is
        written when there are none.
        """
        tasks = await self.load(day, profile)
        applied: list[Task] = []
        for i, t in enumerate(tasks):
            new = change(t)
            if new is not None:
                tasks[i] = new
                applied.append(new)
        if applied:
            await self.save(day, profile, tasks)
        return applied

    async def delete(self, day: date, profile: str, task_id: str) -> None:
        tasks = await self.load(day, profile)
        await self.save(day, profile, [t for t in tasks if t.id != task_id])

    # ---- rollover ----

    async def rollover(self, profile: str = DEFAULT_PROFILE) -> int:
        """
        Move unfinished tasks from past partitions of `profile` into today.

        - only partitions of this profile dated strictly before today are scanned
        - done tasks stay where they are
        - a task whose id is already in today's list is not appended again,
          but is still removed from the past partition
        - only partitions that changed are rewritten
        - today is written before any past partition is trimmed, so a failed
          write leaves at worst a stale copy that the next rollover removes

        Returns the number of tasks appended to today's partition.
        """
        today = self.today()
        await self.migrate_legacy()
        everything = await self._kv.list_all()

        past: list[tuple[date, str]] = []
        for key in everything:
            day = partition_date(key, profile)
            if day is not None and day < today:
                past.append((day, key))
        past.sort()

        today_tasks = loads_tasks(everything.get(partition_key(today, profile)))
        known = {t.id for t in today_tasks}
        moved = 0
        trimmed: list[tuple[date, list[Task]]] = []

        for day, key in past:
            tasks = loads_tasks(everything[key])
            keep = [t for t in tasks if t.is_done]
            if len(keep) == len(tasks):
                continue
            for t in tasks:
                if t.is_done or t.id in known:
                    continue
                today_tasks.append(t)
                known.add(t.id)
                moved += 1
            trimmed.append((day, keep))

        if moved:
            await self.save(today, profile, today_tasks)
            logger.info("Rollover: moved %d tasks into %s (profile=%s)", moved, today, profile)
        for day, keep in trimmed:
            await self.save(day, profile, keep)
        return moved
