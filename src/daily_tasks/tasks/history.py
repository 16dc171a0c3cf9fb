# src/daily_tasks/tasks/history.py

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence
from datetime import date

from .task_models import Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

Snapshot = tuple[Task, ...]


class History:
    """
    Linear undo/redo over whole task-list snapshots of one (date, profile).

    - snapshot() is called right before a mutation commits and clears redo
    - undo()/redo() persist the restored list through the TaskStore
    - both stacks are bounded; the oldest snapshots are dropped first

    A History belongs to one session and is discarded with it.
    """

    def __init__(self, store: TaskStore, day: date, profile: str, *, limit: int = 50) -> None:
        self._store = store
        self.day = day
        self.profile = profile
        self._undo: deque[Snapshot] = deque(maxlen=max(1, limit))
        self._redo: deque[Snapshot] = deque(maxlen=max(1, limit))

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def snapshot(self, current: Sequence[Task]) -> None:
        self._undo.append(tuple(current))
        self._redo.clear()

    async def undo(self, current: Sequence[Task]) -> list[Task] | None:
        if not self._undo:
            return None
        previous = self._undo.pop()
        self._redo.append(tuple(current))
        await self._store.save(self.day, self.profile, previous)
        logger.debug("Undo profile=%s day=%s (%d left)", self.profile, self.day, len(self._undo))
        return list(previous)

    async def redo(self, current: Sequence[Task]) -> list[Task] | None:
        if not self._redo:
            return None
        following = self._redo.pop()
        self._undo.append(tuple(current))
        await self._store.save(self.day, self.profile, following)
        logger.debug("Redo profile=%s day=%s (%d left)", self.profile, self.day, len(self._redo))
        return list(following)
