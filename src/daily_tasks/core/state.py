# src/daily_tasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from ..profiles import ProfileDirectory
from ..tasks.reconcile import Reconciler
from ..tasks.session import TaskSession
from ..tasks.task_store import TaskStore
from .background import BackgroundTasks
from .ports import KeyValueStore, RemoteStatusResolver


@dataclass
class AppState:
    """
    Everything the CLI works with, wired once in bootstrap.

    `session` is the active (date, profile) view; it is replaced (together with
    its undo/redo history) whenever the date or profile changes.
    """

    settings: Any
    kv: KeyValueStore
    store: TaskStore
    profiles: ProfileDirectory
    background: BackgroundTasks
    resolver: RemoteStatusResolver | None = None
    reconciler: Reconciler | None = None
    session: TaskSession | None = None

    async def open_session(self, day: date, profile: str) -> TaskSession:
        limit = int(getattr(self.settings, "history_limit", 50))
        session = TaskSession(
            self.store,
            day,
            profile,
            resolver=self.resolver,
            reconciler=self.reconciler,
            history_limit=limit,
        )
        await session.refresh()
        self.session = session
        return session

    def require_session(self) -> TaskSession:
        if self.session is None:
            raise RuntimeError("no active session")
        return self.session
