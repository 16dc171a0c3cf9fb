# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from daily_tasks.core.ports import ResolvedItem
from daily_tasks.tasks.task_models import Task


class MemoryKeyValueStore:
    """
    In-memory KeyValueStore.

    - `writes` records every set/delete key in order for churn assertions
    - `failing_keys`: set() on these keys raises OSError (disk full, locked db)
    """

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.writes: list[str] = []
        self.failing_keys: set[str] = set()

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        if key in self.failing_keys:
            raise OSError(f"write failed: {key}")
        self.writes.append(key)
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.writes.append(key)
        self.data.pop(key, None)

    async def list_all(self) -> dict[str, str]:
        return dict(self.data)


@dataclass(slots=True)
class ExportCall:
    day: date
    tasks: list[Task]
    profile: str


@dataclass(slots=True)
class RecordingNoteSink:
    calls: list[ExportCall] = field(default_factory=list)

    async def export(self, day: date, tasks: Sequence[Task], profile: str) -> None:
        self.calls.append(ExportCall(day=day, tasks=list(tasks), profile=profile))


class FailingNoteSink:
    def __init__(self) -> None:
        self.attempts = 0

    async def export(self, day: date, tasks: Sequence[Task], profile: str) -> None:
        self.attempts += 1
        raise RuntimeError("notes app unavailable")


class ScriptedResolver:
    """
    Deterministic RemoteStatusResolver.

    `results` maps URL -> ResolvedItem, None, or an exception instance to raise.
    Unknown URLs resolve to None.
    """

    def __init__(self, results: dict[str, ResolvedItem | None | Exception] | None = None) -> None:
        self.results = dict(results or {})
        self.calls: list[str] = []

    async def resolve(self, url: str) -> ResolvedItem | None:
        self.calls.append(url)
        await asyncio.sleep(0)
        result = self.results.get(url)
        if isinstance(result, Exception):
            raise result
        return result
