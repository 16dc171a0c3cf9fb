# src/daily_tasks/core/ports.py

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage, the GitHub client and the note export swappable and
makes testing easier.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol, Sequence

from ..tasks.task_models import GithubMetadata, Task


class KeyValueStore(Protocol):
    """
    Async string -> string store.

    Values written by the core are UTF-8 JSON (task lists, profile lists) or
    plain strings (last selected profile).
    """

    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def list_all(self) -> dict[str, str]: ...


@dataclass(frozen=True, slots=True)
class ResolvedItem:
    """Fresh remote state for one GitHub link."""

    metadata: GithubMetadata
    body: str


class RemoteStatusResolver(Protocol):
    """
    Resolve a GitHub issue/PR URL into normalized metadata.

    Returns None when the URL is not a recognized remote link or the fetch
    failed. The core treats both the same way and never retries.
    """

    async def resolve(self, url: str) -> ResolvedItem | None: ...


class NoteSink(Protocol):
    """Best-effort export of one day's task list (e.g. a daily note)."""

    async def export(self, day: date, tasks: Sequence[Task], profile: str) -> None: ...
