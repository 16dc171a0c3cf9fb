# src/daily_tasks/notes/markdown_sink.py

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Sequence
from datetime import date, datetime
from pathlib import Path

from ..tasks.partition import date_string
from ..tasks.task_models import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

_STATUS_ICONS = {
    TaskStatus.DONE: "✅",
    TaskStatus.IN_PROGRESS: "🚧",
    TaskStatus.PAUSED: "⏸️",
    TaskStatus.WAITING_FOR_REVIEW: "👀",
    TaskStatus.READY_TO_MERGE: "🚀",
    TaskStatus.TODO: "⬜",
}

_PRIORITY_MARKERS = {
    TaskPriority.HIGH: "🔴",
    TaskPriority.MEDIUM: "🟠",
    TaskPriority.LOW: "🟢",
}

_SECTIONS = [
    ("In Progress", TaskStatus.IN_PROGRESS),
    ("Waiting for Review", TaskStatus.WAITING_FOR_REVIEW),
    ("Ready to Merge", TaskStatus.READY_TO_MERGE),
    ("Paused", TaskStatus.PAUSED),
    ("To Do", TaskStatus.TODO),
    ("Done", TaskStatus.DONE),
]


def note_title(day: date, profile: str) -> str:
    return f"{profile} Tasks {date_string(day)}"


def _render_task(task: Task) -> list[str]:
    line = f"- {_STATUS_ICONS[task.status]} **{task.title}** {_PRIORITY_MARKERS[task.priority]}"
    if task.github is not None:
        line += f" ([{task.github.owner}/{task.github.repo}#{task.github.number}]({task.github.url}))"
    lines = [line]
    for desc_line in task.description.splitlines():
        lines.append(f"  {desc_line}" if desc_line.strip() else "")
    return lines


def render_note(day: date, tasks: Sequence[Task], profile: str, *, now: datetime | None = None) -> str:
    """Markdown daily note: one section per status, each sorted high -> low priority."""
    now = now or datetime.now()
    out = [f"# {note_title(day, profile)}", ""]

    for heading, status in _SECTIONS:
        section = sorted(
            (t for t in tasks if t.status == status),
            key=lambda t: -t.priority.rank,
        )
        if not section:
            continue
        out.append(f"## {heading}")
        out.append("")
        for task in section:
            out.extend(_render_task(task))
        out.append("")

    if not tasks:
        out.append("No tasks for this day.")
        out.append("")

    out.append(f"_Last updated: {now.strftime('%Y-%m-%d %H:%M:%S')}_")
    return "\n".join(out) + "\n"


class MarkdownNoteSink:
    """
    NoteSink that keeps one markdown file per (profile, day):
    `<notes_dir>/<profile> Tasks <YYYY-MM-DD>.md`.

    Each export writes its own temp file in a worker thread and moves it into
    place with os.replace. Exports of the same file run one at a time in the
    order they were started, so the last save wins.
    """

    def __init__(self, notes_dir: str | Path) -> None:
        self._notes_dir = Path(notes_dir)
        self._locks: dict[Path, asyncio.Lock] = {}

    def path_for(self, day: date, profile: str) -> Path:
        # Profile names are free text; keep the file inside notes_dir.
        safe = note_title(day, profile).replace(os.sep, "-").replace("/", "-")
        return self._notes_dir / f"{safe}.md"

    def _write(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.stem}.",
            suffix=".tmp",
            delete=False,
        ) as fh:
            fh.write(content)
            tmp = Path(fh.name)
        try:
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    async def export(self, day: date, tasks: Sequence[Task], profile: str) -> None:
        path = self.path_for(day, profile)
        content = render_note(day, tasks, profile)
        lock = self._locks.setdefault(path, asyncio.Lock())
        async with lock:
            await asyncio.to_thread(self._write, path, content)
        logger.debug("Exported %d tasks to %s", len(tasks), path)


class NullNoteSink:
    """NoteSink used when export is disabled."""

    async def export(self, day: date, tasks: Sequence[Task], profile: str) -> None:
        return None
