# src/daily_tasks/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import date, datetime, time
from typing import cast

from ..core.state import AppState
from ..errors import DailyTasksError
from ..tasks.partition import parse_date_string
from ..tasks.session import TaskSession
from ..tasks.status import StatusAction
from ..tasks.task_models import Task, TaskPriority

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return await h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return await h2(state, args)
        except DailyTasksError as e:
            return f"Error: {e}"
        except ValueError as e:
            return f"Invalid input: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _fmt_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _fmt_deadline(ms: int | None) -> str:
    return "" if ms is None else f" due {_fmt_ms(ms)}"


def format_task(index: int, task: Task) -> str:
    line = f"{index}. [{task.status.value}] {task.title} ({task.priority.value}){_fmt_deadline(task.deadline)}"
    gh = task.github
    if gh is not None:
        review = f", {gh.review_state.value}" if gh.review_state else ""
        line += f"  {gh.owner}/{gh.repo}#{gh.number} {gh.state}{review}"
    return line


def format_task_list(session: TaskSession) -> str:
    header = f"{session.profile} - {session.day.isoformat()}"
    tasks = session.sorted_tasks()
    if not tasks:
        return f"{header}\n  (no tasks)"
    return "\n".join([header] + [f"  {format_task(i, t)}" for i, t in enumerate(tasks, start=1)])


def resolve_task_ref(session: TaskSession, ref: str) -> Task | None:
    """A task reference is a 1-based index into the sorted list or an id prefix."""
    tasks = session.sorted_tasks()
    if ref.isdigit():
        i = int(ref)
        if 1 <= i <= len(tasks):
            return tasks[i - 1]
    matches = [t for t in tasks if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def parse_due(raw: str) -> int | None:
    """`YYYY-MM-DD` -> epoch ms at 23:59 local time; `none` clears the deadline."""
    if raw.lower() in {"none", "-"}:
        return None
    day = parse_date_string(raw)
    if day is None:
        raise ValueError(f"not a date: {raw!r} (expected YYYY-MM-DD)")
    return int(datetime.combine(day, time(23, 59)).timestamp() * 1000)


def _split_add_args(args: list[str]) -> tuple[str, str, TaskPriority, int | None]:
    """`/add [!high|!medium|!low] [!due:YYYY-MM-DD] title words | description words`"""
    priority = TaskPriority.MEDIUM
    deadline: int | None = None
    words: list[str] = []
    for word in args:
        if word.startswith("!") and word[1:].lower() in {p.value for p in TaskPriority}:
            priority = TaskPriority(word[1:].lower())
        elif word.lower().startswith("!due:"):
            deadline = parse_due(word[5:])
        else:
            words.append(word)
    title, _, description = " ".join(words).partition("|")
    return title.strip(), description.strip(), priority, deadline


# ---- handlers ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    session = state.require_session()
    await session.refresh()
    return format_task_list(session)


async def cmd_add(state: AppState, args: list[str]) -> str:
    title, description, priority, deadline = _split_add_args(args)
    if not title:
        return "Usage: /add [!high|!medium|!low] [!due:YYYY-MM-DD] <title> [| description]"
    task = await state.require_session().add(title, description, priority=priority, deadline=deadline)
    return f"Task added: {task.title}"


async def cmd_link(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /link <github issue or PR url> [!high|!medium|!low] [!due:YYYY-MM-DD]"
    url = args[0]
    _, _, priority, deadline = _split_add_args(args[1:])
    if emit:
        emit("Fetching GitHub details...")
    task = await state.require_session().add("", priority=priority, deadline=deadline, github_url=url)
    if task.github is None:
        return f"Could not fetch GitHub details; added plain task: {task.title}"
    return f"Task added: {task.title} [{task.status.value}]"


_EDIT_USAGE = "Usage: /edit <task number|id> title|desc|priority|deadline <value>"


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit 2 title New title
    /edit 2 desc Longer description (empty clears it)
    /edit 2 priority high
    /edit 2 deadline 2024-05-12   (or `none`)
    """
    if len(args) < 2:
        return _EDIT_USAGE
    session = state.require_session()
    task = resolve_task_ref(session, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    field = args[1].lower()
    value = " ".join(args[2:]).strip()
    if field == "title":
        if not value:
            return "Title cannot be empty."
        updated = replace(task, title=value)
    elif field in ("desc", "description"):
        updated = replace(task, description=value)
    elif field == "priority":
        if value.lower() not in {p.value for p in TaskPriority}:
            return "Priority must be one of: high, medium, low."
        updated = replace(task, priority=TaskPriority(value.lower()))
    elif field in ("deadline", "due"):
        if not value:
            return _EDIT_USAGE
        updated = replace(task, deadline=parse_due(value))
    else:
        return _EDIT_USAGE

    await session.update(updated)
    return f"Updated {field} of: {updated.title}"


async def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task number|id>"
    task = resolve_task_ref(state.require_session(), args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    created = _fmt_ms(task.created_at)
    lines = [
        task.title,
        f"  id: {task.id}",
        f"  status: {task.status.value}",
        f"  priority: {task.priority.value}",
        f"  created: {created}",
    ]
    if task.deadline is not None:
        lines.append(f"  deadline: {_fmt_ms(task.deadline)}")
    gh = task.github
    if gh is not None:
        review = f" ({gh.review_state.value})" if gh.review_state else ""
        lines.append(f"  github: {gh.type.value} {gh.owner}/{gh.repo}#{gh.number} {gh.state}{review}")
        lines.append(f"  url: {gh.url}")
        for pr in gh.linked_prs or ():
            pr_review = f" ({pr.review_state.value})" if pr.review_state else ""
            lines.append(f"    linked PR #{pr.number} {pr.state.value}{pr_review}: {pr.title}")
    if task.description:
        lines.append("")
        lines.extend(f"  {line}" for line in task.description.splitlines())
    return "\n".join(lines)


def _status_command(action: StatusAction, verb: str):
    async def handler(state: AppState, args: list[str]) -> str:
        if not args:
            return f"Usage: /{verb} <task number|id>"
        session = state.require_session()
        task = resolve_task_ref(session, args[0])
        if task is None:
            return f"No task matches {args[0]!r}."
        updated = await session.apply(task.id, action)
        if updated is None:
            return f"No task matches {args[0]!r}."
        return f"{updated.title}: {task.status.value} -> {updated.status.value}"

    handler.__name__ = f"cmd_{verb}"
    return handler


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <task number|id>"
    session = state.require_session()
    task = resolve_task_ref(session, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    await session.delete(task.id)
    return f"Deleted: {task.title}"


async def cmd_undo(state: AppState, args: list[str]) -> str:
    return "Undone." if await state.require_session().undo() else "Nothing to undo."


async def cmd_redo(state: AppState, args: list[str]) -> str:
    return "Redone." if await state.require_session().redo() else "Nothing to redo."


async def cmd_sync(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    session = state.require_session()
    if emit:
        emit("Refreshing GitHub status...")
    applied = await session.reconcile()
    if not applied:
        return "GitHub status is up to date."
    return f"Updated {len(applied)} task(s) from GitHub."


async def cmd_rollover(state: AppState, args: list[str]) -> str:
    session = state.require_session()
    moved = await state.store.rollover(session.profile)
    await session.refresh()
    return f"Moved {moved} unfinished task(s) into today."


async def cmd_date(state: AppState, args: list[str]) -> str:
    session = state.require_session()
    if not args:
        return f"Viewing {session.day.isoformat()}. Use /date <YYYY-MM-DD|today>."
    raw = args[0].lower()
    day: date | None = state.store.today() if raw == "today" else parse_date_string(raw)
    if day is None:
        return f"Not a date: {args[0]!r} (expected YYYY-MM-DD)."
    session = await state.open_session(day, session.profile)
    return format_task_list(session)


async def cmd_profile(state: AppState, args: list[str]) -> str:
    """
    /profile                 -> show current + all profiles
    /profile use <name>      -> switch profile (today)
    /profile create <name>   -> create and switch
    /profile delete <name>   -> hide a profile (data is kept)
    """
    session = state.require_session()
    if not args or args[0].lower() == "list":
        names = await state.profiles.list_profiles()
        lines = ["Profiles:"]
        lines += [f"  {'*' if n == session.profile else ' '} {n}" for n in names]
        return "\n".join(lines)

    sub = args[0].lower()
    name = " ".join(args[1:]).strip()
    if not name:
        return "Usage: /profile [list|use|create|delete] <name>"

    if sub == "create":
        name = await state.profiles.create(name)
        sub = "use"

    if sub == "use":
        await state.profiles.select(name)
        moved = await state.store.rollover(name)
        session = await state.open_session(state.store.today(), name)
        note = f" (moved {moved} unfinished task(s) into today)" if moved else ""
        return f"Switched to profile {name}{note}.\n{format_task_list(session)}"

    if sub == "delete":
        if not await state.profiles.delete(name):
            return f"Profile {name!r} cannot be deleted."
        if session.profile == name:
            await state.open_session(session.day, await state.profiles.last_selected())
        return f"Profile {name!r} deleted (its tasks are kept)."

    return "Usage: /profile [list|use|create|delete] <name>"


async def cmd_status(state: AppState, args: list[str]) -> str:
    session = state.require_session()
    token = "set" if getattr(state.settings, "github_token", None) else "not set"
    return (
        "Status:\n"
        f"  Profile: {session.profile}\n"
        f"  Date: {session.day.isoformat()}{' (today)' if session.is_today else ''}\n"
        f"  Tasks: {len(session.tasks)}\n"
        f"  Undo/redo: {'yes' if session.history.can_undo else 'no'}/"
        f"{'yes' if session.history.can_redo else 'no'}\n"
        f"  GitHub token: {token}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show tasks of the current day.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add [!high] [!due:YYYY-MM-DD] <title> [| description].")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <n> title|desc|priority|deadline <value>.")
registry.register("show", cmd_show, help_text="Show task details.")
registry.register("link", cmd_link, help_text="Add a task from a GitHub issue/PR URL.")
registry.register("done", _status_command(StatusAction.TOGGLE_DONE, "done"), help_text="Toggle done.")
registry.register("start", _status_command(StatusAction.START, "start"), help_text="todo -> in-progress.")
registry.register("pause", _status_command(StatusAction.PAUSE, "pause"), help_text="in-progress -> paused.")
registry.register("resume", _status_command(StatusAction.RESUME, "resume"), help_text="paused -> in-progress.")
registry.register("delete", cmd_delete, help_text="Delete a task.", aliases=["rm"])
registry.register("undo", cmd_undo, help_text="Undo the last change.")
registry.register("redo", cmd_redo, help_text="Redo the last undone change.")
registry.register("sync", cmd_sync, help_text="Refresh GitHub status of linked tasks.")
registry.register("rollover", cmd_rollover, help_text="Move unfinished past tasks into today.")
registry.register("date", cmd_date, help_text="View another day: /date <YYYY-MM-DD|today>.")
registry.register("profile", cmd_profile, help_text="Profiles: /profile [list|use|create|delete] <name>.")
registry.register("status", cmd_status, help_text="Show current profile/date/history state.")
