# src/daily_tasks/cli/console.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..core.state import AppState
from ..tasks.task_models import Task
from .commands import format_task_list, registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL.

    input() runs in a worker thread so background reconciliation and note
    export keep running on the event loop while the user types.
    """
    session = state.require_session()
    logger.info("Console started profile=%s day=%s", session.profile, session.day)
    _print_ts("Type /help for commands, /exit to quit.")
    print(format_task_list(session), flush=True)

    def on_github_update(applied: list[Task]) -> None:
        titles = ", ".join(t.title for t in applied)
        _print_ts(f"[GitHub] updated: {titles}")

    session.reconcile_in_background(on_github_update)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            # Bare text is a quick add.
            user_input = f"/add {user_input}"

        previous = state.session
        try:
            reply = await command_registry.handle(state, user_input, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            print(reply, flush=True)

        # A new session (date/profile switch) gets its own background refresh.
        if state.session is not None and state.session is not previous:
            state.session.reconcile_in_background(on_github_update)

    logger.info("Console finished.")
