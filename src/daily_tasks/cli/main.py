# src/daily_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, rolls unfinished tasks over into
today, then runs the console REPL on one asyncio event loop.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date

from ..config import Settings, get_settings
from ..errors import DailyTasksError
from ..logging_setup import setup_logging
from ..tasks.partition import parse_date_string
from .bootstrap import create_initial_state, shutdown_state
from .console import run_console_loop

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="daily-tasks", description="Daily task tracker.")
    parser.add_argument("--date", help="day to open (YYYY-MM-DD, default: today)")
    parser.add_argument("--profile", help="profile to open (default: last used)")
    parser.add_argument(
        "--no-rollover",
        action="store_true",
        help="do not move unfinished tasks from past days into today",
    )
    return parser.parse_args(argv)


async def _run(settings: Settings, args: argparse.Namespace) -> None:
    state = create_initial_state(settings=settings)
    try:
        profile = args.profile or await state.profiles.last_selected()
        if args.profile:
            if not await state.profiles.exists(profile):
                profile = await state.profiles.create(profile)
            await state.profiles.select(profile)

        day: date = state.store.today()
        if args.date:
            parsed = parse_date_string(args.date)
            if parsed is None:
                raise SystemExit(f"invalid --date {args.date!r} (expected YYYY-MM-DD)")
            day = parsed

        if settings.rollover_on_start and not args.no_rollover:
            moved = await state.store.rollover(profile)
            if moved:
                logger.info("Moved %d unfinished task(s) into today.", moved)

        await state.open_session(day, profile)
        await run_console_loop(state)
    finally:
        await shutdown_state(state)


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    args = _parse_args(argv)

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)
    try:
        asyncio.run(_run(settings, args))
    except KeyboardInterrupt:
        pass
    except DailyTasksError as e:
        raise SystemExit(f"error: {e}") from e
    logger.info("Bye.")


if __name__ == "__main__":
    main()
