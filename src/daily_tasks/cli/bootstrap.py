# src/daily_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/notes/GitHub),
- shuts everything down in order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..config import get_settings
from ..core.background import BackgroundTasks
from ..core.ports import NoteSink
from ..core.state import AppState
from ..github.resolver import GithubResolver
from ..notes.markdown_sink import MarkdownNoteSink, NullNoteSink
from ..profiles import ProfileDirectory
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.reconcile import Reconciler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

DRAIN_TIMEOUT_SECONDS = 10.0


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)
    if settings.notes_enabled:
        settings.notes_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    background = BackgroundTasks()
    kv = SqliteKeyValueStore(settings.store_path)

    note_sink: NoteSink
    if settings.notes_enabled:
        note_sink = MarkdownNoteSink(settings.notes_dir)
    else:
        note_sink = NullNoteSink()

    store = TaskStore(kv, note_sink=note_sink, background=background)

    if not settings.github_token:
        logger.info("No GitHub token configured; only public repositories can be refreshed.")
    resolver = GithubResolver(
        token=settings.github_token,
        api_url=settings.github_api_url,
        timeout_seconds=settings.github_timeout_seconds,
    )

    return AppState(
        settings=settings,
        kv=kv,
        store=store,
        profiles=ProfileDirectory(kv),
        background=background,
        resolver=resolver,
        reconciler=Reconciler(store, resolver, background=background),
    )


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        # Pending reconciliation may still write; exports follow those writes.
        await asyncio.wait_for(state.background.drain(), timeout=DRAIN_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("Background work still running after %.0fs; cancelling.", DRAIN_TIMEOUT_SECONDS)
        with contextlib.suppress(Exception):
            await state.background.cancel_all()
    except Exception:
        logger.exception("Failed to drain background tasks.")

    resolver = state.resolver
    if isinstance(resolver, GithubResolver):
        try:
            await resolver.aclose()
        except Exception:
            logger.debug("GitHub client close failed.", exc_info=True)
