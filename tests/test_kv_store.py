# tests/test_kv_store.py

from __future__ import annotations

from pathlib import Path

import pytest

from daily_tasks.storage.kv_store import SqliteKeyValueStore
from daily_tasks.tasks.task_store import TaskStore

from .conftest import TODAY, make_task


@pytest.mark.asyncio
async def test_get_set_delete_list_all(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "store.sqlite3")

    assert await kv.get("missing") is None
    await kv.set("a", "1")
    await kv.set("b", "2")
    await kv.set("a", "3")
    assert await kv.get("a") == "3"
    assert await kv.list_all() == {"a": "3", "b": "2"}

    await kv.delete("a")
    await kv.delete("a")
    assert await kv.list_all() == {"b": "2"}


@pytest.mark.asyncio
async def test_data_survives_reopen_and_backs_task_store(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "store.sqlite3"
    store = TaskStore(SqliteKeyValueStore(db), today=lambda: TODAY)
    await store.create(TODAY, "Work", make_task("w1"))

    reopened = TaskStore(SqliteKeyValueStore(db), today=lambda: TODAY)
    assert [t.id for t in await reopened.load(TODAY, "Work")] == ["w1"]
