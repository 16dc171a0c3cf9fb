# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from daily_tasks.config import Settings


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    # No stray .env in the working directory.
    monkeypatch.chdir(tmp_path)
    for name in (
        "DAILY_TASKS_DATA_DIR",
        "DAILY_TASKS_STORE_PATH",
        "DAILY_TASKS_NOTES_DIR",
        "DAILY_TASKS_GITHUB_TOKEN",
        "GITHUB_TOKEN",
        "DAILY_TASKS_HISTORY_LIMIT",
        "DAILY_TASKS_ROLLOVER_ON_START",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    s = Settings.from_env()
    assert s.data_dir == Path(".local/daily_tasks")
    assert s.store_path == s.data_dir / "store.sqlite3"
    assert s.github_token is None
    assert s.github_api_url == "https://api.github.com"
    assert s.history_limit == 50
    assert s.rollover_on_start is True


def test_overrides_and_token_fallback(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("DAILY_TASKS_DATA_DIR", str(tmp_path / "data"))
    clean_env.setenv("GITHUB_TOKEN", "from-gh")
    clean_env.setenv("DAILY_TASKS_HISTORY_LIMIT", "not-a-number")
    clean_env.setenv("DAILY_TASKS_ROLLOVER_ON_START", "off")

    s = Settings.from_env()
    assert s.store_path == tmp_path / "data" / "store.sqlite3"
    assert s.notes_dir == tmp_path / "data" / "notes"
    assert s.github_token == "from-gh"
    assert s.history_limit == 50
    assert s.rollover_on_start is False

    clean_env.setenv("DAILY_TASKS_GITHUB_TOKEN", "own")
    assert Settings.from_env().github_token == "own"
