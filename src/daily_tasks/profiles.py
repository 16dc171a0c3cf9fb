# src/daily_tasks/profiles.py

from __future__ import annotations

import json
import logging

from .core.ports import KeyValueStore
from .errors import UnknownProfileError
from .tasks.partition import (
    DEFAULT_PROFILE,
    LAST_PROFILE_KEY,
    PROFILES_KEY,
    is_default_profile,
    validate_profile_name,
)

logger = logging.getLogger(__name__)


class ProfileDirectory:
    """
    Named workspaces plus the last selected one.

    Lifecycle:
    - constructed once per app and owned by AppState
    - the stored list is loaded on first use and then mutated in place
    - every mutation is written through immediately, so no teardown is needed

    Deleting a profile only hides it: its task partitions stay in storage and
    re-creating the same name makes them visible again.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv
        self._names: list[str] | None = None

    async def _load(self) -> list[str]:
        raw = await self._kv.get(PROFILES_KEY)
        names: list[str] = []
        if raw:
            try:
                data = json.loads(raw)
            except ValueError:
                logger.warning("Stored profile list is not valid JSON; using defaults.")
                data = []
            if isinstance(data, list):
                for item in data:
                    if isinstance(item, str) and item.strip() and item not in names:
                        names.append(item)
        if DEFAULT_PROFILE not in names:
            names.insert(0, DEFAULT_PROFILE)
        return names

    async def _save(self) -> None:
        assert self._names is not None
        await self._kv.set(PROFILES_KEY, json.dumps(self._names, ensure_ascii=False))

    async def list_profiles(self) -> list[str]:
        if self._names is None:
            self._names = await self._load()
        return list(self._names)

    async def exists(self, name: str) -> bool:
        return name in await self.list_profiles()

    async def create(self, name: str) -> str:
        """Add a profile (no-op if it already exists). Returns the stored name."""
        cleaned = validate_profile_name(name)
        names = await self.list_profiles()
        if cleaned in names:
            return cleaned
        assert self._names is not None
        self._names.append(cleaned)
        await self._save()
        logger.info("Profile created name=%s", cleaned)
        return cleaned

    async def delete(self, name: str) -> bool:
        """Remove a profile from the directory; the default profile is kept."""
        name = (name or "").strip()
        if is_default_profile(name):
            return False
        names = await self.list_profiles()
        if name not in names:
            return False
        assert self._names is not None
        self._names.remove(name)
        await self._save()
        if await self._kv.get(LAST_PROFILE_KEY) == name:
            await self._kv.set(LAST_PROFILE_KEY, DEFAULT_PROFILE)
        logger.info("Profile deleted name=%s (task data kept)", name)
        return True

    async def last_selected(self) -> str:
        raw = await self._kv.get(LAST_PROFILE_KEY)
        if raw and raw in await self.list_profiles():
            return raw
        return DEFAULT_PROFILE

    async def select(self, name: str) -> None:
        if not await self.exists(name):
            raise UnknownProfileError(name)
        await self._kv.set(LAST_PROFILE_KEY, name)
