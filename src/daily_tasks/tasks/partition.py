# src/daily_tasks/tasks/partition.py

"""
Storage key layout.

- default profile, dated:  tasks_<YYYY-MM-DD>
- other profile, dated:    tasks_<profile>_<YYYY-MM-DD>
- profile directory:       profiles
- last selected profile:   last_profile
- legacy undated list:     tasks   (pre-partitioning schema)

The default profile omits the profile segment so data written before
profiles existed stays readable.
"""

from __future__ import annotations

import re
from datetime import date

from ..errors import InvalidProfileNameError

DEFAULT_PROFILE = "Default"

TASKS_KEY_PREFIX = "tasks_"
LEGACY_TASKS_KEY = "tasks"
PROFILES_KEY = "profiles"
LAST_PROFILE_KEY = "last_profile"

DATE_PATTERN = r"\d{4}-\d{2}-\d{2}"
_DATE_RE = re.compile(rf"^{DATE_PATTERN}$")
_DEFAULT_KEY_RE = re.compile(rf"^{TASKS_KEY_PREFIX}({DATE_PATTERN})$")


def date_string(day: date) -> str:
    return day.isoformat()


def parse_date_string(raw: str) -> date | None:
    """Strict YYYY-MM-DD parse; returns None for anything else (including 2024-02-30)."""
    if not _DATE_RE.match(raw):
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def looks_like_date(name: str) -> bool:
    return bool(_DATE_RE.match(name))


def validate_profile_name(name: str) -> str:
    """
    Return the normalized (stripped) profile name or raise InvalidProfileNameError.

    Date-shaped names are rejected so a profile segment can never be mistaken
    for the date segment of a default-profile key.
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidProfileNameError("profile name is required")
    if cleaned == DEFAULT_PROFILE:
        raise InvalidProfileNameError(f"{DEFAULT_PROFILE!r} is reserved")
    if looks_like_date(cleaned):
        raise InvalidProfileNameError(f"profile name {cleaned!r} looks like a date (YYYY-MM-DD)")
    return cleaned


def is_default_profile(profile: str) -> bool:
    return profile == DEFAULT_PROFILE


def partition_key(day: date, profile: str = DEFAULT_PROFILE) -> str:
    if is_default_profile(profile):
        return f"{TASKS_KEY_PREFIX}{date_string(day)}"
    return f"{TASKS_KEY_PREFIX}{profile}_{date_string(day)}"


def _profile_key_re(profile: str) -> re.Pattern[str]:
    if is_default_profile(profile):
        return _DEFAULT_KEY_RE
    return re.compile(rf"^{TASKS_KEY_PREFIX}{re.escape(profile)}_({DATE_PATTERN})$")


def partition_date(key: str, profile: str = DEFAULT_PROFILE) -> date | None:
    """
    Return the date of `key` if it is a dated partition of `profile`, else None.

    The date suffix must be a real calendar date. For the default profile only
    `tasks_<date>` matches, so `tasks_Home_<date>` is never counted as default,
    and a profile's pattern anchors the whole key so `tasks_Home_<date>` does not
    match profile "Ho" or "Home_x".
    """
    m = _profile_key_re(profile).match(key)
    if not m:
        return None
    return parse_date_string(m.group(1))
