# src/daily_tasks/errors.py

from __future__ import annotations


class DailyTasksError(Exception):
    """Base class for errors raised by daily_tasks."""


class InvalidProfileNameError(DailyTasksError, ValueError):
    """Profile name is blank, reserved, or shaped like an ISO date."""


class InvalidTransitionError(DailyTasksError, ValueError):
    """An explicit status transition is not allowed from the current status."""

    def __init__(self, action: str, status: str) -> None:
        super().__init__(f"cannot {action} a task that is {status}")
        self.action = action
        self.status = status


class UnknownProfileError(DailyTasksError, KeyError):
    """The profile is not in the profile directory."""
