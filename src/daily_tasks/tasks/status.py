# src/daily_tasks/tasks/status.py

"""
Status state machine.

Explicit (user) transitions:
- toggle_done: done -> todo, anything else -> done
- start:       todo -> in-progress
- pause:       in-progress -> paused
- resume:      paused -> in-progress

Derived transitions (reconciliation only), for AUTO_DERIVABLE statuses:
- open PR approved                        -> ready-to-merge
- open PR otherwise                       -> waiting-for-review
- issue with an open, approved linked PR  -> ready-to-merge
- issue with any other open linked PR     -> waiting-for-review
paused and done are never changed automatically.
"""

from __future__ import annotations

from enum import StrEnum

from ..errors import InvalidTransitionError
from .task_models import GithubMetadata, LinkedPRState, ReviewState, TaskStatus

AUTO_DERIVABLE: frozenset[TaskStatus] = frozenset(
    {
        TaskStatus.TODO,
        TaskStatus.IN_PROGRESS,
        TaskStatus.WAITING_FOR_REVIEW,
        TaskStatus.READY_TO_MERGE,
    }
)


class StatusAction(StrEnum):
    TOGGLE_DONE = "toggle_done"
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"


_EXPLICIT: dict[StatusAction, tuple[TaskStatus, TaskStatus]] = {
    StatusAction.START: (TaskStatus.TODO, TaskStatus.IN_PROGRESS),
    StatusAction.PAUSE: (TaskStatus.IN_PROGRESS, TaskStatus.PAUSED),
    StatusAction.RESUME: (TaskStatus.PAUSED, TaskStatus.IN_PROGRESS),
}


def toggle_done(status: TaskStatus) -> TaskStatus:
    return TaskStatus.TODO if status == TaskStatus.DONE else TaskStatus.DONE


def apply_action(status: TaskStatus, action: StatusAction) -> TaskStatus:
    """Return the status after an explicit transition or raise InvalidTransitionError."""
    if action == StatusAction.TOGGLE_DONE:
        return toggle_done(status)
    source, target = _EXPLICIT[action]
    if status != source:
        raise InvalidTransitionError(action.value, status.value)
    return target


def start(status: TaskStatus) -> TaskStatus:
    return apply_action(status, StatusAction.START)


def pause(status: TaskStatus) -> TaskStatus:
    return apply_action(status, StatusAction.PAUSE)


def resume(status: TaskStatus) -> TaskStatus:
    return apply_action(status, StatusAction.RESUME)


def is_auto_derivable(status: TaskStatus) -> bool:
    return status in AUTO_DERIVABLE


def derive_status(current: TaskStatus, metadata: GithubMetadata) -> TaskStatus:
    """Status implied by remote state, or `current` when no rule applies."""
    if not is_auto_derivable(current):
        return current

    if metadata.is_open_pull_request:
        if metadata.review_state == ReviewState.APPROVED:
            return TaskStatus.READY_TO_MERGE
        return TaskStatus.WAITING_FOR_REVIEW

    if metadata.is_pull_request:
        # Closed or merged PR: nothing to derive.
        return current

    open_prs = [pr for pr in (metadata.linked_prs or ()) if pr.state == LinkedPRState.OPEN]
    if any(pr.review_state == ReviewState.APPROVED for pr in open_prs):
        return TaskStatus.READY_TO_MERGE
    if open_prs:
        return TaskStatus.WAITING_FOR_REVIEW
    return current
