# tests/test_status.py

from __future__ import annotations

import pytest

from daily_tasks.errors import InvalidTransitionError
from daily_tasks.tasks.status import (
    StatusAction,
    apply_action,
    derive_status,
    pause,
    resume,
    start,
    toggle_done,
)
from daily_tasks.tasks.task_models import LinkedPRState, ReviewState, TaskStatus

from .conftest import make_issue, make_linked, make_pr


@pytest.mark.parametrize("status", [s for s in TaskStatus if s != TaskStatus.DONE])
def test_toggle_done_from_any_open_status(status: TaskStatus) -> None:
    assert toggle_done(status) == TaskStatus.DONE


def test_toggle_done_reopens_as_todo() -> None:
    assert toggle_done(TaskStatus.DONE) == TaskStatus.TODO


def test_explicit_transitions() -> None:
    assert start(TaskStatus.TODO) == TaskStatus.IN_PROGRESS
    assert pause(TaskStatus.IN_PROGRESS) == TaskStatus.PAUSED
    assert resume(TaskStatus.PAUSED) == TaskStatus.IN_PROGRESS


@pytest.mark.parametrize(
    ("status", "action"),
    [
        (TaskStatus.DONE, StatusAction.START),
        (TaskStatus.TODO, StatusAction.PAUSE),
        (TaskStatus.IN_PROGRESS, StatusAction.RESUME),
        (TaskStatus.PAUSED, StatusAction.PAUSE),
    ],
)
def test_illegal_transitions_raise(status: TaskStatus, action: StatusAction) -> None:
    with pytest.raises(InvalidTransitionError):
        apply_action(status, action)


def test_open_pr_review_state_drives_status() -> None:
    assert derive_status(TaskStatus.TODO, make_pr(review_state=ReviewState.APPROVED)) == TaskStatus.READY_TO_MERGE
    assert (
        derive_status(TaskStatus.IN_PROGRESS, make_pr(review_state=ReviewState.CHANGES_REQUESTED))
        == TaskStatus.WAITING_FOR_REVIEW
    )
    assert (
        derive_status(TaskStatus.READY_TO_MERGE, make_pr(review_state=ReviewState.PENDING_REVIEW))
        == TaskStatus.WAITING_FOR_REVIEW
    )
    # An open PR with change requests is reported with state "changes_requested".
    assert (
        derive_status(
            TaskStatus.TODO,
            make_pr(state="changes_requested", review_state=ReviewState.CHANGES_REQUESTED),
        )
        == TaskStatus.WAITING_FOR_REVIEW
    )


def test_closed_or_merged_pr_leaves_status() -> None:
    assert derive_status(TaskStatus.WAITING_FOR_REVIEW, make_pr(state="merged", review_state=None)) == (
        TaskStatus.WAITING_FOR_REVIEW
    )
    assert derive_status(TaskStatus.TODO, make_pr(state="closed")) == TaskStatus.TODO


def test_issue_linked_prs_drive_status() -> None:
    approved = make_issue(
        linked=[
            make_linked(1, review_state=ReviewState.CHANGES_REQUESTED),
            make_linked(2, review_state=ReviewState.APPROVED),
        ]
    )
    assert derive_status(TaskStatus.TODO, approved) == TaskStatus.READY_TO_MERGE

    waiting = make_issue(linked=[make_linked(1, review_state=ReviewState.PENDING_REVIEW)])
    assert derive_status(TaskStatus.IN_PROGRESS, waiting) == TaskStatus.WAITING_FOR_REVIEW

    # Approved but already merged PRs do not count.
    merged = make_issue(linked=[make_linked(1, state=LinkedPRState.MERGED, review_state=ReviewState.APPROVED)])
    assert derive_status(TaskStatus.IN_PROGRESS, merged) == TaskStatus.IN_PROGRESS

    assert derive_status(TaskStatus.TODO, make_issue(linked=None)) == TaskStatus.TODO


@pytest.mark.parametrize("status", [TaskStatus.PAUSED, TaskStatus.DONE])
def test_paused_and_done_are_never_derived(status: TaskStatus) -> None:
    assert derive_status(status, make_pr(review_state=ReviewState.APPROVED)) == status
    assert derive_status(status, make_issue(linked=[make_linked(1)])) == status
