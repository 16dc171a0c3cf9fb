# tests/test_task_models.py

from __future__ import annotations

import json

from daily_tasks.tasks.task_models import (
    GithubMetadata,
    ReviewState,
    Task,
    TaskPriority,
    TaskStatus,
    dumps_tasks,
    loads_tasks,
)

from .conftest import make_issue, make_linked


def test_wire_format_uses_camel_case_and_omits_absent_optionals() -> None:
    meta = make_issue(linked=[make_linked(4, review_state=ReviewState.APPROVED)])
    task = Task(
        id="a",
        title="t",
        description="d",
        priority=TaskPriority.HIGH,
        status=TaskStatus.IN_PROGRESS,
        created_at=1,
        github=meta,
    )
    [data] = json.loads(dumps_tasks([task]))

    assert data["createdAt"] == 1
    assert data["deadline"] is None
    assert data["status"] == "in-progress"
    assert "reviewState" not in data["github"]
    assert data["github"]["linkedPRs"][0] == {
        "number": 4,
        "title": "PR 4",
        "url": "https://github.com/acme/app/pull/4",
        "state": "OPEN",
        "reviewState": "approved",
    }


def test_reads_records_written_by_older_versions() -> None:
    raw = json.dumps(
        [
            {
                "id": "x",
                "title": "Old",
                "description": "",
                "priority": "urgent",
                "status": "blocked",
                "createdAt": 1700000000000,
                "github": {
                    "url": "https://github.com/acme/app/issues/1",
                    "number": 1,
                    "repo": "app",
                    "owner": "acme",
                    "state": "OPEN",
                    "title": "Issue",
                    "type": "issue",
                },
            },
            "not a task",
            {"title": "no id"},
        ]
    )
    [task] = loads_tasks(raw)

    assert task.priority == TaskPriority.MEDIUM
    assert task.status == TaskStatus.TODO
    assert task.deadline is None
    assert task.github is not None
    assert task.github.state == "open"
    assert task.github.linked_prs is None


def test_linked_prs_are_deduped_by_number() -> None:
    meta = GithubMetadata.from_dict(
        {
            "url": "u",
            "number": 1,
            "repo": "r",
            "owner": "o",
            "state": "open",
            "title": "t",
            "type": "issue",
            "linkedPRs": [
                {"number": 2, "title": "first", "url": "a", "state": "OPEN"},
                {"number": 2, "title": "second", "url": "b", "state": "CLOSED"},
            ],
        }
    )
    assert meta.linked_prs is not None
    assert [pr.title for pr in meta.linked_prs] == ["first"]
