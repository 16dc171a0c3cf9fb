# src/daily_tasks/tasks/task_models.py

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - "done" is the only terminal status.
    - "waiting-for-review" and "ready-to-merge" are normally set by reconciliation
      from GitHub review state, not by the user.
    """

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    WAITING_FOR_REVIEW = "waiting-for-review"
    READY_TO_MERGE = "ready-to-merge"
    DONE = "done"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskPriority:
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class ReviewState(StrEnum):
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    PENDING_REVIEW = "pending_review"

    @classmethod
    def from_raw(cls, raw: Any) -> ReviewState | None:
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class GithubItemType(StrEnum):
    ISSUE = "issue"
    PULL_REQUEST = "pull_request"


class LinkedPRState(StrEnum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


@dataclass(frozen=True, slots=True)
class LinkedPR:
    number: int
    title: str
    url: str
    state: LinkedPRState
    review_state: ReviewState | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "number": self.number,
            "title": self.title,
            "url": self.url,
            "state": self.state.value,
        }
        if self.review_state is not None:
            out["reviewState"] = self.review_state.value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LinkedPR:
        raw_state = str(data.get("state") or "OPEN").upper()
        try:
            state = LinkedPRState(raw_state)
        except ValueError:
            state = LinkedPRState.OPEN
        return cls(
            number=int(data["number"]),
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            state=state,
            review_state=ReviewState.from_raw(data.get("reviewState")),
        )


def dedupe_linked_prs(prs: list[LinkedPR]) -> tuple[LinkedPR, ...]:
    """Drop entries whose PR number was already seen (first one wins)."""
    seen: set[int] = set()
    out: list[LinkedPR] = []
    for pr in prs:
        if pr.number in seen:
            continue
        seen.add(pr.number)
        out.append(pr)
    return tuple(out)


@dataclass(frozen=True, slots=True)
class GithubMetadata:
    url: str
    number: int
    repo: str
    owner: str
    state: str
    title: str
    type: GithubItemType
    review_state: ReviewState | None = None
    linked_prs: tuple[LinkedPR, ...] | None = None

    @property
    def is_pull_request(self) -> bool:
        return self.type == GithubItemType.PULL_REQUEST

    @property
    def is_open_pull_request(self) -> bool:
        return self.is_pull_request and self.state not in ("closed", "merged")

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "url": self.url,
            "number": self.number,
            "repo": self.repo,
            "owner": self.owner,
            "state": self.state,
            "title": self.title,
            "type": self.type.value,
        }
        if self.review_state is not None:
            out["reviewState"] = self.review_state.value
        if self.linked_prs is not None:
            out["linkedPRs"] = [pr.to_dict() for pr in self.linked_prs]
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GithubMetadata:
        raw_linked = data.get("linkedPRs")
        linked: tuple[LinkedPR, ...] | None = None
        if isinstance(raw_linked, list):
            linked = dedupe_linked_prs(
                [LinkedPR.from_dict(x) for x in raw_linked if isinstance(x, dict)]
            )
        try:
            item_type = GithubItemType(data.get("type"))
        except ValueError:
            item_type = GithubItemType.ISSUE
        return cls(
            url=str(data.get("url") or ""),
            number=int(data.get("number") or 0),
            repo=str(data.get("repo") or ""),
            owner=str(data.get("owner") or ""),
            state=str(data.get("state") or "").lower(),
            title=str(data.get("title") or ""),
            type=item_type,
            review_state=ReviewState.from_raw(data.get("reviewState")),
            linked_prs=linked,
        )


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    created_at: int  # epoch milliseconds
    deadline: int | None = None  # epoch milliseconds
    github: GithubMetadata | None = None

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "createdAt": self.created_at,
            "deadline": self.deadline,
        }
        if self.github is not None:
            out["github"] = self.github.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        raw_github = data.get("github")
        deadline = data.get("deadline")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            priority=TaskPriority.from_raw(data.get("priority")),
            status=TaskStatus.from_raw(data.get("status")),
            created_at=int(data.get("createdAt") or 0),
            deadline=int(deadline) if deadline is not None else None,
            github=GithubMetadata.from_dict(raw_github) if isinstance(raw_github, dict) else None,
        )


def dumps_tasks(tasks: list[Task] | tuple[Task, ...]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)


def loads_tasks(raw: str | None) -> list[Task]:
    """
    Parse a stored partition value.

    Corrupt data is treated as absent: invalid JSON or a non-list payload
    yields []. Individual malformed entries are skipped.
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Stored task list is not valid JSON; treating as empty.")
        return []
    if not isinstance(data, list):
        logger.warning("Stored task list is not a JSON array; treating as empty.")
        return []

    out: list[Task] = []
    for item in data:
        if not isinstance(item, dict) or "id" not in item:
            continue
        try:
            out.append(Task.from_dict(item))
        except (TypeError, ValueError, KeyError):
            logger.warning("Skipping malformed task entry id=%r", item.get("id"))
    return out
