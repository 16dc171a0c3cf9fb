# src/daily_tasks/github/resolver.py

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from ..core.ports import ResolvedItem
from ..tasks.task_models import (
    GithubItemType,
    GithubMetadata,
    LinkedPR,
    LinkedPRState,
    ReviewState,
    dedupe_linked_prs,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 15.0

GITHUB_URL_REGEX = re.compile(r"github\.com/([^/]+)/([^/]+)/(issues|pull)/(\d+)")


@dataclass(frozen=True, slots=True)
class GithubRef:
    owner: str
    repo: str
    type: GithubItemType
    number: int


def parse_github_url(url: str) -> GithubRef | None:
    m = GITHUB_URL_REGEX.search(url or "")
    if not m:
        return None
    return GithubRef(
        owner=m.group(1),
        repo=m.group(2),
        type=GithubItemType.PULL_REQUEST if m.group(3) == "pull" else GithubItemType.ISSUE,
        number=int(m.group(4)),
    )


def aggregate_review_state(reviews: list[dict[str, Any]]) -> ReviewState:
    """
    Collapse a PR's review list into one state.

    Only each reviewer's latest decisive review counts (COMMENTED is ignored,
    DISMISSED withdraws the reviewer's earlier verdict). Any outstanding
    CHANGES_REQUESTED wins over approvals.
    """
    latest: dict[str, str] = {}
    for review in reviews:
        state = str(review.get("state") or "").upper()
        login = str((review.get("user") or {}).get("login") or "")
        if state in ("APPROVED", "CHANGES_REQUESTED"):
            latest[login] = state
        elif state == "DISMISSED":
            latest.pop(login, None)

    verdicts = set(latest.values())
    if "CHANGES_REQUESTED" in verdicts:
        return ReviewState.CHANGES_REQUESTED
    if "APPROVED" in verdicts:
        return ReviewState.APPROVED
    return ReviewState.PENDING_REVIEW


def _linked_pr_state(issue: dict[str, Any]) -> LinkedPRState:
    pr = issue.get("pull_request") or {}
    if pr.get("merged_at"):
        return LinkedPRState.MERGED
    if str(issue.get("state") or "").lower() == "closed":
        return LinkedPRState.CLOSED
    return LinkedPRState.OPEN


class GithubResolver:
    """
    RemoteStatusResolver backed by the GitHub REST API (httpx.AsyncClient).

    - pull request: state ("merged" when merged) + aggregated review state;
      an open PR with outstanding change requests reports state "changes_requested"
    - issue: state + PRs cross-referenced from the issue timeline, with review
      state for the open ones

    Any HTTP or payload error is logged and reported as None.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "daily-tasks",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds, connect=5.0),
            transport=transport,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, **params: Any) -> Any:
        response = await self._client.get(path, params=params or None)
        response.raise_for_status()
        return response.json()

    async def _review_state(self, owner: str, repo: str, number: int) -> ReviewState:
        reviews = await self._get_json(f"/repos/{owner}/{repo}/pulls/{number}/reviews", per_page=100)
        return aggregate_review_state(reviews if isinstance(reviews, list) else [])

    async def resolve(self, url: str) -> ResolvedItem | None:
        ref = parse_github_url(url)
        if ref is None:
            return None
        try:
            if ref.type == GithubItemType.PULL_REQUEST:
                return await self._resolve_pull(ref, url)
            return await self._resolve_issue(ref, url)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Failed to fetch GitHub details url=%s: %s", url, e)
            return None

    async def _resolve_pull(self, ref: GithubRef, url: str) -> ResolvedItem:
        pr = await self._get_json(f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}")
        state = str(pr.get("state") or "").lower()
        review_state: ReviewState | None = None

        if pr.get("merged"):
            state = "merged"
        elif state == "open":
            review_state = await self._review_state(ref.owner, ref.repo, ref.number)
            if review_state == ReviewState.CHANGES_REQUESTED:
                state = "changes_requested"

        metadata = GithubMetadata(
            url=str(pr.get("html_url") or url),
            number=ref.number,
            repo=ref.repo,
            owner=ref.owner,
            state=state,
            title=str(pr.get("title") or ""),
            type=GithubItemType.PULL_REQUEST,
            review_state=review_state,
        )
        return ResolvedItem(metadata=metadata, body=str(pr.get("body") or ""))

    async def _resolve_issue(self, ref: GithubRef, url: str) -> ResolvedItem:
        issue = await self._get_json(f"/repos/{ref.owner}/{ref.repo}/issues/{ref.number}")
        linked = await self._linked_prs(ref)

        metadata = GithubMetadata(
            url=str(issue.get("html_url") or url),
            number=ref.number,
            repo=ref.repo,
            owner=ref.owner,
            state=str(issue.get("state") or "").lower(),
            title=str(issue.get("title") or ""),
            type=GithubItemType.ISSUE,
            linked_prs=linked,
        )
        return ResolvedItem(metadata=metadata, body=str(issue.get("body") or ""))

    async def _linked_prs(self, ref: GithubRef) -> tuple[LinkedPR, ...]:
        events = await self._get_json(
            f"/repos/{ref.owner}/{ref.repo}/issues/{ref.number}/timeline", per_page=100
        )
        found: list[LinkedPR] = []
        for event in events if isinstance(events, list) else []:
            if event.get("event") != "cross-referenced":
                continue
            source = (event.get("source") or {}).get("issue") or {}
            if not source.get("pull_request"):
                continue
            found.append(
                LinkedPR(
                    number=int(source["number"]),
                    title=str(source.get("title") or ""),
                    url=str(source.get("html_url") or ""),
                    state=_linked_pr_state(source),
                )
            )
        prs = dedupe_linked_prs(found)

        async def _with_review(pr: LinkedPR) -> LinkedPR:
            if pr.state != LinkedPRState.OPEN:
                return pr
            pr_ref = parse_github_url(pr.url)
            if pr_ref is None:
                return pr
            review_state = await self._review_state(pr_ref.owner, pr_ref.repo, pr_ref.number)
            return LinkedPR(pr.number, pr.title, pr.url, pr.state, review_state)

        return tuple(await asyncio.gather(*(_with_review(pr) for pr in prs)))
