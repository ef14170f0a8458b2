# src/quadrant_tasks/integrations/gitlab.py

"""
GitLab issue import.

Issues of one project are fetched through the REST API (v4) and mapped to
unsaved Task values:
- quadrant from "important" / "urgent" labels
- tags = the issue labels
- closed issues are completed right away

Persisting the result is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

import httpx

from ..errors import RemoteFailureError, TaskValidationError
from ..tasks.task_models import Quadrant, Task

logger = logging.getLogger(__name__)

IMPORTANT_KEYWORDS = ("important", "重要")
URGENT_KEYWORDS = ("urgent", "紧急")


def _has_keyword(labels: Iterable[str], keywords: Iterable[str]) -> bool:
    kws = [k.lower() for k in keywords]
    return any(k in label.lower() for label in labels for k in kws)


def classify_labels(labels: Iterable[str]) -> Quadrant:
    """Quadrant from issue labels (case-insensitive substring match)."""
    labels = list(labels)
    return Quadrant.from_flags(
        important=_has_keyword(labels, IMPORTANT_KEYWORDS),
        urgent=_has_keyword(labels, URGENT_KEYWORDS),
    )


def issue_to_task(issue: dict[str, Any]) -> Task:
    labels = [str(label) for label in (issue.get("labels") or [])]
    task = Task.new(
        str(issue.get("title") or ""),
        str(issue.get("description") or ""),
        int(classify_labels(labels)),
        labels,
    )
    if str(issue.get("state") or "").lower() == "closed":
        task.complete()
    return task


class GitLabIssueImporter:
    """Fetch all issues (open and closed) of a project and map them to tasks."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        per_page: int = 100,
        max_pages: int = 50,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(float(timeout_seconds))
        self._per_page = max(1, min(100, int(per_page)))
        self._max_pages = max(1, int(max_pages))
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> GitLabIssueImporter:
        return cls(timeout_seconds=settings.http_timeout_seconds)

    @staticmethod
    def issues_url(base_url: str, project_id: str) -> str:
        # project_id may be numeric or a "group/project" path
        return f"{base_url.rstrip('/')}/api/v4/projects/{quote(project_id, safe='')}/issues"

    async def fetch_issues(self, token: str, base_url: str, project_id: str) -> list[dict[str, Any]]:
        url = self.issues_url(base_url, project_id)
        headers = {"Authorization": f"Bearer {token}"}
        issues: list[dict[str, Any]] = []

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            page = "1"
            for _ in range(self._max_pages):
                params = {"state": "all", "per_page": str(self._per_page), "page": page}
                try:
                    resp = await client.get(url, headers=headers, params=params)
                except httpx.HTTPError as e:
                    logger.warning("GitLab: request failed url=%s (%s)", url, e.__class__.__name__)
                    raise RemoteFailureError(f"GitLab API is unreachable: {e}") from e

                if not resp.is_success:
                    body = resp.text.strip() or "Unknown error"
                    logger.warning("GitLab: HTTP %s for url=%s", resp.status_code, url)
                    raise RemoteFailureError(
                        f"GitLab API call failed (HTTP {resp.status_code})",
                        status_code=resp.status_code,
                        body=body,
                    )

                try:
                    payload = resp.json()
                except ValueError as e:
                    raise RemoteFailureError("GitLab API returned invalid JSON") from e
                if not isinstance(payload, list):
                    raise RemoteFailureError("GitLab API returned an unexpected payload (expected a list)")

                issues.extend(i for i in payload if isinstance(i, dict))

                page = (resp.headers.get("X-Next-Page") or "").strip()
                if not page:
                    break
            else:
                logger.warning("GitLab: stopped after %d pages for url=%s", self._max_pages, url)

        return issues

    async def import_issues(self, token: str, base_url: str, project_id: str) -> list[Task]:
        if not token or not token.strip():
            raise TaskValidationError("GitLab token must not be empty")
        if not base_url or not base_url.strip():
            raise TaskValidationError("GitLab URL must not be empty")
        if not project_id or not project_id.strip():
            raise TaskValidationError("GitLab project id must not be empty")

        issues = await self.fetch_issues(token.strip(), base_url.strip(), project_id.strip())
        tasks = [issue_to_task(issue) for issue in issues]
        logger.info("GitLab: mapped %d issues of project=%s to tasks", len(tasks), project_id)
        return tasks
