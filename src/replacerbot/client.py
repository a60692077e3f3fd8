"""GitLab API client using httpx."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .config import GitLabConfig
from .exceptions import ApiError, GitLabAuthError, GitLabNotFoundError, ProjectNotFoundError
from .models import Project

logger = logging.getLogger(__name__)


class GitLabClient:
    """Async HTTP client for the parts of the GitLab REST API v4 the pipeline needs."""

    def __init__(self, config: GitLabConfig) -> None:
        self.config = config
        self.config.validate()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={"PRIVATE-TOKEN": self.config.token},
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ── HTTP helpers ──────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and map failures onto :class:`ApiError` subclasses."""
        try:
            resp = await self._client.request(method, path, params=params)
        except httpx.HTTPError as e:
            raise ApiError(0, f"Transport error: {e}") from e

        if resp.status_code in (401, 403):
            raise GitLabAuthError(resp.status_code, resp.text)
        if resp.status_code == 404:
            raise GitLabNotFoundError(resp.text)
        if not resp.is_success:
            raise ApiError(resp.status_code, resp.reason_phrase or "", resp.text)
        return resp

    @staticmethod
    def _parse_json(resp: httpx.Response) -> Any:
        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            msg = "Unexpected HTML response — check URL and authentication"
            raise ApiError(resp.status_code, msg, resp.text[:500])
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise ApiError(
                resp.status_code,
                f"JSON parse error: {e}",
                resp.text[:500],
            ) from e

    # ── Groups ────────────────────────────────────────────────────

    async def list_group_projects(
        self, group_id: int, page: int | None = None
    ) -> tuple[list[Project], int | None]:
        """Fetch one page of a group's projects.

        Returns the projects in response order and the next page number, or
        ``None`` when GitLab reports no further page. Without *page* no paging
        parameters are sent and GitLab's default first page is returned.
        """
        params = {"page": page, "per_page": 100} if page is not None else None
        resp = await self._request("GET", f"/groups/{group_id}/projects", params=params)
        data = self._parse_json(resp)
        if not isinstance(data, list):
            raise ApiError(resp.status_code, "Expected a JSON array of projects", resp.text[:500])
        try:
            projects = [Project.model_validate(item) for item in data]
        except ValidationError as e:
            raise ApiError(resp.status_code, f"Invalid project record: {e}", resp.text[:500]) from e

        next_page = resp.headers.get("x-next-page", "")
        return projects, int(next_page) if next_page.isdigit() else None

    async def resolve_project_id(
        self, group_id: int, full_path: str, *, all_pages: bool = False
    ) -> int:
        """Return the id of the first project whose path matches *full_path*.

        Matching is exact and case-insensitive. Only the first page is
        searched unless *all_pages* is set.
        """
        page = 1 if all_pages else None
        while True:
            projects, next_page = await self.list_group_projects(group_id, page)
            logger.debug("Group %s returned %d project(s) (page %s)", group_id, len(projects), page)
            match = next((p for p in projects if p.matches(full_path)), None)
            if match is not None:
                if match.id <= 0:
                    raise ProjectNotFoundError(group_id, full_path)
                return match.id
            if not (all_pages and next_page):
                raise ProjectNotFoundError(group_id, full_path)
            page = next_page
