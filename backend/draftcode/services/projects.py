from __future__ import annotations
from typing import Any
from urllib.parse import quote
import httpx
from pydantic import ValidationError
from draftcode.schemas.project import Project


class ProjectApiError(Exception):
    pass


class ProjectApiClient:
    """Thin client of the backend /api/project endpoints."""

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            r = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ProjectApiError(f"{method} {path} failed: {e}") from e
        return r

    @staticmethod
    def _json(r: httpx.Response) -> Any:
        try:
            r.raise_for_status()
            return r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProjectApiError(f"{r.request.method} {r.request.url.path} failed: {e}") from e

    async def create_project(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._json(await self._send("POST", "/api/project", json=payload))

    async def update_project(self, project_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._json(await self._send("PUT", f"/api/project/{quote(project_id, safe='')}", json=payload))

    async def get_challenge(self, challenge_id: str) -> Project | None:
        r = await self._send("GET", f"/api/project/{quote(challenge_id, safe='')}")
        if r.status_code == 404:
            return None
        body = self._json(r)
        if not body:
            return None
        try:
            return Project.model_validate(body)
        except ValidationError as e:
            raise ProjectApiError(f"malformed challenge {challenge_id}: {e}") from e

    async def list_challenges(self) -> list[Project]:
        body = self._json(await self._send("GET", "/api/project"))
        try:
            return [Project.model_validate(item) for item in body or []]
        except (ValidationError, TypeError) as e:
            raise ProjectApiError(f"malformed challenge list: {e}") from e
