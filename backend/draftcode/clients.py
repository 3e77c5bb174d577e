from __future__ import annotations
from typing import AsyncGenerator
import httpx
from fastapi import Depends
from draftcode.config import settings
from draftcode.session import get_session_token
from draftcode.services.images import ImageUploadClient
from draftcode.services.projects import ProjectApiClient


def _timeout() -> httpx.Timeout:
    return httpx.Timeout(settings.request_timeout_seconds)

async def get_image_client() -> AsyncGenerator[ImageUploadClient, None]:
    async with httpx.AsyncClient(base_url=settings.backend_upload_url, timeout=_timeout()) as http:
        yield ImageUploadClient(http)

async def get_project_client(
    token: str | None = Depends(get_session_token),
) -> AsyncGenerator[ProjectApiClient, None]:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    async with httpx.AsyncClient(base_url=settings.api_base_url, timeout=_timeout(), headers=headers) as http:
        yield ProjectApiClient(http)
