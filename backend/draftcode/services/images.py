from __future__ import annotations
from dataclasses import dataclass
import httpx
import structlog

log = structlog.get_logger()


class ImageServiceError(Exception):
    pass


@dataclass(frozen=True)
class HostedImage:
    url: str
    public_id: str


class ImageUploadClient:
    """
    Client of the external image hosting service.
    Expects an httpx.AsyncClient whose base_url is the service root.
    """

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def upload(self, filename: str, data: bytes, content_type: str | None = None) -> HostedImage:
        files = {"image": (filename, data, content_type or "application/octet-stream")}
        try:
            r = await self._http.post("/image-upload", files=files)
            r.raise_for_status()
            body = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ImageServiceError(f"image upload failed: {e}") from e
        if not isinstance(body, dict) or not body.get("url") or not body.get("public_id"):
            raise ImageServiceError("image upload returned no url/public_id")
        log.info("image_uploaded", public_id=body["public_id"])
        return HostedImage(url=str(body["url"]), public_id=str(body["public_id"]))

    async def delete(self, public_id: str) -> None:
        try:
            r = await self._http.request(
                "DELETE",
                "/image-upload/delete",
                json={"public_id": public_id},
                headers={"Accept": "application/json"},
            )
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageServiceError(f"image delete failed: {e}") from e
        log.info("image_deleted", public_id=public_id)
