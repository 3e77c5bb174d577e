from __future__ import annotations
from PIL import Image
import io


ALLOWED_MIME = {"image/jpeg", "image/png", "image/gif", "image/webp"}
MIME_FOR_FORMAT = {"JPEG": "image/jpeg", "PNG": "image/png", "GIF": "image/gif", "WEBP": "image/webp"}

def sniff_mime(data: bytes) -> str | None:
    """Content type of an uploaded challenge image, or None when it is not one we accept."""
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            mime = MIME_FOR_FORMAT.get(img.format or "")
    except Exception:
        return None
    return mime if mime in ALLOWED_MIME else None
