from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "draftcode-web")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "DraftCode")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    # Backend REST API serving /api/project
    api_base_url: str = os.getenv("API_BASE_URL", "http://localhost:3000")
    # External image hosting service (image-upload, image-upload/delete)
    backend_upload_url: str = os.getenv("BACKEND_UPLOAD_URL", "http://localhost:3333")
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "15"))
    # Uploads above this size are rejected as an image field error
    max_image_bytes: int = int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

    # Session tokens are issued by the auth provider, we only verify them
    session_secret: str = os.getenv("SESSION_SECRET", "dev-secret-change-me")
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "draftcode.session-token")

settings = Settings()
