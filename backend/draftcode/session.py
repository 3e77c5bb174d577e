from __future__ import annotations
from typing import Any
import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError
from draftcode.config import settings
from draftcode.schemas.session import SessionUser

log = structlog.get_logger()

SESSION_ALG = "HS256"


def decode_session_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.session_secret, algorithms=[SESSION_ALG])

def read_session_user(token: str | None) -> SessionUser | None:
    """The user carried by a session token; None for a missing, expired or tampered token."""
    if not token:
        return None
    try:
        data = decode_session_token(token)
        return SessionUser.model_validate(data.get("user") or {})
    except (jwt.PyJWTError, ValidationError) as e:
        log.info("session_rejected", reason=type(e).__name__)
        return None


async def get_session_token(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name)

async def get_optional_user(token: str | None = Depends(get_session_token)) -> SessionUser | None:
    return read_session_user(token)

async def get_current_user(user: SessionUser | None = Depends(get_optional_user)) -> SessionUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
