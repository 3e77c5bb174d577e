from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
import structlog
from draftcode.clients import get_project_client
from draftcode.schemas.session import SessionUser
from draftcode.services.projects import ProjectApiClient, ProjectApiError
from draftcode.services.submission import Notification
from draftcode.session import get_optional_user
from draftcode.web import render_page

router = APIRouter(prefix="/desafios", tags=["challenges"])
log = structlog.get_logger()

LISTING_PATH = "/desafios"

@router.get("", response_class=HTMLResponse)
async def list_challenges(
    request: Request,
    user: SessionUser | None = Depends(get_optional_user),
    projects: ProjectApiClient = Depends(get_project_client),
):
    notification = None
    try:
        challenges = await projects.list_challenges()
    except ProjectApiError as e:
        log.warning("challenge_list_failed", error=str(e))
        challenges = []
        notification = Notification(
            title="Erro ao carregar desafios",
            description="Não foi possível carregar os desafios, tente novamente",
            variant="destructive",
        )
    return render_page(
        request, "challenges/list.html", user=user, challenges=challenges, notification=notification,
    )

@router.get("/{challenge_id}", response_class=HTMLResponse)
async def challenge_detail(
    challenge_id: str,
    request: Request,
    user: SessionUser | None = Depends(get_optional_user),
    projects: ProjectApiClient = Depends(get_project_client),
):
    try:
        challenge = await projects.get_challenge(challenge_id)
    except ProjectApiError as e:
        log.warning("challenge_fetch_failed", challenge_id=challenge_id, error=str(e))
        raise HTTPException(status_code=502, detail="Challenge service unavailable")
    if challenge is None:
        return RedirectResponse(LISTING_PATH, status_code=307)
    return render_page(request, "challenges/detail.html", user=user, challenge=challenge)
