from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.datastructures import FormData, UploadFile
import structlog
from draftcode.clients import get_image_client, get_project_client
from draftcode.config import settings
from draftcode.schemas.project import DIFFICULTY_LEVELS, FIELD_ORDER, ImageFile, Project
from draftcode.schemas.session import SessionUser
from draftcode.services.images import ImageUploadClient
from draftcode.services.projects import ProjectApiClient, ProjectApiError
from draftcode.services.submission import (
    COPY, FormRegistry, Notification, ProjectSubmission, SubmissionInProgress,
    SubmissionMode, SubmissionOutcome,
)
from draftcode.session import get_current_user
from draftcode.web import render_page

router = APIRouter(prefix="/dashboard/projetos", tags=["dashboard"])
log = structlog.get_logger()

CREATE_FORM_KEY = "project:create"

_forms = FormRegistry()

def get_form_registry() -> FormRegistry:
    return _forms

def get_submission(
    images: ImageUploadClient = Depends(get_image_client),
    projects: ProjectApiClient = Depends(get_project_client),
) -> ProjectSubmission:
    return ProjectSubmission(images, projects)


def _edit_path(project_id: str) -> str:
    return f"/dashboard/projetos/{project_id}/editar"

async def _read_form(request: Request) -> tuple[dict[str, str], list[ImageFile]]:
    form: FormData = await request.form()
    values = {}
    for name in FIELD_ORDER:
        v = form.get(name)
        if isinstance(v, str):
            values[name] = v
    files = []
    for item in form.getlist("image"):
        # browsers send an empty part when no file was picked
        if isinstance(item, UploadFile) and item.filename:
            # one byte past the limit is enough to reject an oversized upload
            data = await item.read(settings.max_image_bytes + 1)
            files.append(ImageFile(filename=item.filename, content_type=item.content_type, data=data))
    return values, files

def _render_form(
    request: Request,
    user: SessionUser,
    mode: SubmissionMode,
    *,
    action: str,
    values: dict[str, str],
    errors: dict[str, str] | None = None,
    submitting: bool = False,
    project: Project | None = None,
    notification: Notification | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    return render_page(
        request,
        "dashboard/project_form.html",
        user=user,
        status_code=status_code,
        mode=mode.value,
        copy=COPY[mode],
        action=action,
        values=values,
        errors=errors or {},
        submitting=submitting,
        levels=DIFFICULTY_LEVELS,
        project=project,
        notification=notification,
    )

def _outcome_status(outcome: SubmissionOutcome) -> int:
    if outcome.ok:
        return 200
    return 422 if outcome.errors else 502

async def _load_project(projects: ProjectApiClient, project_id: str) -> Project:
    try:
        project = await projects.get_challenge(project_id)
    except ProjectApiError as e:
        log.warning("project_fetch_failed", project_id=project_id, error=str(e))
        raise HTTPException(status_code=502, detail="Project service unavailable")
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/novo", response_class=HTMLResponse)
async def create_form(
    request: Request,
    user: SessionUser = Depends(get_current_user),
    forms: FormRegistry = Depends(get_form_registry),
):
    return _render_form(
        request, user, SubmissionMode.create, action="/dashboard/projetos/novo", values={},
        submitting=forms.in_flight(user.id, CREATE_FORM_KEY),
    )

@router.post("/novo", response_class=HTMLResponse)
async def create_project(
    request: Request,
    user: SessionUser = Depends(get_current_user),
    forms: FormRegistry = Depends(get_form_registry),
    submission: ProjectSubmission = Depends(get_submission),
):
    values, files = await _read_form(request)
    with forms.hold(user.id, CREATE_FORM_KEY) as state:
        try:
            outcome = await submission.submit(state, SubmissionMode.create, values, files)
        except SubmissionInProgress as e:
            return _render_form(
                request, user, SubmissionMode.create, action=str(request.url.path),
                values=values, submitting=True, notification=e.notification, status_code=409,
            )
    return _render_form(
        request, user, SubmissionMode.create, action=str(request.url.path),
        values=state.values, errors=state.errors, notification=outcome.notification,
        status_code=_outcome_status(outcome),
    )


@router.get("/{project_id}/editar", response_class=HTMLResponse)
async def update_form(
    project_id: str,
    request: Request,
    atualizado: bool = False,
    user: SessionUser = Depends(get_current_user),
    forms: FormRegistry = Depends(get_form_registry),
    projects: ProjectApiClient = Depends(get_project_client),
):
    project = await _load_project(projects, project_id)
    notification = None
    if atualizado:
        copy = COPY[SubmissionMode.update]
        notification = Notification(title=copy.success_title, description=copy.success_description)
    return _render_form(
        request, user, SubmissionMode.update, action=_edit_path(project_id),
        values=project.form_values(), project=project, notification=notification,
        submitting=forms.in_flight(user.id, f"project:{project_id}"),
    )

@router.post("/{project_id}/editar")
async def update_project(
    project_id: str,
    request: Request,
    user: SessionUser = Depends(get_current_user),
    forms: FormRegistry = Depends(get_form_registry),
    projects: ProjectApiClient = Depends(get_project_client),
    submission: ProjectSubmission = Depends(get_submission),
):
    project = await _load_project(projects, project_id)
    values, files = await _read_form(request)
    with forms.hold(user.id, f"project:{project_id}") as state:
        try:
            outcome = await submission.submit(state, SubmissionMode.update, values, files, prior=project)
        except SubmissionInProgress as e:
            return _render_form(
                request, user, SubmissionMode.update, action=_edit_path(project_id),
                values=values, submitting=True, project=project, notification=e.notification, status_code=409,
            )
    if outcome.refresh:
        # the edit page re-fetches the project, showing what was saved
        return RedirectResponse(f"{_edit_path(project_id)}?atualizado=1", status_code=303)
    return _render_form(
        request, user, SubmissionMode.update, action=_edit_path(project_id),
        values=state.values, errors=state.errors, project=project, notification=outcome.notification,
        status_code=_outcome_status(outcome),
    )
