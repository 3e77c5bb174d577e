from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Literal, Mapping, Sequence
import structlog
from pydantic import BaseModel, ValidationError
from draftcode.schemas.project import (
    ImageFile, Project, ProjectCreate, ProjectUpdate, field_errors, first_error,
)
from draftcode.services.images import HostedImage, ImageServiceError, ImageUploadClient
from draftcode.services.projects import ProjectApiClient, ProjectApiError

log = structlog.get_logger()


class SubmissionMode(str, Enum):
    create = "create"
    update = "update"


@dataclass(frozen=True)
class FormCopy:
    success_title: str
    success_description: str
    error_title: str
    loading_title: str
    loading_description: str
    submit_label: str

RETRY_HINT = "Verifique os campos e tente novamente"

COPY: dict[SubmissionMode, FormCopy] = {
    SubmissionMode.create: FormCopy(
        success_title="Projeto criado com sucesso",
        success_description="Seu projeto foi criado com sucesso",
        error_title="Erro ao criar projeto",
        loading_title="Criando Projeto",
        loading_description="Aguarde enquanto seu projeto é criado.",
        submit_label="Criar",
    ),
    SubmissionMode.update: FormCopy(
        success_title="Projeto atualizado com sucesso",
        success_description="Seu projeto foi atualizado com sucesso",
        error_title="Erro ao atualizar projeto",
        loading_title="Atualizando Projeto",
        loading_description="Aguarde enquanto seu projeto é atualizado.",
        submit_label="Atualizar",
    ),
}


class Notification(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    field: str | None = None


class SubmissionInProgress(Exception):
    def __init__(self, mode: SubmissionMode):
        super().__init__(f"{mode.value} submission already in progress")
        self.mode = mode

    @property
    def notification(self) -> Notification:
        copy = COPY[self.mode]
        return Notification(title=copy.loading_title, description=copy.loading_description)


@dataclass
class FormState:
    """State of one form instance: entered values, field errors and the submitting flag."""
    values: dict[str, str] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    submitting: bool = False

    def reset(self) -> None:
        self.values = {}
        self.errors = {}


class FormRegistry:
    """
    Submissions in flight, keyed by (owner, form key), e.g. ("user-1", "project:create").
    An entry lives only while its submission runs.
    """

    def __init__(self):
        self._forms: dict[tuple[str, str], FormState] = {}

    def __len__(self) -> int:
        return len(self._forms)

    def in_flight(self, owner: str, key: str) -> bool:
        state = self._forms.get((owner, key))
        return state is not None and state.submitting

    @contextmanager
    def hold(self, owner: str, key: str) -> Iterator[FormState]:
        """
        Form state for one submission. While another submission of the same form
        is running its state is handed out instead, so `submit` refuses the new one.
        """
        running = self._forms.get((owner, key))
        if running is not None:
            yield running
            return
        state = FormState()
        self._forms[(owner, key)] = state
        try:
            yield state
        finally:
            self._forms.pop((owner, key), None)


@dataclass
class SubmissionOutcome:
    ok: bool
    notification: Notification
    payload: dict[str, Any] | None = None
    saved: Any = None
    errors: dict[str, str] = field(default_factory=dict)
    # the caller should re-fetch what it displays
    refresh: bool = False


class ProjectSubmission:
    """
    Create/update workflow for challenge projects.

    validate -> upload image (when a file was given) -> create/update the project
    -> on update, delete the superseded hosted image.
    Service failures are absorbed into a generic failure notification; the form's
    submitting flag is cleared whatever happens.
    """

    def __init__(self, images: ImageUploadClient, projects: ProjectApiClient):
        self._images = images
        self._projects = projects

    async def submit(
        self,
        form: FormState,
        mode: SubmissionMode,
        values: Mapping[str, str],
        files: Sequence[ImageFile] = (),
        prior: Project | None = None,
    ) -> SubmissionOutcome:
        if mode is SubmissionMode.update and prior is None:
            raise ValueError("update requires the current project")
        if form.submitting:
            raise SubmissionInProgress(mode)

        copy = COPY[mode]
        schema = ProjectCreate if mode is SubmissionMode.create else ProjectUpdate
        form.values = {k: v for k, v in values.items() if isinstance(v, str)}
        try:
            data = schema.model_validate({**form.values, "image": list(files)})
        except ValidationError as e:
            form.errors = field_errors(e)
            field_name, message = first_error(form.errors) or (None, RETRY_HINT)
            log.info("project_submit_invalid", mode=mode.value, field=field_name)
            return SubmissionOutcome(
                ok=False,
                notification=Notification(
                    title=copy.error_title, description=message, variant="destructive", field=field_name,
                ),
                errors=dict(form.errors),
            )

        form.errors = {}
        form.submitting = True
        log.info("project_submit_started", mode=mode.value, project_id=prior.id if prior else None)
        try:
            payload, saved = await self._persist(mode, data, prior)
        except (ImageServiceError, ProjectApiError) as e:
            log.warning("project_submit_failed", mode=mode.value, error=str(e))
            return SubmissionOutcome(
                ok=False,
                notification=Notification(title=copy.error_title, description=RETRY_HINT, variant="destructive"),
            )
        finally:
            form.submitting = False

        form.reset()
        log.info("project_submit_succeeded", mode=mode.value, image_id=payload["image_id"])
        return SubmissionOutcome(
            ok=True,
            notification=Notification(title=copy.success_title, description=copy.success_description),
            payload=payload,
            saved=saved,
            refresh=mode is SubmissionMode.update,
        )

    async def _persist(
        self, mode: SubmissionMode, data: ProjectCreate | ProjectUpdate, prior: Project | None
    ) -> tuple[dict[str, Any], Any]:
        uploaded: HostedImage | None = None
        image_file = data.image_file
        if image_file is not None:
            uploaded = await self._images.upload(image_file.filename, image_file.data, image_file.content_type)

        payload: dict[str, Any] = data.payload_fields()
        if uploaded is not None:
            payload["image"] = uploaded.url
            payload["image_id"] = uploaded.public_id
        else:
            # only reachable on update: keep the current hosted image
            payload["image"] = prior.image
            payload["image_id"] = prior.image_id

        if mode is SubmissionMode.create:
            saved = await self._projects.create_project(payload)
        else:
            saved = await self._projects.update_project(prior.id, payload)
            if uploaded is not None and prior.image_id and uploaded.public_id != prior.image_id:
                await self._discard_image(prior.image_id)
        return payload, saved

    async def _discard_image(self, public_id: str) -> None:
        # A failed delete leaves an orphaned hosted image; the update itself already succeeded
        try:
            await self._images.delete(public_id)
        except ImageServiceError as e:
            log.warning("superseded_image_delete_failed", public_id=public_id, error=str(e))
