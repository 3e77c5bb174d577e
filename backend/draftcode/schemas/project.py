from __future__ import annotations
from typing import List
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, AnyUrl, ValidationError, field_validator
from draftcode.config import settings
from draftcode.services.media import sniff_mime

DIFFICULTY_LEVELS: tuple[str, ...] = ("Iniciante", "Intermediário", "Avançado")

# Declaration order of the form fields; the first failing field in this order is the one reported
FIELD_ORDER: tuple[str, ...] = (
    "title", "technologies", "difficulty", "image", "figma_url", "brief", "description",
)

_url_adapter = TypeAdapter(AnyUrl)


class Difficulty(BaseModel):
    name: str

class Technology(BaseModel):
    name: str

class Creator(BaseModel):
    name: str | None = None
    image: str | None = None
    github: str | None = None
    website: str | None = None
    linkedin: str | None = None

class Project(BaseModel):
    """A challenge project as served by the backend API."""
    id: str
    title: str
    brief: str = ""
    description: str = ""
    image: str | None = None
    image_id: str | None = None
    figma_url: str | None = None
    difficulty: Difficulty | None = None
    technologies: List[Technology] = Field(default_factory=list)
    user: Creator | None = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v):
        return str(v)

    def form_values(self) -> dict[str, str]:
        """Initial values of the update form."""
        return {
            "title": self.title,
            "technologies": " ".join(t.name for t in self.technologies),
            "difficulty": self.difficulty.name if self.difficulty else "",
            "figma_url": self.figma_url or "",
            "brief": self.brief,
            "description": self.description,
        }


class ImageFile(BaseModel):
    filename: str
    content_type: str | None = None
    data: bytes


class _ProjectForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    title: str = ""
    technologies: str = ""
    difficulty: str = ""
    image: List[ImageFile] = Field(default_factory=list)
    figma_url: str = ""
    brief: str = ""
    description: str = ""

    @field_validator("title")
    @classmethod
    def title_length(cls, v: str):
        if not 6 <= len(v) <= 45:
            raise ValueError("O nome do desafio deve ter entre 6 e 45 caracteres")
        return v

    @field_validator("technologies")
    @classmethod
    def technologies_tokens(cls, v: str):
        if not v.split():
            raise ValueError("Informe ao menos uma linguagem para o desafio")
        return v

    @field_validator("difficulty")
    @classmethod
    def difficulty_level(cls, v: str):
        if v not in DIFFICULTY_LEVELS:
            raise ValueError("O nível deve ser Iniciante, Intermediário ou Avançado")
        return v

    @field_validator("image")
    @classmethod
    def single_image(cls, v: List[ImageFile]):
        if len(v) > 1:
            raise ValueError("Insira apenas uma imagem para o desafio")
        checked = []
        for f in v:
            if len(f.data) > settings.max_image_bytes:
                raise ValueError(f"A imagem deve ter no máximo {settings.max_image_bytes // 1024} KB")
            mime = sniff_mime(f.data)
            if mime is None:
                raise ValueError("O arquivo enviado não é uma imagem válida")
            checked.append(f.model_copy(update={"content_type": mime}))
        return checked

    @field_validator("figma_url")
    @classmethod
    def figma_url_valid(cls, v: str):
        try:
            _url_adapter.validate_python(v)
        except ValidationError:
            raise ValueError("O link para o Figma deve ser um link válido")
        return v

    @field_validator("brief")
    @classmethod
    def brief_length(cls, v: str):
        if not 10 <= len(v) <= 120:
            raise ValueError("A descrição deve ter entre 10 e 120 caracteres")
        return v

    @field_validator("description")
    @classmethod
    def description_present(cls, v: str):
        if not v.strip():
            raise ValueError("Informe os requisitos do desafio")
        return v

    @property
    def image_file(self) -> ImageFile | None:
        return self.image[0] if self.image else None

    def payload_fields(self) -> dict[str, str]:
        """Validated text fields, ready to be merged with the hosted image."""
        return self.model_dump(include=set(FIELD_ORDER) - {"image"})


class ProjectCreate(_ProjectForm):
    @field_validator("image")
    @classmethod
    def image_present(cls, v: List[ImageFile]):
        if not v:
            raise ValueError("Insira uma imagem para o desafio")
        return v

class ProjectUpdate(_ProjectForm):
    """Same rules as creation, the image may be left out to keep the current one."""


def field_errors(exc: ValidationError) -> dict[str, str]:
    """
    Field-keyed human readable messages, ordered by FIELD_ORDER.
    Only the first message per field is kept.
    """
    found: dict[str, str] = {}
    for err in exc.errors():
        if not err.get("loc"):
            continue
        field = str(err["loc"][0])
        if field in found:
            continue
        ctx_error = (err.get("ctx") or {}).get("error")
        found[field] = str(ctx_error) if ctx_error is not None else err["msg"]
    ordered = {f: found[f] for f in FIELD_ORDER if f in found}
    ordered.update({f: m for f, m in found.items() if f not in ordered})
    return ordered


def first_error(errors: dict[str, str]) -> tuple[str, str] | None:
    for field in FIELD_ORDER:
        if field in errors:
            return field, errors[field]
    for field, message in errors.items():
        return field, message
    return None
