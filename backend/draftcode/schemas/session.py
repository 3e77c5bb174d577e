from __future__ import annotations
from typing import Any, List
from pydantic import BaseModel, Field, field_validator
from draftcode.schemas.project import Project


class SessionUser(BaseModel):
    id: str
    role: str = "user"
    name: str = ""
    email: str = ""
    image: str | None = None
    projects: List[Project] = Field(default_factory=list)
    favorites: List[dict[str, Any]] = Field(default_factory=list)
    social_media: List[dict[str, Any]] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v):
        return str(v)
