from __future__ import annotations
import io
import json
from datetime import datetime, timedelta, timezone
import httpx
import jwt
import pytest
import pytest_asyncio
from PIL import Image
from draftcode.clients import get_image_client, get_project_client
from draftcode.main import app
from draftcode.config import settings
from draftcode.routes.dashboard import get_form_registry
from draftcode.schemas.project import ImageFile
from draftcode.schemas.session import SessionUser
from draftcode.services.images import ImageUploadClient
from draftcode.services.projects import ProjectApiClient
from draftcode.services.submission import FormRegistry, ProjectSubmission
from draftcode.session import SESSION_ALG


def make_session_token(user: SessionUser, ttl_min: int = 60) -> str:
    """Session cookie value as the auth provider issues it."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "user": user.model_dump(mode="json"),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=SESSION_ALG)

def make_png(color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


class FakeServices:
    """
    Stand-in for the image hosting service and the backend API.
    Every request is recorded in `calls` as (service, method, path, request).
    """

    def __init__(self):
        self.calls: list[tuple[str, str, str, httpx.Request]] = []
        self.projects: dict[str, dict] = {}
        self.upload_status = 200
        self.upload_body: dict = {"url": "https://img.test/new.png", "public_id": "img-new"}
        self.upload_error: BaseException | None = None
        self.delete_status = 200
        self.project_status: int | None = None

    def calls_to(self, service: str) -> list[tuple[str, str]]:
        return [(m, p) for s, m, p, _ in self.calls if s == service]

    def image_handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(("images", request.method, request.url.path, request))
        if request.url.path == "/image-upload" and request.method == "POST":
            if self.upload_error is not None:
                raise self.upload_error
            return httpx.Response(self.upload_status, json=self.upload_body)
        if request.url.path == "/image-upload/delete" and request.method == "DELETE":
            return httpx.Response(self.delete_status, json={"result": "ok"})
        return httpx.Response(404)

    @staticmethod
    def _stored(body: dict) -> dict:
        """Shape a submitted payload the way the backend stores and serves it."""
        record = dict(body)
        if isinstance(record.get("difficulty"), str):
            record["difficulty"] = {"name": record["difficulty"]}
        if isinstance(record.get("technologies"), str):
            record["technologies"] = [{"name": t} for t in record["technologies"].split()]
        return record

    def api_handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(("api", request.method, request.url.path, request))
        if self.project_status is not None and request.method in ("POST", "PUT"):
            return httpx.Response(self.project_status, json={"error": "boom"})
        parts = request.url.path.strip("/").split("/")
        if parts[:2] != ["api", "project"]:
            return httpx.Response(404)
        if len(parts) == 2:
            if request.method == "GET":
                return httpx.Response(200, json=list(self.projects.values()))
            if request.method == "POST":
                body = self._stored(json.loads(request.content))
                body["id"] = f"p{len(self.projects) + 1}"
                self.projects[body["id"]] = body
                return httpx.Response(201, json=body)
        project_id = parts[2]
        if request.method == "GET":
            if project_id not in self.projects:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json=self.projects[project_id])
        if request.method == "PUT":
            body = self._stored(json.loads(request.content))
            self.projects[project_id] = {**self.projects.get(project_id, {}), **body, "id": project_id}
            return httpx.Response(200, json=self.projects[project_id])
        return httpx.Response(405)

    def image_http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.image_handler), base_url="http://upload.test")

    def api_http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.api_handler), base_url="http://api.test")


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()

@pytest.fixture
def png() -> bytes:
    return make_png()

@pytest.fixture
def image_file(png) -> ImageFile:
    return ImageFile(filename="tela.png", content_type="image/png", data=png)

@pytest.fixture
def stored_project(services) -> dict:
    project = {
        "id": "42",
        "title": "Login Form Challenge",
        "brief": "Um login simples",
        "description": "Crie um formulário\nResponsivo",
        "image": "https://img.test/old.png",
        "image_id": "img-old",
        "figma_url": "https://www.figma.com/file/abc/Login",
        "difficulty": {"name": "Iniciante"},
        "technologies": [{"name": "html"}, {"name": "css"}],
        "user": {"name": "Ana Lima", "image": "https://img.test/ana.png", "github": "https://github.com/ana"},
    }
    services.projects["42"] = project
    return project

@pytest.fixture
def user() -> SessionUser:
    return SessionUser(id="u1", role="admin", name="Ana Lima", email="ana@example.com")

@pytest.fixture
def mint_session():
    return make_session_token

@pytest.fixture
def session_cookie(user) -> dict[str, str]:
    return {settings.session_cookie_name: make_session_token(user)}

@pytest.fixture
def forms() -> FormRegistry:
    return FormRegistry()

@pytest.fixture
def wired_app(services, forms):
    async def _images():
        async with services.image_http() as http:
            yield ImageUploadClient(http)

    async def _projects():
        async with services.api_http() as http:
            yield ProjectApiClient(http)

    app.dependency_overrides[get_image_client] = _images
    app.dependency_overrides[get_project_client] = _projects
    app.dependency_overrides[get_form_registry] = lambda: forms
    yield app
    app.dependency_overrides.clear()

@pytest_asyncio.fixture
async def submission(services):
    async with services.image_http() as images, services.api_http() as api:
        yield ProjectSubmission(ImageUploadClient(images), ProjectApiClient(api))
