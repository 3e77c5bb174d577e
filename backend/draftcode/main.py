from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from draftcode.config import settings
from draftcode.logging_setup import configure_logging
from draftcode.routes.system import router as system_router
from draftcode.routes.challenges import router as challenges_router
from draftcode.routes.dashboard import router as dashboard_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(
        "startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha,
        api_base_url=settings.api_base_url, upload_url=settings.backend_upload_url,
    )
    yield
    log.info("shutdown")

app = FastAPI(
    title=settings.app_display_name,
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} web front end for coding challenges",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(challenges_router)
app.include_router(dashboard_router)

@app.get("/", include_in_schema=False)
async def home():
    return RedirectResponse("/desafios", status_code=307)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    try:
        response: Response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response
