"""FastAPI application entrypoint for the business manager backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from bizmanager.api.middleware.logging import LoggingMiddleware
from bizmanager.api.middleware.ratelimit import RateLimitMiddleware
from bizmanager.api.routes import admin, auth, interactions, people, tags
from bizmanager.core.config import settings
from bizmanager.core.database import database_manager
from bizmanager.core.exceptions import ApplicationError, RateLimitedError, ValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize shared resources on startup and tear them down on shutdown."""

    await database_manager.initialize()
    await database_manager.create_all()

    try:
        yield
    finally:
        await database_manager.close()


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RateLimitMiddleware)

# Routers
app.include_router(auth.router)
app.include_router(people.router)
app.include_router(interactions.router)
app.include_router(tags.router)
app.include_router(admin.router)


@app.get("/health")
async def health() -> Dict[str, str]:
    """Liveness probe."""

    return {"status": "ok"}


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(ApplicationError)
async def handle_application_error(_: Request, exc: ApplicationError):
    """Return standardized responses for application layer exceptions."""

    content = {"detail": exc.message, "code": exc.code}
    headers = None
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    if isinstance(exc, RateLimitedError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_: Request, exc: RequestValidationError):
    """Report malformed payloads in the same shape as service-level validation."""

    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"detail": "Validation failed", "code": ValidationError.code, "errors": errors},
    )


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError):
    logger.error("Database error", exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "internal_error"},
    )
