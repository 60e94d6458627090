"""FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SettingsValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from devcamper.adapters.email import EmailSender
from devcamper.adapters.geocoding import Geocoder
from devcamper.adapters.storage import FileStore
from devcamper.core.config import get_settings
from devcamper.core.logging_safety import safe_log_identifier
from devcamper.errors import ApiError
from devcamper.rate_limit import RateLimitMiddleware
from devcamper.repositories.memory import DuplicateKeyError, InMemoryStore
from devcamper.routes import (
    auth_router,
    bootcamps_router,
    courses_router,
    reviews_router,
    uploads_router,
    users_router,
)
from devcamper.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        prefix = f"{'.'.join(location)}: " if location else ""
        messages.append(f"{prefix}{error.get('msg', 'Invalid value')}")
    return ", ".join(messages) or "Invalid request"


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Misconfiguration is fatal: let the server close its listeners and exit.
    try:
        settings = get_settings()
    except SettingsValidationError:
        logger.critical("startup.failed reason=invalid_settings")
        raise
    logger.info(
        "startup.ready email_provider=%s geocoder_provider=%s token_lifetime_days=%s",
        settings.email_provider,
        settings.geocoder_provider,
        settings.jwt_expire_days,
    )
    yield
    logger.info("shutdown.complete")


def create_app(
    *,
    store: InMemoryStore | None = None,
    email_sender: EmailSender | None = None,
    geocoder: Geocoder | None = None,
    file_store: FileStore | None = None,
) -> FastAPI:
    app = FastAPI(title="DevCamper API", version="1.0.0", lifespan=lifespan)
    app.state.store = store or InMemoryStore()
    app.state.email_sender = email_sender
    app.state.geocoder = geocoder
    app.state.file_store = file_store

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.payload.model_dump())

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate_key(_, exc: DuplicateKeyError) -> JSONResponse:
        return _error_response(400, "Duplicate field value entered")

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "request.unhandled_error correlation_id=%s method=%s path=%s",
            safe_log_identifier(getattr(request.state, "correlation_id", None), prefix="cid"),
            request.method,
            request.url.path,
        )
        return _error_response(500, "Server Error")

    @app.middleware("http")
    async def add_security_headers(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        for header, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_prefix = "/api/v1"
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(bootcamps_router, prefix=api_prefix)
    app.include_router(courses_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    # Upload paths are served from the site root, matching the paths the file store returns.
    app.include_router(uploads_router)

    return app


app = create_app()
