"""Dependency wiring for routes.

Protected routes compose their pipeline from these dependencies:
``get_authenticated_principal`` (identity) then ``require_roles`` (role
membership), before the handler reaches the query builder or the ownership
guard. Public routes declare neither and see no principal.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from devcamper.adapters.email import EmailSender, HttpEmailSender, MemoryEmailSender
from devcamper.adapters.geocoding import Geocoder, MapQuestGeocoder, StaticGeocoder
from devcamper.adapters.storage import FileStore, LocalFileStore
from devcamper.core.config import Settings, get_settings
from devcamper.core.logging_safety import safe_log_identifier
from devcamper.core.tokens import TokenService
from devcamper.domain.ownership import OwnershipGuard
from devcamper.errors import ApiError, Forbidden, Unauthorized
from devcamper.repositories.memory import InMemoryStore
from devcamper.schemas.auth import AuthPrincipal, Role
from devcamper.services.auth import AuthService
from devcamper.services.bootcamps import BootcampService
from devcamper.services.courses import CourseService
from devcamper.services.reviews import ReviewService
from devcamper.services.users import UserService

TOKEN_COOKIE = "token"

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _auth_error() -> ApiError:
    return Unauthorized("Not authorized to access this route")


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_token_service(settings: Annotated[Settings, Depends(get_settings)]) -> TokenService:
    return TokenService.from_settings(settings)


def get_ownership_guard(settings: Annotated[Settings, Depends(get_settings)]) -> OwnershipGuard:
    return OwnershipGuard(settings.elevated_roles)


def get_email_sender(request: Request, settings: Annotated[Settings, Depends(get_settings)]) -> EmailSender:
    """Resolve the email adapter once per app; an injected sender wins over configuration."""
    sender = getattr(request.app.state, "email_sender", None)
    if sender is None:
        if settings.email_provider == "http":
            sender = HttpEmailSender(
                api_url=settings.email_api_url,
                api_key=settings.email_api_key,
                from_address=settings.email_from_address,
                from_name=settings.email_from_name,
            )
        else:
            sender = MemoryEmailSender()
        request.app.state.email_sender = sender
    return sender


def get_geocoder(request: Request, settings: Annotated[Settings, Depends(get_settings)]) -> Geocoder:
    geocoder = getattr(request.app.state, "geocoder", None)
    if geocoder is None:
        if settings.geocoder_provider == "mapquest":
            geocoder = MapQuestGeocoder(api_key=settings.geocoder_api_key)
        else:
            geocoder = StaticGeocoder()
        request.app.state.geocoder = geocoder
    return geocoder


def get_file_store(request: Request, settings: Annotated[Settings, Depends(get_settings)]) -> FileStore:
    file_store = getattr(request.app.state, "file_store", None)
    if file_store is None:
        file_store = LocalFileStore(settings.upload_dir)
        request.app.state.file_store = file_store
    return file_store


def get_auth_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    email_sender: Annotated[EmailSender, Depends(get_email_sender)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthService:
    return AuthService(store, tokens, email_sender, public_base_url=settings.public_base_url)


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthPrincipal:
    """Verify the bearer header (or the token cookie) and attach the principal to request context."""
    correlation_id = _request_correlation_id(request)
    safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")

    token: str | None = None
    if credentials is not None and credentials.scheme.lower() == "bearer" and credentials.credentials:
        token = credentials.credentials
    elif request.cookies.get(TOKEN_COOKIE):
        token = request.cookies[TOKEN_COOKIE]

    if token is None:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=missing_token",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise _auth_error()

    try:
        principal = auth_service.resolve_principal(tokens.verify(token))
    except Unauthorized as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=token_verification_failed",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise _auth_error() from exc

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
        principal.role,
    )
    request.state.auth_principal = principal
    return principal


def require_roles(*roles: Role) -> Callable[..., Awaitable[AuthPrincipal]]:
    """Build a dependency that admits only principals holding one of ``roles``."""
    allowed = frozenset(role.value for role in roles)

    async def _require_roles(
        request: Request,
        principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    ) -> AuthPrincipal:
        if principal.role not in allowed:
            logger.warning(
                "auth.forbidden correlation_id=%s path=%s principal_id=%s role=%s",
                safe_log_identifier(_request_correlation_id(request), prefix="cid"),
                request.url.path,
                safe_log_identifier(principal.user_id, prefix="pid"),
                principal.role,
            )
            raise Forbidden(f"User role {principal.role} is not authorized to access this route")
        return principal

    return _require_roles


def get_bootcamp_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    guard: Annotated[OwnershipGuard, Depends(get_ownership_guard)],
    geocoder: Annotated[Geocoder, Depends(get_geocoder)],
    file_store: Annotated[FileStore, Depends(get_file_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> BootcampService:
    return BootcampService(store, guard, geocoder, file_store, max_upload_bytes=settings.max_file_upload_bytes)


def get_course_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    guard: Annotated[OwnershipGuard, Depends(get_ownership_guard)],
) -> CourseService:
    return CourseService(store, guard)


def get_review_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    guard: Annotated[OwnershipGuard, Depends(get_ownership_guard)],
) -> ReviewService:
    return ReviewService(store, guard)


def get_user_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> UserService:
    return UserService(store)
