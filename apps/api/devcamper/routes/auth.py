"""Authentication routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response

from devcamper.core.config import Settings, get_settings
from devcamper.routes.dependencies import TOKEN_COOKIE, get_auth_service, get_authenticated_principal
from devcamper.schemas.auth import (
    AuthPrincipal,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from devcamper.schemas.envelope import DataResponse, MessageResponse, TokenResponse
from devcamper.schemas.error import ErrorResponse
from devcamper.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(response: Response, token: str, settings: Settings) -> TokenResponse:
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.jwt_cookie_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return TokenResponse(token=token)


@router.post("/register", response_model=TokenResponse, responses={400: {"model": ErrorResponse}})
async def register(
    payload: RegisterRequest,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    return _token_response(response, service.register(payload), settings)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def login(
    payload: LoginRequest,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    return _token_response(response, service.login(payload), settings)


@router.get("/logout", response_model=DataResponse, responses={401: {"model": ErrorResponse}})
async def logout(
    response: Response,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
) -> DataResponse:
    response.delete_cookie(TOKEN_COOKIE)
    return DataResponse(data={})


@router.get("/me", response_model=DataResponse, responses={401: {"model": ErrorResponse}})
async def get_me(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> DataResponse:
    return DataResponse(data=service.get_me(principal))


@router.put("/updatedetails", response_model=DataResponse, responses={401: {"model": ErrorResponse}})
async def update_details(
    payload: UpdateDetailsRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> DataResponse:
    return DataResponse(data=service.update_details(principal, payload))


@router.put("/updatepassword", response_model=TokenResponse, responses={401: {"model": ErrorResponse}})
async def update_password(
    payload: UpdatePasswordRequest,
    response: Response,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    return _token_response(response, service.update_password(principal, payload), settings)


@router.post(
    "/forgotpassword",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    return MessageResponse(data=await service.forgot_password(payload))


@router.put("/resetpassword/{resettoken}", response_model=TokenResponse, responses={400: {"model": ErrorResponse}})
async def reset_password(
    reset_token: Annotated[str, Path(alias="resettoken")],
    payload: ResetPasswordRequest,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    return _token_response(response, service.reset_password(reset_token, payload), settings)
