"""User administration routes (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status

from devcamper.routes.dependencies import get_user_service, require_roles
from devcamper.schemas.auth import AuthPrincipal, Role
from devcamper.schemas.envelope import DataResponse, PaginatedResult
from devcamper.schemas.error import ErrorResponse
from devcamper.schemas.user import CreateUserRequest, UpdateUserRequest
from devcamper.services.users import UserService

AdminOnly = Annotated[AuthPrincipal, Depends(require_roles(Role.ADMIN))]

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)


@router.get("", response_model=PaginatedResult)
async def list_users(
    request: Request,
    principal: AdminOnly,
    service: Annotated[UserService, Depends(get_user_service)],
) -> PaginatedResult:
    return service.list_users(dict(request.query_params))


@router.get("/{userId}", response_model=DataResponse, responses={404: {"model": ErrorResponse}})
async def get_user(
    user_id: Annotated[str, Path(alias="userId")],
    principal: AdminOnly,
    service: Annotated[UserService, Depends(get_user_service)],
) -> DataResponse:
    return DataResponse(data=service.get_user(user_id))


@router.post("", response_model=DataResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: CreateUserRequest,
    principal: AdminOnly,
    service: Annotated[UserService, Depends(get_user_service)],
) -> DataResponse:
    return DataResponse(data=service.create_user(payload))


@router.put("/{userId}", response_model=DataResponse, responses={404: {"model": ErrorResponse}})
async def update_user(
    user_id: Annotated[str, Path(alias="userId")],
    payload: UpdateUserRequest,
    principal: AdminOnly,
    service: Annotated[UserService, Depends(get_user_service)],
) -> DataResponse:
    return DataResponse(data=service.update_user(user_id, payload))


@router.delete("/{userId}", response_model=DataResponse, responses={404: {"model": ErrorResponse}})
async def delete_user(
    user_id: Annotated[str, Path(alias="userId")],
    principal: AdminOnly,
    service: Annotated[UserService, Depends(get_user_service)],
) -> DataResponse:
    service.delete_user(user_id)
    return DataResponse(data={})
