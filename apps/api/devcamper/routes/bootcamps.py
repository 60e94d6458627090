"""Bootcamp routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Path, Request, UploadFile, status

from devcamper.routes.dependencies import get_bootcamp_service, require_roles
from devcamper.schemas.auth import AuthPrincipal, Role
from devcamper.schemas.bootcamp import CreateBootcampRequest, UpdateBootcampRequest
from devcamper.schemas.envelope import DataResponse, ListResponse, PaginatedResult
from devcamper.schemas.error import ErrorResponse
from devcamper.services.bootcamps import BootcampService

router = APIRouter(prefix="/bootcamps", tags=["Bootcamps"])

PublisherOrAdmin = Annotated[AuthPrincipal, Depends(require_roles(Role.PUBLISHER, Role.ADMIN))]


@router.get("", response_model=PaginatedResult)
async def list_bootcamps(
    request: Request,
    service: Annotated[BootcampService, Depends(get_bootcamp_service)],
) -> PaginatedResult:
    return service.list_bootcamps(dict(request.query_params))


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=ListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_bootcamps_in_radius(
    zipcode: str,
    distance: Annotated[float, Path(description="Radius in miles")],
    service: Annotated[BootcampService, Depends(get_bootcamp_service)],
) -> ListResponse:
    found = await service.bootcamps_in_radius(zipcode, distance)
    return ListResponse(count=len(found), data=found)


@router.get("/{bootcampId}", response_model=DataResponse, responses={404: {"model": ErrorResponse}})
async def get_bootcamp(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    service: Annotated[BootcampService, Depends(get_bootcamp_service)],
) -> DataResponse:
    return DataResponse(data=service.get_bootcamp(bootcamp_id))


@router.post(
    "",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def create_bootcamp(
    payload: CreateBootcampRequest,
    principal: PublisherOrAdmin,
    service: Annotated[BootcampService, Depends(get_bootcamp_service)],
) -> DataResponse:
    return DataResponse(data=await service.create_bootcamp(principal, payload))


@router.put(
    "/{bootcampId}",
    response_model=DataResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_bootcamp(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    payload: UpdateBootcampRequest,
    principal: PublisherOrAdmin,
    service: Annotated[BootcampService, Depends(get_bootcamp_service)],
) -> DataResponse:
    return DataResponse(data=await service.update_bootcamp(principal, bootcamp_id, payload))


@router.delete(
    "/{bootcampId}",
    response_model=DataResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_bootcamp(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    principal: PublisherOrAdmin,
    service: Annotated[BootcampService, Depends(get_bootcamp_service)],
) -> DataResponse:
    service.delete_bootcamp(principal, bootcamp_id)
    return DataResponse(data={})


@router.put(
    "/{bootcampId}/photo",
    response_model=DataResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def upload_bootcamp_photo(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    principal: PublisherOrAdmin,
    service: Annotated[BootcampService, Depends(get_bootcamp_service)],
    file: Annotated[UploadFile | None, File()] = None,
) -> DataResponse:
    data = await file.read() if file is not None else None
    path = await service.upload_photo(
        principal,
        bootcamp_id,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        data=data,
    )
    return DataResponse(data=path)
