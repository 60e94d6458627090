"""Review routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status

from devcamper.routes.dependencies import get_review_service, require_roles
from devcamper.schemas.auth import AuthPrincipal, Role
from devcamper.schemas.envelope import DataResponse, PaginatedResult
from devcamper.schemas.error import ErrorResponse
from devcamper.schemas.review import CreateReviewRequest, UpdateReviewRequest
from devcamper.services.reviews import ReviewService

router = APIRouter(tags=["Reviews"])

UserOrAdmin = Annotated[AuthPrincipal, Depends(require_roles(Role.USER, Role.ADMIN))]


@router.get("/reviews", response_model=PaginatedResult)
async def list_reviews(
    request: Request,
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> PaginatedResult:
    return service.list_reviews(dict(request.query_params))


@router.get(
    "/bootcamps/{bootcampId}/reviews",
    response_model=PaginatedResult,
    responses={404: {"model": ErrorResponse}},
)
async def list_bootcamp_reviews(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    request: Request,
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> PaginatedResult:
    return service.list_reviews(dict(request.query_params), bootcamp_id=bootcamp_id)


@router.get("/reviews/{reviewId}", response_model=DataResponse, responses={404: {"model": ErrorResponse}})
async def get_review(
    review_id: Annotated[str, Path(alias="reviewId")],
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> DataResponse:
    return DataResponse(data=service.get_review(review_id))


@router.post(
    "/bootcamps/{bootcampId}/reviews",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def add_review(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    payload: CreateReviewRequest,
    principal: UserOrAdmin,
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> DataResponse:
    return DataResponse(data=service.add_review(principal, bootcamp_id, payload))


@router.put(
    "/reviews/{reviewId}",
    response_model=DataResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_review(
    review_id: Annotated[str, Path(alias="reviewId")],
    payload: UpdateReviewRequest,
    principal: UserOrAdmin,
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> DataResponse:
    return DataResponse(data=service.update_review(principal, review_id, payload))


@router.delete(
    "/reviews/{reviewId}",
    response_model=DataResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_review(
    review_id: Annotated[str, Path(alias="reviewId")],
    principal: UserOrAdmin,
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> DataResponse:
    service.delete_review(principal, review_id)
    return DataResponse(data={})
