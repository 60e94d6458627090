"""Course routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status

from devcamper.routes.dependencies import get_course_service, require_roles
from devcamper.schemas.auth import AuthPrincipal, Role
from devcamper.schemas.course import CreateCourseRequest, UpdateCourseRequest
from devcamper.schemas.envelope import DataResponse, PaginatedResult
from devcamper.schemas.error import ErrorResponse
from devcamper.services.courses import CourseService

router = APIRouter(tags=["Courses"])

PublisherOrAdmin = Annotated[AuthPrincipal, Depends(require_roles(Role.PUBLISHER, Role.ADMIN))]


@router.get("/courses", response_model=PaginatedResult)
async def list_courses(
    request: Request,
    service: Annotated[CourseService, Depends(get_course_service)],
) -> PaginatedResult:
    return service.list_courses(dict(request.query_params))


@router.get(
    "/bootcamps/{bootcampId}/courses",
    response_model=PaginatedResult,
    responses={404: {"model": ErrorResponse}},
)
async def list_bootcamp_courses(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    request: Request,
    service: Annotated[CourseService, Depends(get_course_service)],
) -> PaginatedResult:
    return service.list_courses(dict(request.query_params), bootcamp_id=bootcamp_id)


@router.get("/courses/{courseId}", response_model=DataResponse, responses={404: {"model": ErrorResponse}})
async def get_course(
    course_id: Annotated[str, Path(alias="courseId")],
    service: Annotated[CourseService, Depends(get_course_service)],
) -> DataResponse:
    return DataResponse(data=service.get_course(course_id))


@router.post(
    "/bootcamps/{bootcampId}/courses",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def add_course(
    bootcamp_id: Annotated[str, Path(alias="bootcampId")],
    payload: CreateCourseRequest,
    principal: PublisherOrAdmin,
    service: Annotated[CourseService, Depends(get_course_service)],
) -> DataResponse:
    return DataResponse(data=service.add_course(principal, bootcamp_id, payload))


@router.put(
    "/courses/{courseId}",
    response_model=DataResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_course(
    course_id: Annotated[str, Path(alias="courseId")],
    payload: UpdateCourseRequest,
    principal: PublisherOrAdmin,
    service: Annotated[CourseService, Depends(get_course_service)],
) -> DataResponse:
    return DataResponse(data=service.update_course(principal, course_id, payload))


@router.delete(
    "/courses/{courseId}",
    response_model=DataResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_course(
    course_id: Annotated[str, Path(alias="courseId")],
    principal: PublisherOrAdmin,
    service: Annotated[CourseService, Depends(get_course_service)],
) -> DataResponse:
    service.delete_course(principal, course_id)
    return DataResponse(data={})
