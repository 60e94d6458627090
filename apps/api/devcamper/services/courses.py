"""Course service layer."""

from collections.abc import Mapping
import math
from typing import Any

from devcamper.domain.ownership import OwnershipGuard
from devcamper.domain.query import Expansion, FilterOperator, FilterPredicate, QueryBuilder
from devcamper.errors import NotFound
from devcamper.repositories.memory import InMemoryStore
from devcamper.schemas.auth import AuthPrincipal
from devcamper.schemas.course import CreateCourseRequest, UpdateCourseRequest
from devcamper.schemas.envelope import PaginatedResult

COURSE_BOOTCAMP = Expansion(path="bootcamp", collection="bootcamps", select=("name", "description"))


class CourseService:
    def __init__(self, store: InMemoryStore, guard: OwnershipGuard) -> None:
        self._store = store
        self._guard = guard

    def list_courses(self, params: Mapping[str, str], *, bootcamp_id: str | None = None) -> PaginatedResult:
        base_filters = []
        if bootcamp_id is not None:
            self._require_bootcamp(bootcamp_id)
            base_filters.append(FilterPredicate("bootcamp", FilterOperator.EQ, bootcamp_id))
        builder = QueryBuilder(self._store.courses, expand=[COURSE_BOOTCAMP], base_filters=base_filters)
        return builder.execute(params)

    def get_course(self, course_id: str) -> dict[str, Any]:
        course = self._require(course_id)
        return self._store.courses.expand(course, [COURSE_BOOTCAMP])

    def add_course(
        self,
        principal: AuthPrincipal,
        bootcamp_id: str,
        payload: CreateCourseRequest,
    ) -> dict[str, Any]:
        bootcamp = self._require_bootcamp(bootcamp_id)
        self._guard.ensure_can_mutate(principal, bootcamp, action="add a course to", resource="bootcamp")

        data = payload.model_dump(mode="json")
        data.update({"bootcamp": bootcamp_id, "user": principal.user_id})
        course = self._store.courses.insert(data)
        self.refresh_average_cost(bootcamp_id)
        return course

    def update_course(
        self,
        principal: AuthPrincipal,
        course_id: str,
        payload: UpdateCourseRequest,
    ) -> dict[str, Any]:
        course = self._require(course_id)
        self._guard.ensure_can_mutate(principal, course, action="update", resource="course")

        changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        updated = self._store.courses.update_by_id(course_id, changes)
        if updated is None:
            raise NotFound(f"No course with the id of {course_id}")
        self.refresh_average_cost(updated["bootcamp"])
        return updated

    def delete_course(self, principal: AuthPrincipal, course_id: str) -> None:
        course = self._require(course_id)
        self._guard.ensure_can_mutate(principal, course, action="delete", resource="course")

        self._store.courses.delete_by_id(course_id)
        self.refresh_average_cost(course["bootcamp"])

    def refresh_average_cost(self, bootcamp_id: str) -> None:
        """Store the mean tuition rounded up to the next ten, or clear it when no courses remain."""
        tuitions = [course["tuition"] for course in self._store.courses.find_all(bootcamp=bootcamp_id)]
        average = math.ceil(sum(tuitions) / len(tuitions) / 10) * 10 if tuitions else None
        if self._store.bootcamps.find_by_id(bootcamp_id) is not None:
            self._store.bootcamps.update_by_id(bootcamp_id, {"average_cost": average})

    def _require(self, course_id: str) -> dict[str, Any]:
        course = self._store.courses.find_by_id(course_id)
        if course is None:
            raise NotFound(f"No course with the id of {course_id}")
        return course

    def _require_bootcamp(self, bootcamp_id: str) -> dict[str, Any]:
        bootcamp = self._store.bootcamps.find_by_id(bootcamp_id)
        if bootcamp is None:
            raise NotFound(f"No bootcamp with the id of {bootcamp_id}")
        return bootcamp
