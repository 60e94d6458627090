"""Review service layer."""

from collections.abc import Mapping
from typing import Any

from devcamper.domain.ownership import OwnershipGuard
from devcamper.domain.query import Expansion, FilterOperator, FilterPredicate, QueryBuilder
from devcamper.errors import NotFound, ValidationError
from devcamper.repositories.memory import InMemoryStore
from devcamper.schemas.auth import AuthPrincipal
from devcamper.schemas.envelope import PaginatedResult
from devcamper.schemas.review import CreateReviewRequest, UpdateReviewRequest

REVIEW_BOOTCAMP = Expansion(path="bootcamp", collection="bootcamps", select=("name", "description"))


class ReviewService:
    def __init__(self, store: InMemoryStore, guard: OwnershipGuard) -> None:
        self._store = store
        self._guard = guard

    def list_reviews(self, params: Mapping[str, str], *, bootcamp_id: str | None = None) -> PaginatedResult:
        base_filters = []
        if bootcamp_id is not None:
            self._require_bootcamp(bootcamp_id)
            base_filters.append(FilterPredicate("bootcamp", FilterOperator.EQ, bootcamp_id))
        builder = QueryBuilder(self._store.reviews, expand=[REVIEW_BOOTCAMP], base_filters=base_filters)
        return builder.execute(params)

    def get_review(self, review_id: str) -> dict[str, Any]:
        review = self._require(review_id)
        return self._store.reviews.expand(review, [REVIEW_BOOTCAMP])

    def add_review(
        self,
        principal: AuthPrincipal,
        bootcamp_id: str,
        payload: CreateReviewRequest,
    ) -> dict[str, Any]:
        self._require_bootcamp(bootcamp_id)
        if self._store.reviews.find_one(bootcamp=bootcamp_id, user=principal.user_id) is not None:
            raise ValidationError("User has already submitted a review for this bootcamp")

        data = payload.model_dump(mode="json")
        data.update({"bootcamp": bootcamp_id, "user": principal.user_id})
        review = self._store.reviews.insert(data)
        self.refresh_average_rating(bootcamp_id)
        return review

    def update_review(
        self,
        principal: AuthPrincipal,
        review_id: str,
        payload: UpdateReviewRequest,
    ) -> dict[str, Any]:
        review = self._require(review_id)
        self._guard.ensure_can_mutate(principal, review, action="update", resource="review")

        changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        updated = self._store.reviews.update_by_id(review_id, changes)
        if updated is None:
            raise NotFound(f"No review found with the id of {review_id}")
        self.refresh_average_rating(updated["bootcamp"])
        return updated

    def delete_review(self, principal: AuthPrincipal, review_id: str) -> None:
        review = self._require(review_id)
        self._guard.ensure_can_mutate(principal, review, action="delete", resource="review")

        self._store.reviews.delete_by_id(review_id)
        self.refresh_average_rating(review["bootcamp"])

    def refresh_average_rating(self, bootcamp_id: str) -> None:
        ratings = [review["rating"] for review in self._store.reviews.find_all(bootcamp=bootcamp_id)]
        average = round(sum(ratings) / len(ratings), 1) if ratings else None
        if self._store.bootcamps.find_by_id(bootcamp_id) is not None:
            self._store.bootcamps.update_by_id(bootcamp_id, {"average_rating": average})

    def _require(self, review_id: str) -> dict[str, Any]:
        review = self._store.reviews.find_by_id(review_id)
        if review is None:
            raise NotFound(f"No review found with the id of {review_id}")
        return review

    def _require_bootcamp(self, bootcamp_id: str) -> dict[str, Any]:
        bootcamp = self._store.bootcamps.find_by_id(bootcamp_id)
        if bootcamp is None:
            raise NotFound(f"No bootcamp with the id of {bootcamp_id}")
        return bootcamp
