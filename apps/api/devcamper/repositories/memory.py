"""In-memory document collections used by the API and tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
import operator
from typing import Any
from uuid import uuid4

from devcamper.domain.query import Expansion, FilterOperator, FilterPredicate, QuerySpec

_COMPARATORS: dict[FilterOperator, Callable[[Any, Any], bool]] = {
    FilterOperator.GT: operator.gt,
    FilterOperator.GTE: operator.ge,
    FilterOperator.LT: operator.lt,
    FilterOperator.LTE: operator.le,
}
_TRUE_STRINGS = frozenset({"true", "1", "yes"})


class DuplicateKeyError(Exception):
    """Raised when a write would break a unique-field constraint."""

    def __init__(self, collection: str, field_name: str, value: Any) -> None:
        self.collection = collection
        self.field_name = field_name
        self.value = value
        super().__init__(f"Duplicate value for {collection}.{field_name}")


def _new_id() -> str:
    return uuid4().hex[:24]


def _lookup(document: dict[str, Any], path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def _coerce(raw: str, current: Any) -> Any:
    """Convert a query-string value to the stored field's type."""
    if isinstance(current, bool):
        return raw.strip().lower() in _TRUE_STRINGS
    if isinstance(current, (int, float)):
        return float(raw)
    if isinstance(current, datetime):
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return raw


def _compare(stored: Any, op: FilterOperator, raw: str) -> bool:
    try:
        candidate = _coerce(raw, stored)
    except ValueError:
        return False
    if op is FilterOperator.EQ:
        return stored == candidate
    try:
        return _COMPARATORS[op](stored, candidate)
    except TypeError:
        return False


def matches(document: dict[str, Any], predicate: FilterPredicate) -> bool:
    stored = _lookup(document, predicate.field)
    if stored is None:
        return False

    values = predicate.value if isinstance(predicate.value, tuple) else (predicate.value,)
    op = FilterOperator.EQ if predicate.operator is FilterOperator.IN else predicate.operator
    # List fields match when any element satisfies the predicate.
    elements = stored if isinstance(stored, list) else [stored]
    return any(_compare(element, op, value) for element in elements for value in values)


def _rank(value: Any) -> tuple[int, Any]:
    """Order missing values first, then numbers, strings and datetimes; containers tie last."""
    if value is None:
        return (0, 0)
    if isinstance(value, (bool, int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, datetime):
        return (3, value)
    return (4, 0)


def _sort_key(field_name: str) -> Callable[[dict[str, Any]], tuple[int, Any]]:
    def key(document: dict[str, Any]) -> tuple[int, Any]:
        return _rank(_lookup(document, field_name))

    return key


def _project(document: dict[str, Any], fields: Sequence[str] | None) -> dict[str, Any]:
    if fields is None:
        return document
    return {name: document[name] for name in fields if name in document}


class InMemoryCollection:
    """Deterministic document collection with filter, sort, page, projection and expansion."""

    def __init__(
        self,
        name: str,
        *,
        unique_fields: Sequence[str] = (),
        resolver: Callable[[str], InMemoryCollection] | None = None,
    ) -> None:
        self.name = name
        self.documents: dict[str, dict[str, Any]] = {}
        self.write_count = 0
        self._unique_fields = tuple(unique_fields)
        self._resolver = resolver
        self._last_created_at: datetime | None = None

    def _next_created_at(self) -> datetime:
        now = datetime.now(UTC)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now

    def _ensure_unique(self, data: dict[str, Any], *, exclude_id: str | None = None) -> None:
        for field_name in self._unique_fields:
            value = data.get(field_name)
            if value is None:
                continue
            for document in self.documents.values():
                if document["id"] != exclude_id and document.get(field_name) == value:
                    raise DuplicateKeyError(self.name, field_name, value)

    def insert(self, data: dict[str, Any]) -> dict[str, Any]:
        self._ensure_unique(data)
        document = copy.deepcopy(data)
        document["id"] = _new_id()
        document.setdefault("created_at", self._next_created_at())
        self.documents[document["id"]] = document
        self.write_count += 1
        return copy.deepcopy(document)

    def find_by_id(self, document_id: str) -> dict[str, Any] | None:
        document = self.documents.get(document_id)
        return copy.deepcopy(document) if document is not None else None

    def find_all(self, **criteria: Any) -> list[dict[str, Any]]:
        found = [
            document
            for document in self.documents.values()
            if all(document.get(key) == value for key, value in criteria.items())
        ]
        found.sort(key=_sort_key("created_at"))
        return [copy.deepcopy(document) for document in found]

    def find_one(self, **criteria: Any) -> dict[str, Any] | None:
        found = self.find_all(**criteria)
        return found[0] if found else None

    def _filtered(self, filters: Sequence[FilterPredicate]) -> list[dict[str, Any]]:
        return [
            document
            for document in self.documents.values()
            if all(matches(document, predicate) for predicate in filters)
        ]

    def count(self, filters: Sequence[FilterPredicate] = ()) -> int:
        return len(self._filtered(filters))

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        found = self._filtered(spec.filters)
        # Stable sorts applied from the last key to the first give multi-key ordering.
        for sort_key in reversed(spec.sort):
            found.sort(key=_sort_key(sort_key.field), reverse=sort_key.descending)

        window = found[spec.skip : spec.skip + spec.limit]
        results = [_project(copy.deepcopy(document), spec.select) for document in window]
        for expansion in spec.expand:
            # A projection that leaves out the expanded path suppresses the expansion.
            if spec.select is not None and expansion.path not in spec.select:
                continue
            for result in results:
                self._expand(result, expansion)
        return results

    def expand(self, document: dict[str, Any], expansions: Sequence[Expansion]) -> dict[str, Any]:
        for expansion in expansions:
            self._expand(document, expansion)
        return document

    def _expand(self, document: dict[str, Any], expansion: Expansion) -> None:
        if self._resolver is None:
            return
        related = self._resolver(expansion.collection)
        select = ("id", *expansion.select) if expansion.select else None

        if expansion.many:
            local_value = document.get(expansion.local_field)
            document[expansion.path] = [
                _project(item, select) for item in related.find_all(**{expansion.foreign_field: local_value})
            ]
            return

        if expansion.path not in document:
            return
        target = related.find_one(**{expansion.foreign_field: document[expansion.path]})
        document[expansion.path] = _project(target, select) if target is not None else None

    def update_by_id(self, document_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        """Apply a partial update atomically; unique checks run before any field changes."""
        document = self.documents.get(document_id)
        if document is None:
            return None
        self._ensure_unique(changes, exclude_id=document_id)
        document.update(copy.deepcopy(changes))
        document["updated_at"] = datetime.now(UTC)
        self.write_count += 1
        return copy.deepcopy(document)

    def delete_by_id(self, document_id: str) -> bool:
        if self.documents.pop(document_id, None) is None:
            return False
        self.write_count += 1
        return True

    def delete_many(self, **criteria: Any) -> int:
        doomed = [document["id"] for document in self.find_all(**criteria)]
        for document_id in doomed:
            self.documents.pop(document_id, None)
        self.write_count += len(doomed)
        return len(doomed)


@dataclass(slots=True)
class InMemoryStore:
    """Simple, deterministic persistence layer for local runs and tests."""

    collections: dict[str, InMemoryCollection] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.collections.setdefault("users", InMemoryCollection("users", unique_fields=("email",), resolver=self.collection))
        self.collections.setdefault(
            "bootcamps",
            InMemoryCollection("bootcamps", unique_fields=("name",), resolver=self.collection),
        )
        self.collections.setdefault("courses", InMemoryCollection("courses", resolver=self.collection))
        self.collections.setdefault("reviews", InMemoryCollection("reviews", resolver=self.collection))

    def collection(self, name: str) -> InMemoryCollection:
        return self.collections[name]

    @property
    def users(self) -> InMemoryCollection:
        return self.collections["users"]

    @property
    def bootcamps(self) -> InMemoryCollection:
        return self.collections["bootcamps"]

    @property
    def courses(self) -> InMemoryCollection:
        return self.collections["courses"]

    @property
    def reviews(self) -> InMemoryCollection:
        return self.collections["reviews"]


__all__ = ["DuplicateKeyError", "InMemoryCollection", "InMemoryStore", "matches"]
