"""Request-shaped collection queries.

Turns an open-ended mapping of query-string parameters into a ``QuerySpec``
(filters, sort, projection, page window) and runs it against a collection.
Filter keys follow a fixed grammar::

    field=value           equality
    field[op]=value       op in gt, gte, lt, lte, in
    field__op=value       same operators, alternate spelling

``in`` takes a comma-separated list. Anything else is treated as a literal
field name compared by equality, so request input can never introduce an
operator outside the allow-list.

Field names may be given in camelCase (``-averageCost``, ``createdAt``) or
snake_case; both resolve to the stored snake_case path.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
import re
from typing import Any, Protocol

from pydantic.alias_generators import to_snake

from devcamper.schemas.envelope import PageRef, PaginatedResult

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})
DEFAULT_SORT = "-createdAt"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25

_FILTER_KEY = re.compile(
    r"^(?P<field>[A-Za-z_][A-Za-z0-9_.]*?)(?:\[(?P<bracket_op>[A-Za-z]+)\]|__(?P<suffix_op>[A-Za-z]+))?$"
)


class FilterOperator(str, Enum):
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


_COMPARISON_TOKENS: dict[str, FilterOperator] = {
    "gt": FilterOperator.GT,
    "gte": FilterOperator.GTE,
    "lt": FilterOperator.LT,
    "lte": FilterOperator.LTE,
    "in": FilterOperator.IN,
}


@dataclass(frozen=True, slots=True)
class FilterPredicate:
    field: str
    operator: FilterOperator
    value: str | tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True, slots=True)
class Expansion:
    """Route-defined relationship expansion.

    ``many=False`` replaces the id stored under ``path`` with the referenced
    document. ``many=True`` attaches every document of ``collection`` whose
    ``foreign_field`` equals this record's ``local_field``.
    """

    path: str
    collection: str
    select: tuple[str, ...] = ()
    many: bool = False
    local_field: str = "id"
    foreign_field: str = "id"


@dataclass(frozen=True, slots=True)
class QuerySpec:
    filters: tuple[FilterPredicate, ...] = ()
    sort: tuple[SortKey, ...] = (SortKey("created_at", descending=True),)
    select: tuple[str, ...] | None = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    expand: tuple[Expansion, ...] = field(default_factory=tuple)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class QueryableCollection(Protocol):
    def count(self, filters: Sequence[FilterPredicate]) -> int: ...

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]: ...


def field_name(raw: str) -> str:
    """Map a wire field name (`averageCost`, `location.zipcode`) to its stored snake_case path."""
    return ".".join(to_snake(part) for part in raw.strip().split("."))


def parse_filter(key: str, value: str) -> FilterPredicate:
    match = _FILTER_KEY.match(key)
    if match is None:
        return FilterPredicate(field=key, operator=FilterOperator.EQ, value=value)

    token = match.group("bracket_op") or match.group("suffix_op")
    if token is None:
        return FilterPredicate(field=field_name(match.group("field")), operator=FilterOperator.EQ, value=value)

    operator = _COMPARISON_TOKENS.get(token.lower())
    if operator is None:
        # Unknown operators are not interpreted; the raw key stays a literal field name.
        return FilterPredicate(field=key, operator=FilterOperator.EQ, value=value)

    if operator is FilterOperator.IN:
        items = tuple(item.strip() for item in value.split(",") if item.strip())
        return FilterPredicate(field=field_name(match.group("field")), operator=operator, value=items)
    return FilterPredicate(field=field_name(match.group("field")), operator=operator, value=value)


def parse_sort(raw: str | None) -> tuple[SortKey, ...]:
    tokens = [token.strip() for token in (raw or "").split(",") if token.strip()]
    if not tokens:
        tokens = [DEFAULT_SORT]

    keys: list[SortKey] = []
    for token in tokens:
        if token.startswith("-"):
            name = token[1:].strip()
            if name:
                keys.append(SortKey(field_name(name), descending=True))
        else:
            keys.append(SortKey(field_name(token.lstrip("+"))))
    return tuple(keys) or (SortKey("created_at", descending=True),)


def parse_select(raw: str | None, *, required_fields: Sequence[str] = ("id",)) -> tuple[str, ...] | None:
    fields = [field_name(name) for name in (raw or "").split(",") if name.strip()]
    if not fields:
        return None
    for name in required_fields:
        if name not in fields:
            fields.append(name)
    return tuple(fields)


def parse_positive_int(raw: str | None, default: int) -> int:
    try:
        number = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def build_query_spec(
    params: Mapping[str, str],
    *,
    base_filters: Sequence[FilterPredicate] = (),
    expand: Sequence[Expansion] = (),
    required_fields: Sequence[str] = ("id",),
) -> QuerySpec:
    """Derive a query from request parameters; reserved keys never become filters."""
    filters = list(base_filters)
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        filters.append(parse_filter(key, value))

    return QuerySpec(
        filters=tuple(filters),
        sort=parse_sort(params.get("sort")),
        select=parse_select(params.get("select"), required_fields=required_fields),
        page=parse_positive_int(params.get("page"), DEFAULT_PAGE),
        limit=parse_positive_int(params.get("limit"), DEFAULT_LIMIT),
        expand=tuple(expand),
    )


def build_pagination(*, page: int, limit: int, total: int) -> dict[str, PageRef]:
    """Out-of-range neighbours are omitted rather than set to null."""
    skip = (page - 1) * limit
    pagination: dict[str, PageRef] = {}
    if skip + limit < total:
        pagination["next"] = PageRef(page=page + 1, limit=limit)
    if skip > 0:
        pagination["prev"] = PageRef(page=page - 1, limit=limit)
    return pagination


class QueryBuilder:
    """Runs a request-shaped read against one collection.

    The expansion, required projection fields and hidden fields belong to the
    route; the request only controls filters, sort, projection and the page
    window. Hidden fields can be neither filtered, sorted on nor returned.
    """

    def __init__(
        self,
        collection: QueryableCollection,
        *,
        expand: Sequence[Expansion] = (),
        required_fields: Sequence[str] = ("id",),
        base_filters: Sequence[FilterPredicate] = (),
        hidden_fields: Collection[str] = (),
    ) -> None:
        self._collection = collection
        self._expand = tuple(expand)
        self._required_fields = tuple(required_fields)
        self._base_filters = tuple(base_filters)
        self._hidden_fields = frozenset(hidden_fields)

    def _is_hidden(self, name: str) -> bool:
        return name.split(".", 1)[0] in self._hidden_fields

    def build(self, params: Mapping[str, str]) -> QuerySpec:
        spec = build_query_spec(
            params,
            base_filters=self._base_filters,
            expand=self._expand,
            required_fields=self._required_fields,
        )
        if not self._hidden_fields:
            return spec

        sort = tuple(key for key in spec.sort if not self._is_hidden(key.field))
        select = spec.select
        if select is not None:
            select = tuple(name for name in select if not self._is_hidden(name))
        return replace(
            spec,
            filters=tuple(predicate for predicate in spec.filters if not self._is_hidden(predicate.field)),
            sort=sort or parse_sort(None),
            select=select,
        )

    def execute(self, params: Mapping[str, str]) -> PaginatedResult:
        spec = self.build(params)
        total = self._collection.count(spec.filters)
        records = self._collection.find(spec)
        if self._hidden_fields:
            records = [
                {key: value for key, value in record.items() if key not in self._hidden_fields}
                for record in records
            ]
        return PaginatedResult(
            count=len(records),
            pagination=build_pagination(page=spec.page, limit=spec.limit, total=total),
            data=records,
        )


__all__ = [
    "DEFAULT_LIMIT",
    "DEFAULT_PAGE",
    "DEFAULT_SORT",
    "RESERVED_PARAMS",
    "Expansion",
    "FilterOperator",
    "FilterPredicate",
    "QueryBuilder",
    "QuerySpec",
    "QueryableCollection",
    "SortKey",
    "build_pagination",
    "build_query_spec",
    "field_name",
    "parse_filter",
    "parse_positive_int",
    "parse_select",
    "parse_sort",
]
