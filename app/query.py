"""
Query spec builder — turns a paginated list request into a normalized
query descriptor and translates that descriptor into SQLAlchemy clauses.

A list request carries three ordered lists of criteria:

- ``filter``: ``(field, value)`` pairs producing equality predicates,
- ``search``: ``(field, value)`` pairs producing substring predicates,
- ``order``:  ``(field, direction)`` pairs producing the sort order.

Precedence rules
----------------
- Filters are applied first; a repeated filter field keeps its last value.
- A search entry is skipped when an equality filter already constrains the
  same field, so equality always wins over substring matching.
- A repeated sort field keeps the position of its first occurrence and the
  direction of its last one.

Each entity declares a ``FieldAllowList``; any entry naming a field outside
it raises ``InvalidFieldError`` before a descriptor is produced.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping, Protocol

from sqlalchemy import and_, asc, desc

from app.errors import InvalidFieldError

SortDirection = Literal["asc", "desc"]


class _ValueItem(Protocol):
    field: str
    value: Any


class _OrderItem(Protocol):
    field: str
    direction: SortDirection


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Equals:
    """Exact match on a scalar column."""

    value: Any

    def to_clause(self, column):
        return column == self.value


@dataclass(frozen=True)
class Contains:
    """Substring match; LIKE wildcards in *value* are matched literally."""

    value: str

    def to_clause(self, column):
        return column.contains(self.value, autoescape=True)


@dataclass(frozen=True)
class HasEvery:
    """
    Match records whose related collection contains every name in
    *values*.  *column* must be a relationship attribute whose target has
    a ``key`` column (``name`` by default).
    """

    values: tuple[str, ...]
    key: str = "name"

    def to_clause(self, column):
        return and_(*(column.any(**{self.key: v}) for v in self.values))


Predicate = Equals | Contains | HasEvery


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldAllowList:
    searchable: frozenset[str]
    filterable: frozenset[str]
    sortable: frozenset[str]


@dataclass
class QuerySpec:
    where: dict[str, Predicate] = field(default_factory=dict)
    order_by: list[tuple[str, SortDirection]] = field(default_factory=list)
    offset: int = 0
    limit: int = 10

    @property
    def is_unconstrained(self) -> bool:
        return not self.where and not self.order_by


def _check(name: str, allowed: frozenset[str], category: str) -> None:
    if name not in allowed:
        raise InvalidFieldError(name, category)


def build_query_spec(
    allowed: FieldAllowList,
    *,
    offset: int = 0,
    limit: int = 10,
    search: Iterable[_ValueItem] | None = None,
    filter: Iterable[_ValueItem] | None = None,
    order: Iterable[_OrderItem] | None = None,
) -> QuerySpec:
    """
    Build a ``QuerySpec`` from the raw list-request criteria.

    All entries are validated against *allowed* before any predicate is
    produced, so a bad entry never yields a partial descriptor.
    """
    if offset < 0:
        raise ValueError("offset must be non-negative")
    if limit < 1:
        raise ValueError("limit must be positive")

    search = list(search or ())
    filter = list(filter or ())
    order = list(order or ())

    for item in filter:
        _check(item.field, allowed.filterable, "filter")
    for item in search:
        _check(item.field, allowed.searchable, "search")
    for item in order:
        _check(item.field, allowed.sortable, "order")

    where: dict[str, Predicate] = {}
    for item in filter:
        where[item.field] = Equals(item.value)
    for item in search:
        if isinstance(where.get(item.field), Equals):
            continue
        where[item.field] = Contains(item.value)

    directions: dict[str, SortDirection] = {}
    for item in order:
        directions[item.field] = item.direction

    return QuerySpec(
        where=where,
        order_by=list(directions.items()),
        offset=offset,
        limit=limit,
    )


# ---------------------------------------------------------------------------
# SQLAlchemy translation
# ---------------------------------------------------------------------------

def where_clauses(spec: QuerySpec, columns: Mapping[str, Any]) -> list:
    """Return one SQL boolean clause per predicate in *spec*."""
    return [predicate.to_clause(columns[name]) for name, predicate in spec.where.items()]


def order_by_clauses(spec: QuerySpec, columns: Mapping[str, Any]) -> list:
    return [
        desc(columns[name]) if direction == "desc" else asc(columns[name])
        for name, direction in spec.order_by
    ]
