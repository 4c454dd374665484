"""Parameterized filter queries for product search.

Fragments are collected in a fixed order (brand, category, min price,
max price, text) and every literal is bound to a `$n` placeholder, numbered
once per value in that order. The data query and the count query are built
from the same plan, so one values list serves both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

PRODUCT_COLUMNS = (
    "p.id, p.title, p.images, p.rating, p.price, b.name AS brand, c.name AS category"
)
PRODUCT_FROM = (
    "product p JOIN brand b ON p.brand_id = b.id JOIN category c ON p.category_id = c.id"
)
_SEARCH_VECTOR = "to_tsvector(p.title || ' ' || b.name || ' ' || c.name)"


@dataclass(frozen=True)
class FilterParams:
    q: str | None = None
    brand: str | Sequence[str] | None = None
    category: str | Sequence[str] | None = None
    price_gte: float | None = None
    price_lte: float | None = None
    page: int | None = None
    limit: int | None = None


@dataclass(frozen=True)
class PredicateFragment:
    text: str
    values: tuple[Any, ...] = ()


@dataclass(frozen=True)
class QueryPlan:
    where_clause: str = ""
    values: tuple[Any, ...] = ()
    limit_offset_clause: str = ""
    order_clause: str = ""
    fragments: tuple[PredicateFragment, ...] = ()

    def data_sql(self) -> str:
        return _join_sql(
            f"SELECT {PRODUCT_COLUMNS} FROM {PRODUCT_FROM}",
            self.where_clause,
            self.order_clause,
            self.limit_offset_clause,
        )

    def count_sql(self) -> str:
        return _join_sql(
            f"SELECT COUNT(p.id) AS total_count FROM {PRODUCT_FROM}",
            self.where_clause,
        )


def _join_sql(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def _as_names(value: str | Sequence[str]) -> list[str]:
    if isinstance(value, str):
        return [value]
    return list(value)


class _FragmentList:
    def __init__(self) -> None:
        self.fragments: list[PredicateFragment] = []
        self.values: list[Any] = []

    def placeholder(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"

    def add(self, template: str, *values: Any) -> None:
        # Each {} in the template takes the next placeholder number.
        placeholders = [self.placeholder(value) for value in values]
        self.fragments.append(PredicateFragment(template.format(*placeholders), tuple(values)))


def _in_list(column: str, names: list[str]) -> str:
    return f"{column} IN ({', '.join('{}' for _ in names)})"


def build_query_plan(params: FilterParams) -> QueryPlan:
    fragments = _FragmentList()
    text_placeholder: str | None = None

    if params.brand:
        brands = _as_names(params.brand)
        if brands:
            fragments.add(_in_list("b.name", brands), *brands)

    if params.category:
        categories = _as_names(params.category)
        if categories:
            fragments.add(_in_list("c.name", categories), *categories)

    if params.price_gte is not None:
        fragments.add("p.price >= {}", params.price_gte)

    if params.price_lte is not None:
        fragments.add("p.price <= {}", params.price_lte)

    if params.q:
        text = params.q.strip().lower()
        if text:
            fragments.add(_SEARCH_VECTOR + " @@ plainto_tsquery({})", text)
            text_placeholder = f"${len(fragments.values)}"

    where_clause = ""
    if fragments.fragments:
        where_clause = "WHERE " + " AND ".join(f.text for f in fragments.fragments)

    if text_placeholder:
        order_clause = f"ORDER BY ts_rank({_SEARCH_VECTOR}, plainto_tsquery({text_placeholder})) DESC, p.id"
    else:
        order_clause = "ORDER BY p.id"

    return QueryPlan(
        where_clause=where_clause,
        values=tuple(fragments.values),
        limit_offset_clause=limit_offset_clause(params.page, params.limit),
        order_clause=order_clause,
        fragments=tuple(fragments.fragments),
    )


def limit_offset_clause(page: int | None, limit: int | None) -> str:
    # Both bounds are required; one alone means the whole matching set.
    if not (page and limit):
        return ""
    page_size = int(limit)
    offset = (int(page) - 1) * page_size
    return f"LIMIT {page_size} OFFSET {offset}"


__all__ = [
    "FilterParams",
    "PredicateFragment",
    "QueryPlan",
    "build_query_plan",
    "limit_offset_clause",
]
