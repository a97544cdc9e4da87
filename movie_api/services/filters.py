"""Translate optional movie filters into parameterized SQL predicates.

Nothing here touches a database: ``build_predicates`` returns plain
``Predicate`` objects so the WHERE clause can be inspected in unit tests.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Any

from movie_api.services.records import MAX_CAST, SQLITE_MAX_INT

YEAR_SQL = (
    "(CASE WHEN substr(m.release_date, 1, 4) GLOB '[0-9][0-9][0-9][0-9]' "
    "THEN CAST(substr(m.release_date, 1, 4) AS INTEGER) END)"
)


_NUMERIC_FILTERS = {
    "year",
    "year_start",
    "year_end",
    "budget_low",
    "budget_high",
    "revenue_low",
    "revenue_high",
    "runtime_low",
    "runtime_high",
}


def clean_str(value: Any) -> str | None:
    """Trimmed string, or None for missing/blank input."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def clean_number(value: Any) -> int | None:
    """Parse a query value as an integer, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    else:
        raw = str(value).strip()
        try:
            number = int(raw)
        except ValueError:
            try:
                parsed = float(raw)
            except ValueError:
                return None
            if not math.isfinite(parsed):
                return None
            number = int(parsed)
    if not -SQLITE_MAX_INT - 1 <= number <= SQLITE_MAX_INT:
        return None
    return number


def _like_pattern(value: str) -> str:
    escaped = value.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass
class Predicate:
    sql: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class MovieFilters:
    title: str | None = None
    genre: str | None = None
    year: int | None = None
    mpa_rating: str | None = None
    collection: str | None = None
    studio: str | None = None
    director: str | None = None
    producer: str | None = None
    actor: str | None = None
    year_start: int | None = None
    year_end: int | None = None
    budget_low: int | None = None
    budget_high: int | None = None
    revenue_low: int | None = None
    revenue_high: int | None = None
    runtime_low: int | None = None
    runtime_high: int | None = None

    def __post_init__(self):
        # Blank strings and unparseable numbers mean "no filter".
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _NUMERIC_FILTERS:
                setattr(self, f.name, clean_number(value))
            else:
                setattr(self, f.name, clean_str(value))

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


class FilterBuilder:
    """Accumulates predicates, naming bound parameters ``p0``, ``p1`` ..."""

    def __init__(self):
        self._predicates: list[Predicate] = []
        self._counter = 0

    def _param(self) -> str:
        name = f"p{self._counter}"
        self._counter += 1
        return name

    def add(self, sql_template: str, value: Any) -> "FilterBuilder":
        if value is None:
            return self
        name = self._param()
        self._predicates.append(Predicate(sql_template.format(p=f":{name}"), {name: value}))
        return self

    def equals(self, expr: str, value: Any) -> "FilterBuilder":
        return self.add(f"{expr} = {{p}}", value)

    def at_least(self, expr: str, value: Any) -> "FilterBuilder":
        return self.add(f"{expr} >= {{p}}", value)

    def at_most(self, expr: str, value: Any) -> "FilterBuilder":
        return self.add(f"{expr} <= {{p}}", value)

    def contains(self, column: str, value: str | None) -> "FilterBuilder":
        if value is None:
            return self
        return self.add(f"LOWER({column}) LIKE {{p}} ESCAPE '\\'", _like_pattern(value))

    def has_item(self, column: str, value: str | None, exact: bool) -> "FilterBuilder":
        return self.add(f"delimited_match({column}, {{p}}, {int(exact)}) = 1", value)

    def any_contains(self, columns: list[str], value: str | None) -> "FilterBuilder":
        if value is None:
            return self
        ors = " OR ".join(f"LOWER({c}) LIKE {{p}} ESCAPE '\\'" for c in columns)
        return self.add(f"({ors})", _like_pattern(value))

    def build(self) -> list[Predicate]:
        return list(self._predicates)


def build_predicates(filters: MovieFilters) -> list[Predicate]:
    actor_columns = [f"m.actor{i}_name" for i in range(1, MAX_CAST + 1)]
    mpa = filters.mpa_rating.upper() if filters.mpa_rating else None
    return (
        FilterBuilder()
        .equals(YEAR_SQL, filters.year)
        .at_least(YEAR_SQL, filters.year_start)
        .at_most(YEAR_SQL, filters.year_end)
        .at_least("m.budget", filters.budget_low)
        .at_most("m.budget", filters.budget_high)
        .at_least("m.revenue", filters.revenue_low)
        .at_most("m.revenue", filters.revenue_high)
        .at_least("m.runtime", filters.runtime_low)
        .at_most("m.runtime", filters.runtime_high)
        .contains("m.title", filters.title)
        .has_item("m.genres", filters.genre, exact=True)
        .equals("UPPER(m.mpa_rating)", mpa)
        .contains("m.collection", filters.collection)
        .has_item("m.studios", filters.studio, exact=False)
        .has_item("m.directors", filters.director, exact=False)
        .has_item("m.producers", filters.producer, exact=False)
        .any_contains(actor_columns, filters.actor)
        .build()
    )


def where_clause(predicates: list[Predicate]) -> tuple[str, dict[str, Any]]:
    params: dict[str, Any] = {}
    for predicate in predicates:
        params.update(predicate.params)
    where = " AND ".join(p.sql for p in predicates) if predicates else "1=1"
    return where, params
