"""Grouped counts and numeric summaries over the whole movie table."""

import logging
from collections import Counter, defaultdict
from collections.abc import Iterable

from sqlalchemy import text

from movie_api.errors import UnsupportedStatsKeyError
from movie_api.services.database import DatabaseService
from movie_api.services.filters import YEAR_SQL
from movie_api.services.records import split_delimited

logger = logging.getLogger(__name__)

MULTI_VALUE_DIMENSIONS = {
    "genre": "genres",
    "producers": "producers",
    "directors": "directors",
    "studios": "studios",
}
SINGLE_VALUE_DIMENSIONS = {
    "mpaRating": "mpa_rating",
    "collection": "collection",
}
NUMERIC_DIMENSIONS = {
    "runtime": "runtime",
    "budget": "budget",
    "revenue": "revenue",
}
STATS_KEYS = (
    "genre",
    "year",
    "mpaRating",
    "producers",
    "directors",
    "studios",
    "collection",
    "runtime",
    "budget",
    "revenue",
)


def count_items(values: Iterable[str | None]) -> Counter:
    """Count each delimited item once per record, ignoring case.

    Items are grouped the way the filters match them; each group is labelled
    with its most frequent spelling (alphabetical on ties).
    """
    counts: Counter = Counter()
    spellings: dict[str, Counter] = defaultdict(Counter)
    for value in values:
        items = {}
        for item in split_delimited(value):
            items.setdefault(item.casefold(), item)
        counts.update(items.keys())
        for folded, item in items.items():
            spellings[folded][item] += 1
    return Counter({
        min(spellings[folded].items(), key=lambda kv: (-kv[1], kv[0]))[0]: count
        for folded, count in counts.items()
    })


def rank_counts(counts: Counter, key: str) -> list[dict]:
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{key: name, "count": count} for name, count in ranked]


class StatsService:
    def __init__(self, db: DatabaseService):
        self._db = db

    def stats(self, by: str) -> list[dict] | dict:
        """Group by ``by``; categorical keys give ranked counts, numeric keys a summary."""
        if by not in STATS_KEYS:
            raise UnsupportedStatsKeyError(by, STATS_KEYS)

        logger.debug("stats by=%s", by)
        if by in MULTI_VALUE_DIMENSIONS:
            return self._multi_value_counts(by, MULTI_VALUE_DIMENSIONS[by])
        if by in SINGLE_VALUE_DIMENSIONS:
            return self._single_value_counts(by, SINGLE_VALUE_DIMENSIONS[by])
        if by in NUMERIC_DIMENSIONS:
            return self._numeric_summary(NUMERIC_DIMENSIONS[by])
        return self._year_counts()

    def _multi_value_counts(self, key: str, column: str) -> list[dict]:
        with self._db.connect() as conn:
            values = conn.execute(
                text(f"SELECT {column} FROM movie WHERE TRIM(COALESCE({column}, '')) <> ''")
            ).scalars().all()
        return rank_counts(count_items(values), key)

    def _single_value_counts(self, key: str, column: str) -> list[dict]:
        sql = f"""
            SELECT TRIM({column}) AS value, COUNT(*) AS count
            FROM movie
            WHERE TRIM(COALESCE({column}, '')) <> ''
            GROUP BY TRIM({column})
            ORDER BY count DESC, value ASC
        """
        with self._db.connect() as conn:
            rows = conn.execute(text(sql)).mappings().all()
        return [{key: r["value"], "count": r["count"]} for r in rows]

    def _year_counts(self) -> list[dict]:
        sql = f"""
            SELECT {YEAR_SQL} AS year, COUNT(*) AS count
            FROM movie m
            WHERE {YEAR_SQL} IS NOT NULL
            GROUP BY year
            ORDER BY count DESC, year ASC
        """
        with self._db.connect() as conn:
            rows = conn.execute(text(sql)).mappings().all()
        return [{"year": r["year"], "count": r["count"]} for r in rows]

    def _numeric_summary(self, column: str) -> dict:
        sql = f"""
            SELECT COUNT({column}) AS count, AVG({column}) AS avg,
                   MIN({column}) AS min, MAX({column}) AS max, SUM({column}) AS sum
            FROM movie
            WHERE {column} IS NOT NULL AND {column} > 0
        """
        with self._db.connect() as conn:
            row = conn.execute(text(sql)).mappings().one()
        return {
            "count": row["count"],
            "avg": round(row["avg"], 2) if row["avg"] is not None else None,
            "min": row["min"],
            "max": row["max"],
            "sum": row["sum"],
        }
