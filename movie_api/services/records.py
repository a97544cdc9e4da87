"""Mapping between rows of the flat ``movie`` table and API-shaped movie dicts.

The table keeps multi-value fields (genres, studios, crew ...) as delimited
text and cast members as ten ``actorN_name/character/profile`` column triples.
Everything that reads or writes those columns goes through this module so the
split rule used for responses, filters and stats is the same everywhere.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

logger = logging.getLogger(__name__)

MAX_CAST = 10
WRITE_SEPARATOR = ";"
# Largest value an SQLite INTEGER column or bound parameter can hold.
SQLITE_MAX_INT = 2**63 - 1

TEXT_FIELDS = (
    "title",
    "original_title",
    "overview",
    "mpa_rating",
    "collection",
    "poster_url",
    "backdrop_url",
)
NUMERIC_FIELDS = ("runtime", "budget", "revenue")
DELIMITED_FIELDS = (
    "genres",
    "studios",
    "producers",
    "directors",
    "studio_countries",
    "studio_logos",
)
CAST_COLUMNS = tuple(
    f"actor{i}_{part}"
    for i in range(1, MAX_CAST + 1)
    for part in ("name", "character", "profile")
)
MOVIE_COLUMNS = (
    TEXT_FIELDS + ("release_date",) + NUMERIC_FIELDS + DELIMITED_FIELDS + CAST_COLUMNS
)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def split_delimited(value: str | None) -> list[str]:
    """Split a delimited text field into trimmed, non-empty items.

    Semicolon wins when present, otherwise comma is tried, so a row written
    as ``"Action;Drama"`` and a legacy row written as ``"Action, Drama"``
    both come back as ``["Action", "Drama"]``.
    """
    if not value:
        return []
    separator = ";" if ";" in value else ","
    return [item.strip() for item in value.split(separator) if item.strip()]


def join_delimited(values: Iterable[str] | str | None) -> str | None:
    if values is None:
        return None
    if isinstance(values, str):
        values = split_delimited(values)
    items = [v.strip() for v in values if v and v.strip()]
    if not items:
        return None
    joined = WRITE_SEPARATOR.join(items)
    if WRITE_SEPARATOR not in joined and "," in joined:
        # A lone item with a comma would be re-split on read.
        joined += WRITE_SEPARATOR
    return joined


def delimited_match(raw: str | None, needle: str | None, exact: int) -> int:
    """SQL function body: does any item of ``raw`` match ``needle``?

    ``exact`` selects whole-item equality; otherwise the needle only has to
    occur inside one item. Both comparisons ignore case. Returns 0/1 because
    it is registered on SQLite connections.
    """
    if not raw or not needle:
        return 0
    needle = needle.strip().lower()
    for item in split_delimited(raw):
        item = item.lower()
        if (item == needle) if exact else (needle in item):
            return 1
    return 0


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_release_date(value: Any) -> str | None:
    """Normalize a release date to ``YYYY-MM-DD`` where it can be parsed.

    Unparseable text is kept as-is (trimmed) rather than dropped; the year
    helpers only trust it when its first four characters are digits.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = clean_text(value)
    if text is None:
        return None
    text = text.replace("#", "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    logger.debug("Keeping unparsed release date %r", text)
    return text


def release_year(value: str | None) -> int | None:
    if value and len(value) >= 4 and value[:4].isdigit():
        return int(value[:4])
    return None


def cast_from_row(row: Mapping[str, Any]) -> list[dict]:
    cast = []
    for i in range(1, MAX_CAST + 1):
        name = clean_text(row.get(f"actor{i}_name"))
        if not name:
            continue
        cast.append({
            "name": name,
            "character": clean_text(row.get(f"actor{i}_character")),
            "profile": clean_text(row.get(f"actor{i}_profile")),
        })
    return cast


def cast_to_columns(cast: Iterable[Mapping[str, Any]] | None) -> dict[str, str | None]:
    """Spread up to ten cast members over the actor slots, clearing the rest."""
    columns: dict[str, str | None] = {name: None for name in CAST_COLUMNS}
    for i, member in enumerate(list(cast or [])[:MAX_CAST], start=1):
        columns[f"actor{i}_name"] = clean_text(member.get("name"))
        columns[f"actor{i}_character"] = clean_text(member.get("character"))
        columns[f"actor{i}_profile"] = clean_text(member.get("profile"))
    return columns


def normalize_row(row: Mapping[str, Any]) -> dict:
    """Turn a ``movie`` row into the shape returned by the API."""
    release_date = row.get("release_date")
    movie = {
        "id": row["movie_id"],
        "release_date": release_date,
        "year": release_year(release_date),
    }
    for name in TEXT_FIELDS:
        movie[name] = row.get(name)
    for name in NUMERIC_FIELDS:
        movie[name] = row.get(name)
    for name in DELIMITED_FIELDS:
        movie[name] = split_delimited(row.get(name))
    movie["cast"] = cast_from_row(row)
    return movie


def to_columns(data: Mapping[str, Any], *, full: bool) -> dict[str, Any]:
    """Map validated payload fields onto table columns.

    With ``full`` every mutable column is produced (missing ones as NULL),
    which is what create and replace need. Without it only the keys present
    in ``data`` are mapped, for partial updates.
    """
    columns: dict[str, Any] = {}
    for name in TEXT_FIELDS:
        if name in data:
            columns[name] = clean_text(data[name])
        elif full:
            columns[name] = None
    for name in NUMERIC_FIELDS:
        if name in data:
            columns[name] = data[name]
        elif full:
            columns[name] = None
    for name in DELIMITED_FIELDS:
        if name in data:
            columns[name] = join_delimited(data[name])
        elif full:
            columns[name] = None
    if "release_date" in data:
        columns["release_date"] = parse_release_date(data["release_date"])
    elif full:
        columns["release_date"] = None
    if "cast" in data or full:
        columns.update(cast_to_columns(data.get("cast")))
    return columns
