"""Read side of the catalogue: filtered pages, lookups and random samples."""

import logging
from dataclasses import dataclass, field

from sqlalchemy import text
from sqlalchemy.engine import Connection

from movie_api.errors import MovieNotFoundError
from movie_api.services.database import DatabaseService
from movie_api.services.filters import MovieFilters, build_predicates, where_clause
from movie_api.services.records import SQLITE_MAX_INT, normalize_row

logger = logging.getLogger(__name__)

BASE_SELECT = "SELECT m.* FROM movie m"
ISO_DATE_SQL = (
    "(CASE WHEN m.release_date GLOB "
    "'[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9]' THEN m.release_date END)"
)
# Newest first, undated or unparsed dates last, id breaks ties so pages never overlap.
ORDER_BY = f"ORDER BY {ISO_DATE_SQL} IS NULL, {ISO_DATE_SQL} DESC, m.movie_id ASC"


@dataclass
class MoviePage:
    page: int
    page_size: int
    offset: int
    items: list[dict] = field(default_factory=list)


def paginate(
    page: int | None, page_size: int | None, default_size: int, max_size: int
) -> tuple[int, int, int]:
    page = max(1, page or 1)
    size = default_size if page_size is None else page_size
    size = min(max_size, max(1, size))
    page = min(page, SQLITE_MAX_INT // size + 1)
    return page, size, (page - 1) * size


def select_movie(conn: Connection, movie_id: int) -> dict | None:
    row = conn.execute(
        text(f"{BASE_SELECT} WHERE m.movie_id = :id"), {"id": movie_id}
    ).mappings().first()
    return normalize_row(row) if row else None


class MovieQueryService:
    def __init__(self, db: DatabaseService, default_page_size: int = 25, max_page_size: int = 100):
        self._db = db
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def list_movies(
        self,
        page: int | None = None,
        page_size: int | None = None,
        year: int | None = None,
        title: str | None = None,
        genre: str | None = None,
    ) -> MoviePage:
        """Simple list: exact year, title substring, genre membership."""
        filters = MovieFilters(year=year, title=title, genre=genre)
        return self.list_movies_advanced(filters, page=page, limit=page_size)

    def list_movies_advanced(
        self,
        filters: MovieFilters,
        page: int | None = None,
        limit: int | None = None,
    ) -> MoviePage:
        page, size, offset = paginate(
            page, limit, self._default_page_size, self._max_page_size
        )
        where, params = where_clause(build_predicates(filters))
        sql = f"{BASE_SELECT} WHERE {where} {ORDER_BY} LIMIT :limit OFFSET :offset"
        params.update(limit=size, offset=offset)

        logger.debug("list movies where=%s params=%s", where, params)
        with self._db.connect() as conn:
            rows = conn.execute(text(sql), params).mappings().all()

        return MoviePage(
            page=page,
            page_size=size,
            offset=offset,
            items=[normalize_row(r) for r in rows],
        )

    def get_movie(self, movie_id: int) -> dict:
        with self._db.connect() as conn:
            movie = select_movie(conn, movie_id)
        if movie is None:
            raise MovieNotFoundError(movie_id)
        return movie

    def random_movies(self, limit: int | None = None) -> list[dict]:
        _, size, _ = paginate(1, limit, 10, self._max_page_size)
        with self._db.connect() as conn:
            rows = conn.execute(
                text(f"{BASE_SELECT} ORDER BY RANDOM() LIMIT :limit"), {"limit": size}
            ).mappings().all()
        return [normalize_row(r) for r in rows]
