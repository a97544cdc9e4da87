"""Create, replace, patch and delete movies, and append ratings.

Inputs arrive already validated by the request models; this layer only checks
existence and keeps the writes inside one transaction per operation.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Connection

from movie_api.errors import MovieNotFoundError, NoFieldsProvidedError
from movie_api.services.database import DatabaseService, movie_exists
from movie_api.services.movies import select_movie
from movie_api.services.records import MOVIE_COLUMNS, to_columns

logger = logging.getLogger(__name__)


def insert_movie(conn: Connection, columns: Mapping[str, Any]) -> int:
    names = [c for c in MOVIE_COLUMNS if c in columns]
    sql = (
        f"INSERT INTO movie ({', '.join(names)}) "
        f"VALUES ({', '.join(':' + c for c in names)})"
    )
    result = conn.execute(text(sql), {c: columns[c] for c in names})
    return result.lastrowid


def _update_movie(conn: Connection, movie_id: int, columns: Mapping[str, Any]) -> None:
    names = [c for c in MOVIE_COLUMNS if c in columns]
    assignments = ", ".join(f"{c} = :{c}" for c in names)
    params = {c: columns[c] for c in names}
    params["movie_id"] = movie_id
    conn.execute(text(f"UPDATE movie SET {assignments} WHERE movie_id = :movie_id"), params)


class MovieMutationService:
    def __init__(self, db: DatabaseService):
        self._db = db

    def create(self, data: Mapping[str, Any]) -> dict:
        columns = to_columns(data, full=True)
        if not columns.get("original_title"):
            columns["original_title"] = columns["title"]

        with self._db.transaction() as conn:
            movie_id = insert_movie(conn, columns)
            movie = select_movie(conn, movie_id)

        logger.info("Created movie %d (%s)", movie_id, columns["title"])
        return movie

    def replace(self, movie_id: int, data: Mapping[str, Any]) -> dict:
        columns = to_columns(data, full=True)
        with self._db.transaction() as conn:
            if not movie_exists(conn, movie_id):
                raise MovieNotFoundError(movie_id)
            _update_movie(conn, movie_id, columns)
            movie = select_movie(conn, movie_id)

        logger.info("Replaced movie %d", movie_id)
        return movie

    def patch(self, movie_id: int, data: Mapping[str, Any]) -> dict:
        columns = to_columns(data, full=False)
        if not columns:
            raise NoFieldsProvidedError()

        with self._db.transaction() as conn:
            if not movie_exists(conn, movie_id):
                raise MovieNotFoundError(movie_id)
            _update_movie(conn, movie_id, columns)
            movie = select_movie(conn, movie_id)

        logger.info("Patched movie %d fields=%s", movie_id, sorted(data))
        return movie

    def delete(self, movie_id: int) -> None:
        """Remove the movie and its ratings together, or neither."""
        with self._db.transaction() as conn:
            if not movie_exists(conn, movie_id):
                raise MovieNotFoundError(movie_id)
            removed = conn.execute(
                text("DELETE FROM rating WHERE movie_id = :id"), {"id": movie_id}
            ).rowcount
            conn.execute(text("DELETE FROM movie WHERE movie_id = :id"), {"id": movie_id})

        logger.info("Deleted movie %d (%d ratings)", movie_id, removed)

    def add_rating(self, movie_id: int, rating: float, user_id: int | None = None) -> dict:
        created_at = datetime.now(timezone.utc).isoformat()
        with self._db.transaction() as conn:
            if not movie_exists(conn, movie_id):
                raise MovieNotFoundError(movie_id)
            result = conn.execute(
                text(
                    "INSERT INTO rating (movie_id, rating, user_id, created_at) "
                    "VALUES (:movie_id, :rating, :user_id, :created_at)"
                ),
                {
                    "movie_id": movie_id,
                    "rating": rating,
                    "user_id": user_id,
                    "created_at": created_at,
                },
            )

        logger.info("Rated movie %d: %.1f", movie_id, rating)
        return {
            "id": result.lastrowid,
            "movie_id": movie_id,
            "rating": rating,
            "user_id": user_id,
            "created_at": created_at,
        }
