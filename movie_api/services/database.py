"""SQLite data access: pooled connections, transactions, schema and health."""

import logging
import time
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event, exc as sa_exc, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import QueuePool

from movie_api.config import Settings
from movie_api.errors import DataAccessError, QueryTimeoutError
from movie_api.services.records import CAST_COLUMNS, delimited_match

logger = logging.getLogger(__name__)

# VM instructions between progress-handler calls.
_PROGRESS_STEPS = 1000

SCHEMA_STATEMENTS = (
    f"""
    CREATE TABLE IF NOT EXISTS movie (
        movie_id         INTEGER PRIMARY KEY AUTOINCREMENT,
        title            TEXT NOT NULL CHECK (length(trim(title)) > 0),
        original_title   TEXT,
        release_date     TEXT,
        runtime          INTEGER CHECK (runtime IS NULL OR runtime >= 0),
        genres           TEXT,
        overview         TEXT,
        budget           INTEGER CHECK (budget IS NULL OR budget >= 0),
        revenue          INTEGER CHECK (revenue IS NULL OR revenue >= 0),
        studios          TEXT,
        producers        TEXT,
        directors        TEXT,
        mpa_rating       TEXT,
        collection       TEXT,
        poster_url       TEXT,
        backdrop_url     TEXT,
        studio_logos     TEXT,
        studio_countries TEXT,
        {", ".join(f"{column} TEXT" for column in CAST_COLUMNS)}
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS rating (
        rating_id  INTEGER PRIMARY KEY AUTOINCREMENT,
        movie_id   INTEGER NOT NULL REFERENCES movie(movie_id),
        rating     REAL NOT NULL CHECK (rating >= 0 AND rating <= 10),
        user_id    INTEGER,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_movie_release_date ON movie(release_date)",
    "CREATE INDEX IF NOT EXISTS idx_movie_title ON movie(title)",
    "CREATE INDEX IF NOT EXISTS idx_rating_movie ON rating(movie_id)",
)


def _register_functions(dbapi_conn, _record) -> None:
    dbapi_conn.create_function("delimited_match", 3, delimited_match, deterministic=True)
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


class DatabaseService:
    """Explicitly constructed handle around a bounded SQLAlchemy pool.

    Opened once at application start and disposed at shutdown; services get
    it passed in rather than importing a module-level pool.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: float = 30.0,
        pool_recycle: int = 1800,
        query_timeout: float = 10.0,
    ):
        self._db_path = db_path
        self._query_timeout = query_timeout
        self._engine: Engine = create_engine(
            f"sqlite:///{db_path}",
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
        event.listen(self._engine, "connect", _register_functions)
        logger.info(
            "DatabaseService initialized with %s (pool_size=%d, max_overflow=%d)",
            db_path, pool_size, max_overflow,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseService":
        return cls(
            settings.db_path,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            query_timeout=settings.query_timeout,
        )

    @contextmanager
    def _checkout(self, begin: bool):
        """Check a connection out of the pool with the query deadline armed.

        SQLAlchemy errors are translated into the API's data-access errors;
        anything else raised by the caller passes through untouched.
        """
        try:
            with self._engine.begin() if begin else self._engine.connect() as conn:
                raw = conn.connection.driver_connection
                deadline = time.monotonic() + self._query_timeout
                raw.set_progress_handler(
                    lambda: int(time.monotonic() > deadline), _PROGRESS_STEPS
                )
                try:
                    yield conn
                finally:
                    raw.set_progress_handler(None, _PROGRESS_STEPS)
        except sa_exc.TimeoutError as exc:
            logger.error("Timed out waiting for a pooled connection: %s", exc)
            raise QueryTimeoutError() from exc
        except sa_exc.OperationalError as exc:
            if "interrupted" in str(exc.orig):
                logger.warning("Query aborted after %.1fs", self._query_timeout)
                raise QueryTimeoutError() from exc
            logger.exception("Database operation failed")
            raise DataAccessError() from exc
        except sa_exc.SQLAlchemyError as exc:
            logger.exception("Database operation failed")
            raise DataAccessError() from exc

    def connect(self):
        """Read-only connection scope."""
        return self._checkout(begin=False)

    def transaction(self):
        """Connection scope committed on success and rolled back on error."""
        return self._checkout(begin=True)

    def init_schema(self) -> None:
        with self.transaction() as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))
        logger.info("Schema ready at %s", self._db_path)

    def health_check(self) -> bool:
        try:
            with self.connect() as conn:
                conn.execute(text("SELECT 1 FROM movie LIMIT 1"))
            return True
        except DataAccessError:
            logger.exception("Database health check failed")
            return False

    def close(self) -> None:
        self._engine.dispose()
        logger.info("Connection pool disposed")


def movie_exists(conn: Connection, movie_id: int) -> bool:
    row = conn.execute(
        text("SELECT 1 FROM movie WHERE movie_id = :id"), {"id": movie_id}
    ).first()
    return row is not None
