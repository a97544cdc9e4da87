"""FastAPI application factory with lifespan, logging, middleware and error mapping."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from movie_api.config import Settings, settings
from movie_api.errors import MovieApiError, UnsupportedStatsKeyError
from movie_api.models import ErrorResponse, FieldError, HealthResponse
from movie_api.routers import movies
from movie_api.services.database import DatabaseService
from movie_api.services.movies import MovieQueryService
from movie_api.services.mutations import MovieMutationService
from movie_api.services.stats import StatsService

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

_LOCATIONS = {"body", "query", "path", "header"}


def _error(status_code: int, **fields) -> JSONResponse:
    body = ErrorResponse(**fields)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def _field_errors(exc: RequestValidationError) -> list[FieldError]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in _LOCATIONS]
        errors.append(FieldError(field=".".join(loc) or "body", message=err.get("msg", "Invalid value")))
    return errors


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = DatabaseService.from_settings(config)
        db.init_schema()

        app.state.settings = config
        app.state.db = db
        app.state.queries = MovieQueryService(
            db,
            default_page_size=config.default_page_size,
            max_page_size=config.max_page_size,
        )
        app.state.stats = StatsService(db)
        app.state.mutations = MovieMutationService(db)

        logger.info(
            "Application started: db=%s  auth=%s",
            config.db_path, "on" if config.api_key else "off",
        )
        yield
        db.close()
        logger.info("Application shutting down")

    app = FastAPI(
        title="Movie API",
        description=(
            "REST API for browsing, filtering, aggregating and editing a movie "
            "dataset. Mutating routes accept an API key via `X-API-Key` or "
            "`Authorization: Bearer`."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s → %d  (%.0f ms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
        return response

    @app.exception_handler(MovieApiError)
    async def movie_api_error_handler(request: Request, exc: MovieApiError):
        allowed = list(exc.allowed) if isinstance(exc, UnsupportedStatsKeyError) else None
        return _error(exc.status_code, message=exc.message, code=exc.code, allowed=allowed)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = _field_errors(exc)
        logger.info("Validation failed on %s %s: %s", request.method, request.url.path, errors)
        return _error(
            400,
            message="Validation failed",
            code="VALIDATION_ERROR",
            validation_errors=errors,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return _error(exc.status_code, message=str(exc.detail), code=code)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(
            500,
            message="An internal error occurred. Please try again.",
            code="INTERNAL_ERROR",
        )

    @app.get("/", tags=["system"])
    async def index():
        """List the available endpoints."""
        return {
            "success": True,
            "message": "Movie API",
            "version": app.version,
            "endpoints": {
                "health": "/health",
                "movies": "/movies",
                "moviesPage": "/movies/page",
                "stats": "/movies/stats?by=genre",
                "random": "/movies/random",
                "movie": "/movies/{id}",
                "rating": "/movies/{id}/rating",
            },
            "documentation": "/docs",
        }

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    def health(request: Request):
        """Check database connectivity."""
        db: DatabaseService = request.app.state.db
        db_ok = db.health_check()
        return HealthResponse(status="healthy" if db_ok else "degraded", database=db_ok)

    app.include_router(movies.router)
    return app


app = create_app()
