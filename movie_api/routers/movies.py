"""Movie endpoints: filtered lists, stats, random picks and CRUD."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request

from movie_api.auth import require_api_key
from movie_api.models import (
    MessageResponse,
    MovieCreate,
    MovieListResponse,
    MoviePageResponse,
    MoviePatch,
    MovieReplace,
    MovieResponse,
    RandomMoviesResponse,
    RatingCreate,
    RatingResponse,
    StatsResponse,
)
from movie_api.services.filters import MovieFilters, clean_number, clean_str
from movie_api.services.movies import MovieQueryService
from movie_api.services.mutations import MovieMutationService
from movie_api.services.records import SQLITE_MAX_INT
from movie_api.services.stats import STATS_KEYS, StatsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/movies", tags=["movies"])

MovieId = Annotated[int, Path(ge=1, le=SQLITE_MAX_INT, description="Numeric movie id")]


def get_queries(request: Request) -> MovieQueryService:
    return request.app.state.queries


def get_stats(request: Request) -> StatsService:
    return request.app.state.stats


def get_mutations(request: Request) -> MovieMutationService:
    return request.app.state.mutations


@router.get("", response_model=MovieListResponse)
def list_movies(
    page: str | None = Query(None, description="Page number, 1-based"),
    page_size: str | None = Query(None, alias="pageSize", description="Results per page (1-100, default 25)"),
    year: str | None = Query(None, description="Exact release year"),
    title: str | None = Query(None, description="Title contains (case-insensitive)"),
    genre: str | None = Query(None, description="Genre name"),
    queries: MovieQueryService = Depends(get_queries),
):
    """Simple filtered list, newest first."""
    result = queries.list_movies(
        page=clean_number(page),
        page_size=clean_number(page_size),
        year=clean_number(year),
        title=clean_str(title),
        genre=clean_str(genre),
    )
    return MovieListResponse(
        page=result.page,
        page_size=result.page_size,
        count=len(result.items),
        data=result.items,
    )


@router.get("/page", response_model=MoviePageResponse)
def list_movies_advanced(
    page: str | None = Query(None, description="Page number, 1-based"),
    limit: str | None = Query(None, description="Results per page (1-100, default 25)"),
    year_start: str | None = Query(None, alias="yearStart"),
    year_end: str | None = Query(None, alias="yearEnd"),
    budget_low: str | None = Query(None, alias="budgetLow"),
    budget_high: str | None = Query(None, alias="budgetHigh"),
    revenue_low: str | None = Query(None, alias="revenueLow"),
    revenue_high: str | None = Query(None, alias="revenueHigh"),
    runtime_low: str | None = Query(None, alias="runtimeLow"),
    runtime_high: str | None = Query(None, alias="runtimeHigh"),
    genre: str | None = Query(None),
    mpa_rating: str | None = Query(None, alias="mpaRating", examples=["PG-13"]),
    title: str | None = Query(None),
    studio: str | None = Query(None),
    producer: str | None = Query(None),
    director: str | None = Query(None),
    collection: str | None = Query(None),
    actor: str | None = Query(None),
    queries: MovieQueryService = Depends(get_queries),
):
    """
    Advanced search with numeric ranges and text filters.

    Blank values and numbers that do not parse are ignored rather than
    rejected, so ``?budgetLow=&genre=Action`` filters on genre only.
    """
    filters = MovieFilters(
        year_start=year_start,
        year_end=year_end,
        budget_low=budget_low,
        budget_high=budget_high,
        revenue_low=revenue_low,
        revenue_high=revenue_high,
        runtime_low=runtime_low,
        runtime_high=runtime_high,
        genre=genre,
        mpa_rating=mpa_rating,
        title=title,
        studio=studio,
        producer=producer,
        director=director,
        collection=collection,
        actor=actor,
    )
    result = queries.list_movies_advanced(
        filters, page=clean_number(page), limit=clean_number(limit)
    )
    return MoviePageResponse(
        page=result.page,
        limit=result.page_size,
        offset=result.offset,
        count=len(result.items),
        data=result.items,
    )


@router.get("/stats", response_model=StatsResponse)
def movie_stats(
    by: str = Query("year", description=f"One of: {', '.join(STATS_KEYS)}"),
    stats: StatsService = Depends(get_stats),
):
    """Counts per category, or count/avg/min/max/sum for numeric columns."""
    data = stats.stats(by)
    return StatsResponse(
        grouped_by=by,
        count=len(data) if isinstance(data, list) else None,
        data=data,
    )


@router.get("/random", response_model=RandomMoviesResponse)
def random_movies(
    limit: str | None = Query(None, description="Number of movies (1-100, default 10)"),
    queries: MovieQueryService = Depends(get_queries),
):
    movies = queries.random_movies(clean_number(limit))
    return RandomMoviesResponse(count=len(movies), data=movies)


@router.get("/{movie_id}", response_model=MovieResponse)
def get_movie(movie_id: MovieId, queries: MovieQueryService = Depends(get_queries)):
    """Get a single movie by id."""
    return MovieResponse(data=queries.get_movie(movie_id))


@router.post(
    "",
    response_model=MovieResponse,
    status_code=201,
    dependencies=[Depends(require_api_key)],
)
def create_movie(payload: MovieCreate, mutations: MovieMutationService = Depends(get_mutations)):
    movie = mutations.create(payload.model_dump())
    return MovieResponse(message="Movie created successfully", data=movie)


@router.put(
    "/{movie_id}",
    response_model=MovieResponse,
    dependencies=[Depends(require_api_key)],
)
def replace_movie(
    movie_id: MovieId,
    payload: MovieReplace,
    mutations: MovieMutationService = Depends(get_mutations),
):
    movie = mutations.replace(movie_id, payload.model_dump())
    return MovieResponse(message="Movie updated successfully", data=movie)


@router.patch(
    "/{movie_id}",
    response_model=MovieResponse,
    dependencies=[Depends(require_api_key)],
)
def patch_movie(
    movie_id: MovieId,
    payload: MoviePatch,
    mutations: MovieMutationService = Depends(get_mutations),
):
    movie = mutations.patch(movie_id, payload.model_dump(exclude_unset=True))
    return MovieResponse(message="Movie updated successfully", data=movie)


@router.delete(
    "/{movie_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_api_key)],
)
def delete_movie(movie_id: MovieId, mutations: MovieMutationService = Depends(get_mutations)):
    mutations.delete(movie_id)
    return MessageResponse(message=f"Movie {movie_id} deleted successfully")


@router.post(
    "/{movie_id}/rating",
    response_model=RatingResponse,
    status_code=201,
    dependencies=[Depends(require_api_key)],
)
def rate_movie(
    movie_id: MovieId,
    payload: RatingCreate,
    mutations: MovieMutationService = Depends(get_mutations),
):
    rating = mutations.add_rating(movie_id, payload.rating, payload.user_id)
    return RatingResponse(message="Rating added", data=rating)
