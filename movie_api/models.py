"""Pydantic request/response schemas for the Movie API."""

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from movie_api.services.records import (
    DELIMITED_FIELDS,
    SQLITE_MAX_INT,
    WRITE_SEPARATOR,
    split_delimited,
)


def _single_item(value: str) -> str:
    if WRITE_SEPARATOR in value:
        raise ValueError(f"List items may not contain '{WRITE_SEPARATOR}'")
    return value


ShortText = Annotated[str | None, Field(max_length=255)]
LongText = Annotated[str | None, Field(max_length=5000)]
Url = Annotated[str | None, Field(max_length=500)]
Runtime = Annotated[int | None, Field(ge=0, le=1000)]
Money = Annotated[int | None, Field(ge=0, le=SQLITE_MAX_INT)]
Item = Annotated[str, Field(max_length=255), AfterValidator(_single_item)]
Delimited = Annotated[list[Item] | None, Field(max_length=50)]

# Wire names are camelCase everywhere; bodies also accept the snake_case names.
CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Shared sub-models

class CastMember(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    character: ShortText = None
    profile: Url = None


class Movie(BaseModel):
    model_config = CAMEL

    id: int
    title: str
    original_title: str | None = None
    release_date: str | None = None
    year: int | None = None
    runtime: int | None = None
    genres: list[str] = Field(default_factory=list)
    overview: str | None = None
    budget: int | None = None
    revenue: int | None = None
    mpa_rating: str | None = None
    collection: str | None = None
    studios: list[str] = Field(default_factory=list)
    producers: list[str] = Field(default_factory=list)
    directors: list[str] = Field(default_factory=list)
    studio_countries: list[str] = Field(default_factory=list)
    studio_logos: list[str] = Field(default_factory=list)
    poster_url: str | None = None
    backdrop_url: str | None = None
    cast: list[CastMember] = Field(default_factory=list)


class Rating(BaseModel):
    model_config = CAMEL

    id: int
    movie_id: int
    rating: float
    user_id: int | None = None
    created_at: str


# Request bodies

class _MovieBody(BaseModel):
    model_config = ConfigDict(extra="forbid", **CAMEL)

    @field_validator("title", check_fields=False)
    @classmethod
    def _title_required(cls, value: str | None) -> str:
        if value is None or not value.strip():
            raise ValueError("Title is required")
        return value.strip()

    @field_validator(*DELIMITED_FIELDS, mode="before", check_fields=False)
    @classmethod
    def _split_delimited(cls, value: Any) -> Any:
        if isinstance(value, str):
            return split_delimited(value)
        return value


class MovieCreate(_MovieBody):
    title: str = Field(..., max_length=255, examples=["Inception"])
    original_title: ShortText = None
    release_date: Annotated[str | None, Field(max_length=40, examples=["2010-07-16"])] = None
    runtime: Runtime = None
    genres: Delimited = Field(None, examples=[["Action", "Science Fiction"]])
    overview: LongText = None
    budget: Money = None
    revenue: Money = None
    mpa_rating: Annotated[str | None, Field(max_length=10, examples=["PG-13"])] = None
    collection: ShortText = None
    studios: Delimited = None
    producers: Delimited = None
    directors: Delimited = None
    studio_countries: Delimited = None
    studio_logos: Delimited = None
    poster_url: Url = None
    backdrop_url: Url = None
    cast: list[CastMember] = Field(default_factory=list, max_length=10)


class MovieReplace(_MovieBody):
    """Full replacement: every field must be present, ``null`` clears it."""

    title: str = Field(..., max_length=255)
    original_title: ShortText
    release_date: Annotated[str | None, Field(max_length=40)]
    runtime: Runtime
    genres: Delimited
    overview: LongText
    budget: Money
    revenue: Money
    mpa_rating: Annotated[str | None, Field(max_length=10)]
    collection: ShortText
    studios: Delimited
    producers: Delimited
    directors: Delimited
    studio_countries: Delimited
    studio_logos: Delimited
    poster_url: Url
    backdrop_url: Url
    cast: list[CastMember] = Field(..., max_length=10)


class MoviePatch(_MovieBody):
    """Partial update: only the fields sent are changed."""

    title: str | None = Field(None, max_length=255)
    original_title: ShortText = None
    release_date: Annotated[str | None, Field(max_length=40)] = None
    runtime: Runtime = None
    genres: Delimited = None
    overview: LongText = None
    budget: Money = None
    revenue: Money = None
    mpa_rating: Annotated[str | None, Field(max_length=10)] = None
    collection: ShortText = None
    studios: Delimited = None
    producers: Delimited = None
    directors: Delimited = None
    studio_countries: Delimited = None
    studio_logos: Delimited = None
    poster_url: Url = None
    backdrop_url: Url = None
    cast: list[CastMember] | None = Field(None, max_length=10)


class RatingCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", **CAMEL)

    rating: float = Field(..., ge=0, le=10, examples=[8.5])
    user_id: int | None = Field(None, ge=1, le=SQLITE_MAX_INT)


# Response envelopes

class Envelope(BaseModel):
    model_config = CAMEL

    success: bool = True
    message: str | None = None
    timestamp: str = Field(default_factory=_now)


class MovieListResponse(Envelope):
    page: int
    page_size: int
    count: int
    data: list[Movie]


class MoviePageResponse(Envelope):
    page: int
    limit: int
    offset: int
    count: int
    data: list[Movie]


class RandomMoviesResponse(Envelope):
    count: int
    data: list[Movie]


class MovieResponse(Envelope):
    data: Movie


class RatingResponse(Envelope):
    data: Rating


class StatsResponse(Envelope):
    grouped_by: str
    count: int | None = None
    data: list[dict] | dict


class MessageResponse(Envelope):
    pass


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(Envelope):
    success: bool = False
    code: str
    validation_errors: list[FieldError] | None = None
    allowed: list[str] | None = None


class HealthResponse(BaseModel):
    status: str
    database: bool
