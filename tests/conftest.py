"""Shared fixtures: a temporary SQLite database seeded with a handful of movies."""

import pytest
from fastapi.testclient import TestClient

from movie_api.config import Settings
from movie_api.main import create_app
from movie_api.services.database import DatabaseService
from movie_api.services.mutations import MovieMutationService

SAMPLE_MOVIES = [
    {
        "title": "Inception",
        "release_date": "2010-07-16",
        "runtime": 148,
        "genres": ["Action", "Science Fiction", "Adventure"],
        "budget": 160000000,
        "revenue": 825532764,
        "mpa_rating": "PG-13",
        "directors": ["Christopher Nolan"],
        "producers": ["Emma Thomas", "Christopher Nolan"],
        "studios": ["Warner Bros. Pictures", "Legendary Pictures"],
        "cast": [
            {"name": "Leonardo DiCaprio", "character": "Cobb"},
            {"name": "Elliot Page", "character": "Ariadne"},
        ],
    },
    {
        "title": "The Dark Knight",
        "release_date": "2008-07-18",
        "runtime": 152,
        "genres": ["Drama", "Action", "Crime", "Thriller"],
        "budget": 185000000,
        "revenue": 1004558444,
        "mpa_rating": "PG-13",
        "collection": "The Dark Knight Collection",
        "directors": ["Christopher Nolan"],
        "producers": ["Emma Thomas", "Charles Roven"],
        "studios": ["Warner Bros. Pictures", "Legendary Pictures"],
        "cast": [{"name": "Christian Bale", "character": "Bruce Wayne"}],
    },
    {
        "title": "Toy Story 3",
        "release_date": "2010-06-16",
        "runtime": 103,
        # legacy comma-separated row
        "genres": "Animation, Family, Comedy",
        "budget": 200000000,
        "revenue": 1066969703,
        "mpa_rating": "G",
        "collection": "Toy Story Collection",
        "directors": ["Lee Unkrich"],
        "studios": ["Pixar"],
        "cast": [{"name": "Tom Hanks", "character": "Woody"}],
    },
    {
        "title": "Arrival",
        "release_date": "2016-11-11",
        "runtime": 116,
        "genres": ["Drama", "Science Fiction", "Mystery"],
        "budget": 47000000,
        "revenue": 203388186,
        "mpa_rating": "PG-13",
        "directors": ["Denis Villeneuve"],
        "studios": ["Paramount"],
        "cast": [{"name": "Amy Adams", "character": "Louise Banks"}],
    },
    {
        "title": "Untitled Project",
        "genres": ["Documentary"],
    },
]

ORDERED_TITLES = ["Arrival", "Inception", "Toy Story 3", "The Dark Knight", "Untitled Project"]


def seed(mutations: MovieMutationService) -> dict[str, int]:
    return {m["title"]: mutations.create(m)["id"] for m in SAMPLE_MOVIES}


@pytest.fixture()
def db(tmp_path):
    service = DatabaseService(tmp_path / "movies.db", pool_size=2, max_overflow=2)
    service.init_schema()
    yield service
    service.close()


@pytest.fixture()
def movie_ids(db):
    return seed(MovieMutationService(db))


def _client(tmp_path, **overrides):
    config = Settings(db_path=tmp_path / "api.db", **overrides)
    app = create_app(config)
    return TestClient(app)


@pytest.fixture()
def client(tmp_path):
    with _client(tmp_path) as c:
        c.movie_ids = seed(c.app.state.mutations)
        yield c


@pytest.fixture()
def secured_client(tmp_path):
    with _client(tmp_path, api_key="s3cret") as c:
        c.movie_ids = seed(c.app.state.mutations)
        yield c
