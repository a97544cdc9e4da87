"""Tests for the CSV seeding helpers."""

import csv

import pytest

from movie_api.services.movies import MovieQueryService
from setup_db import clean, clean_int, load_movies, row_to_columns

HEADERS = [
    "Title", "Original Title", "Release Date", "Runtime (min)", "Genres", "Overview",
    "Budget", "Revenue", "Studios", "Producers", "Directors", "MPA Rating",
    "Collection", "Actor 1 Name", "Actor 1 Character", "Actor 1 Profile",
]


class TestCleaning:
    def test_clean(self):
        assert clean("  Heat ") == "Heat"
        assert clean("   ") is None
        assert clean(None) is None

    @pytest.mark.parametrize("raw, expected", [
        ("$1,200,000", 1200000),
        ("142 min", 142),
        ("63000000.0", 63000000),
        ("", None),
        ("n/a", None),
    ])
    def test_clean_int(self, raw, expected):
        assert clean_int(raw) == expected


class TestRowToColumns:
    def test_maps_headers(self):
        columns = row_to_columns({
            "\ufeffTitle": "Heat",
            "Release Date": "#1995-12-15#",
            "Runtime (min)": "170",
            "Genres": "Action, Crime, Drama",
            "Budget": "60,000,000",
            "Directors": "Michael Mann",
            "Actor 1 Name": "Al Pacino",
            "Actor 1 Character": "Vincent Hanna",
        })
        assert columns["title"] == "Heat"
        assert columns["original_title"] == "Heat"
        assert columns["release_date"] == "1995-12-15"
        assert columns["runtime"] == 170
        assert columns["genres"] == "Action;Crime;Drama"
        assert columns["budget"] == 60000000
        assert columns["revenue"] is None
        assert columns["actor1_name"] == "Al Pacino"
        assert columns["actor2_name"] is None

    def test_row_without_title_skipped(self):
        assert row_to_columns({"Title": "  ", "Genres": "Drama"}) is None


class TestLoadMovies:
    def test_loads_csv(self, db, tmp_path):
        path = tmp_path / "movies.csv"
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=HEADERS)
            writer.writeheader()
            writer.writerow({
                "Title": "Heat", "Release Date": "1995-12-15", "Runtime (min)": "170",
                "Genres": "Action;Crime", "Budget": "60000000", "MPA Rating": "R",
                "Actor 1 Name": "Al Pacino",
            })
            writer.writerow({"Title": "", "Genres": "Drama"})
            writer.writerow({"Title": "Collateral", "Release Date": "08/06/2004", "Genres": "Thriller"})

        assert load_movies(db, path) == 2

        titles = [m["title"] for m in MovieQueryService(db).list_movies().items]
        assert titles == ["Collateral", "Heat"]
