"""Unit tests for row normalization: no DB, no I/O."""

from datetime import date

from movie_api.services.records import (
    CAST_COLUMNS,
    MOVIE_COLUMNS,
    delimited_match,
    join_delimited,
    normalize_row,
    parse_release_date,
    release_year,
    split_delimited,
    to_columns,
)


class TestSplitDelimited:
    def test_semicolon(self):
        assert split_delimited("Action;Drama") == ["Action", "Drama"]

    def test_comma_fallback(self):
        assert split_delimited("Animation, Family, Comedy") == ["Animation", "Family", "Comedy"]

    def test_semicolon_wins_over_comma(self):
        assert split_delimited("Warner Bros., Inc.;Pixar") == ["Warner Bros., Inc.", "Pixar"]

    def test_blank_items_dropped(self):
        assert split_delimited(" Action ;; ;Drama;") == ["Action", "Drama"]

    def test_empty(self):
        assert split_delimited(None) == []
        assert split_delimited("") == []

    def test_join_uses_semicolon(self):
        assert join_delimited(["Action", " Drama ", ""]) == "Action;Drama"

    def test_join_string_input_is_resplit(self):
        assert join_delimited("Action, Drama") == "Action;Drama"

    def test_single_item_with_comma_survives_split(self):
        joined = join_delimited(["Warner Bros., Inc."])
        assert joined == "Warner Bros., Inc.;"
        assert split_delimited(joined) == ["Warner Bros., Inc."]

    def test_join_nothing(self):
        assert join_delimited([]) is None
        assert join_delimited(None) is None


class TestDelimitedMatch:
    def test_exact_item(self):
        assert delimited_match("Action;Science Fiction", "science fiction", 1) == 1

    def test_exact_rejects_partial_item(self):
        assert delimited_match("Action;Science Fiction", "Science", 1) == 0

    def test_no_match_across_separator(self):
        assert delimited_match("Action;Drama", "on;Dr", 0) == 0

    def test_contains_within_item(self):
        assert delimited_match("Emma Thomas;Christopher Nolan", "nolan", 0) == 1

    def test_missing_values(self):
        assert delimited_match(None, "x", 0) == 0
        assert delimited_match("Action", None, 1) == 0


class TestReleaseDate:
    def test_iso(self):
        assert parse_release_date("2010-07-16") == "2010-07-16"

    def test_iso_datetime(self):
        assert parse_release_date("2010-07-16T00:00:00Z") == "2010-07-16"

    def test_us_format(self):
        assert parse_release_date("07/16/2010") == "2010-07-16"

    def test_long_format(self):
        assert parse_release_date("July 16, 2010") == "2010-07-16"

    def test_hash_stripped(self):
        assert parse_release_date("#2010-07-16#") == "2010-07-16"

    def test_date_object(self):
        assert parse_release_date(date(1999, 3, 31)) == "1999-03-31"

    def test_unparsed_text_kept(self):
        assert parse_release_date("  Summer 2010 ") == "Summer 2010"

    def test_blank(self):
        assert parse_release_date("   ") is None
        assert parse_release_date(None) is None

    def test_release_year(self):
        assert release_year("2010-07-16") == 2010
        assert release_year("1999") == 1999
        assert release_year("Summer 2010") is None
        assert release_year(None) is None


class TestNormalizeRow:
    def _row(self, **values):
        row = {column: None for column in MOVIE_COLUMNS}
        row["movie_id"] = 7
        row.update(values)
        return row

    def test_shapes_api_record(self):
        movie = normalize_row(self._row(
            title="Inception",
            release_date="2010-07-16",
            runtime=148,
            genres="Action;Science Fiction",
            directors="Christopher Nolan",
            actor1_name="Leonardo DiCaprio",
            actor1_character="Cobb",
            actor3_name="Tom Hardy",
        ))
        assert movie["id"] == 7
        assert movie["year"] == 2010
        assert movie["genres"] == ["Action", "Science Fiction"]
        assert movie["directors"] == ["Christopher Nolan"]
        assert movie["studios"] == []
        assert movie["budget"] is None
        assert movie["cast"] == [
            {"name": "Leonardo DiCaprio", "character": "Cobb", "profile": None},
            {"name": "Tom Hardy", "character": None, "profile": None},
        ]


class TestToColumns:
    def test_full_fills_every_column(self):
        columns = to_columns({"title": " Arrival "}, full=True)
        assert set(columns) == set(MOVIE_COLUMNS)
        assert columns["title"] == "Arrival"
        assert columns["runtime"] is None
        assert all(columns[c] is None for c in CAST_COLUMNS)

    def test_partial_only_given_fields(self):
        assert to_columns({"runtime": 120}, full=False) == {"runtime": 120}

    def test_partial_cast_clears_unused_slots(self):
        columns = to_columns({"cast": [{"name": "Amy Adams"}]}, full=False)
        assert columns["actor1_name"] == "Amy Adams"
        assert columns["actor2_name"] is None
        assert set(columns) == set(CAST_COLUMNS)

    def test_delimited_and_date(self):
        columns = to_columns(
            {"genres": ["Drama", "Mystery"], "release_date": "November 11, 2016"},
            full=False,
        )
        assert columns == {"genres": "Drama;Mystery", "release_date": "2016-11-11"}
