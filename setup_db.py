"""
setup_db.py — Build the SQLite movie database from the movie CSV export.

Data source (expected in the workspace, or passed as the first argument):
  data/movies_last30years.csv

Output: the database at MOVIE_API_DB_PATH (default movies.db)
"""

import csv
import re
import sys
import time
from pathlib import Path

from sqlalchemy import text

from movie_api.config import settings
from movie_api.services.database import DatabaseService
from movie_api.services.mutations import insert_movie
from movie_api.services.records import MAX_CAST, join_delimited, parse_release_date
from movie_api.services.stats import StatsService

BASE_DIR = Path(__file__).resolve().parent
MOVIES_CSV = BASE_DIR / "data" / "movies_last30years.csv"

BATCH_SIZE = 500

TEXT_HEADERS = {
    "Title": "title",
    "Original Title": "original_title",
    "Overview": "overview",
    "MPA Rating": "mpa_rating",
    "Collection": "collection",
    "Poster URL": "poster_url",
    "Backdrop URL": "backdrop_url",
}
DELIMITED_HEADERS = {
    "Genres": "genres",
    "Studios": "studios",
    "Producers": "producers",
    "Directors": "directors",
    "Studio Logos": "studio_logos",
    "Studio Countries": "studio_countries",
}
NUMBER_HEADERS = {
    "Runtime (min)": "runtime",
    "Runtime": "runtime",
    "Budget": "budget",
    "Revenue": "revenue",
}

_NON_DIGITS = re.compile(r"[^0-9]")


def clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def clean_int(value: str | None) -> int | None:
    """Keep only the digits, so "$1,200,000" and "142 min" still load."""
    value = clean(value)
    if value is None:
        return None
    if "." in value:
        value = value.split(".", 1)[0]
    digits = _NON_DIGITS.sub("", value)
    return int(digits) if digits else None


def row_to_columns(row: dict[str, str]) -> dict | None:
    """Map one CSV row to movie columns; rows without a title are skipped."""
    row = {(k or "").lstrip("\ufeff").strip(): v for k, v in row.items()}
    title = clean(row.get("Title"))
    if not title:
        return None

    columns: dict = {column: clean(row.get(header)) for header, column in TEXT_HEADERS.items()}
    columns["title"] = title
    columns["original_title"] = columns["original_title"] or title
    columns["release_date"] = parse_release_date(row.get("Release Date"))
    for header, column in DELIMITED_HEADERS.items():
        columns[column] = join_delimited(clean(row.get(header)))
    for header, column in NUMBER_HEADERS.items():
        if columns.get(column) is None:
            columns[column] = clean_int(row.get(header))
    for i in range(1, MAX_CAST + 1):
        for part in ("Name", "Character", "Profile"):
            columns[f"actor{i}_{part.lower()}"] = clean(row.get(f"Actor {i} {part}"))
    return columns


def load_movies(db: DatabaseService, csv_path: Path) -> int:
    """Stream the CSV into the movie table in batches. Returns rows inserted."""
    inserted = 0
    skipped = 0
    batch: list[dict] = []

    def flush() -> None:
        nonlocal inserted
        with db.transaction() as conn:
            for columns in batch:
                insert_movie(conn, columns)
        inserted += len(batch)
        batch.clear()
        print(f"  Inserted {inserted:,} rows so far...")

    with open(csv_path, encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            columns = row_to_columns(row)
            if columns is None:
                skipped += 1
                continue
            batch.append(columns)
            if len(batch) >= BATCH_SIZE:
                flush()

    if batch:
        flush()
    if skipped:
        print(f"  Skipped {skipped} rows without a title")
    return inserted


def print_summary(db: DatabaseService) -> None:
    with db.connect() as conn:
        movies = conn.execute(text("SELECT COUNT(*) FROM movie")).scalar_one()
        ratings = conn.execute(text("SELECT COUNT(*) FROM rating")).scalar_one()
    print("\n=== Database Summary ===")
    print(f"  {'movie':20s}: {movies:>8,} rows")
    print(f"  {'rating':20s}: {ratings:>8,} rows")

    print("\n=== Top 5 genres ===")
    for entry in StatsService(db).stats("genre")[:5]:
        print(f"  {entry['genre']:20s}: {entry['count']:>8,}")


def main() -> None:
    csv_path = Path(sys.argv[1]) if len(sys.argv) > 1 else MOVIES_CSV
    if not csv_path.exists():
        print(f"ERROR: Missing data file: {csv_path}", file=sys.stderr)
        sys.exit(1)

    if settings.db_path.exists():
        settings.db_path.unlink()
        print(f"Removed existing {settings.db_path.name}")

    t0 = time.perf_counter()
    db = DatabaseService.from_settings(settings)

    print("Creating schema...")
    db.init_schema()

    print(f"Loading movies from {csv_path}...")
    n_movies = load_movies(db, csv_path)
    print(f"  Loaded {n_movies:,} movies")

    print_summary(db)
    db.close()

    elapsed = time.perf_counter() - t0
    print(f"\nDone. Database written to {settings.db_path}  ({elapsed:.1f}s)")


if __name__ == "__main__":
    main()
