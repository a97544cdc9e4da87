"""Domain errors raised by the services and mapped to JSON responses in main."""


class MovieApiError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "An internal error occurred. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class MovieNotFoundError(MovieApiError):
    status_code = 404
    code = "MOVIE_NOT_FOUND"

    def __init__(self, movie_id: int):
        super().__init__(f"Movie {movie_id} not found")
        self.movie_id = movie_id


class NoFieldsProvidedError(MovieApiError):
    status_code = 400
    code = "NO_FIELDS_PROVIDED"
    message = "No fields provided to update"


class UnsupportedStatsKeyError(MovieApiError):
    status_code = 400
    code = "UNSUPPORTED_STATS_KEY"

    def __init__(self, key: str, allowed: tuple[str, ...]):
        super().__init__(
            f"Unsupported stats key '{key}'. Allowed: {', '.join(allowed)}"
        )
        self.key = key
        self.allowed = allowed


class UnauthorizedError(MovieApiError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Unauthorized: missing or invalid API key"


class DataAccessError(MovieApiError):
    status_code = 500
    code = "DATABASE_ERROR"
    message = "A database error occurred. Please try again."


class QueryTimeoutError(DataAccessError):
    status_code = 504
    code = "QUERY_TIMEOUT"
    message = "The query took too long and was aborted."
