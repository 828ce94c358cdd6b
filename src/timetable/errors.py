"""Error hierarchy for the timetable pipeline.

Transport failures are split into transient ones (worth retrying with
tenacity inside the fetcher) and permanent ones. Everything above the
transport treats any FetchError as fatal for the current build.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientFetchError), stop=stop_after_attempt(3))
    async def fetch(self, query: str) -> str:
        ...
"""


class TimetableError(Exception):
    """Base exception for all timetable errors."""

    pass


class FetchError(TimetableError):
    """The transport could not deliver a page.

    Examples: network failure, non-success HTTP status.
    """

    pass


class TransientFetchError(FetchError):
    """Temporary transport failure that may succeed on retry.

    Examples: timeouts, 429 Too Many Requests, 5xx responses.
    """

    pass


class AuthenticationError(FetchError):
    """Session expired or invalid credentials.

    Cannot be fixed by retrying the same request.
    """

    pass


class ParseError(TimetableError):
    """The page markup did not match the expected document shape.

    Carries where the mismatch happened so a broken page can be located
    without re-fetching it.
    """

    def __init__(
        self,
        message: str,
        *,
        week_number: int | None = None,
        day_index: int | None = None,
        row_index: int | None = None,
        path: str | None = None,
    ) -> None:
        self.week_number = week_number
        self.day_index = day_index
        self.row_index = row_index
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        where = [
            f"{name}={value}"
            for name, value in (
                ("week", self.week_number),
                ("day", self.day_index),
                ("row", self.row_index),
                ("path", self.path),
            )
            if value is not None
        ]
        message = super().__str__()
        return f"{message} ({', '.join(where)})" if where else message


class CorruptStateError(TimetableError):
    """A persisted snapshot exists but cannot be decoded."""

    pass


class NoSnapshotError(TimetableError):
    """Schedule data was requested before any successful fetch."""

    pass
