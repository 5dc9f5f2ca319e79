"""Errors raised by the matching engine and mapped to HTTP responses in main."""


class SearchError(Exception):
    status_code = 500
    message = "Search failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class RepositoryUnavailable(SearchError):
    """The candidate store could not be queried."""

    status_code = 503
    message = "Candidate repository unavailable"


class DeadlineExceeded(SearchError):
    """The search did not finish within its deadline."""

    status_code = 504
    message = "Search deadline exceeded"
