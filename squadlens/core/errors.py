"""Exception types raised by squadlens."""


class SquadLensError(Exception):
    """Base class for squadlens errors."""


class IssueSourceError(SquadLensError):
    """Fetching issues from the external tracker failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
