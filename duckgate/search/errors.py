"""Search session error taxonomy."""


class SearchError(Exception):
    """Base class for errors reported back to the calling agent."""


class TransportError(SearchError):
    """Raised on a non-OK HTTP status or a network failure."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class UnrecognizedDocumentError(SearchError):
    """Raised when a page has neither results nor challenge markers."""


class ChallengeActiveError(SearchError):
    """Raised when an operation is blocked by a pending CAPTCHA."""


class NoActiveChallengeError(SearchError):
    """Raised when solve is called without a pending CAPTCHA."""


class PuzzleUnavailableError(SearchError):
    """Raised when fewer than nine tiles could be downloaded or decoded."""


class PaginationExhaustedError(SearchError):
    """Raised when there is no next page or the page cap is reached."""
