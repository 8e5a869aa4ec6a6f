"""
Exception types shared across the fetch and watch pipelines.
"""


class RedmanError(Exception):
    """Base exception for all application-specific errors."""


class ApiError(RedmanError):
    """Raised when the tracker answers with a non-success status or cannot be reached."""

    def __init__(self, status: str, message: str | None = None):
        self.status = status
        super().__init__(message or f"API returned error status: {status}")


class ParseError(RedmanError):
    """Raised when a payload field cannot be coerced into the expected shape."""


class ProtocolError(ParseError):
    """Raised when a download response lacks a usable Content-Disposition filename."""


class PersistenceError(RedmanError):
    """Raised when a write to the release pool fails."""


class SubmissionError(RedmanError):
    """Raised when the download client rejects a torrent file."""

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(message)
