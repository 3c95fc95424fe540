"""Error taxonomy for the analysis pipeline.

Every request failure is one of these.  They are terminal for the request
that raised them and are never retried.
"""

from __future__ import annotations


class DevPilotError(Exception):
    """Base class for all request-level failures."""


class ConfigurationError(DevPilotError):
    """Missing credential, empty input or invalid settings.

    Raised before any network activity.
    """


class TransportError(DevPilotError):
    """The request never produced an HTTP response (DNS, TLS, reset, ...)."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause


class RequestTimeoutError(TransportError):
    """The request exceeded the client's timeout."""


class ApiError(DevPilotError):
    """The API answered with a status other than 200."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API request failed. Status: {status_code} Body: {body}")
        self.status_code = status_code
        self.body = body

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiError):
            return NotImplemented
        return (self.status_code, self.body) == (other.status_code, other.body)

    def __hash__(self) -> int:
        return hash((self.status_code, self.body))


class ExtractionError(DevPilotError):
    """The response body did not contain a usable ``content`` field."""

    def __init__(self, reason: str, raw_body: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw_body = raw_body


class HistoryEntryNotFound(IndexError):
    """No history entry exists at the requested index."""

    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"No history entry at index {index} (history has {size} entries)")
        self.index = index
        self.size = size
