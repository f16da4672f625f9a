"""Exceptions for the chipster client library."""

from typing import Any, Optional


class ChipsterError(Exception):
    """Base exception for all chipster client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """Initialize ChipsterError.

        Args:
            message: Error message
            status_code: HTTP status code if applicable
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class HttpError(ChipsterError):
    """Raised when a service responds with a client error (4xx).

    Also raised for any unsuccessful status of a streamed upload or download.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        body: Optional[str] = None,
        uri: Optional[str] = None,
        response: Any = None,
    ) -> None:
        """Initialize HttpError.

        Args:
            message: Error message
            status_code: HTTP status code of the response
            reason: HTTP reason phrase of the response
            body: Response body
            uri: Requested URI
            response: The underlying response object
        """
        super().__init__(message, status_code=status_code)
        self.reason = reason
        self.body = body
        self.uri = uri
        self.response = response


class BadRequestError(HttpError):
    """Raised on 400 Bad Request."""

    pass


class AuthenticationError(HttpError):
    """Raised on 401 Unauthorized."""

    pass


class ForbiddenError(HttpError):
    """Raised on 403 Forbidden."""

    pass


class NotFoundError(HttpError):
    """Raised on 404 Not Found."""

    pass


class ConflictError(HttpError):
    """Raised on 409 Conflict."""

    pass


class InternalServerError(ChipsterError):
    """Raised when a request fails on the server side or a service is missing."""

    def __init__(self, message: str, status_code: Optional[int] = 500) -> None:
        super().__init__(message, status_code=status_code)


class ConnectionError(ChipsterError):
    """Raised when connection to the server fails."""

    pass


class TimeoutError(ChipsterError):
    """Raised when a request times out."""

    pass


class ConfigurationError(ChipsterError):
    """Raised when the configuration is missing or incomplete."""

    pass
