"""Exceptions for error responses of the eryph identity service.

Every HTTP failure of a token request maps onto one class below. The class
decides whether repeating the request can succeed (``retryable``); the
attached body explains why it failed.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from eryph_clientruntime.errors.models import OAuthErrorDetail, ProblemDetail


class APIError(Exception):
    """An error response.

    Attributes:
        status_code: HTTP status of the response.
        response: The response itself.
        problem_detail: Parsed RFC 7807 body, if the service sent one.
        oauth_error: Parsed OAuth2 error body, if the service sent one.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: "httpx.Response | None" = None,
        problem_detail: "ProblemDetail | None" = None,
        oauth_error: "OAuthErrorDetail | None" = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.problem_detail = problem_detail
        self.oauth_error = oauth_error

    @property
    def error_code(self) -> str | None:
        """The OAuth2 ``error`` code, e.g. ``invalid_client``."""
        return self.oauth_error.error if self.oauth_error else None


class ClientError(APIError):
    """4xx: the request was rejected and repeating it will not help."""


class BadRequestError(ClientError):
    """400: ``invalid_client``, ``invalid_scope``, ``unauthorized_client`` and the like."""


class UnauthorizedError(ClientError):
    """401: the client is unknown or its secret or assertion was rejected."""


class ForbiddenError(ClientError):
    """403: the client is known but not allowed to use the requested grant or scope."""


class NotFoundError(ClientError):
    """404: usually a wrong identity endpoint."""


class RateLimitError(ClientError):
    """429: throttled; ``retry_after`` holds the server's hint in seconds."""

    retryable = True

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(APIError):
    """5xx: the identity service failed or is unavailable."""

    retryable = True
