"""Error classification for HTTP responses."""

import httpx

from eryph_clientruntime.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
)
from eryph_clientruntime.errors.models import OAuthErrorDetail, ProblemDetail

EXCEPTION_MAP: dict[int, type[APIError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    429: RateLimitError,
}


def _parse_retry_after(response: httpx.Response) -> int | None:
    try:
        return int(response.headers["retry-after"])
    except (KeyError, ValueError, TypeError):
        return None


def raise_for_status(response: httpx.Response) -> None:
    """Raise the appropriate :class:`APIError` for an error response.

    The message is taken from an OAuth2 error body (``error`` /
    ``error_description``) if present, then from RFC 7807 problem details,
    then from the response text.

    Args:
        response: HTTP response object

    Raises:
        APIError subclass based on status code
    """
    if response.is_success:
        return

    status_code = response.status_code
    oauth_error = OAuthErrorDetail.from_response(response)
    problem_detail = None if oauth_error else ProblemDetail.from_response(response)

    if status_code in EXCEPTION_MAP:
        exc_class = EXCEPTION_MAP[status_code]
    elif 400 <= status_code < 500:
        exc_class = ClientError
    elif 500 <= status_code < 600:
        exc_class = ServerError
    else:
        exc_class = APIError

    if oauth_error:
        message = f"HTTP {status_code}: {oauth_error.to_exception_message()}"
    elif problem_detail:
        message = problem_detail.to_exception_message()
    else:
        response_text = response.text[:200]
        message = f"HTTP {status_code}: {response_text}" if response_text else f"HTTP {status_code}"

    kwargs = {
        "status_code": status_code,
        "response": response,
        "problem_detail": problem_detail,
        "oauth_error": oauth_error,
    }
    if exc_class is RateLimitError:
        raise RateLimitError(message, retry_after=_parse_retry_after(response), **kwargs)
    raise exc_class(message, **kwargs)
