"""HTTP error classification for eryph service responses."""

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
from eryph_clientruntime.errors.handler import raise_for_status
from eryph_clientruntime.errors.models import OAuthErrorDetail, ProblemDetail

__all__ = [
    "APIError",
    "BadRequestError",
    "ClientError",
    "ForbiddenError",
    "NotFoundError",
    "OAuthErrorDetail",
    "ProblemDetail",
    "RateLimitError",
    "ServerError",
    "UnauthorizedError",
    "raise_for_status",
]
