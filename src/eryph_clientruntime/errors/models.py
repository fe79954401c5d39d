"""Error bodies returned by eryph services: OAuth2 errors and RFC 7807 problem details."""

from dataclasses import dataclass
from typing import Any

import httpx

PROBLEM_FIELDS = frozenset(["type", "title", "status", "detail", "instance"])


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    try:
        data = response.json()
    except (ValueError, TypeError, AttributeError):
        # JSON decode errors, type errors, or missing .json() method
        return None
    return data if isinstance(data, dict) else None


@dataclass
class OAuthErrorDetail:
    """OAuth2 error response (RFC 6749 section 5.2)."""

    error: str
    error_description: str | None = None
    error_uri: str | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "OAuthErrorDetail | None":
        """Parse an OAuth2 error body, or return None if the body is not one."""
        data = _json_object(response)
        if data is None or not isinstance(data.get("error"), str):
            return None
        return cls(
            error=data["error"],
            error_description=data.get("error_description"),
            error_uri=data.get("error_uri"),
        )

    def to_exception_message(self) -> str:
        if self.error_description:
            return f"{self.error}: {self.error_description}"
        return self.error


@dataclass
class ProblemDetail:
    """RFC 7807 Problem Details object, as returned by the identity service.

    See: https://datatracker.ietf.org/doc/html/rfc7807
    """

    type: str | None = None  # URI reference identifying the problem type
    title: str | None = None  # Short, human-readable summary
    status: int | None = None  # HTTP status code
    detail: str | None = None  # Human-readable explanation
    instance: str | None = None  # URI reference identifying specific occurrence

    extensions: dict[str, Any] | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ProblemDetail | None":
        """Parse RFC 7807 problem details from HTTP response.

        Bodies without the ``application/problem+json`` content type are
        accepted when they carry at least one standard field.
        """
        data = _json_object(response)
        if data is None:
            return None

        content_type = response.headers.get("content-type", "")
        if "application/problem+json" not in content_type and not PROBLEM_FIELDS.intersection(data):
            return None

        extensions = {k: v for k, v in data.items() if k not in PROBLEM_FIELDS}
        return cls(
            type=data.get("type"),
            title=data.get("title"),
            status=data.get("status"),
            detail=data.get("detail"),
            instance=data.get("instance"),
            extensions=extensions if extensions else None,
        )

    def to_exception_message(self) -> str:
        """Convert problem details to exception message."""
        lines = []

        if self.title:
            lines.append(self.title)
        elif self.detail:
            lines.append(self.detail)

        if self.title and self.detail and self.title != self.detail:
            lines.append(self.detail)

        if self.type:
            lines.append(f"Problem Type: {self.type}")

        if self.instance:
            lines.append(f"Instance: {self.instance}")

        return "\n".join(lines) if lines else "Unknown API error"
