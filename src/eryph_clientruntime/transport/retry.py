"""Retry transport for OAuth2 token endpoint requests.

A client-credentials exchange has no side effects beyond issuing a token,
so the POST to the token endpoint can be repeated safely. The transport
retries on:

| Condition | Delay |
|-----------|-------|
| 429 (Rate Limit) | `Retry-After` header, else exponential backoff |
| 502, 503, 504 | exponential backoff |
| Connection errors (`httpx.ConnectError`, `httpx.ConnectTimeout`) | exponential backoff |

Any other response, including 4xx rejections such as `invalid_client`, is
returned immediately.

```python
from eryph_clientruntime.transport.retry import TokenEndpointRetry
import httpx

retry_transport = TokenEndpointRetry(
    wrapped_transport=httpx.AsyncHTTPTransport(),
    max_retries=3,
    max_backoff=30,
)

async with httpx.AsyncClient(transport=retry_transport) as client:
    response = await client.post("https://localhost:8080/identity/connect/token", data={...})
```
"""

import asyncio
import logging
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

import httpx

logger = logging.getLogger(__name__)


class TokenEndpointRetry(httpx.AsyncBaseTransport):
    """Retry transport for token requests with rate-limit awareness.

    Args:
        wrapped_transport: The underlying transport to wrap
        max_retries: Maximum number of retry attempts (default: 3)
        backoff_factor: Multiplier for exponential backoff (default: 0.5)
        max_backoff: Maximum backoff time in seconds (default: 30)
        retry_status_codes: Set of 5xx codes to retry (default: 502, 503, 504)

    Example:
        ```python
        transport = TokenEndpointRetry(
            wrapped_transport=httpx.AsyncHTTPTransport(verify=ssl_context),
            max_retries=3,
        )
        ```
    """

    DEFAULT_RETRY_STATUS_CODES: frozenset[int] = frozenset([502, 503, 504])

    RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (httpx.ConnectError, httpx.ConnectTimeout)

    def __init__(
        self,
        *,
        wrapped_transport: httpx.AsyncBaseTransport,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        max_backoff: float = 30.0,
        retry_status_codes: frozenset[int] | None = None,
    ) -> None:
        self._wrapped_transport = wrapped_transport
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.max_backoff = max_backoff
        self.retry_status_codes = retry_status_codes or self.DEFAULT_RETRY_STATUS_CODES

    async def __aenter__(self):
        """Enter async context, delegating to wrapped transport."""
        await self._wrapped_transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context, delegating to wrapped transport."""
        return await self._wrapped_transport.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        await self._wrapped_transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, retrying transient failures.

        Returns:
            The first non-retryable response, or the last response once
            retries are exhausted.
        """
        retries = 0

        while True:
            try:
                response = await self._wrapped_transport.handle_async_request(request)
            except self.RETRYABLE_EXCEPTIONS as e:
                if retries >= self.max_retries:
                    raise
                retries += 1
                delay = self._calculate_backoff_delay(retries)
                logger.warning(
                    f"Token request to {request.url} failed with {e!r}, "
                    f"retrying in {delay}s (attempt {retries}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            delay = self._retry_delay(response, retries)
            if delay is None:
                return response

            retries += 1
            logger.warning(
                f"Token request to {request.url} failed with {response.status_code}, "
                f"retrying in {delay}s (attempt {retries}/{self.max_retries})"
            )
            await response.aclose()
            await asyncio.sleep(delay)

    def _retry_delay(self, response: httpx.Response, current_retries: int) -> float | None:
        """Return the delay before the next attempt, or None if the response is final."""
        if current_retries >= self.max_retries:
            return None

        if response.status_code == 429:
            delay = self._parse_retry_after(response)
            return delay if delay is not None else self._calculate_backoff_delay(current_retries + 1)

        if response.status_code in self.retry_status_codes:
            return self._calculate_backoff_delay(current_retries + 1)

        return None

    def _parse_retry_after(self, response: httpx.Response) -> float | None:
        """Parse Retry-After header from response.

        Supports both formats:
        - Delay-seconds: "120" (integer seconds)
        - HTTP-date: "Wed, 21 Oct 2015 07:28:00 GMT"

        Returns:
            Delay in seconds (capped at max_backoff), or None if the header
            is missing, invalid or in the past
        """
        retry_after = response.headers.get("Retry-After")
        if not retry_after:
            return None

        try:
            delay = float(int(retry_after))
        except ValueError:
            try:
                delay = (parsedate_to_datetime(retry_after) - datetime.now(UTC)).total_seconds()
            except (ValueError, TypeError):
                return None

        # Negative values and clock skew
        if delay < 0:
            return None
        return min(delay, self.max_backoff)

    def _calculate_backoff_delay(self, retry_number: int) -> float:
        """Exponential backoff: min(backoff_factor * 2 ** (retry_number - 1), max_backoff)."""
        delay = self.backoff_factor * (2 ** (retry_number - 1))
        return min(delay, self.max_backoff)
