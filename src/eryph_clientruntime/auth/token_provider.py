"""OAuth2 client-credentials token acquisition with caching.

Tokens are cached in memory per (token endpoint, client id, scopes) and
served until ``expiry_margin`` seconds before they expire. When no valid
token is cached, exactly one exchange per key is in flight; concurrent
callers await the same exchange. Failed or timed-out exchanges are never
cached and release the key for the next caller.

Clients authenticate either with a shared secret (``client_secret``) or,
when the identity carries a PEM private key, with an RS256 signed JWT
assertion (``private_key_jwt``).

Example:
    ```python
    provider = TokenProvider(ssl_config=SSLConfig(ca_file="zero-ca.pem"))
    token = await provider.get_token(identity, ["compute:write"])

    async with httpx.AsyncClient(auth=TokenAuth(provider, identity)) as client:
        await client.get("https://localhost:8080/compute/v1/catlets")
    ```
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from threading import Lock
from typing import Any

import httpx
import jwt

from eryph_clientruntime.auth.exceptions import TokenAcquisitionError
from eryph_clientruntime.config.models import ClientIdentity
from eryph_clientruntime.errors import APIError, raise_for_status
from eryph_clientruntime.transport import SSLConfig, create_token_transport

logger = logging.getLogger(__name__)

DEFAULT_SCOPES: tuple[str, ...] = ("compute:write",)
CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
ASSERTION_LIFETIME = 300
DEFAULT_EXPIRES_IN = 3600

TokenKey = tuple[str, str, tuple[str, ...]]


def normalize_scopes(scopes: Iterable[str]) -> tuple[str, ...]:
    """Deduplicate scopes, keeping their first-seen order."""
    return tuple(dict.fromkeys(scope for scope in scopes if scope))


@dataclass(frozen=True)
class CachedToken:
    """An access token and its absolute expiry time (``clock()`` based)."""

    access_token: str
    expires_at: float
    token_type: str = "Bearer"
    scopes: tuple[str, ...] = ()
    key: TokenKey | None = None

    def is_valid(self, now: float, margin: float = 0.0) -> bool:
        return now < self.expires_at - margin

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"


class _BorrowedTransport(httpx.AsyncBaseTransport):
    """Forwards requests but leaves closing the transport to its owner."""

    def __init__(self, transport: httpx.AsyncBaseTransport):
        self._transport = transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._transport.handle_async_request(request)


class TokenProvider:
    """Acquire and cache access tokens for client identities.

    Args:
        ssl_config: TLS policy for requests to the token endpoint.
        transport: Transport used for token requests. Defaults to the retrying
            stack from :func:`create_token_transport`; tests pass an
            ``httpx.MockTransport``. The caller keeps ownership and closes it.
        default_scopes: Scopes requested when neither the caller nor the
            identity specifies any.
        timeout: Default time limit in seconds for one exchange.
        expiry_margin: Tokens are refreshed this many seconds before they expire.
        clock: Time source in seconds, injectable for tests.
        user_agent: User-Agent header of token requests.
    """

    def __init__(
        self,
        *,
        ssl_config: SSLConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        default_scopes: Iterable[str] = DEFAULT_SCOPES,
        timeout: float = 60.0,
        expiry_margin: float = 300.0,
        clock: Callable[[], float] = time.time,
        user_agent: str | None = None,
    ):
        from eryph_clientruntime import __version__

        self.ssl_config = ssl_config or SSLConfig()
        self._transport = transport
        self.default_scopes = normalize_scopes(default_scopes)
        self.timeout = timeout
        self.expiry_margin = expiry_margin
        self.clock = clock
        self.user_agent = user_agent or f"eryph-clientruntime/{__version__}"

        self._cache: dict[TokenKey, CachedToken] = {}
        self._in_flight: dict[TokenKey, asyncio.Future[CachedToken]] = {}
        self._lock = Lock()

    def scopes_for(self, identity: ClientIdentity, scopes: Iterable[str] | None = None) -> tuple[str, ...]:
        if scopes is not None:
            return normalize_scopes(scopes)
        if identity.scopes:
            return normalize_scopes(identity.scopes)
        return self.default_scopes

    def cache_key(self, identity: ClientIdentity, scopes: Iterable[str] | None = None) -> TokenKey:
        return (identity.token_endpoint or "", identity.client_id, tuple(sorted(self.scopes_for(identity, scopes))))

    def current_token(self, identity: ClientIdentity, scopes: Iterable[str] | None = None) -> CachedToken | None:
        """The cached token if it is still valid, without any network call."""
        key = self.cache_key(identity, scopes)
        with self._lock:
            return self._valid_cached(key)

    async def get_token(
        self,
        identity: ClientIdentity,
        scopes: Iterable[str] | None = None,
        *,
        timeout: float | None = None,
    ) -> str:
        """Return an access token for ``identity``, exchanging credentials if needed.

        Raises:
            TokenAcquisitionError: If the exchange fails or times out.
        """
        token = await self.acquire(identity, scopes, timeout=timeout)
        return token.access_token

    async def acquire(
        self,
        identity: ClientIdentity,
        scopes: Iterable[str] | None = None,
        *,
        timeout: float | None = None,
    ) -> CachedToken:
        """Like :meth:`get_token` but returns the whole :class:`CachedToken`."""
        requested = self.scopes_for(identity, scopes)
        key = self.cache_key(identity, requested)

        with self._lock:
            cached = self._valid_cached(key)
            if cached is not None:
                logger.debug(f"Using cached token for client '{identity.client_id}'")
                return cached

            exchange = self._in_flight.get(key)
            joined = exchange is not None
            if exchange is None:
                exchange = asyncio.ensure_future(self._exchange(key, identity, requested, timeout))
                self._in_flight[key] = exchange
            else:
                logger.debug(f"Joining token exchange in flight for client '{identity.client_id}'")

        # Shielded so one cancelled caller does not cancel the exchange for the others
        if not joined or timeout is None:
            return await asyncio.shield(exchange)

        # The exchange is time-boxed by its starter; joiners bound their own wait
        try:
            async with asyncio.timeout(timeout):
                return await asyncio.shield(exchange)
        except TimeoutError as e:
            raise TokenAcquisitionError(
                f"Waiting for token of client '{identity.client_id}' timed out after {timeout}s",
                cause=e,
                retryable=True,
            ) from e

    async def refresh_token(self, identity: ClientIdentity, scopes: Iterable[str] | None = None) -> str:
        """Discard the cached token and acquire a new one."""
        self.invalidate(identity, scopes)
        return await self.get_token(identity, scopes)

    def invalidate(self, identity: ClientIdentity | None = None, scopes: Iterable[str] | None = None) -> None:
        """Drop one cached token, or all tokens when ``identity`` is None."""
        with self._lock:
            if identity is None:
                self._cache.clear()
            else:
                self._cache.pop(self.cache_key(identity, scopes), None)

    def _valid_cached(self, key: TokenKey) -> CachedToken | None:
        cached = self._cache.get(key)
        if cached is not None and cached.is_valid(self.clock(), self.expiry_margin):
            return cached
        return None

    async def _exchange(
        self,
        key: TokenKey,
        identity: ClientIdentity,
        scopes: tuple[str, ...],
        timeout: float | None,
    ) -> CachedToken:
        limit = timeout if timeout is not None else self.timeout
        try:
            try:
                async with asyncio.timeout(limit):
                    token = await self._request_token(identity, scopes)
            except TimeoutError as e:
                raise TokenAcquisitionError(
                    f"Token request for client '{identity.client_id}' timed out after {limit}s",
                    cause=e,
                    retryable=True,
                ) from e

            token = CachedToken(
                access_token=token.access_token,
                expires_at=token.expires_at,
                token_type=token.token_type,
                scopes=token.scopes,
                key=key,
            )
            with self._lock:
                self._cache[key] = token
            return token
        finally:
            with self._lock:
                self._in_flight.pop(key, None)

    async def _request_token(self, identity: ClientIdentity, scopes: tuple[str, ...]) -> CachedToken:
        if not identity.token_endpoint:
            raise TokenAcquisitionError(
                f"No token endpoint known for client '{identity.client_id}'; configure an 'identity' endpoint"
            )

        data = {
            "grant_type": "client_credentials",
            "client_id": identity.client_id,
            **self._client_authentication(identity),
        }
        if scopes:
            data["scope"] = " ".join(scopes)

        logger.debug(f"Requesting token from {identity.token_endpoint} for client '{identity.client_id}'")
        if self._transport is not None:
            transport: httpx.AsyncBaseTransport = _BorrowedTransport(self._transport)
        else:
            transport = create_token_transport(self.ssl_config)
        issued_at = self.clock()
        try:
            async with httpx.AsyncClient(transport=transport, timeout=self.timeout) as client:
                response = await client.post(
                    identity.token_endpoint,
                    data=data,
                    headers={"Accept": "application/json", "User-Agent": self.user_agent},
                )
                await response.aread()
        except httpx.TransportError as e:
            raise TokenAcquisitionError(
                f"Token request to {identity.token_endpoint} failed: {e!r}",
                cause=e,
                retryable=True,
            ) from e

        try:
            raise_for_status(response)
        except APIError as e:
            raise TokenAcquisitionError(
                f"Token request for client '{identity.client_id}' failed: {e}",
                cause=e,
                retryable=e.retryable,
                status_code=e.status_code,
                error=e.error_code,
            ) from e

        token = self._parse_token_response(response, scopes, issued_at)
        logger.debug(f"Token request for client '{identity.client_id}' successful (***)")
        return token

    def _client_authentication(self, identity: ClientIdentity) -> dict[str, str]:
        if identity.private_key:
            return {
                "client_assertion_type": CLIENT_ASSERTION_TYPE,
                "client_assertion": self._create_client_assertion(identity),
            }
        if identity.secret:
            return {"client_secret": identity.secret}
        raise TokenAcquisitionError(f"Client '{identity.client_id}' has no secret or private key")

    def _create_client_assertion(self, identity: ClientIdentity) -> str:
        now = int(time.time())
        claims = {
            "iss": identity.client_id,
            "sub": identity.client_id,
            "aud": identity.token_endpoint,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + ASSERTION_LIFETIME,
        }
        try:
            return jwt.encode(claims, identity.private_key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise TokenAcquisitionError(f"Cannot sign client assertion for '{identity.client_id}': {e}", cause=e) from e

    def _parse_token_response(
        self, response: httpx.Response, requested: tuple[str, ...], issued_at: float
    ) -> CachedToken:
        try:
            data: Any = response.json()
        except ValueError as e:
            raise TokenAcquisitionError(f"Invalid JSON response from token endpoint: {e}", cause=e) from e

        if not isinstance(data, dict) or not isinstance(data.get("access_token"), str) or not data["access_token"]:
            raise TokenAcquisitionError("Token response is missing 'access_token'", status_code=response.status_code)

        try:
            expires_in = float(data.get("expires_in", DEFAULT_EXPIRES_IN))
        except (TypeError, ValueError) as e:
            raise TokenAcquisitionError(f"Invalid 'expires_in' in token response: {e}", cause=e) from e

        granted = data.get("scope")
        scopes = tuple(granted.split()) if isinstance(granted, str) else requested
        return CachedToken(
            access_token=data["access_token"],
            expires_at=issued_at + expires_in,
            token_type=data.get("token_type") or "Bearer",
            scopes=scopes,
        )


class TokenAuth(httpx.Auth):
    """``httpx.Auth`` attaching provider tokens to requests of an async client.

    A 401 response triggers one forced refresh and a single retry.
    """

    def __init__(self, provider: TokenProvider, identity: ClientIdentity, scopes: Iterable[str] | None = None):
        self.provider = provider
        self.identity = identity
        self.scopes = None if scopes is None else normalize_scopes(scopes)

    def sync_auth_flow(self, request: httpx.Request):
        raise RuntimeError("TokenAuth requires an httpx.AsyncClient")

    async def async_auth_flow(self, request: httpx.Request):
        token = await self.provider.acquire(self.identity, self.scopes)
        request.headers["Authorization"] = token.authorization_header
        response = yield request

        if response.status_code == 401:
            logger.debug(f"Request {request.method} {request.url} was rejected with 401, refreshing token")
            self.provider.invalidate(self.identity, self.scopes)
            token = await self.provider.acquire(self.identity, self.scopes)
            request.headers["Authorization"] = token.authorization_header
            yield request
