"""Entry points that turn configuration into a ready-to-use client configuration.

A generated eryph API client needs three things: a way to obtain access
tokens, the base URL of the service and the TLS policy. These functions
resolve all three and fail fast when the environment is not set up.

Example:
    ```python
    from eryph_clientruntime import resolve_client_config

    config = await resolve_client_config("zero", ssl_config={"verify_ssl": False})

    async with config.create_async_client() as client:
        response = await client.get("/v1/catlets")
    ```
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from eryph_clientruntime.auth.lookup import ClientCredentialsLookup
from eryph_clientruntime.auth.token_provider import TokenAuth, TokenProvider
from eryph_clientruntime.config.models import ClientIdentity, NamedConfiguration
from eryph_clientruntime.config.reader import ConfigStoresReader
from eryph_clientruntime.environment import Environment
from eryph_clientruntime.transport import SSLConfig, create_ssl_context

logger = logging.getLogger(__name__)

DIRECT_CONFIGURATION = "direct"


@dataclass(frozen=True)
class ResolvedClientConfig:
    """Everything a generated API client needs to talk to an eryph service.

    ``access_token`` is the token acquired while resolving. Tokens expire;
    use :meth:`get_access_token` or :attr:`auth` for requests made later,
    which refresh through ``token_provider`` as needed.
    """

    access_token: str
    base_url: str
    ssl_config: SSLConfig
    configuration: str
    identity: ClientIdentity
    scopes: tuple[str, ...]
    token_provider: TokenProvider

    async def get_access_token(self) -> str:
        return await self.token_provider.get_token(self.identity, self.scopes)

    async def authorization_header(self) -> str:
        token = await self.token_provider.acquire(self.identity, self.scopes)
        return token.authorization_header

    async def refresh_token(self) -> str:
        return await self.token_provider.refresh_token(self.identity, self.scopes)

    @property
    def auth(self) -> TokenAuth:
        return TokenAuth(self.token_provider, self.identity, self.scopes)

    def create_async_client(self, **kwargs: Any) -> httpx.AsyncClient:
        """Create an ``httpx.AsyncClient`` bound to the base URL, auth and TLS policy.

        Keyword arguments are passed on to ``httpx.AsyncClient`` and may
        override the defaults.
        """
        options: dict[str, Any] = {
            "base_url": self.base_url,
            "auth": self.auth,
            "verify": create_ssl_context(self.ssl_config),
        }
        options.update(kwargs)
        return httpx.AsyncClient(**options)


async def resolve_client_config(
    config_name: str | None = None,
    *,
    client_id: str | None = None,
    endpoint_name: str = "compute",
    scopes: Iterable[str] | None = None,
    ssl_config: Mapping[str, Any] | SSLConfig | None = None,
    environment: Environment | None = None,
    token_provider: TokenProvider | None = None,
    timeout: float | None = None,
) -> ResolvedClientConfig:
    """Resolve credentials, endpoint and TLS policy, and acquire a first token.

    Args:
        config_name: Configuration to use; None means auto-discovery.
        client_id: Explicit client; None means the configuration's default.
        endpoint_name: Endpoint providing the base URL.
        scopes: Requested scopes; defaults to the identity's scopes, else
            ``compute:write``.
        ssl_config: TLS options (``verify_ssl``, ``verify_hostname``,
            ``ca_file``, ``client_cert``, ``client_key``).
        environment: Environment to resolve against.
        token_provider: Provider to share a token cache across clients.
        timeout: Time limit in seconds for the first token exchange.

    Raises:
        ConfigurationError: If configuration, credentials or the endpoint
            cannot be resolved.
        TokenAcquisitionError: If the first token cannot be acquired.
    """
    reader = ConfigStoresReader(environment if environment is not None else Environment())
    configurations = reader.load_merged_configurations()

    lookup = ClientCredentialsLookup(reader)
    identity = lookup.find_credentials(config_name, client_id, configurations=configurations)

    configuration = configurations.get(identity.configuration or "")
    if configuration is None:
        # System client of a local instance that has no configuration file
        configuration = NamedConfiguration(name=identity.configuration or config_name or "zero")
    base_url = lookup.endpoint_lookup.get_endpoint(endpoint_name, configuration)

    ssl = SSLConfig.from_mapping(ssl_config)
    provider = token_provider if token_provider is not None else TokenProvider(ssl_config=ssl)
    requested = provider.scopes_for(identity, scopes)
    access_token = await provider.get_token(identity, requested, timeout=timeout)

    logger.info(f"Resolved client '{identity.client_id}' of '{configuration.name}' for {base_url}")
    return ResolvedClientConfig(
        access_token=access_token,
        base_url=base_url,
        ssl_config=ssl,
        configuration=configuration.name,
        identity=identity,
        scopes=requested,
        token_provider=provider,
    )


def token_endpoint_from_compute(endpoint: str) -> str:
    """``https://host/compute`` -> ``https://host/connect/token``."""
    base_url = re.sub(r"/compute/?$", "", endpoint.rstrip("/") + "/")
    return f"{base_url.rstrip('/')}/connect/token"


async def resolve_client_config_with_credentials(
    *,
    endpoint: str,
    client_id: str,
    secret: str | None = None,
    private_key: str | None = None,
    scopes: Iterable[str] | None = None,
    ssl_config: Mapping[str, Any] | SSLConfig | None = None,
    token_provider: TokenProvider | None = None,
    timeout: float | None = None,
) -> ResolvedClientConfig:
    """Build a client configuration from explicit credentials, bypassing the stores.

    The token endpoint is derived from the compute ``endpoint``.

    Raises:
        ValueError: If neither ``secret`` nor ``private_key`` is given.
        TokenAcquisitionError: If the first token cannot be acquired.
    """
    if not secret and not private_key:
        raise ValueError("Either secret or private_key is required")

    identity = ClientIdentity(
        client_id=client_id,
        configuration=DIRECT_CONFIGURATION,
        name="Direct Client",
        secret=secret,
        private_key=private_key,
        token_endpoint=token_endpoint_from_compute(endpoint),
    )

    ssl = SSLConfig.from_mapping(ssl_config)
    provider = token_provider if token_provider is not None else TokenProvider(ssl_config=ssl)
    requested = provider.scopes_for(identity, scopes)
    access_token = await provider.get_token(identity, requested, timeout=timeout)

    return ResolvedClientConfig(
        access_token=access_token,
        base_url=endpoint,
        ssl_config=ssl,
        configuration=DIRECT_CONFIGURATION,
        identity=identity,
        scopes=requested,
        token_provider=provider,
    )
