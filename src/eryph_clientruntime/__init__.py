"""eryph client runtime - configuration, credential and token resolution for eryph clients.

This library resolves everything a generated eryph API client needs:
- Layered configuration stores (current directory, user, system)
- Client identity selection with explicit default handling
- OAuth2 client-credentials tokens with a single-flight, auto-refreshing cache
- Endpoint lookup including discovery of a locally running eryph-zero

Example:
    ```python
    from eryph_clientruntime import credentials_available, resolve_client_config

    if credentials_available():
        config = await resolve_client_config(scopes=["compute:write"])

        async with config.create_async_client() as client:
            catlets = (await client.get("/v1/catlets")).json()
    ```
"""

__version__ = "0.1.0"

from eryph_clientruntime.auth import (
    AmbiguousConfigurationError,
    AmbiguousCredentialsError,
    CachedToken,
    ClientCredentialsLookup,
    ClientRuntimeError,
    ConfigurationError,
    CredentialError,
    CredentialFileError,
    CredentialResolver,
    CredentialsNotFoundError,
    EndpointNotFoundError,
    NoConfigurationFoundError,
    TokenAcquisitionError,
    TokenAuth,
    TokenProvider,
)
from eryph_clientruntime.client import (
    ResolvedClientConfig,
    resolve_client_config,
    resolve_client_config_with_credentials,
)
from eryph_clientruntime.config import ClientIdentity, ConfigStoresReader, EndpointEntry, NamedConfiguration
from eryph_clientruntime.endpoints import EndpointLookup
from eryph_clientruntime.environment import ConfigStoreLocation, Environment
from eryph_clientruntime.local_instance import LocalInstanceInfo
from eryph_clientruntime.runtime import (
    create_credentials_lookup,
    credentials_available,
    zero_endpoints,
    zero_running,
)
from eryph_clientruntime.transport import SSLConfig

__all__ = [
    "AmbiguousConfigurationError",
    "AmbiguousCredentialsError",
    "CachedToken",
    "ClientCredentialsLookup",
    "ClientIdentity",
    "ClientRuntimeError",
    "ConfigStoreLocation",
    "ConfigStoresReader",
    "ConfigurationError",
    "CredentialError",
    "CredentialFileError",
    "CredentialResolver",
    "CredentialsNotFoundError",
    "EndpointEntry",
    "EndpointLookup",
    "EndpointNotFoundError",
    "Environment",
    "LocalInstanceInfo",
    "NamedConfiguration",
    "NoConfigurationFoundError",
    "ResolvedClientConfig",
    "SSLConfig",
    "TokenAcquisitionError",
    "TokenAuth",
    "TokenProvider",
    "__version__",
    "create_credentials_lookup",
    "credentials_available",
    "resolve_client_config",
    "resolve_client_config_with_credentials",
    "zero_endpoints",
    "zero_running",
]
