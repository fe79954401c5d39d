"""Client identity selection and token acquisition.

This module provides:
- Multi-source secret resolution (value → env → .env → default, key files)
- Selection of exactly one client identity from the configuration stores
- OAuth2 client-credentials exchange with a single-flight token cache

Example:
    ```python
    from eryph_clientruntime.auth import ClientCredentialsLookup, TokenProvider

    identity = ClientCredentialsLookup().find_credentials("default")
    token = await TokenProvider().get_token(identity)
    ```
"""

from eryph_clientruntime.auth.credentials import CredentialResolver
from eryph_clientruntime.auth.exceptions import (
    AmbiguousConfigurationError,
    AmbiguousCredentialsError,
    ClientRuntimeError,
    ConfigurationError,
    CredentialError,
    CredentialFileError,
    CredentialsNotFoundError,
    EndpointNotFoundError,
    NoConfigurationFoundError,
    TokenAcquisitionError,
)
from eryph_clientruntime.auth.lookup import ClientCredentialsLookup
from eryph_clientruntime.auth.token_provider import CachedToken, TokenAuth, TokenProvider

__all__ = [
    "AmbiguousConfigurationError",
    "AmbiguousCredentialsError",
    "CachedToken",
    "ClientCredentialsLookup",
    "ClientRuntimeError",
    "ConfigurationError",
    "CredentialError",
    "CredentialFileError",
    "CredentialResolver",
    "CredentialsNotFoundError",
    "EndpointNotFoundError",
    "NoConfigurationFoundError",
    "TokenAcquisitionError",
    "TokenAuth",
    "TokenProvider",
]
