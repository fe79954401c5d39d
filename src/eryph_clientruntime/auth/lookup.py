"""Selection of the client identity used to authenticate.

Selection never guesses: when several configurations or several clients
qualify and no single one is marked as default, an ambiguity error is
raised instead of picking one.
"""

import logging
from dataclasses import replace

from eryph_clientruntime.auth.credentials import CredentialResolver
from eryph_clientruntime.auth.exceptions import (
    AmbiguousConfigurationError,
    AmbiguousCredentialsError,
    ConfigurationError,
    CredentialsNotFoundError,
    NoConfigurationFoundError,
)
from eryph_clientruntime.config.models import LOCAL_INSTANCE_NAMES, ClientIdentity, NamedConfiguration
from eryph_clientruntime.config.reader import ConfigStoresReader
from eryph_clientruntime.config.store import private_key_path
from eryph_clientruntime.endpoints import EndpointLookup
from eryph_clientruntime.local_instance import SYSTEM_CLIENT_ID, LocalInstanceInfo

logger = logging.getLogger(__name__)

DEFAULT_CONFIGURATION = "default"


def token_endpoint_for(identity_url: str) -> str:
    return f"{identity_url.rstrip('/')}/connect/token"


class ClientCredentialsLookup:
    """Find the credentials of one client identity.

    Args:
        reader: Reader for the configuration stores.
        config_name: Configuration to use when :meth:`find_credentials` is
            called without one. None means auto-discovery.
        client_id: Client to use when :meth:`find_credentials` is called
            without one. None means the configuration's default client.
        resolver: Resolver for secrets referenced through environment
            variables or key files.
        endpoint_lookup: Used to derive the token endpoint from the
            ``identity`` endpoint.

    Example:
        ```python
        lookup = ClientCredentialsLookup(ConfigStoresReader(Environment()))

        identity = lookup.find_credentials()  # auto-discovery
        identity = lookup.find_credentials("zero", client_id="system-client")
        ```
    """

    def __init__(
        self,
        reader: ConfigStoresReader | None = None,
        config_name: str | None = None,
        *,
        client_id: str | None = None,
        resolver: CredentialResolver | None = None,
        endpoint_lookup: EndpointLookup | None = None,
    ):
        self.reader = reader if reader is not None else ConfigStoresReader()
        self.environment = self.reader.environment
        self.config_name = config_name
        self.client_id = client_id
        self._resolver = resolver
        self.endpoint_lookup = endpoint_lookup if endpoint_lookup is not None else EndpointLookup(self.environment)

    @property
    def resolver(self) -> CredentialResolver:
        if self._resolver is None:
            self._resolver = CredentialResolver()
        return self._resolver

    def find_credentials(
        self,
        config_name: str | None = None,
        client_id: str | None = None,
        *,
        configurations: dict[str, NamedConfiguration] | None = None,
    ) -> ClientIdentity:
        """Select exactly one client identity and load its secret material.

        Args:
            config_name: Configuration name; None or empty means auto-discovery.
            client_id: Explicit client id; None means the default client.
            configurations: Already merged configurations, to avoid reading
                the stores again.

        Returns:
            The identity, with ``secret`` or ``private_key`` loaded and
            ``token_endpoint`` set when an identity endpoint is known.

        Raises:
            NoConfigurationFoundError: No (or not the requested) configuration exists.
            AmbiguousConfigurationError: Auto-discovery found no single default configuration.
            CredentialsNotFoundError: The client does not exist or has no secret material.
            AmbiguousCredentialsError: Several clients and no single default.
        """
        config_name = config_name or self.config_name
        client_id = client_id or self.client_id
        if configurations is None:
            configurations = self.reader.load_merged_configurations()

        if config_name:
            configuration = configurations.get(config_name)
            if configuration is None:
                if config_name in LOCAL_INSTANCE_NAMES:
                    return self.get_system_client_credentials(config_name, client_id)
                raise NoConfigurationFoundError(
                    f"Configuration '{config_name}' not found in any configuration store",
                    config_name=config_name,
                )
        else:
            configuration = self.discover_configuration(configurations)

        if not configuration.identities and configuration.name in LOCAL_INSTANCE_NAMES:
            return self.get_system_client_credentials(configuration.name, client_id, configuration)

        identity = self.select_identity(configuration, client_id)
        identity = self.load_secret_material(identity, configuration)
        identity = self._with_token_endpoint(identity, configuration)
        logger.debug(f"Using client '{identity.client_id}' of configuration '{configuration.name}'")
        return identity

    def credentials_available(self, config_name: str | None = None) -> bool:
        try:
            self.find_credentials(config_name)
        except ConfigurationError:
            return False
        return True

    def discover_configuration(self, configurations: dict[str, NamedConfiguration]) -> NamedConfiguration:
        """Pick the configuration to use when none was named.

        A configuration counts as default when it is marked with
        ``isDefault`` or is named ``default``.
        """
        if not configurations:
            raise NoConfigurationFoundError("No eryph configuration found. Please configure an eryph client.")

        if len(configurations) == 1:
            (configuration,) = configurations.values()
            logger.debug(f"Auto-discovered configuration '{configuration.name}'")
            return configuration

        defaults = [c for c in configurations.values() if c.is_default or c.name == DEFAULT_CONFIGURATION]
        if len(defaults) == 1:
            logger.debug(f"Auto-discovered default configuration '{defaults[0].name}'")
            return defaults[0]

        candidates = sorted(c.name for c in (defaults or configurations.values()))
        reason = "several are marked as default" if defaults else "none is marked as default"
        raise AmbiguousConfigurationError(
            f"Found configurations {candidates} but {reason}; pass a configuration name",
            candidates=candidates,
        )

    def select_identity(self, configuration: NamedConfiguration, client_id: str | None) -> ClientIdentity:
        name = configuration.name
        if client_id:
            identity = configuration.identity(client_id)
            if identity is None:
                raise CredentialsNotFoundError(
                    f"Client '{client_id}' not found in configuration '{name}'",
                    config_name=name,
                    client_id=client_id,
                )
            return identity

        identities = configuration.identities
        if not identities:
            raise CredentialsNotFoundError(f"No client found in configuration '{name}'", config_name=name)
        if len(identities) == 1:
            return identities[0]

        if configuration.default_client_id:
            identity = configuration.identity(configuration.default_client_id)
            if identity is None:
                raise CredentialsNotFoundError(
                    f"Default client '{configuration.default_client_id}' of configuration '{name}' does not exist",
                    config_name=name,
                    client_id=configuration.default_client_id,
                )
            return identity

        defaults = [identity for identity in identities if identity.is_default]
        if len(defaults) == 1:
            return defaults[0]

        candidates = [identity.client_id for identity in (defaults or identities)]
        raise AmbiguousCredentialsError(
            f"Configuration '{name}' has clients {candidates} and no single default client; pass a client id",
            config_name=name,
            candidates=candidates,
        )

    def load_secret_material(self, identity: ClientIdentity, configuration: NamedConfiguration) -> ClientIdentity:
        """Return ``identity`` with its secret or private key loaded.

        Sources, first match wins: inline ``secret``, ``secretEnv``,
        ``keyFile`` and the store's ``private/<client id>.key``.
        """
        if identity.has_secret_material:
            return identity

        if identity.secret_env:
            secret = self.resolver.resolve_env(identity.secret_env)
            if secret:
                return replace(identity, secret=secret)

        read_file = self.environment.read_file
        if identity.key_file:
            key = self.resolver.read_key_file(
                identity.key_file, base_dir=configuration.store_path, required=True, read_file=read_file
            )
            return replace(identity, private_key=key)

        if configuration.store_path:
            key = self.resolver.read_key_file(
                private_key_path(configuration.store_path, identity.client_id), read_file=read_file
            )
            if key:
                return replace(identity, private_key=key)

        message = f"No secret or private key found for client '{identity.client_id}' in '{configuration.name}'"
        if identity.secret_env:
            message += f" (checked env var: {identity.secret_env})"
        raise CredentialsNotFoundError(
            message,
            config_name=configuration.name,
            client_id=identity.client_id,
            env_var_name=identity.secret_env,
        )

    def get_system_client_credentials(
        self,
        config_name: str,
        client_id: str | None = None,
        configuration: NamedConfiguration | None = None,
    ) -> ClientIdentity:
        """Credentials of the system client of a local eryph instance.

        Only available to Administrator (Windows) or root (Linux) users while
        the instance is running; eryph-zero only exists on Windows.
        """
        if client_id and client_id != SYSTEM_CLIENT_ID:
            raise CredentialsNotFoundError(
                f"Client '{client_id}' not found in configuration '{config_name}'",
                config_name=config_name,
                client_id=client_id,
            )

        environment = self.environment
        supported = environment.is_windows() or (environment.is_linux() and config_name != "zero")
        if not supported:
            raise CredentialsNotFoundError(f"No client found in configuration '{config_name}'", config_name=config_name)

        if not environment.is_admin_user():
            raise CredentialsNotFoundError(
                "No user credentials found. The system client is available but requires "
                "Administrator (Windows) or root (Linux) privileges.",
                config_name=config_name,
            )

        info = LocalInstanceInfo(environment, config_name)
        endpoints = info.endpoints()
        identity_url = (configuration.endpoint("identity") if configuration else None) or endpoints.get("identity")
        if not identity_url:
            raise CredentialsNotFoundError(
                f"Local instance '{config_name}' is not running or publishes no identity endpoint",
                config_name=config_name,
            )

        private_key = info.system_client_private_key()
        if not private_key:
            raise CredentialsNotFoundError(
                f"System client key of local instance '{config_name}' cannot be read",
                config_name=config_name,
                client_id=SYSTEM_CLIENT_ID,
            )

        logger.debug(f"Using system client of local instance '{config_name}'")
        return ClientIdentity(
            client_id=SYSTEM_CLIENT_ID,
            configuration=config_name,
            name="Eryph Zero System Client",
            private_key=private_key,
            token_endpoint=token_endpoint_for(identity_url),
        )

    def _with_token_endpoint(self, identity: ClientIdentity, configuration: NamedConfiguration) -> ClientIdentity:
        if identity.token_endpoint:
            return identity
        identity_url = self.endpoint_lookup.find_endpoint("identity", configuration)
        if identity_url is None:
            logger.debug(f"Configuration '{configuration.name}' has no identity endpoint; token endpoint unknown")
            return identity
        return replace(identity, token_endpoint=token_endpoint_for(identity_url))
