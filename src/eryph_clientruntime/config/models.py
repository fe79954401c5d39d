"""Configuration models read from eryph configuration stores."""

import logging
from dataclasses import dataclass, field
from typing import Any

from eryph_clientruntime.environment import ConfigStoreLocation

logger = logging.getLogger(__name__)

LOCAL_INSTANCE_NAMES = frozenset(["zero", "local"])


class ConfigurationFormatError(ValueError):
    """Raised when a configuration file does not have the expected shape."""

    pass


def _flag(data: dict[str, Any], *keys: str) -> bool:
    return any(data.get(key) is True for key in keys)


@dataclass(frozen=True)
class EndpointEntry:
    """Named base URL of a service (e.g. ``compute`` or ``identity``)."""

    name: str
    url: str


@dataclass(frozen=True)
class ClientIdentity:
    """An OAuth2 client-credentials identity.

    Secret material is either given inline (``secret``), referenced
    (``secret_env``, ``key_file``) or loaded later into ``private_key``.
    Secret values never appear in ``repr``.
    """

    client_id: str
    configuration: str | None = None
    name: str | None = None
    secret: str | None = field(default=None, repr=False)
    secret_env: str | None = None
    key_file: str | None = None
    private_key: str | None = field(default=None, repr=False)
    scopes: tuple[str, ...] | None = None
    is_default: bool = False
    token_endpoint: str | None = None

    @property
    def has_secret_material(self) -> bool:
        return bool(self.secret or self.private_key)

    @property
    def display_name(self) -> str:
        return self.name or self.client_id

    @classmethod
    def from_dict(cls, data: Any, configuration: str) -> "ClientIdentity":
        """Build an identity from one entry of a configuration's ``clients`` list.

        Raises:
            ConfigurationFormatError: If the entry is not an object with a string
                ``id``, or a text field holds something other than a string.
        """
        if not isinstance(data, dict):
            raise ConfigurationFormatError(f"client entry must be an object, got {type(data).__name__}")
        client_id = data.get("id")
        if not isinstance(client_id, str) or not client_id:
            raise ConfigurationFormatError("client entry is missing a non-empty 'id'")
        for key in ("name", "secret", "secretEnv", "keyFile"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ConfigurationFormatError(f"client '{client_id}' has a non-string '{key}'")

        scopes = data.get("scopes")
        if scopes is not None:
            if isinstance(scopes, str):
                scopes = scopes.split()
            if not isinstance(scopes, list) or not all(isinstance(s, str) for s in scopes):
                raise ConfigurationFormatError(f"client '{client_id}' has invalid 'scopes'")
            scopes = tuple(scopes)

        return cls(
            client_id=client_id,
            configuration=configuration,
            name=data.get("name"),
            secret=data.get("secret"),
            secret_env=data.get("secretEnv"),
            key_file=data.get("keyFile"),
            scopes=scopes,
            is_default=_flag(data, "IsDefault", "isDefault"),
        )


@dataclass(frozen=True)
class NamedConfiguration:
    """One logical eryph environment such as ``default`` or ``zero``."""

    name: str
    scope: ConfigStoreLocation | None = None
    store_path: str | None = None
    identities: tuple[ClientIdentity, ...] = ()
    endpoints: tuple[EndpointEntry, ...] = ()
    default_client_id: str | None = None
    is_default: bool = False

    @property
    def is_local_instance(self) -> bool:
        return self.name.lower() in LOCAL_INSTANCE_NAMES

    @property
    def endpoint_map(self) -> dict[str, str]:
        return {entry.name: entry.url for entry in self.endpoints}

    def endpoint(self, name: str) -> str | None:
        for entry in self.endpoints:
            if entry.name == name:
                return entry.url
        return None

    def identity(self, client_id: str) -> ClientIdentity | None:
        for identity in self.identities:
            if identity.client_id == client_id:
                return identity
        return None

    @classmethod
    def from_dict(
        cls,
        name: str,
        data: Any,
        *,
        scope: ConfigStoreLocation | None = None,
        store_path: str | None = None,
    ) -> "NamedConfiguration":
        """Parse the JSON document of ``<name>.config``.

        Duplicate client ids keep their first entry.

        Raises:
            ConfigurationFormatError: If the document does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ConfigurationFormatError(f"configuration '{name}' must be a JSON object")

        endpoints_data = data.get("endpoints") or {}
        if not isinstance(endpoints_data, dict):
            raise ConfigurationFormatError(f"configuration '{name}' has invalid 'endpoints'")
        endpoints = []
        for endpoint_name, url in endpoints_data.items():
            if not isinstance(url, str) or not url:
                raise ConfigurationFormatError(f"endpoint '{endpoint_name}' in '{name}' is not a URL string")
            endpoints.append(EndpointEntry(name=endpoint_name, url=url))

        clients_data = data.get("clients") or []
        if not isinstance(clients_data, list):
            raise ConfigurationFormatError(f"configuration '{name}' has invalid 'clients'")
        identities: list[ClientIdentity] = []
        seen: set[str] = set()
        for entry in clients_data:
            identity = ClientIdentity.from_dict(entry, configuration=name)
            if identity.client_id in seen:
                logger.warning(f"Ignoring duplicate client '{identity.client_id}' in configuration '{name}'")
                continue
            seen.add(identity.client_id)
            identities.append(identity)

        default_client_id = data.get("defaultClientId") or data.get("defaultClient")
        if default_client_id is not None and not isinstance(default_client_id, str):
            raise ConfigurationFormatError(f"configuration '{name}' has invalid 'defaultClientId'")

        return cls(
            name=name,
            scope=scope,
            store_path=store_path,
            identities=tuple(identities),
            endpoints=tuple(endpoints),
            default_client_id=default_client_id,
            is_default=_flag(data, "isDefault", "IsDefault"),
        )
