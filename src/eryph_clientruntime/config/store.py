"""A single configuration store: the ``.eryph`` directory of one scope."""

import json
import logging
import os
from dataclasses import dataclass

from eryph_clientruntime.config.models import ConfigurationFormatError, NamedConfiguration
from eryph_clientruntime.environment import ConfigStoreLocation, Environment

logger = logging.getLogger(__name__)

STORE_DIR = ".eryph"
PRIVATE_DIR = "private"
CONFIG_EXTENSION = ".config"
KEY_EXTENSION = ".key"


def private_key_path(store_path: str, client_id: str) -> str:
    """Conventional location of a client's PEM key inside a store."""
    return os.path.join(store_path, PRIVATE_DIR, f"{client_id}{KEY_EXTENSION}")


@dataclass(frozen=True)
class ConfigStore:
    """Snapshot of the configurations found in one scope.

    Each ``<name>.config`` file in the store directory holds one named
    configuration. Files are read in sorted order so the result does not
    depend on directory enumeration order. Unreadable or malformed files are
    skipped and reported in ``warnings``.
    """

    scope: ConfigStoreLocation
    path: str
    exists: bool
    configurations: tuple[NamedConfiguration, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def read(cls, environment: Environment, scope: ConfigStoreLocation) -> "ConfigStore":
        store_path = os.path.join(environment.path_for(scope), STORE_DIR)
        file_names = [
            name
            for name in environment.list_files(store_path)
            if name.endswith(CONFIG_EXTENSION) and len(name) > len(CONFIG_EXTENSION)
        ]
        if not file_names:
            return cls(scope=scope, path=store_path, exists=False)

        configurations: list[NamedConfiguration] = []
        warnings: list[str] = []
        for file_name in sorted(file_names):
            config_name = file_name[: -len(CONFIG_EXTENSION)]
            file_path = os.path.join(store_path, file_name)

            content = environment.read_file(file_path)
            if content is None:
                warnings.append(f"Cannot read configuration file {file_path}")
                logger.warning(warnings[-1])
                continue

            try:
                data = json.loads(content.lstrip("\ufeff"))
                configuration = NamedConfiguration.from_dict(
                    config_name, data, scope=scope, store_path=store_path
                )
            except (json.JSONDecodeError, ConfigurationFormatError) as e:
                warnings.append(f"Skipping invalid configuration file {file_path}: {e}")
                logger.warning(warnings[-1])
                continue

            configurations.append(configuration)

        logger.debug(f"Read {len(configurations)} configuration(s) from {scope.value} store {store_path}")
        return cls(
            scope=scope,
            path=store_path,
            exists=True,
            configurations=tuple(configurations),
            warnings=tuple(warnings),
        )

    def get(self, name: str) -> NamedConfiguration | None:
        for configuration in self.configurations:
            if configuration.name == name:
                return configuration
        return None

    def private_key_path(self, client_id: str) -> str:
        return private_key_path(self.path, client_id)
