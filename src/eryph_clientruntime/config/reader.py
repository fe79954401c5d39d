"""Priority-ordered merging of configuration stores.

Resolution order (highest to lowest priority):
1. Current directory (``./.eryph``)
2. User (``$XDG_CONFIG_HOME/.eryph``, ``%APPDATA%\\.eryph``)
3. System (``/etc/.eryph``, ``%PROGRAMDATA%\\.eryph``)

A configuration name defined in several scopes resolves to the entry of the
highest-priority scope as a whole; fields are never merged across scopes.
"""

import logging

from eryph_clientruntime.config.models import NamedConfiguration
from eryph_clientruntime.config.store import ConfigStore
from eryph_clientruntime.environment import ConfigStoreLocation, Environment

logger = logging.getLogger(__name__)


class ConfigStoresReader:
    """Read and merge the configuration stores of an :class:`Environment`.

    Every call reads the live filesystem state again; nothing is cached
    between resolution passes.

    Example:
        ```python
        reader = ConfigStoresReader(Environment())
        configurations = reader.load_merged_configurations()
        if "default" in configurations:
            print(configurations["default"].endpoint_map)
        ```
    """

    def __init__(self, environment: Environment | None = None):
        self.environment = environment if environment is not None else Environment()
        self._warnings: list[str] = []

    @property
    def warnings(self) -> list[str]:
        """Warnings recorded by the last read, e.g. skipped malformed files."""
        return list(self._warnings)

    def get_stores(self) -> list[ConfigStore]:
        """Read the stores of all scopes in priority order."""
        stores = [ConfigStore.read(self.environment, location) for location in ConfigStoreLocation.in_priority_order()]
        self._warnings = [warning for store in stores for warning in store.warnings]
        return stores

    def get_existing_stores(self) -> list[ConfigStore]:
        return [store for store in self.get_stores() if store.exists]

    def load_merged_configurations(self) -> dict[str, NamedConfiguration]:
        """Merge all stores into a name -> configuration mapping.

        Returns:
            The merged mapping. Empty when no store exists, which callers
            must treat as "not configured" rather than as an error.
        """
        merged: dict[str, NamedConfiguration] = {}
        for store in self.get_existing_stores():
            for configuration in store.configurations:
                if configuration.name in merged:
                    logger.debug(
                        f"Configuration '{configuration.name}' in {store.scope.value} store is shadowed by "
                        f"{merged[configuration.name].scope.value} store"
                    )
                    continue
                merged[configuration.name] = configuration

        logger.debug(f"Merged configurations: {sorted(merged)}")
        return merged

    def get_configuration(self, name: str) -> NamedConfiguration | None:
        return self.load_merged_configurations().get(name)
