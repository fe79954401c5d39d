"""Layered configuration stores.

Example:
    ```python
    from eryph_clientruntime.config import ConfigStoresReader

    configurations = ConfigStoresReader().load_merged_configurations()
    ```
"""

from eryph_clientruntime.config.models import (
    ClientIdentity,
    ConfigurationFormatError,
    EndpointEntry,
    NamedConfiguration,
)
from eryph_clientruntime.config.reader import ConfigStoresReader
from eryph_clientruntime.config.store import ConfigStore

__all__ = [
    "ClientIdentity",
    "ConfigStore",
    "ConfigStoresReader",
    "ConfigurationFormatError",
    "EndpointEntry",
    "NamedConfiguration",
]
