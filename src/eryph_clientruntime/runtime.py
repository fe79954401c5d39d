"""Read-only health checks for callers deciding whether to build a client.

None of these functions raise: resolution problems are reported as
``False`` or an empty mapping and logged at debug level.
"""

import logging

from eryph_clientruntime.auth.exceptions import ClientRuntimeError
from eryph_clientruntime.auth.lookup import ClientCredentialsLookup
from eryph_clientruntime.config.reader import ConfigStoresReader
from eryph_clientruntime.environment import Environment
from eryph_clientruntime.local_instance import LocalInstanceInfo

logger = logging.getLogger(__name__)


def create_credentials_lookup(
    config_name: str | None = None,
    *,
    client_id: str | None = None,
    environment: Environment | None = None,
) -> ClientCredentialsLookup:
    """Create a lookup bound to ``config_name`` (None means auto-discovery)."""
    reader = ConfigStoresReader(environment if environment is not None else Environment())
    return ClientCredentialsLookup(reader, config_name, client_id=client_id)


def credentials_available(
    config_name: str | None = None,
    *,
    client_id: str | None = None,
    environment: Environment | None = None,
) -> bool:
    """Return True if a client identity with secret material can be resolved."""
    try:
        create_credentials_lookup(config_name, client_id=client_id, environment=environment).find_credentials()
    except (ClientRuntimeError, OSError, ValueError) as e:
        logger.debug(f"Credentials not available for '{config_name}': {e}")
        return False
    return True


def zero_running(*, identity_provider_name: str = "zero", environment: Environment | None = None) -> bool:
    """Return True if the local instance's lock file names a live process."""
    try:
        return LocalInstanceInfo(environment, identity_provider_name).is_running()
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot determine whether '{identity_provider_name}' is running: {e}")
        return False


def zero_endpoints(
    *, identity_provider_name: str = "zero", environment: Environment | None = None
) -> dict[str, str]:
    """Endpoint name -> URL published by the running local instance, or ``{}``."""
    try:
        return LocalInstanceInfo(environment, identity_provider_name).endpoints()
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot read endpoints of '{identity_provider_name}': {e}")
        return {}
