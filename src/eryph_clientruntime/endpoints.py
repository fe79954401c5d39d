"""Endpoint URL lookup.

Endpoints come from the ``endpoints`` map of a named configuration. For the
local default instance (``zero``) endpoints that are not configured
explicitly are discovered from the instance's lock file.
"""

import logging

import httpx

from eryph_clientruntime.auth.exceptions import EndpointNotFoundError
from eryph_clientruntime.config.models import NamedConfiguration
from eryph_clientruntime.environment import Environment
from eryph_clientruntime.local_instance import LocalInstanceInfo

logger = logging.getLogger(__name__)


def derive_compute_endpoint(identity_url: str) -> str:
    """``https://host:port/identity`` -> ``https://host:port/compute``."""
    url = httpx.URL(identity_url)
    port = url.port or (443 if url.scheme == "https" else 80)
    # IPv6 literals need their brackets back in the authority
    host = f"[{url.host}]" if ":" in url.host else url.host
    return f"{url.scheme}://{host}:{port}/compute"


class EndpointLookup:
    """Resolve endpoint base URLs for a named configuration.

    Args:
        environment: Environment used to read the local instance lock file.
    """

    def __init__(self, environment: Environment | None = None):
        self.environment = environment if environment is not None else Environment()

    def get_endpoint(self, name: str, config: NamedConfiguration) -> str:
        """Return the base URL of endpoint ``name``.

        Explicit configuration entries take precedence over endpoints
        published by a running local instance.

        Raises:
            EndpointNotFoundError: If the endpoint is neither configured nor
                published by a running local instance.
        """
        url = self.find_endpoint(name, config)
        if url is None:
            raise EndpointNotFoundError(
                f"Endpoint '{name}' not found in configuration '{config.name}'",
                endpoint_name=name,
                config_name=config.name,
            )
        return url

    def find_endpoint(self, name: str, config: NamedConfiguration) -> str | None:
        url = config.endpoint(name)
        if url:
            logger.debug(f"Endpoint '{name}' of '{config.name}' from configuration: {url}")
            return url

        url = self.local_endpoints(config).get(name)
        if url:
            logger.debug(f"Endpoint '{name}' of '{config.name}' from local instance: {url}")
        return url

    def get_all_endpoints(self, config: NamedConfiguration) -> dict[str, str]:
        """All endpoints, configured entries overriding local ones."""
        return {**self.local_endpoints(config), **config.endpoint_map}

    def endpoint_exists(self, name: str, config: NamedConfiguration) -> bool:
        return self.find_endpoint(name, config) is not None

    def local_endpoints(self, config: NamedConfiguration) -> dict[str, str]:
        if not config.is_local_instance:
            return {}

        endpoints = LocalInstanceInfo(self.environment, config.name.lower()).endpoints()
        if not endpoints:
            return {}

        result = {}
        for name, url in endpoints.items():
            # Well-known names are normalized, others kept as published
            key = name.lower() if name.lower() in ("identity", "compute") else name
            result[key] = url
        if "identity" in result and "compute" not in result:
            result["compute"] = derive_compute_endpoint(result["identity"])
        return result
