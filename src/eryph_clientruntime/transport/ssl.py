"""TLS policy for token and API requests.

eryph-zero serves a self-signed certificate by default, so callers often
need to point at a custom CA bundle or switch verification off for local
development. Recognized ``ssl_config`` keys:

- ``verify_ssl`` (bool, default True)
- ``verify_hostname`` (bool, default True)
- ``ca_file`` (path to a PEM CA bundle)
- ``client_cert`` / ``client_key`` (paths to a client certificate and key)
"""

import logging
import os
import ssl
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SSLConfig:
    """TLS verification settings handed to httpx."""

    verify_ssl: bool = True
    verify_hostname: bool = True
    ca_file: str | None = None
    client_cert: str | None = None
    client_key: str | None = None

    KNOWN_KEYS = frozenset(["verify_ssl", "verify_hostname", "ca_file", "client_cert", "client_key"])

    @classmethod
    def from_mapping(cls, ssl_config: "Mapping[str, Any] | SSLConfig | None") -> "SSLConfig":
        """Build an :class:`SSLConfig` from caller options.

        Unknown keys are ignored with a warning.
        """
        if ssl_config is None:
            return cls()
        if isinstance(ssl_config, SSLConfig):
            return ssl_config

        unknown = set(ssl_config) - cls.KNOWN_KEYS
        if unknown:
            logger.warning(f"Ignoring unknown ssl_config keys: {sorted(unknown)}")

        def _path(key: str) -> str | None:
            value = ssl_config.get(key)
            return os.path.expanduser(os.fspath(value)) if value else None

        return cls(
            verify_ssl=bool(ssl_config.get("verify_ssl", True)),
            verify_hostname=bool(ssl_config.get("verify_hostname", True)),
            ca_file=_path("ca_file"),
            client_cert=_path("client_cert"),
            client_key=_path("client_key"),
        )


def create_ssl_context(config: SSLConfig) -> ssl.SSLContext:
    """Create an :class:`ssl.SSLContext` implementing ``config``.

    Raises:
        OSError: If a configured certificate file cannot be loaded.
    """
    context = ssl.create_default_context(cafile=config.ca_file)

    if not config.verify_ssl:
        logger.warning("TLS certificate verification is disabled")
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    elif not config.verify_hostname:
        context.check_hostname = False

    if config.client_cert:
        context.load_cert_chain(certfile=config.client_cert, keyfile=config.client_key)

    return context
