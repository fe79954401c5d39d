"""Discovery of locally running eryph instances (eryph-zero).

A running instance publishes a lock file at
``<application data>/eryph/<name>/.lock``::

    {"processName": "eryph-zero", "processId": 4242,
     "endpoints": {"identity": "https://localhost:8080/identity",
                   "compute": "https://localhost:8080/compute"}}

The instance only counts as running while that process is alive. This
module never contacts the instance over the network.
"""

import json
import logging
import os
from typing import Any

import httpx

from eryph_clientruntime.environment import Environment

logger = logging.getLogger(__name__)

LOCK_FILE = ".lock"
SYSTEM_CLIENT_ID = "system-client"


class LocalInstanceInfo:
    """Read-only view of a local instance's lock file.

    Args:
        environment: Environment used for file and process access.
        identity_provider_name: Instance name, ``zero`` or ``local``.
    """

    def __init__(self, environment: Environment | None = None, identity_provider_name: str = "zero"):
        self.environment = environment if environment is not None else Environment()
        self.identity_provider_name = identity_provider_name

    @property
    def instance_path(self) -> str:
        return os.path.join(self.environment.application_data_path(), self.identity_provider_name)

    @property
    def lock_file_path(self) -> str:
        return os.path.join(self.instance_path, LOCK_FILE)

    @property
    def system_client_key_path(self) -> str:
        return os.path.join(self.instance_path, "private", "clients", f"{SYSTEM_CLIENT_ID}.key")

    def metadata(self) -> dict[str, Any]:
        """Parsed lock file, or an empty dict if missing or invalid."""
        if not self.environment.file_exists(self.lock_file_path):
            return {}
        content = self.environment.read_file(self.lock_file_path)
        if content is None:
            return {}
        try:
            data = json.loads(content.lstrip("\ufeff"))
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring invalid lock file {self.lock_file_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def is_running(self) -> bool:
        metadata = self.metadata()
        process_name = metadata.get("processName")
        process_id = metadata.get("processId")
        if not isinstance(process_name, str) or not process_name:
            return False
        if not isinstance(process_id, int) or isinstance(process_id, bool) or process_id <= 0:
            return False

        running = self.environment.is_process_running(process_name, process_id)
        logger.debug(f"Local instance '{self.identity_provider_name}' (pid {process_id}) running: {running}")
        return running

    def endpoints(self) -> dict[str, str]:
        """Endpoint name -> URL published by the running instance.

        Returns an empty dict when the instance is not running. Entries that
        are not absolute URLs are skipped.
        """
        if not self.is_running():
            return {}

        endpoints_data = self.metadata().get("endpoints")
        if not isinstance(endpoints_data, dict):
            return {}

        result = {}
        for name, value in endpoints_data.items():
            try:
                url = httpx.URL(str(value))
            except httpx.InvalidURL:
                logger.debug(f"Skipping invalid endpoint URL for '{name}': {value!r}")
                continue
            if not url.is_absolute_url:
                logger.debug(f"Skipping relative endpoint URL for '{name}': {value!r}")
                continue
            result[name] = str(value)
        return result

    def system_client_private_key(self) -> str | None:
        """PEM key of the instance's system client, if readable.

        Keys protected with Windows DPAPI are not decrypted; only PEM files
        are returned.
        """
        if not self.environment.file_exists(self.system_client_key_path):
            return None
        content = self.environment.read_file(self.system_client_key_path)
        if content is None or "-----BEGIN" not in content:
            logger.debug(f"System client key at {self.system_client_key_path} is not a PEM key")
            return None
        return content
