"""Loading of client secret material referenced by configuration files.

A client entry may name an environment variable holding its secret
(``secretEnv``) or point at a PEM key file (``keyFile``). Environment
variables are looked up after a ``.env`` file has been loaded once, so
secrets can live next to the project instead of in the shell profile.

Example:
    ```python
    from eryph_clientruntime.auth import CredentialResolver

    resolver = CredentialResolver()

    secret = resolver.resolve_env("ERYPH_CLIENT_SECRET")
    key = resolver.read_key_file("~/.eryph/private/client-a.key", required=True)
    ```

Values are never logged; log records name the source only.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv

from eryph_clientruntime.auth.exceptions import CredentialFileError, CredentialsNotFoundError

logger = logging.getLogger(__name__)

FileReader = Callable[[str], str | None]


def _read_local_file(path: str) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        return None


def expand_path(path: str, base_dir: str | None = None) -> str:
    """Expand ``~`` and ``$VAR``; relative paths are taken relative to ``base_dir``."""
    expanded = os.path.expanduser(os.path.expandvars(path))
    if base_dir and not os.path.isabs(expanded):
        expanded = os.path.join(base_dir, expanded)
    return expanded


class CredentialResolver:
    """Resolve ``secretEnv`` and ``keyFile`` references.

    Args:
        dotenv_path: ``.env`` file to load. None lets python-dotenv search
            the working directory and its parents.
        load_dotenv: Set to False to only consult ``os.environ``.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        self._dotenv_path = dotenv_path
        self._dotenv_loaded = not load_dotenv
        self._dotenv_lock = Lock()

    @property
    def dotenv_loaded(self) -> bool:
        return self._dotenv_loaded

    def _ensure_dotenv_loaded(self) -> None:
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return
            try:
                if load_dotenv(dotenv_path=self._dotenv_path):
                    logger.debug("Loaded .env file for secret resolution")
            except OSError as e:
                logger.warning(f"Failed to load .env file: {e}")
            # Attempted once, successful or not
            self._dotenv_loaded = True

    def resolve_env(self, env_var_name: str, *, required: bool = False) -> str | None:
        """Value of ``env_var_name`` from the environment or the ``.env`` file.

        Existing environment variables win over ``.env`` entries. An empty
        value counts as set.

        Raises:
            CredentialsNotFoundError: If ``required`` and the variable is not set.
        """
        self._ensure_dotenv_loaded()
        value = os.environ.get(env_var_name)
        if value is None:
            if required:
                raise CredentialsNotFoundError(
                    f"Environment variable '{env_var_name}' is not set", env_var_name=env_var_name
                )
            logger.debug(f"Environment variable '{env_var_name}' is not set")
            return None

        logger.debug(f"Resolved secret from environment variable '{env_var_name}' (***)")
        return value

    def read_key_file(
        self,
        path: str | Path,
        *,
        base_dir: str | None = None,
        required: bool = False,
        read_file: FileReader | None = None,
    ) -> str | None:
        """Read a key file, stripped of surrounding whitespace.

        Args:
            path: Key file path; ``~`` and ``$VAR`` are expanded.
            base_dir: Directory for relative paths, usually the store path.
            required: Raise instead of returning None when the file is
                missing, empty or unreadable.
            read_file: Reader returning the content or None, typically
                :meth:`Environment.read_file`. Defaults to the local filesystem.

        Raises:
            CredentialFileError: If ``required`` and the file cannot be read.
        """
        expanded = expand_path(str(path), base_dir)
        reader = read_file if read_file is not None else _read_local_file

        try:
            content = reader(expanded)
        except OSError as e:
            message = f"Cannot read key file {expanded}: {e}"
            if required:
                raise CredentialFileError(message) from e
            logger.warning(message)
            return None

        if content is None or not content.strip():
            message = f"Key file not found or empty: {expanded}"
            if required:
                raise CredentialFileError(message)
            logger.debug(message)
            return None

        logger.debug(f"Resolved key from file {expanded} (***)")
        return content.strip()
