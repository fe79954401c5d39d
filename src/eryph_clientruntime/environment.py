"""Operating system facts needed to locate eryph configuration.

Everything that touches the platform, the filesystem or the process table
goes through :class:`Environment`, so the resolution logic can be exercised
against :class:`eryph_clientruntime.testing.FakeEnvironment` instead.

All queries are read-only. Filesystem and process errors surface as
"absent" (``False``, ``None`` or an empty list) rather than exceptions.
"""

import logging
import os
import subprocess
import sys
from enum import Enum

logger = logging.getLogger(__name__)


class ConfigStoreLocation(str, Enum):
    """Scopes that may hold configuration, in priority order."""

    CURRENT_DIRECTORY = "current_directory"
    USER = "user"
    SYSTEM = "system"

    @classmethod
    def in_priority_order(cls) -> tuple["ConfigStoreLocation", ...]:
        return (cls.CURRENT_DIRECTORY, cls.USER, cls.SYSTEM)


class Environment:
    """Real environment backed by the local machine."""

    def is_windows(self) -> bool:
        return sys.platform.startswith(("win32", "cygwin"))

    def is_linux(self) -> bool:
        return sys.platform.startswith("linux")

    def is_macos(self) -> bool:
        return sys.platform == "darwin"

    def is_admin_user(self) -> bool:
        """Return True when running as Administrator (Windows) or root."""
        if self.is_windows():
            try:
                import ctypes

                return bool(ctypes.windll.shell32.IsUserAnAdmin())
            except (AttributeError, OSError):
                return False
        return os.geteuid() == 0

    def current_directory(self) -> str:
        return os.getcwd()

    def path_for(self, location: ConfigStoreLocation) -> str:
        """Return the base directory of a configuration store scope.

        Raises:
            ValueError: If ``location`` is not a known scope.
        """
        if location == ConfigStoreLocation.CURRENT_DIRECTORY:
            return self.current_directory()
        if location == ConfigStoreLocation.USER:
            return self._user_config_path()
        if location == ConfigStoreLocation.SYSTEM:
            return self._system_config_path()
        raise ValueError(f"Unknown configuration store location: {location!r}")

    def application_data_path(self) -> str:
        """Directory where locally running eryph services keep their state."""
        if self.is_windows():
            base = os.environ.get("PROGRAMDATA") or "C:/ProgramData"
        else:
            base = "/var/lib"
        return os.path.join(base, "eryph")

    def file_exists(self, path: str) -> bool:
        try:
            return os.path.isfile(path)
        except (OSError, ValueError):
            return False

    def read_file(self, path: str) -> str | None:
        """Read a text file, returning None if it cannot be read."""
        try:
            with open(path, encoding="utf-8-sig") as handle:
                return handle.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Cannot read {path}: {e}")
            return None

    def list_files(self, directory: str) -> list[str]:
        """List the names of regular files in ``directory``, sorted."""
        try:
            with os.scandir(directory) as entries:
                return sorted(entry.name for entry in entries if entry.is_file())
        except OSError:
            return []

    def is_process_running(self, process_name: str, process_id: int) -> bool:
        """Check that ``process_id`` is alive and looks like ``process_name``."""
        if process_id <= 0:
            return False
        if self.is_windows():
            return self._windows_process_running(process_id)

        proc_dir = f"/proc/{process_id}"
        if os.path.isdir("/proc"):
            if not os.path.isdir(proc_dir):
                return False
            try:
                with open(f"{proc_dir}/cmdline", "rb") as handle:
                    cmdline = handle.read().decode("utf-8", errors="replace")
            except OSError:
                return False
            return process_name in cmdline

        try:
            os.kill(process_id, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Exists but belongs to another user
            return True
        except OSError:
            return False
        return True

    def _windows_process_running(self, process_id: int) -> bool:
        try:
            result = subprocess.run(
                ["tasklist", "/FI", f"PID eq {process_id}", "/NH", "/FO", "CSV"],
                capture_output=True,
                text=True,
                timeout=10,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Cannot query process {process_id}: {e}")
            return False
        return f'"{process_id}"' in result.stdout

    def _user_config_path(self) -> str:
        if self.is_windows():
            return os.environ.get("APPDATA") or os.path.expanduser("~/AppData/Roaming")
        return os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")

    def _system_config_path(self) -> str:
        if self.is_windows():
            return os.environ.get("PROGRAMDATA") or "C:/ProgramData"
        return "/etc"
