"""
Filesystem storage for the provider registry.

Stores the registry in $SWITCHBOARD_HOME/providers.json (default
~/.switchboard/providers.json). The file is overwritten wholesale on every
write and has no locking: concurrent writers lose updates.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from switchboard.core.config.settings import RegistryConfig, RegistrySettings
from switchboard.core.exceptions import StorageError

_logger = logging.getLogger(__name__)

FILE_PERMISSIONS = 0o600


class RegistryFileStorage:
    """JSON file storage for the raw registry document.

    The registry file is created with mode 0600 on Unix systems since it
    holds API keys.
    """

    def __init__(self, home_dir: str | Path | None = None) -> None:
        """Initialize file-based storage.

        Args:
            home_dir: Directory to store providers.json. Defaults to
                $SWITCHBOARD_HOME if set, ~/.switchboard otherwise.
        """
        if home_dir:
            config = RegistryConfig(home_dir=Path(home_dir).expanduser())
        else:
            config = RegistrySettings.load()

        self.home_dir = config.home_dir
        self.registry_file = config.registry_file

    def read(self) -> dict[str, Any] | None:
        """Read the registry document.

        Returns:
            The parsed document, or None if the file does not exist

        Raises:
            StorageError: If the file exists but cannot be read or parsed
        """
        try:
            with open(self.registry_file, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid provider registry in {self.registry_file}: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read provider registry: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(
                f"Invalid provider registry in {self.registry_file}: expected an object"
            )
        return data

    def write(self, data: dict[str, Any]) -> None:
        """Write the registry document, creating the directory if needed.

        Raises:
            StorageError: If the write fails due to I/O errors
        """
        try:
            self.home_dir.mkdir(parents=True, exist_ok=True)

            with open(self.registry_file, "w", encoding="utf-8") as f:
                if hasattr(os, "fchmod"):
                    os.fchmod(f.fileno(), FILE_PERMISSIONS)
                json.dump(data, f, indent=2)
        except OSError as e:
            _logger.error("Failed to write provider registry %s: %s", self.registry_file, e)
            raise StorageError(f"Cannot write provider registry: {e}") from e

    @property
    def path(self) -> str:
        return str(self.registry_file)
