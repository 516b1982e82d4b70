"""Device configuration store.

One JSON file per device root, next to the manifest. The engine reads and
writes it but never deletes it on its own; ``delete`` exists for when the
user drops the device association.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..models.models import DeviceConfig
from .errors import DeviceConfigError
from .manifest import write_json_atomic

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".ormimu_device.json"


class DeviceConfigStore:
    """Reads and writes the sync policy of one device root."""

    def __init__(self, device_root: str | Path):
        """Initialize store.

        Args:
            device_root: Root folder of the mounted device
        """
        self.device_root = Path(device_root)
        self.config_file = self.device_root / CONFIG_FILENAME

    def exists(self) -> bool:
        """Check if the device has a stored configuration."""
        return self.config_file.exists()

    def load(self) -> Optional[DeviceConfig]:
        """Load the device configuration.

        Returns:
            DeviceConfig, None if the device has none, or a default config
            if the stored one cannot be read
        """
        if not self.config_file.exists():
            return None

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return DeviceConfig.model_validate(data)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Cannot read device config %s: %s", self.config_file, e)
        except ValidationError as e:
            logger.warning("Invalid device config %s: %s", self.config_file, e)

        return DeviceConfig(alias=self.device_root.name)

    def load_or_create(self, default_alias: Optional[str] = None) -> DeviceConfig:
        """Load the configuration, creating and saving a default one if absent.

        Args:
            default_alias: Alias for a new configuration (defaults to the
                device folder name)

        Returns:
            DeviceConfig for this device
        """
        config = self.load()
        if config is not None:
            return config

        config = DeviceConfig(alias=default_alias or self.device_root.name)
        self.save(config)
        logger.info("Created device config for %s", self.device_root)
        return config

    def save(self, config: DeviceConfig) -> None:
        """Save the configuration atomically.

        Args:
            config: Configuration to persist

        Raises:
            DeviceConfigError: If the file cannot be written
        """
        if not self.device_root.is_dir():
            raise DeviceConfigError(
                f"Device root is not available: {self.device_root}"
            )

        try:
            write_json_atomic(self.config_file, config.model_dump(mode="json"))
        except OSError as e:
            logger.error("Error saving device config %s: %s", self.config_file, e)
            raise DeviceConfigError(f"Cannot save device config: {e}") from e

        logger.debug("Saved device config for %s", self.device_root)

    def delete(self) -> bool:
        """Remove the device association. Returns True if a file was deleted."""
        if not self.config_file.exists():
            return False
        self.config_file.unlink()
        logger.info("Removed device config from %s", self.device_root)
        return True
