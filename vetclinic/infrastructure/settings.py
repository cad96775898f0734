"""Application Settings and Configuration.

Combines the validated configuration from the configuration manager with
application defaults.
"""

from pathlib import Path
from typing import Optional

from vetclinic.infrastructure.config_manager import (
    ConfigManager,
    LoggingConfig,
    StorageConfig,
)

# Application metadata
APP_NAME = "Acme Veterinary Hospital Management Suite"
APP_VERSION = "1.0.0"


class Settings:
    """Application settings loaded lazily from the environment."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize settings.

        Parameters:
            config_manager: Source of configuration (environment when None)
        """
        self._config_manager = config_manager
        self._storage_config: Optional[StorageConfig] = None
        self._logging_config: Optional[LoggingConfig] = None
        self.app_name = APP_NAME
        self.app_version = APP_VERSION

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager

    @property
    def storage_config(self) -> StorageConfig:
        """Storage configuration, loaded on first access."""
        if self._storage_config is None:
            self._storage_config = self.config_manager.get_storage_config()
        return self._storage_config

    @property
    def logging_config(self) -> LoggingConfig:
        if self._logging_config is None:
            self._logging_config = self.config_manager.get_logging_config()
        return self._logging_config

    @property
    def data_file(self) -> Path:
        return self.storage_config.path

    @property
    def encoding(self) -> str:
        return self.storage_config.encoding

    @property
    def log_level(self) -> str:
        return self.logging_config.log_level


# Global settings instance
settings = Settings()
