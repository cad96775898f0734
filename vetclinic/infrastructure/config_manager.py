"""Configuration Manager for the clinic data file and logging.

Loads configuration from environment variables (optionally seeded from a
`.env` file) and validates it through Pydantic models
before anything touches the filesystem.

Architecture:
    - Infrastructure layer; the domain never reads configuration
    - Type-safe configuration using Pydantic models
    - Fail-fast validation
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "HospitalManagement.txt"
DEFAULT_ENCODING = "utf-8"


class StorageConfig(BaseModel):
    """Where the registry snapshot lives on disk.

    Parameters:
        data_file: Path to the snapshot text file
        encoding: Text encoding used to read and write the file
    """

    data_file: str = Field(default=DEFAULT_DATA_FILE, description="Path to the snapshot file")
    encoding: str = Field(default=DEFAULT_ENCODING, description="File text encoding")

    @field_validator("data_file")
    @classmethod
    def validate_data_file(cls, v: str) -> str:
        """Reject blank paths and paths that point at a directory."""
        if not v or not v.strip():
            raise ValueError("Data file path must not be empty")
        path = Path(v).expanduser()
        if path.is_dir():
            raise ValueError(f"Data file path is a directory: {path}")
        return str(path)

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Only accept encodings Python knows about."""
        import codecs

        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown text encoding: {v}")
        return v

    @property
    def path(self) -> Path:
        return Path(self.data_file)


class LoggingConfig(BaseModel):
    """Logging level and output format."""

    log_level: str = Field(default="INFO", description="Root logging level")
    use_json: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in levels:
            raise ValueError(f"Unsupported log level: {v}. Supported: {levels}")
        return v.upper()


class ConfigManager:
    """Configuration manager for storage and logging settings.

    Example Usage:
        ```python
        # Load from environment variables
        config = ConfigManager.from_environment()
        storage_config = config.get_storage_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        """Initialize configuration manager.

        Parameters:
            config_data: Configuration dictionary with "storage" and "logging" sections
        """
        self._config_data = config_data
        self._storage_config: Optional[StorageConfig] = None
        self._logging_config: Optional[LoggingConfig] = None

    @classmethod
    def from_environment(cls) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - VC_DATA_FILE: Snapshot file path (default: HospitalManagement.txt)
            - VC_ENCODING: Snapshot file encoding (default: utf-8)
            - VC_LOG_LEVEL: Logging level (default: INFO)
            - VC_LOG_JSON: "true" for JSON log lines (default: false)

        A `.env` file in the current working directory is loaded first if present;
        variables already set in the environment win.

        Returns:
            ConfigManager instance
        """
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")

        config_data = {
            "storage": {
                "data_file": os.getenv("VC_DATA_FILE", DEFAULT_DATA_FILE),
                "encoding": os.getenv("VC_ENCODING", DEFAULT_ENCODING),
            },
            "logging": {
                "log_level": os.getenv("VC_LOG_LEVEL", "INFO"),
                "use_json": os.getenv("VC_LOG_JSON", "false").lower() == "true",
            },
        }

        return cls(config_data)

    def get_storage_config(self) -> StorageConfig:
        """Get validated storage configuration."""
        if self._storage_config is None:
            self._storage_config = StorageConfig(**self._config_data.get("storage", {}))
        return self._storage_config

    def get_logging_config(self) -> LoggingConfig:
        """Get validated logging configuration."""
        if self._logging_config is None:
            self._logging_config = LoggingConfig(**self._config_data.get("logging", {}))
        return self._logging_config
