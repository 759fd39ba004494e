"""Configuration manager for loading and validating .portal-client.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from portal_client.domain.config import (
    ApiConfig,
    AppConfig,
    DiagnosticsConfig,
    RetryConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".portal-client.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .portal-client.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .portal-client.yml file (searched from current directory)
    3. Environment variables (PORTAL_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "api": {
            "base_url": None,
            "mode": "development",
            "origin": "http://localhost:8080",
            "timeout": 10.0,
        },
        "retry": {
            "max_attempts": 3,
            "initial_delay": 1.0,
        },
        "diagnostics": {
            "health_path": "/api/ping",
            "login_path": "/api/auth/login",
            "timeout": 8.0,
        },
    }

    # Environment variable -> (section, key)
    ENV_OVERRIDES = {
        "PORTAL_API_BASE_URL": ("api", "base_url"),
        "PORTAL_MODE": ("api", "mode"),
        "PORTAL_API_ORIGIN": ("api", "origin"),
        "PORTAL_API_TIMEOUT": ("api", "timeout"),
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .portal-client.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .portal-client.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except yaml.YAMLError as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply PORTAL_* environment variable overrides"""
        for env_name, (section, key) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                config[section][key] = value
        return config

    def get_api_config(self) -> ApiConfig:
        return self.config.api

    def get_retry_config(self) -> RetryConfig:
        return self.config.retry

    def get_diagnostics_config(self) -> DiagnosticsConfig:
        return self.config.diagnostics

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "api.mode" or "api")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
