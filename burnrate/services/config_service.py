"""Configuration loading.

Reads config.yaml, applies environment overrides and validates the result
against AppConfig.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from burnrate.models.config import AppConfig

logger = logging.getLogger(__name__)

CLAUDE_DIR_ENV = "CLAUDE_BURNRATE_DIR"


class ConfigService:
    """Loads, caches and saves the application configuration.

    A missing file yields defaults. A file that cannot be parsed or fails
    validation also yields defaults, with a warning.
    """

    def __init__(self, config_path: str | Path = "config.yaml"):
        """Initialize the config service.

        Args:
            config_path: Path to the config file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load and validate configuration.

        Returns:
            Validated AppConfig instance.
        """
        raw = self._read_raw()

        env_dir = os.environ.get(CLAUDE_DIR_ENV)
        if env_dir:
            raw["claude_dir"] = env_dir

        try:
            self._config = AppConfig(**raw)
        except ValidationError as e:
            logger.warning(f"Config validation error: {e}, using defaults")
            self._config = AppConfig(**({"claude_dir": env_dir} if env_dir else {}))

        return self._config

    def _read_raw(self) -> dict:
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return {}

        try:
            with open(self.config_path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error reading config file: {e}, using defaults")
            return {}

        if not isinstance(raw, dict):
            logger.warning(f"Config file {self.config_path} is not a mapping, using defaults")
            return {}
        return raw

    def get_config(self) -> AppConfig:
        """Get the current configuration.

        Loads from disk if not already loaded.
        """
        if self._config is None:
            return self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Force reload configuration from disk."""
        self._config = None
        return self.load()

    def save(self, config: AppConfig | None = None) -> bool:
        """Save configuration to disk.

        Args:
            config: Config to save. Uses current config if not provided.

        Returns:
            True if save succeeded.
        """
        config = config or self._config
        if config is None:
            return False

        try:
            with open(self.config_path, "w") as f:
                yaml.dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False


_config_service: ConfigService | None = None


def get_config_service(config_path: str | Path = "config.yaml") -> ConfigService:
    """Get the global config service instance.

    Args:
        config_path: Path to config file (only used on first call).
    """
    global _config_service
    if _config_service is None:
        _config_service = ConfigService(config_path)
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (for testing)."""
    global _config_service
    _config_service = None
