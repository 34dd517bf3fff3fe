"""Configuration management service"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from ..api.exceptions import ConfigError
from ..constants import DEFAULT_CONFIG_FILE, ENV_CONFIG_PATH
from ..models.config import ShipyardConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Loads and validates the shipyard configuration file"""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config service

        Args:
            config_path: Explicit configuration file; defaults to
                ``$SHIPYARD_CONFIG`` or ``.shipyard.yaml`` in the working directory
        """
        if config_path is None:
            env_path = os.environ.get(ENV_CONFIG_PATH)
            config_path = Path(env_path) if env_path else Path.cwd() / DEFAULT_CONFIG_FILE
        self.config_path = Path(config_path).expanduser()
        self._config: Optional[ShipyardConfig] = None

    @property
    def exists(self) -> bool:
        return self.config_path.is_file()

    @property
    def config(self) -> ShipyardConfig:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> ShipyardConfig:
        """Load configuration from file

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        if not self.exists:
            raise ConfigError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            content = f.read()

        # Simple environment variable expansion
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}")

        self._config = ShipyardConfig.from_dict(data)
        self._config.state_file = str(self._resolve(self._config.state_file))

        logger.debug(f"Loaded {len(self._config.applications)} applications from {self.config_path}")
        return self._config

    def _resolve(self, path: str) -> Path:
        """Resolve a path relative to the configuration file"""
        resolved = Path(path).expanduser()
        if not resolved.is_absolute():
            resolved = self.config_path.parent / resolved
        return resolved
