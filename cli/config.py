"""Configuration management for the streamload CLI."""

import json
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

from common.constants import (
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_FORMAT,
    DEFAULT_INSERT_THREADS,
    DEFAULT_KEEPALIVE_SECONDS,
    DEFAULT_TOTAL_TIMEOUT_SECONDS,
)
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.streamload' / 'config.json'

# Environment variable -> option name
ENV_OVERRIDES = {
    'STREAMLOAD_USER': 'user',
    'STREAMLOAD_PASSWORD': 'password',
    'STREAMLOAD_THREADS': 'threads',
    'STREAMLOAD_FORMAT': 'format',
    'STREAMLOAD_CHUNK_SIZE': 'chunk_size',
    'STREAMLOAD_CONNECT_TIMEOUT': 'connect_timeout',
    'STREAMLOAD_TIMEOUT': 'timeout',
    'STREAMLOAD_KEEP_ALIVE': 'keep_alive',
}


class Config:
    """Option defaults read from a JSON file and the environment."""

    DEFAULT_CONFIG = {
        "format": DEFAULT_FORMAT,
        "threads": DEFAULT_INSERT_THREADS,
        "chunk_size": DEFAULT_CHUNK_SIZE_BYTES,
        "connect_timeout": DEFAULT_CONNECT_TIMEOUT_SECONDS,
        "timeout": DEFAULT_TOTAL_TIMEOUT_SECONDS,
        "keep_alive": DEFAULT_KEEPALIVE_SECONDS,
    }

    def __init__(self, config_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config JSON file (defaults to ~/.streamload/config.json)
            environ: Environment mapping (defaults to os.environ)
        """
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.environ = os.environ if environ is None else environ
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, falling back to defaults.

        A file that cannot be parsed is copied to ``config.json.bak`` and
        ignored.

        Returns:
            Configuration dictionary
        """
        config = self.DEFAULT_CONFIG.copy()
        if not self.config_path.exists():
            return config

        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            backup_path = self.config_path.with_suffix('.json.bak')
            logger.warning(f"Ignoring unreadable config {self.config_path}: {e} (backup: {backup_path})")
            shutil.copy(self.config_path, backup_path)
            return config

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config {self.config_path}: top level must be an object")
            return config

        config.update(data)
        return config

    def env_overrides(self) -> Dict[str, str]:
        """
        Option values taken from STREAMLOAD_* environment variables.

        Returns:
            Option name to raw string value
        """
        return {
            option: self.environ[var]
            for var, option in ENV_OVERRIDES.items()
            if self.environ.get(var)
        }

    def resolve(self, cli_values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge option sources: defaults < config file < environment < command line.

        Args:
            cli_values: Values from the command line; None means not given

        Returns:
            Raw option mapping for validation
        """
        merged: Dict[str, Any] = dict(self.data)
        merged.update(self.env_overrides())
        merged.update({k: v for k, v in cli_values.items() if v is not None})
        return merged
