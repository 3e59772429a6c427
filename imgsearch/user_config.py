"""
User configuration management for the image similarity search.

Supports configuration from multiple sources (in order of priority):
1. Runtime parameters (highest priority)
2. Environment variables
3. User config file (~/.imgsearch/config.json)
4. Default values from config.py (lowest priority)

Example config.json:
{
    "database_path": "database.txt",
    "images_dir": "images",
    "hash_algorithm": "phash",
    "max_in_flight": 64,
    "sample_size": 30000,
    "fetch_timeout": 10.0,
    "port": 8080
}
"""

import json
import os
from pathlib import Path
from typing import Any, Optional
import logging

from .config import (
    CONFIG_DIR,
    DEFAULT_DATABASE_PATH,
    DEFAULT_IMAGES_DIR,
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_MAX_IN_FLIGHT,
    DEFAULT_SAMPLE_SIZE,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_PORT,
)

logger = logging.getLogger(__name__)


class UserConfig:
    """
    Manages user configuration from file and environment variables.

    The config file is loaded lazily and cached until reload().
    """

    _instance: Optional['UserConfig'] = None
    _config_data: Optional[dict] = None

    def __new__(cls):
        """Singleton pattern to ensure one config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        env_dir = os.getenv('IMGSEARCH_CONFIG_DIR')
        if env_dir:
            return Path(env_dir)
        return Path(CONFIG_DIR)

    @property
    def config_file_path(self) -> Path:
        """Get the configuration file path."""
        return self.config_dir / 'config.json'

    def _load_config_file(self) -> dict:
        """Load configuration from JSON file."""
        if not self.config_file_path.exists():
            return {}

        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                logger.debug(f"Loaded configuration from {self.config_file_path}")
                return data
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load config file {self.config_file_path}: {e}")
            return {}

    def _get_config_data(self) -> dict:
        """Get cached config data (lazy loading)."""
        if self._config_data is None:
            self._config_data = self._load_config_file()
        return self._config_data

    def reload(self):
        """Reload configuration from file."""
        self._config_data = None

    def get(self, key: str, default: Any = None, env_var: Optional[str] = None) -> Any:
        """
        Get a configuration value with priority:
        1. Environment variable (if env_var specified)
        2. Config file
        3. Default value

        Args:
            key: Configuration key
            default: Default value if not found
            env_var: Optional environment variable name to check

        Returns:
            Configuration value
        """
        if env_var:
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Try to parse as JSON for numbers and booleans
                try:
                    return json.loads(env_value)
                except (json.JSONDecodeError, TypeError):
                    return env_value

        config_data = self._get_config_data()
        if key in config_data and config_data[key] is not None:
            return config_data[key]

        return default

    @property
    def database_path(self) -> str:
        """Path to the fingerprint database file."""
        return str(self.get('database_path', DEFAULT_DATABASE_PATH, 'IMGSEARCH_DATABASE'))

    @property
    def images_dir(self) -> str:
        """Folder indexed when the database file is missing."""
        return str(self.get('images_dir', DEFAULT_IMAGES_DIR, 'IMGSEARCH_IMAGES_DIR'))

    @property
    def hash_algorithm(self) -> str:
        """Fingerprint algorithm name."""
        return str(self.get('hash_algorithm', DEFAULT_HASH_ALGORITHM, 'IMGSEARCH_HASH_ALGORITHM'))

    @property
    def max_in_flight(self) -> int:
        """Maximum concurrent indexing tasks."""
        return int(self.get('max_in_flight', DEFAULT_MAX_IN_FLIGHT, 'IMGSEARCH_MAX_IN_FLIGHT'))

    @property
    def sample_size(self) -> int:
        """Number of references sampled from a reference list."""
        return int(self.get('sample_size', DEFAULT_SAMPLE_SIZE, 'IMGSEARCH_SAMPLE_SIZE'))

    @property
    def fetch_timeout(self) -> float:
        """Seconds before a remote fetch is abandoned."""
        return float(self.get('fetch_timeout', DEFAULT_FETCH_TIMEOUT, 'IMGSEARCH_FETCH_TIMEOUT'))

    @property
    def port(self) -> int:
        """Port for the web API."""
        return int(self.get('port', DEFAULT_PORT, 'IMGSEARCH_PORT'))

    def as_dict(self) -> dict:
        """Current effective settings."""
        return {
            'database_path': self.database_path,
            'images_dir': self.images_dir,
            'hash_algorithm': self.hash_algorithm,
            'max_in_flight': self.max_in_flight,
            'sample_size': self.sample_size,
            'fetch_timeout': self.fetch_timeout,
            'port': self.port,
        }

    def create_example_config(self) -> bool:
        """Create an example configuration file."""
        example_config = {
            "_comment": "imgsearch user configuration",
            "database_path": DEFAULT_DATABASE_PATH,
            "images_dir": DEFAULT_IMAGES_DIR,
            "hash_algorithm": DEFAULT_HASH_ALGORITHM,
            "max_in_flight": DEFAULT_MAX_IN_FLIGHT,
            "sample_size": DEFAULT_SAMPLE_SIZE,
            "fetch_timeout": DEFAULT_FETCH_TIMEOUT,
            "port": DEFAULT_PORT,
        }

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(example_config, f, indent=2)
            logger.info(f"Created example config file at {self.config_file_path}")
            return True
        except OSError as e:
            logger.error(f"Failed to create example config: {e}")
            return False


# Global instance
_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the global UserConfig instance."""
    return _user_config
