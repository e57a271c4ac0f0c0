"""
Configuration management for quadmath.

Configuration is layered: built-in defaults, then environment variables,
then explicit overrides (from a file or the command line), then values
inferred from the others.
"""

import os
import json
import logging
import threading
from copy import deepcopy
from typing import Any, Dict, Optional

import yaml

from quadmath.math.corr import SHORTLIST_SIZE, SIGNIFICANCE_THRESHOLD
from quadmath.math.layout import COLLISION_THRESHOLD, SPOKE_RADIUS
from quadmath.models import NEUTRAL_VALUE
from quadmath.utils.general import deep_update

# Set up logging
logger = logging.getLogger(__name__)


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def _env(name: str, convert, current: Any) -> Any:
    """Environment value converted, falling back to the current value."""
    converted = convert(os.environ.get(name))
    return current if converted is None else converted


class Config:
    """
    Configuration manager for quadmath.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = self._get_defaults()
            config = self._apply_env_vars(config)

            if overrides:
                config = self._apply_overrides(config, overrides)

            config = self._apply_inferred_values(config)

            self._config = config
            self._initialized = True

            logger.info("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # Server
            'server': {
                'port': 8080,
                'host': 'localhost'
            },

            # Database; no url means the in-memory store
            'database': {
                'url': None,
                'pool-size': 5,
                'max-overflow': 10
            },

            # Quads
            'quads': {
                'data-dir': None,
                'max-players': 500
            },

            # Analytics constants
            'analytics': {
                'neutral-value': NEUTRAL_VALUE,
                'correlation-threshold': SIGNIFICANCE_THRESHOLD,
                'shortlist-size': SHORTLIST_SIZE,
                'collision-threshold': COLLISION_THRESHOLD,
                'spoke-radius': SPOKE_RADIUS
            },

            # Logging
            'logging': {
                'level': 'warn'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        # Server
        config['server']['port'] = _env('PORT', to_int, config['server']['port'])
        config['server']['host'] = os.environ.get('HOST', config['server']['host'])

        # Database
        config['database']['url'] = os.environ.get('DATABASE_URL', config['database']['url'])
        config['database']['pool-size'] = _env('DATABASE_POOL_SIZE', to_int, config['database']['pool-size'])
        config['database']['max-overflow'] = _env('DATABASE_MAX_OVERFLOW', to_int, config['database']['max-overflow'])

        # Quads
        config['quads']['data-dir'] = os.environ.get('QUADS_DATA_DIR', config['quads']['data-dir'])
        config['quads']['max-players'] = _env('QUADS_MAX_PLAYERS', to_int, config['quads']['max-players'])

        # Logging
        config['logging']['level'] = os.environ.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        return deep_update(deepcopy(config), deepcopy(overrides))

    def _apply_inferred_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply inferred configuration values.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        config['server-url'] = f"http://{config['server']['host']}:{config['server']['port']}"
        config['database']['enabled'] = bool(config['database'].get('url'))

        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        value = self._config
        for component in path.split('.'):
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            components = path.split('.')
            config = self._config
            for component in components[:-1]:
                if component not in config:
                    config[component] = {}
                config = config[component]

            config[components[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration (.json, .yaml or .yml)
        """
        if not self._initialized:
            self.load_config()

        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration overrides from a file.

        Args:
            filepath: Path to load configuration from (.json, .yaml or .yml)
        """
        self.load_config(load_config_file(filepath))


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Read a JSON or YAML configuration file.

    Args:
        filepath: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f)
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported configuration file format: {filepath}")


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """
        Drop the configuration instance.
        """
        with cls._lock:
            cls._instance = None
