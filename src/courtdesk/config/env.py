"""Environment variable handling for configuration."""

import os
from typing import Any

from courtdesk.config.types import GlobalConfig
from courtdesk.config.types import LoggingSettings


class EnvConfig:
    """Environment variable configuration."""

    # Mapping of environment variables to configuration paths
    ENV_MAPPING = {
        'COURTDESK_DATA_DIR': ('data_dir',),
        'COURTDESK_CURRENCY': ('currency',),
        'COURTDESK_BASE_RATE': ('base_hourly_rate',),
        'COURTDESK_LOG_LEVEL': ('logging', 'default_level'),
        'COURTDESK_LOG_FILE': ('logging', 'file'),
    }

    @staticmethod
    def get_env_value(env_var: str, default: Any | None = None) -> Any | None:
        """Get value from environment variable with default."""
        return os.getenv(env_var, default)

    @staticmethod
    def _set_nested_value(config: dict[str, Any], path: tuple, value: Any) -> None:
        """Set value in nested dictionary using path tuple."""
        current = config
        for part in path[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    @classmethod
    def update_config_from_env(cls, config: dict[str, Any]) -> None:
        """Update configuration dictionary with environment variables.

        Environment values win over the file so a deployment can override
        a checked-in config.yaml.
        """
        for env_var, path in cls.ENV_MAPPING.items():
            value = cls.get_env_value(env_var)
            if value is not None:
                cls._set_nested_value(config, path, value)

    @classmethod
    def get_logging_config(cls) -> LoggingSettings:
        """Get logging configuration from environment."""
        return {
            'default_level': cls.get_env_value('COURTDESK_LOG_LEVEL', 'WARNING'),
            'file': cls.get_env_value('COURTDESK_LOG_FILE'),
        }

    @classmethod
    def get_global_config(cls) -> GlobalConfig:
        """Get global configuration from environment."""
        return {
            'data_dir': cls.get_env_value('COURTDESK_DATA_DIR', 'data'),
            'currency': cls.get_env_value('COURTDESK_CURRENCY', 'USD'),
            'base_hourly_rate': float(cls.get_env_value('COURTDESK_BASE_RATE', '20')),
            'logging': cls.get_logging_config()
        }
