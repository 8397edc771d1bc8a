"""Configuration settings for the court booking application."""

import os
from pathlib import Path
from typing import Any

import yaml

from courtdesk.config.env import EnvConfig
from courtdesk.config.types import DEFAULT_COURTS
from courtdesk.config.types import AppConfig
from courtdesk.config.types import GlobalConfig
from courtdesk.config.utils import deep_merge
from courtdesk.config.utils import resolve_path
from courtdesk.exceptions import ConfigError


class ConfigurationManager:
    """Centralized configuration management with caching."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config: AppConfig | None = None
        self._config_path: Path | None = None
        self._initialized = True

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading it if necessary."""
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load_config() first.")
        return self._config

    def load_config(self, config_dir: str | None = None) -> AppConfig:
        """Load configuration with caching."""
        if self._config is not None:
            return self._config

        self._config_path = _get_config_path(config_dir)
        global_config = _load_global_config(self._config_path)
        self._config = _build_app_config(global_config, self._config_path)
        return self._config

    def reload_config(self, config_dir: str | None = None) -> AppConfig:
        """Force reload configuration."""
        self._config = None
        return self.load_config(config_dir or (str(self._config_path) if self._config_path else None))

def _get_config_path(config_dir: str | None = None) -> Path:
    """Get configuration directory path."""
    return resolve_path(
        config_dir or os.getenv("COURTDESK_CONFIG_DIR", os.getcwd())
    )

def _load_global_config(config_path: Path) -> GlobalConfig:
    """Load global configuration from YAML file and environment."""
    global_config: dict[str, Any] = dict(EnvConfig.get_global_config())

    config_file = config_path / "config.yaml"
    if config_file.exists():
        with open(config_file, encoding="utf-8") as f:
            try:
                loaded_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_file}", {"error": str(e)}) from e
        if not isinstance(loaded_config, dict):
            raise ConfigError(f"Configuration root must be a mapping: {config_file}")
        global_config = deep_merge(global_config, loaded_config)

    EnvConfig.update_config_from_env(global_config)
    return global_config  # type: ignore[return-value]

def _build_app_config(global_config: dict[str, Any], config_path: Path) -> AppConfig:
    logging_settings = global_config.get('logging', {}) or {}
    try:
        base_rate = float(global_config.get('base_hourly_rate', 20))
    except (TypeError, ValueError) as e:
        raise ConfigError(
            "base_hourly_rate must be a number",
            {"value": global_config.get('base_hourly_rate')}
        ) from e

    return AppConfig(
        global_config=global_config,
        data_dir=str(resolve_path(global_config.get('data_dir', 'data'), config_path)),
        currency=global_config.get('currency', 'USD'),
        base_hourly_rate=base_rate,
        courts=global_config.get('courts') or list(DEFAULT_COURTS),
        promotion_rules=global_config.get('promotion_rules') or [],
        document_settings=global_config.get('document_settings') or {},
        company=global_config.get('company') or {},
        operator=global_config.get('operator') or {},
        config_dir=str(config_path),
        log_level=logging_settings.get('default_level', 'WARNING'),
        log_file=logging_settings.get('file')
    )

def load_config(config_dir: str | None = None) -> AppConfig:
    """Load configuration using the ConfigurationManager."""
    config_manager = ConfigurationManager()
    return config_manager.load_config(config_dir)
