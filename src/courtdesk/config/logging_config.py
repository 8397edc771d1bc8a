"""Logging configuration types and loading utilities."""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

@dataclass
class FileConfig:
    """File logging configuration."""
    enabled: bool
    path: str
    max_size_mb: int
    backup_count: int
    format: str
    include_timestamp: bool

@dataclass
class ConsoleConfig:
    """Console logging configuration."""
    enabled: bool
    format: str
    include_timestamp: bool
    color: bool

@dataclass
class SensitiveDataConfig:
    """Sensitive data masking configuration."""
    enabled: bool
    global_fields: List[str]
    mask_pattern: str
    partial_mask: bool

@dataclass
class ErrorAggregationConfig:
    """Error aggregation configuration."""
    enabled: bool
    report_interval: int
    error_threshold: int
    time_threshold: int
    categorize_by: List[str] = field(default_factory=lambda: ['service', 'message'])

@dataclass
class LoggingConfig:
    """Complete logging configuration."""
    default_level: str
    dev_level: str
    verbose_level: str
    file: FileConfig
    console: ConsoleConfig
    libraries: Dict[str, str]
    sensitive_data: SensitiveDataConfig
    error_aggregation: ErrorAggregationConfig

def load_logging_config(config_path: Optional[str] = None) -> LoggingConfig:
    """Load logging configuration from YAML file.

    A missing file yields the built-in defaults.
    """
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), 'logging_config.yaml')

    config_dict: dict = {}
    if os.path.exists(config_path):
        with open(config_path, 'r', encoding='utf-8') as f:
            config_dict = yaml.safe_load(f) or {}

    libraries = config_dict.get('libraries', {
        'yaml': 'WARNING',
        'json': 'WARNING'
    })

    return LoggingConfig(
        default_level=config_dict.get('default_level', 'WARNING'),
        dev_level=config_dict.get('dev_level', 'INFO'),
        verbose_level=config_dict.get('verbose_level', 'DEBUG'),
        file=FileConfig(**config_dict.get('file', {
            'enabled': False,
            'path': 'logs/courtdesk.log',
            'max_size_mb': 10,
            'backup_count': 5,
            'format': 'json',
            'include_timestamp': True
        })),
        console=ConsoleConfig(**config_dict.get('console', {
            'enabled': True,
            'format': 'text',
            'include_timestamp': True,
            'color': True
        })),
        libraries=libraries,
        sensitive_data=SensitiveDataConfig(**config_dict.get('sensitive_data', {
            'enabled': True,
            'global_fields': ['phone_number', 'phoneNumber', 'phone'],
            'mask_pattern': '***MASKED***',
            'partial_mask': True
        })),
        error_aggregation=ErrorAggregationConfig(**config_dict.get('error_aggregation', {
            'enabled': False,
            'report_interval': 3600,
            'error_threshold': 5,
            'time_threshold': 300,
            'categorize_by': ['service', 'message']
        }))
    )
