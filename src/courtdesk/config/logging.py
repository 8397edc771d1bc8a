"""Logging configuration utilities."""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path

from courtdesk.config.logging_config import LoggingConfig
from courtdesk.config.logging_config import load_logging_config
from courtdesk.config.logging_filters import CorrelationFilter
from courtdesk.config.logging_filters import SensitiveDataFilter
from courtdesk.config.types import AppConfig


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, include_timestamp: bool = True):
        """Initialize formatter.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data = {
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        if self.include_timestamp:
            data['timestamp'] = datetime.fromtimestamp(record.created).isoformat()

        if record.exc_info:
            data['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            data.update(record.extra_fields)

        return json.dumps(data, default=str)

class ColoredFormatter(logging.Formatter):
    """Formatter that adds color to console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color."""
        color = self.COLORS.get(record.levelname, self.RESET) if self.color else ''
        reset = self.RESET if self.color else ''

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S,%f')[:-3]
        msg = record.getMessage()

        context = ""
        if hasattr(record, 'extra_fields'):
            fields = [
                f"\n    {key}: {value}"
                for key, value in record.extra_fields.items()
                if value not in ('', None)
            ]
            if fields:
                context = " |" + "".join(fields)

        if record.exc_info:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"

        return f"{color}{timestamp} - {record.name} - {record.levelname} - {msg}{context}{reset}"

def get_file_handler(
    log_file: str | Path,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int
) -> logging.handlers.RotatingFileHandler:
    """Create rotating file handler.

    Args:
        log_file: Path to log file
        formatter: Formatter to use
        max_bytes: Maximum file size in bytes
        backup_count: Number of backup files to keep
    """
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    file_handler.setFormatter(formatter)
    return file_handler

def setup_logging(
    config: AppConfig | None = None,
    dev_mode: bool = False,
    verbose: bool = False,
    log_file: str | None = None,
    logging_config: LoggingConfig | None = None
) -> None:
    """Set up logging configuration."""
    logging_config = logging_config or load_logging_config()

    if verbose:
        level_name = logging_config.verbose_level
    elif dev_mode:
        level_name = logging_config.dev_level
    elif config is not None and config.log_level:
        level_name = config.log_level
    else:
        level_name = logging_config.default_level
    level = getattr(logging, level_name.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    sensitive = logging_config.sensitive_data
    filters: list[logging.Filter] = [CorrelationFilter()]
    if sensitive.enabled:
        filters.append(SensitiveDataFilter(
            set(sensitive.global_fields),
            mask_pattern=sensitive.mask_pattern,
            partial_mask=sensitive.partial_mask
        ))

    if logging_config.console.enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        if logging_config.console.format == 'json':
            console_handler.setFormatter(JsonFormatter(logging_config.console.include_timestamp))
        else:
            console_handler.setFormatter(ColoredFormatter(color=logging_config.console.color))
        for log_filter in filters:
            console_handler.addFilter(log_filter)
        root_logger.addHandler(console_handler)

    log_file = log_file or (config.log_file if config is not None else None)
    if not log_file and logging_config.file.enabled:
        log_file = logging_config.file.path
    if log_file:
        file_handler = get_file_handler(
            log_file,
            JsonFormatter(include_timestamp=logging_config.file.include_timestamp),
            logging_config.file.max_size_mb * 1024 * 1024,
            logging_config.file.backup_count
        )
        file_handler.setLevel(logging.DEBUG)
        for log_filter in filters:
            file_handler.addFilter(log_filter)
        root_logger.addHandler(file_handler)

    for library, library_level in logging_config.libraries.items():
        logging.getLogger(library).setLevel(getattr(logging, library_level.upper(), logging.WARNING))
