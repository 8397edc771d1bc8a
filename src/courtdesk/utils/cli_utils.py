"""
Utility functions and decorators for CLI argument handling.
"""

import argparse
import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from tabulate import tabulate

from courtdesk.config.types import AppConfig
from courtdesk.utils.time_utils import parse_date, parse_time

if TYPE_CHECKING:
    from courtdesk.desk import BookingDesk


@dataclass
class CLIContext:
    """Context object for CLI command execution."""
    args: argparse.Namespace
    logger: logging.Logger
    config: AppConfig
    parser: argparse.ArgumentParser
    desk: "BookingDesk"

    @property
    def as_json(self) -> bool:
        return getattr(self.args, 'format', 'text') == 'json'


class CommandCategory(Enum):
    """Categories for organizing commands."""
    LIST = auto()
    BOOK = auto()
    PAYMENT = auto()
    BATCH = auto()
    REPORT = auto()
    MAINTAIN = auto()


@dataclass
class CommandMetadata:
    """Metadata for command registration."""
    name: str
    help_text: str
    category: CommandCategory
    handler: Callable[[CLIContext], int]
    options: list[dict[str, Any]]
    parent_command: str | None = None


class CLIOptionFactory:
    """Factory for creating common CLI options with consistent validation."""

    @staticmethod
    def create_format_option() -> dict[str, Any]:
        return {
            'name': '--format',
            'choices': ['text', 'json'],
            'default': 'text',
            'help': 'Output format: human-readable table or machine-readable JSON (default: text)'
        }

    @staticmethod
    def create_date_option(name: str = '--date', required: bool = False, help_text: str | None = None) -> dict[str, Any]:
        return {
            'name': name,
            'type': parse_date,
            'required': required,
            'help': help_text or 'Date in YYYY-MM-DD format'
        }

    @staticmethod
    def create_time_option(name: str, required: bool = False, help_text: str = 'Time as HH:MM') -> dict[str, Any]:
        return {
            'name': name,
            'type': parse_time,
            'required': required,
            'help': help_text,
            'validator': lambda x: 0 <= x <= 24
        }

    @staticmethod
    def create_duration_option(required: bool = False) -> dict[str, Any]:
        return {
            'name': '--duration',
            'type': float,
            'required': required,
            'help': 'Duration in hours, in steps of 0.5',
            'validator': lambda x: x > 0 and float(x * 2).is_integer()
        }

    @staticmethod
    def create_ids_argument(help_text: str = 'Reservation ids') -> dict[str, Any]:
        return {'name': 'ids', 'nargs': '+', 'help': help_text}

    @staticmethod
    def create_customer_options(required: bool = False) -> list[dict[str, Any]]:
        return [
            {'name': '--name', 'required': required, 'help': 'Customer name'},
            {'name': '--phone', 'required': required, 'help': 'Customer phone number'},
        ]

    @staticmethod
    def create_month_option(required: bool = False) -> dict[str, Any]:
        return {
            'name': '--month',
            'required': required,
            'help': 'Month in YYYY-MM format',
            'validator': lambda x: len(x) == 7 and x[4] == '-' and x[:4].isdigit() and x[5:].isdigit()
        }


class CommandRegistry:
    """Registry for CLI commands with metadata."""

    _commands: dict[str, CommandMetadata] = {}
    _categories: dict[CommandCategory, list[str]] = {}
    _parent_commands: dict[str, list[str]] = {}

    @staticmethod
    def key(name: str, parent_command: str | None = None) -> str:
        return f"{parent_command} {name}" if parent_command else name

    @classmethod
    def clear(cls) -> None:
        """Clear all registered commands."""
        cls._commands.clear()
        cls._categories.clear()
        cls._parent_commands.clear()

    @classmethod
    def register(cls,
                name: str,
                help_text: str,
                category: CommandCategory,
                options: list[dict[str, Any]] | None = None,
                parent_command: str | None = None) -> Callable[[Callable[[CLIContext], int]], Callable[[CLIContext], int]]:
        """Register a command handler."""
        def decorator(handler: Callable[[CLIContext], int]) -> Callable[[CLIContext], int]:
            key = cls.key(name, parent_command)
            cls._commands[key] = CommandMetadata(
                name=name,
                help_text=help_text,
                category=category,
                handler=handler,
                options=options or [],
                parent_command=parent_command
            )

            commands = cls._categories.setdefault(category, [])
            if key not in commands:
                commands.append(key)

            if parent_command:
                children = cls._parent_commands.setdefault(parent_command, [])
                if name not in children:
                    children.append(name)

            return handler
        return decorator

    @classmethod
    def commands(cls) -> list[CommandMetadata]:
        return list(cls._commands.values())

    @classmethod
    def get_command(cls, name: str, parent_command: str | None = None) -> CommandMetadata | None:
        """Get command metadata by name."""
        return cls._commands.get(cls.key(name, parent_command))

    @classmethod
    def get_category_commands(cls, category: CommandCategory) -> list[str]:
        """Get all commands in a category."""
        return cls._categories.get(category, [])

    @classmethod
    def get_subcommands(cls, parent_command: str) -> list[str]:
        """Get all subcommands for a parent command."""
        return cls._parent_commands.get(parent_command, [])


class ArgumentValidator:
    """Validator for CLI arguments."""

    @staticmethod
    def validate_option(option: dict[str, Any], value: Any) -> bool:
        """Validate a single option value."""
        if 'validator' not in option:
            return True

        try:
            return bool(option['validator'](value))
        except (TypeError, ValueError, IndexError):
            return False

    @staticmethod
    def validate_args(args: argparse.Namespace, command: CommandMetadata) -> list[str]:
        """Validate all arguments for a command."""
        errors = []

        for option in command.options:
            value = getattr(args, option['name'].lstrip('-').replace('-', '_'), None)
            if value is not None and not ArgumentValidator.validate_option(option, value):
                errors.append(f"Invalid value for {option['name']}: {value}")

        return errors


def add_common_options(parser: argparse.ArgumentParser) -> None:
    """Add common global options to a parser."""
    parser.add_argument(
        '-c', '--config-dir',
        help='Directory holding config.yaml (default: $COURTDESK_CONFIG_DIR or the current directory)'
    )
    parser.add_argument(
        '--dev',
        action='store_true',
        help='Run in development mode with additional debug output'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging output'
    )
    parser.add_argument(
        '--log-file',
        help='Path to write log output (default: logs to stderr only)'
    )


class CLIBuilder:
    """Builder for constructing CLI parsers with consistent formatting."""

    # Custom option fields that should not be passed to argparse
    _CUSTOM_FIELDS = {'validator'}

    def __init__(self, description: str):
        """Initialize CLI builder."""
        self.parser = argparse.ArgumentParser(prog='courtdesk', description=description)
        self.subparsers = self.parser.add_subparsers(dest='command', required=True)
        self._parent_parsers: dict[str, Any] = {}
        add_common_options(self.parser)

    def _parent(self, parent_command: str) -> Any:
        if parent_command not in self._parent_parsers:
            parent_parser = self.subparsers.add_parser(
                parent_command,
                help=f"{parent_command.capitalize()} commands"
            )
            self._parent_parsers[parent_command] = parent_parser.add_subparsers(
                dest=f"{parent_command}_subcommand",
                required=True
            )
        return self._parent_parsers[parent_command]

    def add_command(self, command: CommandMetadata) -> None:
        """Add a command to the parser."""
        if command.parent_command:
            parser = self._parent(command.parent_command).add_parser(command.name, help=command.help_text)
        else:
            parser = self.subparsers.add_parser(command.name, help=command.help_text)

        for option in command.options:
            option_copy = dict(option)
            name = option_copy.pop('name')
            option_dict = {k: v for k, v in option_copy.items() if k not in self._CUSTOM_FIELDS}
            if not name.startswith('-'):
                option_dict.pop('required', None)
            parser.add_argument(name, **option_dict)

        parser.set_defaults(command_metadata=command)

    def build(self, commands: Sequence[CommandMetadata]) -> argparse.ArgumentParser:
        """Add every command and return the parser."""
        for command in commands:
            self.add_command(command)
        return self.parser


def to_jsonable(value: Any) -> Any:
    """Convert report objects into plain JSON data."""
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    if hasattr(value, '__dataclass_fields__'):
        return {name: to_jsonable(getattr(value, name)) for name in value.__dataclass_fields__}
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def print_output(
    ctx: CLIContext,
    rows: list[list[Any]],
    headers: list[str],
    payload: Any = None,
    title: str | None = None
) -> None:
    """Print rows as a table, or ``payload`` as JSON with ``--format json``."""
    if ctx.as_json:
        print(json.dumps(to_jsonable(payload if payload is not None else rows), indent=2))
        return
    if title:
        print(f"\n{title}")
        print("=" * 60)
    if not rows:
        print("No records found")
        return
    print(tabulate(rows, headers=headers, tablefmt="psql"))
