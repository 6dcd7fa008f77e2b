"""CLI package for bookvault."""

from bookvault.cli.formatters import EventNotifier, show_status
from bookvault.cli.main import TOKEN_ENV_VAR, VALID_BOOKS, Session, cli, get_config_dir

__all__ = [
    "EventNotifier",
    "Session",
    "TOKEN_ENV_VAR",
    "VALID_BOOKS",
    "cli",
    "get_config_dir",
    "show_status",
]
