"""
Command-line interface for bookvault.

Provides CLI commands for backing up and restoring the address book and the
expense book, locally or to GitHub Gists, and for checking their status.

Usage:
    # Show help
    bookvault --help

    # Back up both books to their default local backup files
    bookvault backup

    # Back up both books into a directory
    bookvault backup /mnt/usb/planner

    # Back up the address book to GitHub Gists
    bookvault backup github <token> --book AddressBook

    # Restore both books from GitHub using the stored references
    bookvault restore github <token>

    # Check status
    bookvault status
"""

from __future__ import annotations

import functools
import logging
import os
import sys
from pathlib import Path

import click

from bookvault import __version__
from bookvault.backup.orchestrator import DEFAULT_REMOTE_DESCRIPTION, BackupOrchestrator
from bookvault.backup.targets import BackupTarget
from bookvault.backup.tracker import RestoreTracker
from bookvault.cli.formatters import EventNotifier, show_status
from bookvault.config.loader import AppConfig, ConfigError, ConfigLoader
from bookvault.errors import BookVaultError, ValidationError
from bookvault.events.channel import EventChannel
from bookvault.events.dispatch import QueueDispatcher
from bookvault.events.types import BackupSucceeded, DocumentChanged, Event
from bookvault.model.document import DocumentKind
from bookvault.model.manager import BookModel
from bookvault.storage.documents import DocumentStorage
from bookvault.storage.prefs import PreferencesError, PreferencesStorage, UserPrefs
from bookvault.storage.remote import RemoteService, create_reference_storage
from bookvault.utils import prefs_path, resolve_config_dir
from bookvault.utils.logging import (
    ENV_DEBUG,
    ENV_LOG_FILE,
    ENV_LOG_LEVEL,
    cleanup_old_logs,
    get_logger,
    parse_log_level,
    setup_logging,
)

# Environment variable holding the GitHub personal access token
TOKEN_ENV_VAR = "BOOKVAULT_GITHUB_TOKEN"

VALID_BOOKS = tuple(kind.value for kind in DocumentKind)

VALID_SERVICES = tuple(service.value for service in RemoteService)


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def _error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


class Session:
    """
    Everything one command needs, wired together.

    The model is loaded from the data files, preferences from prefs.json.
    Restored documents are written back to the data files and stored
    references to prefs.json by channel subscribers. Completion handlers of
    remote requests run on the thread that created the session.
    """

    def __init__(self, config_dir: Path, config: AppConfig):
        self.config_dir = config_dir
        self.config = config
        self.dispatcher = QueueDispatcher()
        self.channel = EventChannel(self.dispatcher)
        self.notifier = EventNotifier()

        self.documents = DocumentStorage(config.data_dir)
        self.model = BookModel(
            self.documents.read(DocumentKind.ADDRESS_BOOK),
            self.documents.read(DocumentKind.EXPENSE_BOOK),
            self.channel,
            history_limit=config.history_limit,
        )

        self.prefs = UserPrefs.load_from_file(
            prefs_path(config_dir), data_dir=config.data_dir
        )
        self.prefs_storage = PreferencesStorage(prefs_path(config_dir), self.prefs)

        self.channel.subscribe(DocumentChanged, self.documents.handle_document_changed)
        self.channel.subscribe(BackupSucceeded, self.prefs_storage.handle_backup_succeeded)
        self.channel.subscribe(Event, self.notifier)

        remote_factory = functools.partial(
            create_reference_storage, **config.remote_options
        )
        self.orchestrator = BackupOrchestrator(
            self.model.stores,
            self.channel,
            self.prefs,
            remote_factory=remote_factory,
            dispatcher=self.dispatcher,
            max_workers=config.workers,
            description=config.remote_description or DEFAULT_REMOTE_DESCRIPTION,
        )

    def finish(self) -> None:
        """Wait for outstanding remote requests, then stop the worker pool."""
        try:
            self.orchestrator.wait_until_idle()
        finally:
            self.orchestrator.shutdown()


def _open_session(ctx: click.Context) -> Session:
    try:
        return Session(ctx.obj["config_dir"], ctx.obj["app_config"])
    except (PreferencesError, BookVaultError) as e:
        get_logger(__name__).error(f"Could not load bookvault data: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


def _is_remote(target: str | None) -> bool:
    return target is not None and target.lower() in VALID_SERVICES


def _local_path(session: Session, kind: DocumentKind, target: str | None) -> Path:
    if target:
        return Path(target).expanduser() / kind.backup_file_name
    return session.prefs.backup_path_for(kind)


def _resolve_token(token: str | None) -> str:
    token = token or os.environ.get(TOKEN_ENV_VAR)
    if not token:
        _error(
            f"A GitHub personal access token is required. Pass it after the "
            f"service name or set {TOKEN_ENV_VAR}."
        )
    return token


@click.group()
@click.version_option(version=__version__, prog_name="bookvault")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="BOOKVAULT_CONFIG_DIR",
    help="Configuration directory path (default: ~/.bookvault).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_dir: str | None) -> None:
    """
    Backup and restore for your address book and expense book.

    Keeps local backup files and online backups on GitHub Gists, and
    restores either of them on demand.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    ctx.obj["config_dir"] = resolved_config_dir

    config: dict = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_and_validate()
    except ConfigError as e:
        # Show error but don't fail - allow CLI to work without config file
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    app_config = AppConfig.from_dict(config, resolved_config_dir)
    ctx.obj["config"] = config
    ctx.obj["app_config"] = app_config
    ctx.obj["verbose"] = verbose

    # Outcomes are printed by the notifier; keep the console quiet by default
    if app_config.log_level:
        level: int | None = parse_log_level(app_config.log_level)
    elif ENV_LOG_LEVEL in os.environ or ENV_DEBUG in os.environ:
        level = None
    else:
        level = logging.WARNING

    log_dir = app_config.log_dir
    if log_dir is None and ENV_LOG_FILE not in os.environ:
        log_dir = resolved_config_dir / "logs"
    setup_logging(level=level, verbose=verbose, log_dir=log_dir)
    cleanup_old_logs(log_dir=log_dir)


# =============================================================================
# Backup Command
# =============================================================================


@cli.command("backup")
@click.argument("target", required=False)
@click.argument("token", required=False)
@click.option(
    "--book",
    "-b",
    type=click.Choice(VALID_BOOKS, case_sensitive=False),
    help="Back up only this book (both books if not specified).",
)
@click.pass_context
def backup_command(
    ctx: click.Context, target: str | None, token: str | None, book: str | None
) -> None:
    """
    Back up the books locally or to GitHub Gists.

    TARGET is either a remote service name ("github"), followed by a
    personal access token, or a directory to write local backup files
    into. Without TARGET, local backups go to the paths in prefs.json.

    Examples:

        # Local backups at the default paths
        bookvault backup

        # Local backups into a directory
        bookvault backup ~/planner-backups

        # Online backup of the expense book
        bookvault backup github <token> --book ExpenseBook
    """
    logger = get_logger(__name__)
    session = _open_session(ctx)
    kinds = [DocumentKind(book)] if book else list(DocumentKind)

    try:
        if _is_remote(target):
            auth_token = _resolve_token(token)
            service = RemoteService.parse(target)
            click.echo(f"Backing up to {service.value}...")
            if book:
                session.orchestrator.backup_remote(
                    BackupTarget.remote(kinds[0], auth_token=auth_token, service=service)
                )
            else:
                session.orchestrator.backup_all_remote(auth_token, service=service)
            session.finish()
        else:
            if token:
                raise click.UsageError(
                    f"Unexpected argument '{token}' for a local backup"
                )
            for kind in kinds:
                try:
                    session.orchestrator.backup_local(
                        BackupTarget.local(kind, _local_path(session, kind, target))
                    )
                except ValidationError:
                    raise
                except BookVaultError as e:
                    logger.debug(f"Local backup of {kind.value} failed: {e}")
            session.orchestrator.shutdown()

    except ValidationError as e:
        session.orchestrator.shutdown()
        _error(str(e))

    if session.notifier.failed:
        sys.exit(1)


# =============================================================================
# Restore Command
# =============================================================================


@cli.command("restore")
@click.argument("target", required=False)
@click.argument("token", required=False)
@click.option(
    "--book",
    "-b",
    type=click.Choice(VALID_BOOKS, case_sensitive=False),
    help="Restore only this book (both books if not specified).",
)
@click.option(
    "--ref",
    "-r",
    "reference",
    help="Remote reference to restore from instead of the stored one (needs --book).",
)
@click.pass_context
def restore_command(
    ctx: click.Context,
    target: str | None,
    token: str | None,
    book: str | None,
    reference: str | None,
) -> None:
    """
    Restore the books from local backup files or GitHub Gists.

    Restoring replaces the book and clears its undo history.

    Examples:

        # Restore both books from the default local backup files
        bookvault restore

        # Restore from backup files in a directory
        bookvault restore ~/planner-backups

        # Restore both books from GitHub using the stored references
        bookvault restore github <token>

        # Restore the address book from a specific gist
        bookvault restore github <token> --book AddressBook --ref aa5a315d61ae
    """
    logger = get_logger(__name__)

    if reference and not book:
        raise click.UsageError("--ref can only be used together with --book")
    if reference and not _is_remote(target):
        raise click.UsageError("--ref only applies to remote restores")

    session = _open_session(ctx)
    kinds = [DocumentKind(book)] if book else list(DocumentKind)
    tracker = RestoreTracker(session.channel, kinds)

    try:
        if _is_remote(target):
            auth_token = _resolve_token(token)
            service = RemoteService.parse(target)
            click.echo(f"Restoring from {service.value}...")
            if book:
                session.orchestrator.restore_remote(
                    BackupTarget.remote(
                        kinds[0],
                        reference=reference,
                        auth_token=auth_token,
                        service=service,
                    )
                )
            else:
                session.orchestrator.restore_all_remote(auth_token, service=service)
            session.finish()
        else:
            if token:
                raise click.UsageError(
                    f"Unexpected argument '{token}' for a local restore"
                )
            for kind in kinds:
                try:
                    session.orchestrator.restore_local(
                        BackupTarget.local(kind, _local_path(session, kind, target))
                    )
                except ValidationError:
                    raise
                except BookVaultError as e:
                    logger.debug(f"Local restore of {kind.value} failed: {e}")
            session.orchestrator.shutdown()

    except ValidationError as e:
        session.orchestrator.shutdown()
        _error(str(e))

    if tracker.failed:
        restored = ", ".join(sorted(k.value for k in tracker.restored)) or "none"
        click.echo(
            click.style(f"Restore incomplete; restored: {restored}", fg="yellow"),
            err=True,
        )
        sys.exit(1)


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """
    Show entry counts, backup locations and stored references.

    Example:

        bookvault status
    """
    session = _open_session(ctx)
    show_status(
        session.model,
        session.prefs,
        session.config_dir,
        session.config.data_dir,
    )


def main() -> None:
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
