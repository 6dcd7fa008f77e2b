"""CLI output formatting functions.

This module contains the notifier that turns channel events into terminal
output, and the status report.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from bookvault.events.types import (
    BackupFailed,
    BackupSucceeded,
    DocumentRestored,
    Event,
    RestoreCompleted,
    RestoreFailed,
)
from bookvault.model.document import DocumentKind

if TYPE_CHECKING:
    from bookvault.model.manager import BookModel
    from bookvault.storage.prefs import UserPrefs


class EventNotifier:
    """
    Prints backup and restore outcomes as they are published.

    Subscribe it to Event on the channel. Failures are counted so the
    command can choose its exit status.
    """

    def __init__(self) -> None:
        self.failures: list[Event] = []
        self.successes: list[Event] = []

    def __call__(self, event: Event) -> None:
        if isinstance(event, (BackupFailed, RestoreFailed)):
            self.failures.append(event)
            click.echo(click.style(f"Error: {event.message}", fg="red"), err=True)
        elif isinstance(event, (BackupSucceeded, DocumentRestored)):
            self.successes.append(event)
            click.echo(click.style(event.message, fg="green"))
        elif isinstance(event, RestoreCompleted):
            click.echo(click.style(event.message, fg="green", bold=True))

    @property
    def failed(self) -> bool:
        return bool(self.failures)


def _describe_path(path: Path) -> str:
    if path.exists():
        return f"{path} ({path.stat().st_size} bytes)"
    return f"{path} " + click.style("(no backup yet)", fg="yellow")


def show_status(
    model: BookModel,
    prefs: UserPrefs,
    config_dir: Path,
    data_dir: Path,
) -> None:
    """
    Display entry counts, backup locations and stored references.

    Args:
        model: Loaded book model
        prefs: Loaded user preferences
        config_dir: Resolved configuration directory
        data_dir: Directory holding the data files
    """
    click.echo("=== bookvault Status ===\n")
    click.echo(f"Configuration directory: {config_dir}")
    click.echo(f"Data directory: {data_dir}")

    for kind in DocumentKind:
        document = model.document(kind)
        reference = prefs.reference_for(kind)

        click.echo(f"\n{kind.value}:")
        click.echo(f"  Entries: {len(document)}")
        click.echo(f"  Local backup: {_describe_path(prefs.backup_path_for(kind))}")
        if reference:
            click.echo(f"  Stored reference: {reference}")
        else:
            click.echo(
                "  Stored reference: " + click.style("none (no online backup)", fg="yellow")
            )
