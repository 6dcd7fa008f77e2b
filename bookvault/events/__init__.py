"""
bookvault.events - Notification channel

Typed publish/subscribe channel, dispatchers that marshal work onto the
primary thread, and the event value objects they carry.
"""

from bookvault.events.channel import EventChannel
from bookvault.events.dispatch import (
    Dispatcher,
    DispatcherError,
    InlineDispatcher,
    QueueDispatcher,
)
from bookvault.events.types import (
    BackupFailed,
    BackupSucceeded,
    ChangeReason,
    DocumentChanged,
    DocumentRestored,
    Event,
    RestoreCompleted,
    RestoreFailed,
)

__all__ = [
    "EventChannel",
    "Dispatcher",
    "DispatcherError",
    "InlineDispatcher",
    "QueueDispatcher",
    "Event",
    "ChangeReason",
    "DocumentChanged",
    "DocumentRestored",
    "BackupSucceeded",
    "BackupFailed",
    "RestoreFailed",
    "RestoreCompleted",
]
