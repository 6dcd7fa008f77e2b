"""
Aggregates per-document restore events into a single completion event.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from bookvault.events.channel import EventChannel
from bookvault.events.types import DocumentRestored, RestoreCompleted, RestoreFailed
from bookvault.model.document import DocumentKind

logger = logging.getLogger(__name__)


class RestoreTracker:
    """
    Watches a multi-document restore and announces when it has finished.

    RestoreCompleted is published once, after every expected kind has been
    restored. A failure for any kind is recorded and means RestoreCompleted
    is never published for this tracker; the kinds that were restored stay
    restored.

    Usage:
        tracker = RestoreTracker(channel, model.stores)
        orchestrator.restore_all_remote(token)
        orchestrator.wait_until_idle()
        if tracker.succeeded:
            ...
    """

    def __init__(self, channel: EventChannel, kinds: Iterable[DocumentKind]):
        self.channel = channel
        self.expected: frozenset[DocumentKind] = frozenset(kinds)
        self.restored: set[DocumentKind] = set()
        self.failed: dict[DocumentKind, Exception] = {}
        self._completed = False
        channel.subscribe(DocumentRestored, self._on_restored)
        channel.subscribe(RestoreFailed, self._on_failed)

    @property
    def is_finished(self) -> bool:
        return len(self.restored) + len(self.failed) >= len(self.expected)

    @property
    def succeeded(self) -> bool:
        return self._completed

    def _on_restored(self, event: DocumentRestored) -> None:
        if event.kind not in self.expected:
            return
        self.restored.add(event.kind)
        logger.debug(f"Restored {len(self.restored)}/{len(self.expected)} documents")
        if self.restored == self.expected and not self._completed:
            self._completed = True
            self.close()
            self.channel.publish(
                RestoreCompleted(kinds=tuple(sorted(self.expected, key=lambda k: k.value)))
            )

    def _on_failed(self, event: RestoreFailed) -> None:
        if event.kind in self.expected:
            self.failed[event.kind] = event.error
            if self.is_finished:
                self.close()

    def close(self) -> None:
        """Stop listening to the channel."""
        self.channel.unsubscribe(DocumentRestored, self._on_restored)
        self.channel.unsubscribe(RestoreFailed, self._on_failed)
