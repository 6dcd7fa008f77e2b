"""
Publish/subscribe channel for change, success and failure notifications.

The channel is an explicit object handed to each component at construction;
there is no global bus. Handlers are registered per event type and receive
events of that type and of its subclasses.

Delivery rules:
- publish() calls every matching handler before returning, in the order the
  handlers were registered.
- A handler that raises is logged and skipped; the remaining handlers still
  run.
- post() is for code running on worker threads: it hands the publish over
  to the dispatcher so that handlers run on the primary thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from bookvault.events.dispatch import Dispatcher, InlineDispatcher
from bookvault.events.types import Event

E = TypeVar("E", bound=Event)

Handler = Callable[[E], None]

logger = logging.getLogger(__name__)


class EventChannel:
    """
    Typed publish/subscribe channel.

    Attributes:
        dispatcher: Used by post() to run publishes on the primary thread

    Usage:
        channel = EventChannel(dispatcher)
        channel.subscribe(BackupFailed, lambda e: print(e.message))

        # On the primary thread
        channel.publish(event)

        # From a worker thread
        channel.post(event)
    """

    def __init__(self, dispatcher: Dispatcher | None = None):
        self.dispatcher = dispatcher or InlineDispatcher()
        self._subscriptions: list[tuple[type[Event], Callable[[Event], None]]] = []

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """
        Register handler for event_type and its subclasses.

        Registering the same handler twice for the same type has no effect.
        """
        entry = (event_type, handler)
        if entry in self._subscriptions:
            return
        self._subscriptions.append(entry)  # type: ignore[arg-type]
        logger.debug(f"Subscribed {handler!r} to {event_type.__name__}")

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], None]) -> bool:
        """
        Remove a registration made by subscribe().

        Returns:
            True if a registration was removed
        """
        try:
            self._subscriptions.remove((event_type, handler))  # type: ignore[arg-type]
        except ValueError:
            return False
        return True

    def subscriber_count(self, event_type: type[Event] | None = None) -> int:
        if event_type is None:
            return len(self._subscriptions)
        return sum(1 for t, _ in self._subscriptions if issubclass(event_type, t))

    def publish(self, event: Event) -> int:
        """
        Deliver event to every matching handler on the calling thread.

        Args:
            event: Event to deliver

        Returns:
            Number of handlers invoked, including ones that raised
        """
        # Snapshot so handlers may subscribe/unsubscribe while we iterate
        handlers = [h for t, h in self._subscriptions if isinstance(event, t)]
        logger.debug(f"Publishing {type(event).__name__} to {len(handlers)} handler(s)")

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    f"Handler {handler!r} failed while handling {type(event).__name__}"
                )

        return len(handlers)

    def post(self, event: Event) -> None:
        """Publish event on the dispatcher's thread instead of the caller's."""
        self.dispatcher.post(lambda: self.publish(event))
