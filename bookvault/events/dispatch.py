"""
Dispatchers that run callbacks on the primary thread.

Backup and restore units of work run on pool threads, but the state they
complete into (versioned stores, stored references, preference files) is
owned by the primary thread. Workers therefore never touch that state
directly: they post a callback to a Dispatcher, and the primary thread runs
it.

- InlineDispatcher runs callbacks immediately on whichever thread posts
  them. Use it only where everything already happens on one thread.
- QueueDispatcher queues callbacks and runs them when its owner thread
  calls run_pending() or run_until().
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)


class DispatcherError(Exception):
    """Raised when callbacks cannot be run on the dispatcher's owner thread."""

    pass


class Dispatcher(ABC):
    """Base class for objects that accept callbacks for later execution."""

    @abstractmethod
    def post(self, callback: Callable[[], None]) -> None:
        """Arrange for callback to run on the thread this dispatcher serves."""

    def _run(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            # A failing completion handler must not stop the dispatcher loop
            logger.exception(f"Dispatched callback {callback!r} raised")


class InlineDispatcher(Dispatcher):
    """Dispatcher that runs each callback as soon as it is posted."""

    def post(self, callback: Callable[[], None]) -> None:
        self._run(callback)


class QueueDispatcher(Dispatcher):
    """
    Thread-safe callback queue drained on its owner thread.

    The thread that creates the dispatcher is its owner unless another
    thread is given. post() may be called from any thread; callbacks only
    ever run inside run_pending() or run_until() on the owner thread.

    Usage:
        dispatcher = QueueDispatcher()
        executor.submit(work).add_done_callback(
            lambda f: dispatcher.post(lambda: handle(f))
        )
        dispatcher.run_until(lambda: handled, timeout=30)
    """

    def __init__(self, owner: threading.Thread | None = None):
        self._queue: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()
        self._owner = owner or threading.current_thread()

    @property
    def owner(self) -> threading.Thread:
        return self._owner

    def post(self, callback: Callable[[], None]) -> None:
        self._queue.put(callback)

    def pending(self) -> int:
        """Approximate number of callbacks waiting to run."""
        return self._queue.qsize()

    def _check_owner(self) -> None:
        if threading.current_thread() is not self._owner:
            raise DispatcherError(
                f"Dispatcher owned by {self._owner.name} cannot be drained "
                f"from {threading.current_thread().name}"
            )

    def run_pending(self) -> int:
        """
        Run every callback queued so far without waiting.

        Returns:
            Number of callbacks run

        Raises:
            DispatcherError: If called from a thread other than the owner
        """
        self._check_owner()
        count = 0
        while True:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return count
            self._run(callback)
            count += 1

    def run_until(
        self, predicate: Callable[[], bool], timeout: float | None = None
    ) -> bool:
        """
        Run callbacks as they arrive until predicate() becomes true.

        Args:
            predicate: Checked before waiting and after each callback
            timeout: Maximum seconds to wait (None = wait indefinitely)

        Returns:
            True if predicate became true, False if the timeout expired

        Raises:
            DispatcherError: If called from a thread other than the owner
        """
        self._check_owner()
        deadline = None if timeout is None else time.monotonic() + timeout

        while not predicate():
            if deadline is None:
                wait = None
            else:
                wait = deadline - time.monotonic()
                if wait <= 0:
                    return False
            try:
                callback = self._queue.get(timeout=wait)
            except queue.Empty:
                return predicate()
            self._run(callback)

        return True
