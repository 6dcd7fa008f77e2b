"""
Backup and restore orchestration for bookvault documents.

Provides functionality to:
- Back up a document to a local file, or restore it from one (synchronous)
- Back up a document to remote storage, or restore it from there
  (asynchronous, on a small worker pool)
- Back up or restore every document at once, one independent unit per kind
- Report every finished request as exactly one event on the channel

Threading model:
    Local operations run on the caller's thread. Remote units of work run on
    pool threads and never touch shared state; their completion handlers are
    posted to the dispatcher and run on the primary thread, which is the only
    writer of versioned stores, stored references and the outstanding-request
    counts. A submitted unit always runs to completion or failure.
"""

from __future__ import annotations

import functools
import itertools
import logging
from collections.abc import Callable, Mapping
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from bookvault.backup.targets import BackupTarget, Medium
from bookvault.errors import (
    BookVaultError,
    StorageIOError,
    ValidationError,
)
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
    DocumentRestored,
    Event,
    RestoreFailed,
)
from bookvault.model.document import Document, DocumentKind
from bookvault.model.versioned import VersionedStore
from bookvault.storage.codec import JsonDocumentCodec
from bookvault.storage.documents import read_document_file, write_text_atomic
from bookvault.storage.prefs import UserPrefs
from bookvault.storage.remote import (
    RemoteService,
    StorageFactory,
    create_reference_storage,
)

DEFAULT_MAX_WORKERS = 2

DEFAULT_REMOTE_DESCRIPTION = "bookvault backup"

MESSAGE_NO_REFERENCE = (
    "No stored reference for {kind}. Perform an online backup using "
    "'backup {service} <token>' first or set it in the preferences file"
)

logger = logging.getLogger(__name__)


class RequestState(str, Enum):
    """Lifecycle of one backup or restore request."""

    SUBMITTED = "submitted"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Operation(str, Enum):
    BACKUP = "backup"
    RESTORE = "restore"


@dataclass
class BackupRequest:
    """
    Bookkeeping for one request.

    The worker only ever moves state to RUNNING; terminal states are set on
    the primary thread together with publishing the terminal event.
    """

    request_id: int
    operation: Operation
    target: BackupTarget
    state: RequestState = RequestState.SUBMITTED
    error: Exception | None = None

    @property
    def finished(self) -> bool:
        return self.state in (RequestState.SUCCEEDED, RequestState.FAILED)


class BackupOrchestrator:
    """
    Coordinates versioned stores with local files and remote storage.

    Attributes:
        stores: Versioned store per document kind
        channel: Receives one terminal event per request
        preferences: Source of default backup paths and stored references;
            stored references are written here after a confirmed remote save
        dispatcher: Runs completion handlers on the primary thread; defaults to
            the channel's dispatcher when that is a QueueDispatcher, otherwise
            to a new QueueDispatcher owned by the constructing thread
        codec: Serializes documents for every medium

    Usage:
        orchestrator = BackupOrchestrator(model.stores, channel, prefs)

        # Synchronous local backup and restore
        orchestrator.backup_local(BackupTarget.local(kind, "/tmp/a.bak"))
        orchestrator.restore_local(BackupTarget.local(kind, "/tmp/a.bak"))

        # Asynchronous remote backup; result arrives as an event
        orchestrator.backup_remote(BackupTarget.remote(kind, auth_token=token))
        orchestrator.wait_until_idle()
    """

    def __init__(
        self,
        stores: Mapping[DocumentKind, VersionedStore[Document]],
        channel: EventChannel,
        preferences: UserPrefs,
        remote_factory: StorageFactory | None = None,
        codec: JsonDocumentCodec | None = None,
        dispatcher: Dispatcher | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        executor: Executor | None = None,
        description: str = DEFAULT_REMOTE_DESCRIPTION,
    ):
        self.stores = stores
        self.channel = channel
        self.preferences = preferences
        self.remote_factory: StorageFactory = remote_factory or create_reference_storage
        self.codec = codec or JsonDocumentCodec()
        if dispatcher is None:
            dispatcher = channel.dispatcher
            if not isinstance(dispatcher, QueueDispatcher):
                dispatcher = QueueDispatcher()
        self.dispatcher = dispatcher
        self.max_workers = max_workers
        self.description = description
        self._executor = executor
        self._closed = False
        self._ids = itertools.count(1)
        self._outstanding: dict[DocumentKind, int] = {}

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    @property
    def executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="bookvault-backup"
            )
        return self._executor

    @property
    def pending_count(self) -> int:
        """Number of remote requests submitted but not yet completed."""
        return sum(self._outstanding.values())

    def outstanding(self, kind: DocumentKind) -> int:
        return self._outstanding.get(kind, 0)

    def _new_request(self, operation: Operation, target: BackupTarget) -> BackupRequest:
        request = BackupRequest(next(self._ids), operation, target)
        logger.debug(
            f"Request #{request.request_id}: {operation.value} {target.kind.value} "
            f"via {target.describe()}"
        )
        return request

    def _finish(self, request: BackupRequest, event: Event) -> None:
        if isinstance(event, (BackupFailed, RestoreFailed)):
            request.state = RequestState.FAILED
            request.error = event.error
            logger.info(f"Request #{request.request_id} failed: {event.message}")
        else:
            request.state = RequestState.SUCCEEDED
            logger.info(f"Request #{request.request_id} succeeded: {event.message}")
        self.channel.publish(event)

    def _store(self, kind: DocumentKind) -> VersionedStore[Document]:
        try:
            return self.stores[kind]
        except KeyError:
            raise ValidationError(f"No store registered for {kind.value}") from None

    # ------------------------------------------------------------------
    # Validation (synchronous, before any I/O)
    # ------------------------------------------------------------------

    def _validate(self, target: BackupTarget, medium: Medium) -> None:
        if not isinstance(target, BackupTarget):
            raise ValidationError(f"Not a backup target: {target!r}")
        if target.medium is not medium:
            raise ValidationError(
                f"Expected a {medium.value} target, got a {target.medium.value} one"
            )
        self._store(target.kind)

        if medium is Medium.LOCAL:
            if target.path is None or not str(target.path).strip():
                raise ValidationError("Path is not a valid file location")
            if target.path.is_dir():
                raise ValidationError(
                    f"Path is not a valid file location: {target.path} is a directory"
                )
        elif target.service is None:
            raise ValidationError("Remote target has no storage service")

    def _snapshot_for(self, target: BackupTarget, snapshot: Document | None) -> Document:
        document = snapshot if snapshot is not None else self._store(target.kind).current()
        if document.kind is not target.kind:
            raise ValidationError(
                f"Cannot back up {document.kind.value} as {target.kind.value}"
            )
        return document

    def _resolve_reference(self, target: BackupTarget) -> BackupTarget:
        if target.reference:
            return target
        reference = self.preferences.reference_for(target.kind)
        if not reference:
            raise ValidationError(
                MESSAGE_NO_REFERENCE.format(
                    kind=target.kind.value, service=target.service.value
                )
            )
        return target.with_reference(reference)

    # ------------------------------------------------------------------
    # Local operations (synchronous)
    # ------------------------------------------------------------------

    def backup_local(self, target: BackupTarget, snapshot: Document | None = None) -> Path:
        """
        Write a full snapshot to target.path, replacing any existing file.

        Args:
            target: Local target naming the document kind and file path
            snapshot: Document to write; defaults to the store's current one

        Returns:
            Path that was written

        Raises:
            ValidationError: If the target is unusable
            StorageIOError: If the file cannot be written
        """
        self._validate(target, Medium.LOCAL)
        document = self._snapshot_for(target, snapshot)
        request = self._new_request(Operation.BACKUP, target)

        try:
            write_text_atomic(target.path, self.codec.encode(document))
        except OSError as e:
            error = StorageIOError(f"Failed to write backup {target.path}: {e}")
            self._finish(request, BackupFailed(target=target, error=error))
            raise error from e

        self._finish(request, BackupSucceeded(target=target, path=target.path))
        return target.path

    def restore_local(self, target: BackupTarget) -> Document:
        """
        Read a backup file and make it the store's only snapshot.

        Returns:
            The restored document

        Raises:
            ValidationError: If the target is unusable
            NotFoundError: If the file does not exist
            ConversionError: If the file is empty or malformed
            StorageIOError: If the file cannot be read
        """
        self._validate(target, Medium.LOCAL)
        request = self._new_request(Operation.RESTORE, target)

        try:
            document = read_document_file(target.path, target.kind, self.codec)
        except BookVaultError as e:
            self._finish(request, RestoreFailed(target=target, error=e))
            raise

        self._apply_restore(request, document)
        return document

    def _apply_restore(self, request: BackupRequest, document: Document) -> None:
        target = request.target
        self._store(target.kind).reset_data(document)
        self._finish(
            request,
            DocumentRestored(kind=target.kind, document=document, target=target),
        )

    # ------------------------------------------------------------------
    # Remote operations (asynchronous)
    # ------------------------------------------------------------------

    def _submit(
        self,
        request: BackupRequest,
        unit: Callable[[], object],
        on_complete: Callable[[BackupRequest, Future], None],
    ) -> Future:
        if isinstance(self.dispatcher, InlineDispatcher):
            raise DispatcherError(
                "Remote requests need a dispatcher that runs completion handlers "
                "on the primary thread, not an InlineDispatcher"
            )

        kind = request.target.kind
        if self._outstanding.get(kind):
            logger.warning(
                f"{kind.value} already has {self._outstanding[kind]} remote request(s) "
                "in flight; results may complete out of order"
            )
        self._outstanding[kind] = self._outstanding.get(kind, 0) + 1

        def run() -> object:
            request.state = RequestState.RUNNING
            return unit()

        try:
            if self._closed:
                raise RuntimeError("orchestrator has been shut down")
            future = self.executor.submit(run)
        except RuntimeError as e:
            self._release(kind)
            error = BookVaultError(
                f"Request #{request.request_id} rejected: backup worker pool is shut down"
            )
            failure = BackupFailed if request.operation is Operation.BACKUP else RestoreFailed
            self._finish(request, failure(target=request.target, error=error))
            raise error from e

        future.add_done_callback(
            lambda f: self.dispatcher.post(functools.partial(on_complete, request, f))
        )
        return future

    def _release(self, kind: DocumentKind) -> None:
        self._outstanding[kind] -= 1
        if not self._outstanding[kind]:
            del self._outstanding[kind]

    def _settle(self, request: BackupRequest, future: Future) -> BaseException | None:
        """Release the outstanding slot and return the unit's error, if any."""
        self._release(request.target.kind)
        if future.cancelled():
            return BookVaultError(f"Request #{request.request_id} was cancelled")
        return future.exception()

    def backup_remote(
        self, target: BackupTarget, snapshot: Document | None = None
    ) -> Future:
        """
        Save a full snapshot to remote storage without blocking the caller.

        On success the stored reference of the kind is overwritten and
        BackupSucceeded (carrying the reference) is published; on failure
        BackupFailed is published and nothing else changes.

        Returns:
            Future of the unit of work (its result is the new reference)

        Raises:
            ValidationError: If the target is unusable
            DispatcherError: If completion handlers would run on a worker thread
            BookVaultError: If the worker pool has been shut down (also
                published as BackupFailed)
        """
        self._validate(target, Medium.REMOTE)
        document = self._snapshot_for(target, snapshot)
        request = self._new_request(Operation.BACKUP, target)

        def unit() -> str:
            content = self.codec.encode(document)
            storage = self.remote_factory(target.service, target.auth_token)
            return storage.save(content, target.kind.remote_file_name, self.description)

        return self._submit(request, unit, self._complete_backup)

    def _complete_backup(self, request: BackupRequest, future: Future) -> None:
        error = self._settle(request, future)
        if error is not None:
            self._finish(request, BackupFailed(target=request.target, error=error))
            return

        reference = future.result()
        self.preferences.set_reference(request.target.kind, reference)
        target = request.target.with_reference(reference)
        self._finish(request, BackupSucceeded(target=target, reference=reference))

    def restore_remote(self, target: BackupTarget) -> Future:
        """
        Fetch a document from remote storage without blocking the caller.

        Uses target.reference, or the stored reference of the kind when the
        target carries none. On success the store is reset and
        DocumentRestored is published; on failure RestoreFailed is published.

        Returns:
            Future of the unit of work (its result is the decoded document)

        Raises:
            ValidationError: If the target is unusable or no reference is known
            DispatcherError: If completion handlers would run on a worker thread
            BookVaultError: If the worker pool has been shut down (also
                published as RestoreFailed)
        """
        self._validate(target, Medium.REMOTE)
        target = self._resolve_reference(target)
        request = self._new_request(Operation.RESTORE, target)

        def unit() -> Document:
            storage = self.remote_factory(target.service, target.auth_token)
            content = storage.read(target.reference, target.kind)
            return self.codec.decode(content, target.kind)

        return self._submit(request, unit, self._complete_restore)

    def _complete_restore(self, request: BackupRequest, future: Future) -> None:
        error = self._settle(request, future)
        if error is not None:
            self._finish(request, RestoreFailed(target=request.target, error=error))
            return
        self._apply_restore(request, future.result())

    # ------------------------------------------------------------------
    # Every document at once
    # ------------------------------------------------------------------

    def _local_path(self, kind: DocumentKind, directory: Path | None) -> Path:
        if directory is not None:
            return Path(directory).expanduser() / kind.backup_file_name
        return self.preferences.backup_path_for(kind)

    def backup_all_local(
        self, directory: Path | None = None
    ) -> dict[DocumentKind, Path | BookVaultError]:
        """
        Back up every document to local files, each independently.

        Args:
            directory: Write <kind>.bak files here instead of the preferred paths

        Returns:
            Written path, or the error raised, per kind
        """
        results: dict[DocumentKind, Path | BookVaultError] = {}
        for kind in self.stores:
            target = BackupTarget.local(kind, self._local_path(kind, directory))
            try:
                results[kind] = self.backup_local(target)
            except BookVaultError as e:
                results[kind] = e
        return results

    def restore_all_local(
        self, directory: Path | None = None
    ) -> dict[DocumentKind, Document | BookVaultError]:
        """
        Restore every document from local files, each independently.

        A failure for one kind does not undo the kinds that were restored.

        Returns:
            Restored document, or the error raised, per kind
        """
        results: dict[DocumentKind, Document | BookVaultError] = {}
        for kind in self.stores:
            target = BackupTarget.local(kind, self._local_path(kind, directory))
            try:
                results[kind] = self.restore_local(target)
            except BookVaultError as e:
                results[kind] = e
        return results

    def backup_all_remote(
        self, auth_token: str | None, service: RemoteService = RemoteService.GITHUB
    ) -> dict[DocumentKind, Future]:
        """Submit one remote backup unit per document kind."""
        targets = [
            BackupTarget.remote(kind, auth_token=auth_token, service=service)
            for kind in self.stores
        ]
        for target in targets:
            self._validate(target, Medium.REMOTE)
        return {target.kind: self.backup_remote(target) for target in targets}

    def restore_all_remote(
        self, auth_token: str | None, service: RemoteService = RemoteService.GITHUB
    ) -> dict[DocumentKind, Future]:
        """
        Submit one remote restore unit per document kind.

        Every kind must have a stored reference; otherwise ValidationError is
        raised before any unit is submitted.
        """
        targets = [
            self._resolve_reference(
                BackupTarget.remote(kind, auth_token=auth_token, service=service)
            )
            for kind in self.stores
        ]
        return {target.kind: self.restore_remote(target) for target in targets}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """
        Run completion handlers on this thread until no request is in flight.

        Must be called on the dispatcher's owner thread.

        Returns:
            True if every request completed, False on timeout

        Raises:
            DispatcherError: If the dispatcher cannot be drained by the caller
        """
        if not isinstance(self.dispatcher, QueueDispatcher):
            raise DispatcherError("wait_until_idle() requires a QueueDispatcher")
        return self.dispatcher.run_until(lambda: self.pending_count == 0, timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool; later remote requests fail with BookVaultError."""
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            logger.debug("Backup worker pool shut down")

    def __enter__(self) -> BackupOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)
