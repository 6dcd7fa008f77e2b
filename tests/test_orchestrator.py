"""
Tests for the backup/restore orchestrator.

Remote storage is replaced by an in-memory fake; the worker pool and the
queue dispatcher are real, so completion handlers are exercised on the test
thread exactly as the CLI drives them.
"""

import itertools
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import patch

import pytest

from bookvault.backup.orchestrator import BackupOrchestrator, RequestState
from bookvault.backup.targets import BackupTarget, Medium
from bookvault.errors import (
    AuthError,
    BookVaultError,
    ConversionError,
    NetworkError,
    NotFoundError,
    StorageIOError,
    ValidationError,
)
from bookvault.events.channel import EventChannel
from bookvault.events.dispatch import DispatcherError, InlineDispatcher, QueueDispatcher
from bookvault.events.types import (
    BackupFailed,
    BackupSucceeded,
    DocumentRestored,
    Event,
    RestoreFailed,
)
from bookvault.model.document import Document, DocumentKind
from bookvault.model.entries import Expense, Person
from bookvault.model.manager import BookModel
from bookvault.storage.codec import JsonDocumentCodec
from bookvault.storage.prefs import UserPrefs
from bookvault.storage.remote import ReferenceStorage, RemoteService

ADDRESS_BOOK = DocumentKind.ADDRESS_BOOK
EXPENSE_BOOK = DocumentKind.EXPENSE_BOOK

WAIT = 10  # seconds


class FakeReferenceStorage(ReferenceStorage):
    """In-memory stand-in for a remote reference storage service."""

    def __init__(self):
        self.gists: dict[str, dict[str, str]] = {}
        self.error: Exception | None = None
        self.barrier: threading.Barrier | None = None
        self.threads: list[threading.Thread] = []
        self.tokens: list[str | None] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def save(self, content, name, description=""):
        with self._lock:
            self.threads.append(threading.current_thread())
        if self.barrier is not None:
            self.barrier.wait()
        if self.error is not None:
            raise self.error
        with self._lock:
            reference = f"gist{next(self._ids)}"
            self.gists[reference] = {name: content}
        return reference

    def read(self, reference, kind):
        with self._lock:
            self.threads.append(threading.current_thread())
        if self.error is not None:
            raise self.error
        try:
            return self.gists[reference][kind.remote_file_name]
        except KeyError:
            raise NotFoundError(f"{reference} has no {kind.remote_file_name}") from None


@pytest.fixture
def remote():
    return FakeReferenceStorage()


@pytest.fixture
def dispatcher():
    return QueueDispatcher()


@pytest.fixture
def channel(dispatcher):
    return EventChannel(dispatcher)


@pytest.fixture
def events(channel):
    received = []
    channel.subscribe(Event, received.append)
    return received


@pytest.fixture
def model(channel, address_book, expense_book):
    return BookModel(address_book, expense_book, channel)


@pytest.fixture
def prefs(tmp_path):
    return UserPrefs(data_dir=tmp_path / "data")


@pytest.fixture
def orchestrator(model, channel, dispatcher, prefs, remote):
    def factory(service, auth_token):
        remote.tokens.append(auth_token)
        return remote

    orchestrator = BackupOrchestrator(
        model.stores,
        channel,
        prefs,
        remote_factory=factory,
        dispatcher=dispatcher,
        max_workers=2,
    )
    yield orchestrator
    orchestrator.shutdown()


def of_type(events, event_type):
    return [e for e in events if isinstance(e, event_type)]


def terminal(events):
    return of_type(events, (BackupSucceeded, BackupFailed, DocumentRestored, RestoreFailed))


class TestLocalBackupAndRestore:
    """Tests for synchronous local backup and restore."""

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_round_trip(self, orchestrator, model, tmp_path, count):
        """Test that backup then restore yields an equal document."""
        people = tuple(
            Person(f"Person {i}", str(90000000 + i), f"p{i}@example.com", "addr")
            for i in range(count)
        )
        document = Document(ADDRESS_BOOK, people)
        target = BackupTarget.local(ADDRESS_BOOK, tmp_path / "a.bak")

        orchestrator.backup_local(target, snapshot=document)
        restored = orchestrator.restore_local(target)

        assert restored == document
        assert model.document(ADDRESS_BOOK) == document

    def test_backup_writes_current_snapshot(self, orchestrator, events, tmp_path, address_book):
        """Test that the store's current snapshot is written by default."""
        target = BackupTarget.local(ADDRESS_BOOK, tmp_path / "nested" / "a.bak")

        path = orchestrator.backup_local(target)

        assert path == tmp_path / "nested" / "a.bak"
        decoded = JsonDocumentCodec().decode(path.read_text(), ADDRESS_BOOK)
        assert decoded == address_book
        assert len(terminal(events)) == 1
        assert terminal(events)[0] == BackupSucceeded(target=target, path=path)

    def test_backup_replaces_existing_file(self, orchestrator, tmp_path, empty_address_book):
        """Test that a backup fully replaces an older file."""
        path = tmp_path / "a.bak"
        path.write_text("x" * 10000, encoding="utf-8")

        orchestrator.backup_local(
            BackupTarget.local(ADDRESS_BOOK, path), snapshot=empty_address_book
        )

        assert JsonDocumentCodec().decode(path.read_text(), ADDRESS_BOOK) == (
            empty_address_book
        )

    def test_restore_resets_history(self, orchestrator, model, tmp_path, alice, bob):
        """Test that a restore leaves a single, non-undoable snapshot."""
        target = BackupTarget.local(ADDRESS_BOOK, tmp_path / "a.bak")
        orchestrator.backup_local(target)
        model.remove_entry(ADDRESS_BOOK, alice)
        model.remove_entry(ADDRESS_BOOK, bob)

        orchestrator.restore_local(target)

        store = model.stores[ADDRESS_BOOK]
        assert len(store) == 1
        assert store.index == 0
        assert not store.can_undo()
        assert model.document(ADDRESS_BOOK).entries == (alice, bob)

    def test_restore_publishes_document_restored(self, orchestrator, events, tmp_path):
        """Test the event published by a successful restore."""
        target = BackupTarget.local(EXPENSE_BOOK, tmp_path / "e.bak")
        orchestrator.backup_local(target)
        events.clear()

        document = orchestrator.restore_local(target)

        restored = of_type(events, DocumentRestored)
        assert len(restored) == 1
        assert restored[0].document == document
        assert restored[0].target == target

    def test_restore_missing_file(self, orchestrator, model, events, tmp_path, address_book):
        """Test that a missing file raises, reports once and changes nothing."""
        target = BackupTarget.local(ADDRESS_BOOK, tmp_path / "missing.bak")

        with pytest.raises(NotFoundError):
            orchestrator.restore_local(target)

        failures = of_type(events, RestoreFailed)
        assert len(terminal(events)) == 1
        assert failures[0].error_kind == "NotFoundError"
        assert model.document(ADDRESS_BOOK) == address_book

    def test_restore_empty_file(self, orchestrator, events, tmp_path):
        """Test that an empty backup file is a conversion error."""
        path = tmp_path / "empty.bak"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ConversionError):
            orchestrator.restore_local(BackupTarget.local(ADDRESS_BOOK, path))

        assert len(of_type(events, RestoreFailed)) == 1

    def test_restore_wrong_kind_file(self, orchestrator, model, tmp_path, address_book):
        """Test that an expense backup cannot be restored as the address book."""
        path = tmp_path / "e.bak"
        orchestrator.backup_local(BackupTarget.local(EXPENSE_BOOK, path))

        with pytest.raises(ConversionError):
            orchestrator.restore_local(BackupTarget.local(ADDRESS_BOOK, path))
        assert model.document(ADDRESS_BOOK) == address_book

    def test_backup_write_failure(self, orchestrator, events, tmp_path):
        """Test that an unwritable path raises StorageIOError and reports once."""
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory", encoding="utf-8")
        target = BackupTarget.local(ADDRESS_BOOK, blocker / "a.bak")

        with pytest.raises(StorageIOError):
            orchestrator.backup_local(target)

        failures = of_type(events, BackupFailed)
        assert len(terminal(events)) == 1
        assert failures[0].error_kind == "StorageIOError"


class TestValidation:
    """Tests for requests rejected before any work starts."""

    def test_directory_path_rejected(self, orchestrator, events, tmp_path):
        """Test that a directory is not a valid backup file."""
        with pytest.raises(ValidationError, match="directory"):
            orchestrator.backup_local(BackupTarget.local(ADDRESS_BOOK, tmp_path))
        assert terminal(events) == []

    def test_missing_path_rejected(self, orchestrator, events):
        """Test that a local target needs a path."""
        target = BackupTarget(kind=ADDRESS_BOOK, medium=Medium.LOCAL)
        with pytest.raises(ValidationError):
            orchestrator.restore_local(target)
        assert terminal(events) == []

    def test_medium_mismatch_rejected(self, orchestrator, tmp_path):
        """Test that local and remote operations check the target medium."""
        with pytest.raises(ValidationError):
            orchestrator.backup_local(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))
        with pytest.raises(ValidationError):
            orchestrator.backup_remote(BackupTarget.local(ADDRESS_BOOK, tmp_path / "a"))

    def test_unknown_kind_rejected(self, channel, prefs, dispatcher):
        """Test that a kind without a store is rejected."""
        orchestrator = BackupOrchestrator(
            {ADDRESS_BOOK: BookModel(None, None, channel).stores[ADDRESS_BOOK]},
            channel,
            prefs,
            dispatcher=dispatcher,
        )
        with pytest.raises(ValidationError, match="No store"):
            orchestrator.backup_remote(BackupTarget.remote(EXPENSE_BOOK, auth_token="t"))
        assert orchestrator.pending_count == 0

    def test_snapshot_kind_mismatch_rejected(self, orchestrator, tmp_path, expense_book):
        """Test that a snapshot must match the target's kind."""
        with pytest.raises(ValidationError):
            orchestrator.backup_local(
                BackupTarget.local(ADDRESS_BOOK, tmp_path / "a.bak"),
                snapshot=expense_book,
            )

    def test_remote_restore_without_reference(self, orchestrator, events, remote):
        """Test that a remote restore needs an explicit or stored reference."""
        with pytest.raises(ValidationError, match="online backup"):
            orchestrator.restore_remote(
                BackupTarget.remote(ADDRESS_BOOK, auth_token="t")
            )
        assert orchestrator.pending_count == 0
        assert remote.threads == []
        assert terminal(events) == []


class TestRemoteBackup:
    """Tests for asynchronous remote backups."""

    def test_backup_stores_reference(self, orchestrator, prefs, events, remote):
        """Test that a successful save stores the returned reference."""
        future = orchestrator.backup_remote(
            BackupTarget.remote(ADDRESS_BOOK, auth_token="token")
        )

        assert orchestrator.wait_until_idle(timeout=WAIT)
        assert future.result() == "gist1"
        assert prefs.reference_for(ADDRESS_BOOK) == "gist1"
        assert remote.tokens == ["token"]

        successes = of_type(events, BackupSucceeded)
        assert len(terminal(events)) == 1
        assert successes[0].reference == "gist1"
        assert successes[0].target.reference == "gist1"

    def test_completion_is_delivered_on_primary_thread(self, orchestrator, channel, remote):
        """Test that work runs on a pool thread and events on the caller's."""
        seen = []
        channel.subscribe(BackupSucceeded, lambda e: seen.append(threading.current_thread()))

        orchestrator.backup_remote(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))
        assert orchestrator.wait_until_idle(timeout=WAIT)

        assert remote.threads[0] is not threading.current_thread()
        assert remote.threads[0].name.startswith("bookvault-backup")
        assert seen == [threading.current_thread()]

    def test_nothing_changes_before_completion_is_dispatched(self, orchestrator, prefs, events):
        """Test that results wait for the primary thread to drain the queue."""
        future = orchestrator.backup_remote(
            BackupTarget.remote(ADDRESS_BOOK, auth_token="t")
        )
        future.result(timeout=WAIT)

        assert prefs.reference_for(ADDRESS_BOOK) is None
        assert terminal(events) == []
        assert orchestrator.pending_count == 1

        assert orchestrator.wait_until_idle(timeout=WAIT)
        assert prefs.reference_for(ADDRESS_BOOK) == "gist1"

    def test_snapshot_is_taken_at_submission(self, orchestrator, model, remote):
        """Test that edits after submission are not part of the backup."""
        model.add_entry(EXPENSE_BOOK, Expense("Taxi", "Transport", "02-02-2020", "9.00"))
        expected = model.document(EXPENSE_BOOK)

        orchestrator.backup_remote(BackupTarget.remote(EXPENSE_BOOK, auth_token="t"))
        model.undo(EXPENSE_BOOK)
        assert orchestrator.wait_until_idle(timeout=WAIT)

        content = remote.gists["gist1"]["ExpenseBook.bak"]
        assert JsonDocumentCodec().decode(content, EXPENSE_BOOK) == expected

    def test_auth_failure_keeps_reference(self, orchestrator, prefs, events, remote):
        """Test that a rejected credential reports once and stores nothing."""
        prefs.set_reference(ADDRESS_BOOK, "old")
        remote.error = AuthError("Invalid auth token received")

        future = orchestrator.backup_remote(
            BackupTarget.remote(ADDRESS_BOOK, auth_token="bad")
        )
        assert orchestrator.wait_until_idle(timeout=WAIT)

        assert prefs.reference_for(ADDRESS_BOOK) == "old"
        failures = of_type(events, BackupFailed)
        assert len(terminal(events)) == 1
        assert failures[0].error_kind == "AuthError"
        assert isinstance(future.exception(), AuthError)

    def test_request_state_follows_outcome(self, orchestrator, remote):
        """Test the request bookkeeping for success and failure."""
        requests_seen = []
        original = orchestrator._finish

        def spy(request, event):
            original(request, event)
            requests_seen.append(request)

        with patch.object(orchestrator, "_finish", side_effect=spy):
            orchestrator.backup_remote(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))
            assert orchestrator.wait_until_idle(timeout=WAIT)
            remote.error = NetworkError("offline")
            orchestrator.backup_remote(BackupTarget.remote(EXPENSE_BOOK, auth_token="t"))
            assert orchestrator.wait_until_idle(timeout=WAIT)

        assert [r.state for r in requests_seen] == [
            RequestState.SUCCEEDED,
            RequestState.FAILED,
        ]
        assert isinstance(requests_seen[1].error, NetworkError)
        assert all(r.finished for r in requests_seen)

    def test_concurrent_backups_of_both_books(self, orchestrator, prefs, events, remote):
        """Test that both books are saved in parallel and both references stored."""
        remote.barrier = threading.Barrier(2, timeout=WAIT)

        futures = orchestrator.backup_all_remote("token")

        assert set(futures) == {ADDRESS_BOOK, EXPENSE_BOOK}
        assert orchestrator.wait_until_idle(timeout=WAIT)
        assert orchestrator.pending_count == 0
        assert len(of_type(events, BackupSucceeded)) == 2
        address_ref = prefs.reference_for(ADDRESS_BOOK)
        expense_ref = prefs.reference_for(EXPENSE_BOOK)
        assert {address_ref, expense_ref} == {"gist1", "gist2"}
        assert set(remote.gists[address_ref]) == {"AddressBook.bak"}
        assert set(remote.gists[expense_ref]) == {"ExpenseBook.bak"}
        for event in of_type(events, BackupSucceeded):
            assert event.reference == prefs.reference_for(event.kind)

    def test_duplicate_request_logs_warning(self, orchestrator):
        """Test that a second request for the same book is flagged."""
        target = BackupTarget.remote(ADDRESS_BOOK, auth_token="t")
        with patch("bookvault.backup.orchestrator.logger") as mock_logger:
            orchestrator.backup_remote(target)
            orchestrator.backup_remote(target)
            assert orchestrator.outstanding(ADDRESS_BOOK) == 2
            mock_logger.warning.assert_called_once()
            assert orchestrator.wait_until_idle(timeout=WAIT)

    def test_default_dispatcher_runs_handlers_on_caller_thread(self, model, prefs, remote):
        """Test that a default-built orchestrator still completes on its own thread."""
        channel = EventChannel()
        seen = []
        channel.subscribe(BackupSucceeded, lambda e: seen.append(threading.current_thread()))
        orchestrator = BackupOrchestrator(
            model.stores, channel, prefs, remote_factory=lambda service, token: remote
        )
        try:
            future = orchestrator.backup_remote(
                BackupTarget.remote(ADDRESS_BOOK, auth_token="t")
            )
            assert future.result(timeout=WAIT) == "gist1"
            assert seen == []
            assert prefs.reference_for(ADDRESS_BOOK) is None

            assert orchestrator.wait_until_idle(timeout=WAIT)
        finally:
            orchestrator.shutdown()

        assert isinstance(orchestrator.dispatcher, QueueDispatcher)
        assert remote.threads[0] is not threading.current_thread()
        assert seen == [threading.current_thread()]
        assert prefs.reference_for(ADDRESS_BOOK) == "gist1"

    def test_channel_queue_dispatcher_is_reused(self, model, channel, dispatcher, prefs):
        """Test that the channel's queue dispatcher is the default."""
        orchestrator = BackupOrchestrator(model.stores, channel, prefs)
        assert orchestrator.dispatcher is dispatcher

    def test_inline_dispatcher_rejected_for_remote_requests(self, model, prefs, remote):
        """Test that remote work is refused when handlers would run on workers."""
        orchestrator = BackupOrchestrator(
            model.stores,
            EventChannel(),
            prefs,
            remote_factory=lambda service, token: remote,
            dispatcher=InlineDispatcher(),
        )

        with pytest.raises(DispatcherError):
            orchestrator.backup_remote(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))
        with pytest.raises(DispatcherError):
            orchestrator.wait_until_idle()

        assert orchestrator.pending_count == 0
        assert remote.threads == []
        orchestrator.shutdown()

    def test_submit_after_shutdown_fails_cleanly(self, orchestrator, prefs, events, remote):
        """Test that a request after shutdown is reported and leaves nothing pending."""
        orchestrator.shutdown()

        with pytest.raises(BookVaultError, match="shut down"):
            orchestrator.backup_remote(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))

        assert orchestrator.pending_count == 0
        assert orchestrator.wait_until_idle(timeout=0.5)
        assert remote.threads == []
        assert prefs.reference_for(ADDRESS_BOOK) is None
        failures = of_type(events, BackupFailed)
        assert len(terminal(events)) == 1
        assert failures[0].error_kind == "BookVaultError"

    def test_submit_to_closed_executor_fails_cleanly(
        self, model, channel, dispatcher, prefs, events, remote
    ):
        """Test that an injected executor that was shut down is handled too."""
        executor = ThreadPoolExecutor(max_workers=1)
        executor.shutdown()
        orchestrator = BackupOrchestrator(
            model.stores,
            channel,
            prefs,
            remote_factory=lambda service, token: remote,
            dispatcher=dispatcher,
            executor=executor,
        )
        prefs.set_reference(ADDRESS_BOOK, "old")

        with pytest.raises(BookVaultError, match="shut down"):
            orchestrator.restore_remote(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))

        assert orchestrator.pending_count == 0
        assert orchestrator.outstanding(ADDRESS_BOOK) == 0
        assert len(of_type(events, RestoreFailed)) == 1

    def test_context_manager_shuts_down(self, orchestrator, events):
        """Test that leaving the with block refuses later remote requests."""
        with orchestrator:
            pass

        with pytest.raises(BookVaultError):
            orchestrator.backup_remote(BackupTarget.remote(EXPENSE_BOOK, auth_token="t"))
        assert orchestrator.pending_count == 0


class TestRemoteRestore:
    """Tests for asynchronous remote restores."""

    def test_round_trip_through_stored_reference(self, orchestrator, model, remote, address_book, alice):
        """Test backup to remote then restore via the stored reference."""
        orchestrator.backup_remote(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))
        assert orchestrator.wait_until_idle(timeout=WAIT)
        model.remove_entry(ADDRESS_BOOK, alice)

        future = orchestrator.restore_remote(
            BackupTarget.remote(ADDRESS_BOOK, auth_token="t")
        )
        assert orchestrator.wait_until_idle(timeout=WAIT)

        assert future.result() == address_book
        assert model.document(ADDRESS_BOOK) == address_book
        assert len(model.stores[ADDRESS_BOOK]) == 1

    def test_explicit_reference_wins(self, orchestrator, model, prefs, remote, events):
        """Test that a target reference overrides the stored one."""
        codec = JsonDocumentCodec()
        other = Document(ADDRESS_BOOK, (Person("Carl", "3", "c@x.com", "addr"),))
        remote.gists["explicit"] = {"AddressBook.bak": codec.encode(other)}
        prefs.set_reference(ADDRESS_BOOK, "stored")

        orchestrator.restore_remote(
            BackupTarget.remote(ADDRESS_BOOK, reference="explicit", auth_token="t")
        )
        assert orchestrator.wait_until_idle(timeout=WAIT)

        assert model.document(ADDRESS_BOOK) == other
        restored = of_type(events, DocumentRestored)
        assert restored[0].target.reference == "explicit"

    def test_missing_remote_document(self, orchestrator, model, prefs, events, address_book):
        """Test that an unknown reference fails without touching the store."""
        prefs.set_reference(ADDRESS_BOOK, "gone")

        orchestrator.restore_remote(BackupTarget.remote(ADDRESS_BOOK, auth_token="t"))
        assert orchestrator.wait_until_idle(timeout=WAIT)

        failures = of_type(events, RestoreFailed)
        assert len(terminal(events)) == 1
        assert failures[0].error_kind == "NotFoundError"
        assert model.document(ADDRESS_BOOK) == address_book

    def test_malformed_remote_document(self, orchestrator, model, remote, events, address_book):
        """Test that undecodable remote content is a conversion failure."""
        remote.gists["bad"] = {"AddressBook.bak": "not json"}

        orchestrator.restore_remote(
            BackupTarget.remote(ADDRESS_BOOK, reference="bad", auth_token="t")
        )
        assert orchestrator.wait_until_idle(timeout=WAIT)

        assert of_type(events, RestoreFailed)[0].error_kind == "ConversionError"
        assert model.document(ADDRESS_BOOK) == address_book

    def test_restore_all_needs_every_reference(self, orchestrator, prefs, remote):
        """Test that restore_all_remote submits nothing unless all references exist."""
        prefs.set_reference(ADDRESS_BOOK, "gist1")

        with pytest.raises(ValidationError, match="ExpenseBook"):
            orchestrator.restore_all_remote("t")

        assert orchestrator.pending_count == 0
        assert remote.threads == []

    def test_restore_all_remote(self, orchestrator, model, address_book, expense_book, alice, lunch):
        """Test restoring both books after an online backup."""
        orchestrator.backup_all_remote("t", service=RemoteService.GITHUB)
        assert orchestrator.wait_until_idle(timeout=WAIT)
        model.remove_entry(ADDRESS_BOOK, alice)
        model.remove_entry(EXPENSE_BOOK, lunch)

        futures = orchestrator.restore_all_remote("t")
        assert orchestrator.wait_until_idle(timeout=WAIT)

        assert set(futures) == {ADDRESS_BOOK, EXPENSE_BOOK}
        assert model.document(ADDRESS_BOOK) == address_book
        assert model.document(EXPENSE_BOOK) == expense_book


class TestAllLocal:
    """Tests for backing up and restoring every book locally."""

    def test_backup_all_to_directory(self, orchestrator, tmp_path):
        """Test that each book is written to <dir>/<kind>.bak."""
        results = orchestrator.backup_all_local(tmp_path / "out")

        assert results == {
            ADDRESS_BOOK: tmp_path / "out" / "addressbook.bak",
            EXPENSE_BOOK: tmp_path / "out" / "expensebook.bak",
        }

    def test_backup_all_to_preferred_paths(self, orchestrator, prefs):
        """Test that default paths come from the preferences."""
        results = orchestrator.backup_all_local()
        assert results[ADDRESS_BOOK] == prefs.backup_path_for(ADDRESS_BOOK)
        assert Path(results[EXPENSE_BOOK]).exists()

    def test_restore_all_reports_each_book(self, orchestrator, model, tmp_path, address_book, expense_book):
        """Test that one missing backup does not stop the other restore."""
        orchestrator.backup_local(
            BackupTarget.local(ADDRESS_BOOK, tmp_path / "addressbook.bak")
        )
        model.remove_entry(ADDRESS_BOOK, address_book.entries[0])

        results = orchestrator.restore_all_local(tmp_path)

        assert results[ADDRESS_BOOK] == address_book
        assert isinstance(results[EXPENSE_BOOK], NotFoundError)
        assert model.document(ADDRESS_BOOK) == address_book
        assert model.document(EXPENSE_BOOK) == expense_book
