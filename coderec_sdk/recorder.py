"""
coderec_sdk/recorder.py - Main SDK Entry Point

The Recorder is the boundary to the host editor. The host calls plain,
synchronous methods; nothing is scheduled behind its back:

    recorder.start(document)
    recorder.on_edit_event(document, events)       # per change notification
    recorder.on_active_document_changed(document)  # per editor switch
    recorder.stop()                                # replay + export
    recorder.retry_flush()                         # after a write failure
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from .codec import encode
from .config import RecorderSettings, resolve_export_path
from .errors import (
    Notification,
    Notifier,
    RecorderError,
    RecorderException,
    Severity,
    already_active,
    emit,
    no_active_context,
    not_active,
    replay_aborted,
)
from .rows import RowKind
from .session import Session
from .write_queue import FileKind, WriteQueue

if TYPE_CHECKING:
    from coderec_replay.engine import ReplayResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """Snapshot of the active document, as supplied by the host."""
    path: str
    language_id: str = ""
    text: str = ""


@dataclass(frozen=True)
class EditEvent:
    """One raw content change: replace [range_offset, range_offset + range_length) with text."""
    range_offset: int
    range_length: int
    text: str


@dataclass
class PendingWrites:
    """Unwritten tasks of a stopped session, kept until storage recovers."""
    session: Session
    queue: WriteQueue
    replay: bool  # Replay was blocked by the unwritten rows


def format_display_time(seconds: int) -> str:
    """Timer text: MM:SS, or HH:MM:SS once an hour has passed."""
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class Recorder:
    def __init__(
        self,
        settings: Optional[RecorderSettings] = None,
        notify: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or RecorderSettings()
        self.notify = notify
        self.clock = clock
        self.session: Optional[Session] = None
        self.queue: Optional[WriteQueue] = None
        self.last_result: Optional["ReplayResult"] = None
        self.pending: List[PendingWrites] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_recording(self) -> bool:
        return self.session is not None and self.session.is_active

    @property
    def elapsed_seconds(self) -> int:
        if not self.is_recording:
            return 0
        return self.session.elapsed_ms() // 1000

    def status_text(self) -> str:
        if self.is_recording:
            return f"Recording {format_display_time(self.elapsed_seconds)}"
        return "Start Recording"

    def _emit(self, message: str, severity: Severity = Severity.INFO) -> None:
        emit(self.notify, logger, Notification(severity, message))

    def _emit_error(self, error: RecorderError) -> None:
        emit(self.notify, logger, Notification(error.severity, error.message, error.kind))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, document: Optional[Document]) -> bool:
        """
        Begin a recording of `document`.

        Emits the column header and a TAB baseline row (sequence 1) with the
        document's full text.

        Returns:
            bool: True if a new session was started.
        """
        if document is None:
            self._emit_error(no_active_context())
            return False
        if self.is_recording:
            self._emit_error(already_active())
            return False

        if self.pending:
            self.retry_flush()

        try:
            export_dir = resolve_export_path(self.settings)
        except RecorderException as e:
            self._emit_error(e.error)
            return False

        session = Session(export_dir, clock=self.clock)
        identifier = session.begin()
        self.session = session
        self.queue = WriteQueue(export_dir, identifier, notify=self.notify)
        self._emit("Recording started")

        self.queue.enqueue(encode(session, kind=RowKind.HEADING))
        self._enqueue_row(document, 0, 0, document.text, RowKind.TAB)
        self._flush()
        return True

    def stop(self, force: bool = False) -> Optional["ReplayResult"]:
        """
        End the recording.

        A normal stop replays the row log and writes the configured exports.
        A forced stop cancels: rows already on disk stay, nothing is exported.

        Rows that could not be written yet are kept in `pending` and written
        by `retry_flush()`; a replay blocked by them runs once they are.

        Returns:
            The ReplayResult, or None when cancelled, deferred or aborted.
        """
        if not self.is_recording:
            self._emit_error(not_active())
            return None

        session, queue = self.session, self.queue
        session.end(forced=force)
        replay_deferred = False
        try:
            if force:
                self._emit("Recording cancelled")
                return None

            self._emit("Recording finished")
            if not self.settings.EXPORT_FORMATS:
                self._emit("No export formats specified")

            if not queue.flush():
                replay_deferred = True
                self._emit_error(replay_aborted("Row log has unwritten rows", pending=len(queue)))
                return None

            return self._replay(session, queue)
        finally:
            self.session = None
            self.queue = None
            self._keep_pending(session, queue, replay_deferred)

    def retry_flush(self) -> bool:
        """
        Write the rows left over by stopped sessions.

        Returns:
            bool: True if nothing is pending anymore.
        """
        still_pending: List[PendingWrites] = []
        for item in self.pending:
            if not item.queue.flush():
                still_pending.append(item)
                continue
            logger.info("Wrote pending rows of %s", item.session.identifier)
            if item.replay:
                self._replay(item.session, item.queue)
                if len(item.queue):
                    still_pending.append(PendingWrites(item.session, item.queue, False))
        self.pending = still_pending
        return not self.pending

    def _replay(self, session: Session, queue: WriteQueue) -> Optional["ReplayResult"]:
        from coderec_replay.engine import replay_session

        try:
            result = replay_session(
                session,
                queue,
                list(self.settings.EXPORT_FORMATS),
                strict=self.settings.STRICT_REPLAY,
                offset_encoding=self.settings.OFFSET_ENCODING,
            )
        except RecorderException as e:
            self._emit_error(e.error)
            return None

        self.last_result = result
        return result

    def _keep_pending(self, session: Session, queue: Optional[WriteQueue], replay: bool) -> None:
        if queue is None or not len(queue):
            return
        logger.warning("Keeping %d unwritten task(s) of %s for retry", len(queue), session.identifier)
        self.pending.append(PendingWrites(session, queue, replay))

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def on_edit_event(self, document: Optional[Document], events: Iterable[EditEvent]) -> int:
        """
        Record the content changes of one change notification.

        Every event becomes one CONTENT row with the next sequence number;
        the queue is flushed once per call.

        Returns:
            int: Number of rows queued.
        """
        if not self.is_recording or document is None or self.is_excluded(document):
            return 0
        count = 0
        for event in events:
            if self._enqueue_row(document, event.range_offset, event.range_length, event.text, RowKind.CONTENT):
                count += 1
        if count:
            self._flush()
        return count

    def on_active_document_changed(self, document: Optional[Document]) -> bool:
        """Emit a TAB baseline row for the newly active document."""
        if not self.is_recording or document is None or self.is_excluded(document):
            return False
        queued = self._enqueue_row(document, 0, 0, document.text, RowKind.TAB)
        if queued:
            self._flush()
        return queued

    def is_excluded(self, document: Document) -> bool:
        """Documents inside the export directory are never recorded."""
        if self.session is None or self.session.export_dir is None:
            return False
        try:
            Path(document.path).resolve().relative_to(self.session.export_dir)
        except ValueError:
            return False
        return True

    def relative_path(self, document: Document) -> str:
        workspace = self.settings.WORKSPACE_FOLDER
        if workspace:
            try:
                rel = Path(document.path).resolve().relative_to(Path(workspace).resolve())
            except ValueError:
                pass
            else:
                return str(PurePosixPath(*rel.parts))
        return document.path

    def _enqueue_row(
        self,
        document: Document,
        range_offset: int,
        range_length: int,
        text: str,
        kind: RowKind,
    ) -> bool:
        session = self.session
        row = encode(
            session,
            sequence=session.next_sequence(),
            file_path=self.relative_path(document),
            range_offset=range_offset,
            range_length=range_length,
            text=text,
            language_id=document.language_id,
            kind=kind,
        )
        return self.queue.enqueue(row, FileKind.CSV)

    def _flush(self) -> None:
        """Drain the queue; end the session if the destination disappeared."""
        try:
            resolve_export_path(self.settings)
        except RecorderException as e:
            self._emit_error(e.error)
            self.stop(force=True)
            return
        self.queue.flush()
