"""
engine.py - Core replay engine.

Reads a session's row log line by line and re-applies every edit to a running
text buffer, producing one Change per distinct full-text state.

CRITICAL INVARIANTS:
1. The log is read lazily, one line at a time; only the current and the
   previous state are held in memory (plus the change list when JSON export
   is requested).
2. A change is closed, and streamed to the SRT export, as soon as its
   successor is known.
3. Missing prerequisites (destination, timestamps, unreadable log) abort the
   replay before any export file is written.
4. Per-row faults are recovered locally (clamped) unless strict mode is on.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, TextIO, Tuple

from coderec_sdk.codec import decode
from coderec_sdk.errors import RecorderException, no_destination, reconstruction_fault, replay_aborted
from coderec_sdk.rows import HEADER_COLUMNS, RowKind
from coderec_sdk.session import Session
from coderec_sdk.write_queue import FileKind, WriteQueue

from .changes import Change, ReplayStatus
from .export import JSON, SRT, changes_to_json, normalize_formats, srt_block
from .warnings import ReplayWarning, WarningSeverity

logger = logging.getLogger(__name__)

UTF16 = "utf-16"
CODEPOINT = "codepoint"
OFFSET_ENCODINGS = (UTF16, CODEPOINT)

# Characters outside the BMP take two UTF-16 code units
_ASTRAL_RE = re.compile("[\U00010000-\U0010FFFF]")
_HEADER_PREFIX = HEADER_COLUMNS[0] + ","


@dataclass
class ReplayResult:
    """Complete replay result for one row log."""
    session_id: str
    duration_ms: int
    change_count: int = 0
    row_count: int = 0
    skipped_rows: int = 0
    changes: List[Change] = field(default_factory=list)
    warnings: List[ReplayWarning] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)

    @property
    def status(self) -> ReplayStatus:
        """INFO notes (e.g. a file switch without baseline) do not degrade the replay."""
        degraded = any(w.severity == WarningSeverity.WARNING for w in self.warnings)
        return ReplayStatus.DEGRADED if degraded else ReplayStatus.CLEAN

    @property
    def exit_code(self) -> int:
        """0 = CLEAN, 1 = DEGRADED."""
        return 0 if self.status == ReplayStatus.CLEAN else 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "duration_ms": self.duration_ms,
            "change_count": self.change_count,
            "row_count": self.row_count,
            "skipped_rows": self.skipped_rows,
            "warnings": [w.to_dict() for w in self.warnings],
            "outputs": [str(p) for p in self.outputs],
        }


def splice(
    text: str,
    offset: int,
    length: int,
    insert: str,
    offset_encoding: str = UTF16,
) -> Tuple[str, bool]:
    """
    Replace [offset, offset + length) of `text` with `insert`.

    Offsets count UTF-16 code units (editor semantics) or code points.
    Out-of-range values are clamped into the text.

    Returns:
        Tuple[str, bool]: The new text, and whether the range was in bounds.
    """
    if offset_encoding not in OFFSET_ENCODINGS:
        raise ValueError(f"Unknown offset encoding: {offset_encoding!r}")

    wide = offset_encoding == UTF16 and _ASTRAL_RE.search(text) is not None
    if wide:
        units = text.encode("utf-16-le", "surrogatepass")
        size = len(units) // 2
    else:
        size = len(text)

    in_bounds = 0 <= offset and 0 <= length and offset + length <= size
    start = min(max(offset, 0), size)
    end = min(start + max(length, 0), size)

    if wide:
        head = units[: start * 2].decode("utf-16-le", "surrogatepass")
        tail = units[end * 2:].decode("utf-16-le", "surrogatepass")
    else:
        head, tail = text[:start], text[end:]
    return head + insert + tail, in_bounds


def _text_size(text: str, offset_encoding: str) -> int:
    if offset_encoding == UTF16:
        return len(text) + len(_ASTRAL_RE.findall(text))
    return len(text)


class Reconstructor:
    """
    Stateful single-pass reconstruction over the lines of one row log.

    Counters and warnings accumulate while `changes()` is consumed.
    """

    def __init__(
        self,
        duration_ms: Optional[int] = None,
        strict: bool = False,
        offset_encoding: str = UTF16,
    ):
        if offset_encoding not in OFFSET_ENCODINGS:
            raise ValueError(f"Unknown offset encoding: {offset_encoding!r}")
        self.duration_ms = duration_ms
        self.strict = strict
        self.offset_encoding = offset_encoding
        self.warnings: List[ReplayWarning] = []
        self.row_count = 0
        self.skipped_rows = 0
        self.change_count = 0
        self.last_elapsed_ms = 0

    def _fault(self, warning: ReplayWarning) -> None:
        if self.strict:
            raise RecorderException(reconstruction_fault(warning.sequence, warning.message))
        logger.warning("%s", warning.message)
        self.warnings.append(warning)

    def _apply(self, row, previous: Optional[Change]) -> str:
        if row.kind == RowKind.TAB:
            return row.text

        if previous is None:
            self._fault(ReplayWarning.baseline_missing(row.sequence))
            base = ""
        else:
            base = previous.text
            if previous.file != row.file_path:
                self.warnings.append(
                    ReplayWarning.file_switch_without_baseline(row.sequence, row.file_path, previous.file)
                )

        new_text, in_bounds = splice(base, row.range_offset, row.range_length, row.text, self.offset_encoding)
        if not in_bounds:
            self._fault(ReplayWarning.reconstruction_fault(
                row.sequence,
                row.range_offset,
                row.range_length,
                _text_size(base, self.offset_encoding),
            ))
        return new_text

    def changes(self, lines: Iterable[str]) -> Iterator[Change]:
        """
        Yield each Change as soon as it is closed.

        The last change is closed with `duration_ms`, or with the elapsed
        time of the last row when no duration was given.
        """
        previous: Optional[Change] = None

        for line in lines:
            row = decode(line)
            if row is None:
                if line.strip() and not line.startswith(_HEADER_PREFIX):
                    self.skipped_rows += 1
                continue

            self.row_count += 1
            self.last_elapsed_ms = max(self.last_elapsed_ms, row.elapsed_ms)
            new_text = self._apply(row, previous)

            # Skip exporting states identical to the previous one
            if previous is not None and previous.same_state(
                row.file_path, row.elapsed_ms, new_text, row.language_id
            ):
                continue

            change = Change(
                sequence=previous.sequence + 1 if previous else 1,
                file=row.file_path,
                start_time=row.elapsed_ms,
                end_time=row.elapsed_ms,
                language=row.language_id,
                text=new_text,
            )
            if previous is not None:
                self.change_count += 1
                yield previous.close(change.start_time)
            previous = change

        if previous is not None:
            end = self.duration_ms if self.duration_ms is not None else self.last_elapsed_ms
            self.change_count += 1
            yield previous.close(end)


def iter_changes(
    lines: Iterable[str],
    duration_ms: Optional[int] = None,
    *,
    strict: bool = False,
    offset_encoding: str = UTF16,
    warnings: Optional[List[ReplayWarning]] = None,
) -> Iterator[Change]:
    """
    Lazily reconstruct changes from row lines.

    Parameters:
        lines: Iterable of row log lines (the header and malformed lines are skipped).
        duration_ms: Session duration used to close the last change.
        strict: Raise on reconstruction faults instead of clamping.
        offset_encoding: "utf-16" or "codepoint".
        warnings: Optional list receiving replay warnings.
    """
    reconstructor = Reconstructor(duration_ms, strict=strict, offset_encoding=offset_encoding)
    try:
        yield from reconstructor.changes(lines)
    finally:
        if warnings is not None:
            warnings.extend(reconstructor.warnings)


def _open_log(log_path: Path) -> TextIO:
    try:
        return open(log_path, "r", encoding="utf-8", newline="")
    except OSError as e:
        raise RecorderException(replay_aborted(f"Cannot open row log: {e}", path=str(log_path))) from e


def build_replay(
    log_path: Path,
    duration_ms: Optional[int] = None,
    *,
    strict: bool = False,
    offset_encoding: str = UTF16,
    collect: bool = True,
) -> ReplayResult:
    """
    Reconstruct a row log without exporting anything.

    Raises:
        RecorderException: REPLAY_ABORTED if the log cannot be opened,
            RECONSTRUCTION_FAULT in strict mode.
    """
    log_path = Path(log_path)
    reconstructor = Reconstructor(duration_ms, strict=strict, offset_encoding=offset_encoding)
    changes: List[Change] = []
    with _open_log(log_path) as fh:
        for change in reconstructor.changes(fh):
            if collect:
                changes.append(change)

    return _result(log_path.stem, reconstructor, changes)


def _result(session_id: str, reconstructor: Reconstructor, changes: List[Change]) -> ReplayResult:
    duration = reconstructor.duration_ms
    if duration is None:
        duration = reconstructor.last_elapsed_ms
    return ReplayResult(
        session_id=session_id,
        duration_ms=duration,
        change_count=reconstructor.change_count,
        row_count=reconstructor.row_count,
        skipped_rows=reconstructor.skipped_rows,
        changes=changes,
        warnings=list(reconstructor.warnings),
    )


def export_replay(
    log_path: Path,
    duration_ms: Optional[int],
    formats: Sequence[str],
    queue: WriteQueue,
    *,
    strict: bool = False,
    offset_encoding: str = UTF16,
    overwrite: bool = False,
) -> ReplayResult:
    """
    Reconstruct a row log and write the requested exports through `queue`.

    SRT blocks are queued and flushed one per closed change while the log is
    being read; the JSON array is queued once after the last change.

    Parameters:
        log_path: The session's `.csv` row log.
        duration_ms: Session duration; the last row's time when None.
        formats: Subset of {"SRT", "JSON"}; empty runs the replay only.
        queue: Write queue targeting the export directory and identifier.
        strict: Raise on reconstruction faults instead of clamping.
        offset_encoding: "utf-16" or "codepoint".
        overwrite: Replace existing export files instead of aborting.

    Raises:
        RecorderException: REPLAY_ABORTED when the log cannot be opened or an
            export file already exists; RECONSTRUCTION_FAULT in strict mode.
    """
    log_path = Path(log_path)
    try:
        formats = normalize_formats(formats)
    except ValueError as e:
        raise RecorderException(replay_aborted(str(e))) from e

    reconstructor = Reconstructor(duration_ms, strict=strict, offset_encoding=offset_encoding)
    collected: List[Change] = []
    targets = {fmt: queue.target_for(FileKind(fmt.lower())) for fmt in formats}
    with _open_log(log_path) as fh:
        # Existing exports are only touched once the log is known to be readable
        for target in targets.values():
            if target.exists():
                if not overwrite:
                    raise RecorderException(replay_aborted("Export file already exists", path=str(target)))
                target.unlink()

        for change in reconstructor.changes(fh):
            if SRT in targets:
                queue.enqueue(srt_block(change), FileKind.SRT)
                queue.flush()
            if JSON in targets:
                collected.append(change)

    if JSON in targets:
        queue.enqueue(changes_to_json(collected), FileKind.JSON)
        queue.flush()

    result = _result(log_path.stem, reconstructor, collected)
    result.outputs = [target for target in targets.values() if target.exists()]
    logger.info(
        "Replayed %s: %d row(s), %d change(s), %d skipped, %d warning(s)",
        result.session_id,
        result.row_count,
        result.change_count,
        result.skipped_rows,
        len(result.warnings),
    )
    return result


def replay_session(
    session: Session,
    queue: WriteQueue,
    formats: Sequence[str],
    *,
    strict: bool = False,
    offset_encoding: str = UTF16,
) -> ReplayResult:
    """
    Replay a completed session's row log and write its exports.

    Prerequisites: a destination directory, start and end timestamps, an
    inactive session, and a fully flushed row log. Any missing prerequisite
    aborts with no export written.

    Raises:
        RecorderException: NO_DESTINATION or REPLAY_ABORTED.
    """
    if session.export_dir is None:
        raise RecorderException(no_destination("No export path specified"))
    if session.start_time is None or session.end_time is None:
        raise RecorderException(replay_aborted("Recording date time is not properly set"))
    if session.is_active:
        raise RecorderException(replay_aborted("Recording is still active"))
    if not queue.flush():
        raise RecorderException(replay_aborted("Row log has unwritten rows", pending=len(queue)))

    return export_replay(
        session.log_path(FileKind.CSV.value),
        session.duration_ms,
        formats,
        queue,
        strict=strict,
        offset_encoding=offset_encoding,
    )
