"""
coderec_sdk/session.py - Recording Session State

A Session is one recording lifecycle: idle -> active -> ended. It owns the
sequence counter, the start/end timestamps and the identifier of its row log.
The identifier is derived from the start time only, so replay can locate the
log again without a separate mapping.
"""
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from .errors import RecorderException, already_active, no_destination, not_active

logger = logging.getLogger(__name__)

SESSION_PREFIX = "code-recorder-"
_IDENTIFIER_FORMAT = "%Y_%m_%d-%H.%M.%S"


def session_identifier(start_time: datetime) -> str:
    """
    Derive the stable log identifier for a session started at `start_time`.

    Format: code-recorder-YYYY_MM_DD-HH.MM.SS.mmm
    """
    millis = start_time.microsecond // 1000
    return f"{SESSION_PREFIX}{start_time.strftime(_IDENTIFIER_FORMAT)}.{millis:03d}"


def parse_session_identifier(identifier: str) -> Optional[datetime]:
    """Invert session_identifier. Returns None for foreign names."""
    if not identifier.startswith(SESSION_PREFIX):
        return None
    stamp = identifier[len(SESSION_PREFIX):]
    head, sep, millis = stamp.rpartition(".")
    if not sep or len(millis) != 3 or not millis.isdigit():
        return None
    try:
        parsed = datetime.strptime(head, _IDENTIFIER_FORMAT)
    except ValueError:
        return None
    return parsed.replace(microsecond=int(millis) * 1000)


class Session:
    """
    State of one recording.

    The sequence counter starts at 0 and is incremented before each logged
    row, so the first row is sequence 1 and numbers are never reused.
    """

    def __init__(self, export_dir: Optional[Path] = None, clock: Optional[Callable[[], datetime]] = None):
        self.export_dir = Path(export_dir) if export_dir is not None else None
        self._clock = clock or datetime.now
        self.is_active: bool = False
        self.sequence: int = 0
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.identifier: Optional[str] = None

    def now(self) -> datetime:
        return self._clock()

    def begin(self) -> str:
        """
        Start the recording.

        Returns:
            str: The session identifier used to name the row log.

        Raises:
            RecorderException: ALREADY_ACTIVE when already recording,
                NO_DESTINATION when no export directory was resolved.
        """
        if self.is_active:
            raise RecorderException(already_active())
        if self.export_dir is None:
            raise RecorderException(no_destination("No export path specified"))

        self.is_active = True
        self.sequence = 0
        self.start_time = self.now()
        self.end_time = None
        self.identifier = session_identifier(self.start_time)
        logger.debug("Session %s started", self.identifier)
        return self.identifier

    def end(self, forced: bool = False) -> None:
        """
        Stop the recording.

        A normal stop records end_time so replay can close the last change.
        A forced stop leaves end_time unset, which cancels any export.
        """
        if not self.is_active:
            raise RecorderException(not_active())
        self.is_active = False
        if not forced:
            self.end_time = self.now()
        logger.debug("Session %s ended (forced=%s)", self.identifier, forced)

    def next_sequence(self) -> int:
        self.sequence += 1
        return self.sequence

    def elapsed_ms(self, now: Optional[datetime] = None) -> int:
        """Milliseconds since start_time, never negative."""
        if self.start_time is None:
            return 0
        delta = (now or self.now()) - self.start_time
        return max(0, delta // timedelta(milliseconds=1))

    @property
    def duration_ms(self) -> Optional[int]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.elapsed_ms(self.end_time)

    def log_path(self, extension: str = "csv") -> Optional[Path]:
        if self.export_dir is None or self.identifier is None:
            return None
        return self.export_dir / f"{self.identifier}.{extension}"
