"""
coderec_sdk/write_queue.py - Ordered Append Queue

All file writes of a session go through one FIFO queue with a single drain
path. A task leaves the queue only after its append succeeded; a failing
head task stalls the queue, so write order always equals enqueue order.
"""
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Deque, Iterable, List, Optional

from .errors import Notification, Notifier, emit, write_failure

logger = logging.getLogger(__name__)


class FileKind(str, Enum):
    CSV = "csv"    # Row log
    SRT = "srt"    # Subtitle export
    JSON = "json"  # Structured export


@dataclass(frozen=True)
class WriteTask:
    target: Path
    content: str


class WriteQueue:
    def __init__(self, export_dir: Path, identifier: str, notify: Optional[Notifier] = None):
        self.export_dir = Path(export_dir)
        self.identifier = identifier
        self.notify = notify
        self.queue: Deque[WriteTask] = deque()
        self.failed_attempts: int = 0
        self.written: List[Path] = []

    def target_for(self, kind: FileKind) -> Path:
        return self.export_dir / f"{self.identifier}.{FileKind(kind).value}"

    def enqueue(self, content: Optional[str], kind: FileKind = FileKind.CSV) -> bool:
        """
        Append a pending write for the file of the given kind.

        Empty content (e.g. a row encoded without an active session) is
        dropped, not queued.

        Returns:
            bool: True if a task was queued.
        """
        if not content:
            return False
        self.queue.append(WriteTask(self.target_for(kind), content))
        return True

    def enqueue_many(self, contents: Iterable[Optional[str]], kind: FileKind = FileKind.CSV) -> int:
        return sum(1 for content in contents if self.enqueue(content, kind))

    def __len__(self) -> int:
        return len(self.queue)

    @property
    def stalled(self) -> bool:
        return self.failed_attempts > 0 and bool(self.queue)

    def flush(self) -> bool:
        """
        Drain the queue strictly in FIFO order.

        Each task is appended to its target file; the task is removed only
        after the write succeeded. On failure the task stays at the head,
        the failure is logged and notified once, and draining stops.

        Returns:
            bool: True if the queue is empty afterwards.
        """
        while self.queue:
            task = self.queue[0]
            try:
                with task.target.open("a", encoding="utf-8", newline="") as f:
                    f.write(task.content)
            except (OSError, UnicodeError) as e:
                self.failed_attempts += 1
                error = write_failure(str(task.target), str(e))
                emit(self.notify, logger, Notification(error.severity, error.message, error.kind))
                return False

            self.queue.popleft()
            self.failed_attempts = 0
            if task.target not in self.written:
                self.written.append(task.target)
        return True
