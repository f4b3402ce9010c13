"""
changes.py - Reconstructed change structures for the replay system.

A Change is the full document text as it stood during [start_time, end_time).
Changes are derived from the row log during replay and never persisted,
except wholesale in the structured export.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ReplayStatus(Enum):
    """
    Outcome of a replay.

    CLEAN: every row applied as recorded (INFO notes allowed).
    DEGRADED: at least one WARNING-severity replay warning was raised.
    """
    CLEAN = "CLEAN"
    DEGRADED = "DEGRADED"


@dataclass
class Change:
    """
    A reconstructed full-text state with its validity interval.

    INVARIANT: start_time <= end_time once closed; sequence numbers of the
    emitted changes form a contiguous run starting at 1.
    """
    sequence: int
    file: str
    start_time: int  # elapsed ms of the row that produced it
    end_time: int    # elapsed ms of the next change, or the session duration
    language: str
    text: str

    def close(self, end_time: int) -> "Change":
        # Late rows (clock skew) never produce negative intervals
        self.end_time = max(self.start_time, end_time)
        return self

    def same_state(self, file: str, start_time: int, text: str, language: str) -> bool:
        return (
            self.start_time == start_time
            and self.file == file
            and self.text == text
            and self.language == language
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "file": self.file,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "language": self.language,
            "text": self.text,
        }
