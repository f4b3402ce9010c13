"""
warnings.py - Warning system for replay transparency.

Warnings make explicit every row that could not be applied as recorded:
- Out-of-range splices (clamped)
- CONTENT rows without a baseline
- File switches without a TAB baseline

Malformed lines are not warnings; they are counted and skipped.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class WarningSeverity(Enum):
    """Severity levels for replay warnings."""
    INFO = "INFO"          # Metadata notes
    WARNING = "WARNING"    # Text may differ from what the editor showed


class WarningCode(Enum):
    """
    Standard warning codes.

    These codes are STABLE and machine-readable.
    """
    RECONSTRUCTION_FAULT = "RECONSTRUCTION_FAULT"                  # Splice range outside the buffer
    BASELINE_MISSING = "BASELINE_MISSING"                          # CONTENT row before any TAB row
    FILE_SWITCH_WITHOUT_BASELINE = "FILE_SWITCH_WITHOUT_BASELINE"  # CONTENT row for another file


WARNING_MESSAGES = {
    WarningCode.RECONSTRUCTION_FAULT: (
        "Row {sequence}: range [{offset}, {offset}+{length}) outside text of length {size}, clamped"
    ),
    WarningCode.BASELINE_MISSING: "Row {sequence}: content change without a baseline, applied to empty text",
    WarningCode.FILE_SWITCH_WITHOUT_BASELINE: (
        "Row {sequence}: content change for {file} applied to text of {previous}"
    ),
}


@dataclass
class ReplayWarning:
    """A warning about one row of the replayed log."""
    severity: WarningSeverity
    code: WarningCode
    message: str
    sequence: Optional[int] = None  # Row sequence in the log

    @classmethod
    def reconstruction_fault(cls, sequence: int, offset: int, length: int, size: int) -> "ReplayWarning":
        """
        Create a warning for a splice whose range falls outside the running text.

        Parameters:
            sequence (int): Sequence number of the offending row.
            offset (int): Recorded range offset.
            length (int): Recorded range length.
            size (int): Length of the running text, in offset units.
        """
        return cls(
            severity=WarningSeverity.WARNING,
            code=WarningCode.RECONSTRUCTION_FAULT,
            message=WARNING_MESSAGES[WarningCode.RECONSTRUCTION_FAULT].format(
                sequence=sequence, offset=offset, length=length, size=size
            ),
            sequence=sequence,
        )

    @classmethod
    def baseline_missing(cls, sequence: int) -> "ReplayWarning":
        return cls(
            severity=WarningSeverity.WARNING,
            code=WarningCode.BASELINE_MISSING,
            message=WARNING_MESSAGES[WarningCode.BASELINE_MISSING].format(sequence=sequence),
            sequence=sequence,
        )

    @classmethod
    def file_switch_without_baseline(cls, sequence: int, file: str, previous: str) -> "ReplayWarning":
        return cls(
            severity=WarningSeverity.INFO,
            code=WarningCode.FILE_SWITCH_WITHOUT_BASELINE,
            message=WARNING_MESSAGES[WarningCode.FILE_SWITCH_WITHOUT_BASELINE].format(
                sequence=sequence, file=file, previous=previous
            ),
            sequence=sequence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code.value,
            "message": self.message,
            "sequence": self.sequence,
        }
