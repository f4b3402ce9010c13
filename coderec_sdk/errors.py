"""
coderec_sdk/errors.py - Error Taxonomy (Machine-Enforced)

Errors are contracts, not strings. Every recoverable condition surfaces
exactly one Notification and one log line; aborting conditions raise
RecorderException carrying the same RecorderError.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


class Severity(str, Enum):
    INFO = "info"
    ERROR = "error"


class ErrorKind(str, Enum):
    # Recoverable, the operation becomes a no-op
    NO_ACTIVE_CONTEXT = "NO_ACTIVE_CONTEXT"
    ALREADY_ACTIVE = "ALREADY_ACTIVE"
    NOT_ACTIVE = "NOT_ACTIVE"

    # Aborts the in-progress operation
    NO_DESTINATION = "NO_DESTINATION"
    REPLAY_ABORTED = "REPLAY_ABORTED"

    # Logged, queue stalls on the failed task
    WRITE_FAILURE = "WRITE_FAILURE"

    # Per-row replay faults
    RECONSTRUCTION_FAULT = "RECONSTRUCTION_FAULT"
    MALFORMED_ROW = "MALFORMED_ROW"


@dataclass(frozen=True)
class RecorderError:
    """Immutable error object."""
    kind: ErrorKind
    severity: Severity
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the RecorderError into a plain dictionary.

        Returns:
            dict: Dictionary with keys `kind`, `severity`, `message` and
                `details` (empty dict if no details were set).
        """
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "details": self.details or {},
        }


class RecorderException(Exception):
    """Exception raised for conditions that abort an operation."""
    def __init__(self, error: RecorderError):
        self.error = error
        super().__init__(error.message)

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


@dataclass(frozen=True)
class Notification:
    """A user-facing message with a severity tag, consumed by the UI layer."""
    severity: Severity
    message: str
    kind: Optional[ErrorKind] = None


Notifier = Callable[[Notification], None]


def emit(notify: Optional[Notifier], log: logging.Logger, notification: Notification) -> None:
    """
    Deliver a notification to the collaborator and log it once.

    Parameters:
        notify: Collaborator callback, may be None when nobody listens.
        log: Logger of the emitting module.
        notification: The notification to surface.
    """
    level = logging.ERROR if notification.severity == Severity.ERROR else logging.INFO
    log.log(level, "%s", notification.message)
    if notify is not None:
        notify(notification)


# Pre-defined error factories for consistency
def no_active_context(message: str = "No active text editor") -> RecorderError:
    return RecorderError(ErrorKind.NO_ACTIVE_CONTEXT, Severity.ERROR, message)


def already_active() -> RecorderError:
    return RecorderError(ErrorKind.ALREADY_ACTIVE, Severity.INFO, "Already recording")


def not_active() -> RecorderError:
    return RecorderError(ErrorKind.NOT_ACTIVE, Severity.INFO, "Not recording")


def no_destination(reason: str, path: Optional[str] = None) -> RecorderError:
    """
    Create a RecorderError for an unresolvable destination directory.

    Parameters:
        reason: Human-readable explanation, e.g. "Export path does not exist".
        path: The configured path that failed to resolve, if any.
    """
    return RecorderError(
        kind=ErrorKind.NO_DESTINATION,
        severity=Severity.ERROR,
        message=reason,
        details={"path": path} if path is not None else None,
    )


def replay_aborted(reason: str, **details: Any) -> RecorderError:
    return RecorderError(
        kind=ErrorKind.REPLAY_ABORTED,
        severity=Severity.ERROR,
        message=reason,
        details=details or None,
    )


def write_failure(target: str, reason: str) -> RecorderError:
    return RecorderError(
        kind=ErrorKind.WRITE_FAILURE,
        severity=Severity.ERROR,
        message=f"Failed to append to file {target}: {reason}",
        details={"target": target},
    )


def reconstruction_fault(sequence: int, reason: str) -> RecorderError:
    return RecorderError(
        kind=ErrorKind.RECONSTRUCTION_FAULT,
        severity=Severity.ERROR,
        message=f"Row {sequence}: {reason}",
        details={"sequence": sequence},
    )
