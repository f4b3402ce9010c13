"""
Capture-side package.

Turns editor change notifications into an append-only row log, one file per
recording session. Rows are written in sequence order and never rewritten.
"""

from .codec import decode, encode
from .errors import ErrorKind, Notification, RecorderException, Severity
from .recorder import Document, EditEvent, Recorder
from .rows import HEADER, EditRow, RowKind
from .session import Session
from .write_queue import FileKind, WriteQueue

__version__ = "0.1.0"

__all__ = [
    "HEADER",
    "Document",
    "EditEvent",
    "EditRow",
    "ErrorKind",
    "FileKind",
    "Notification",
    "Recorder",
    "RecorderException",
    "RowKind",
    "Session",
    "Severity",
    "WriteQueue",
    "decode",
    "encode",
]
