"""
coderec_sdk/codec.py - Row Codec

Encodes one edit event into a single delimited line and decodes it back.

Row layout (fixed, 8 columns):
    sequence,elapsed_ms,"file_path",range_offset,range_length,"text","language_id",kind

Escaping (file path, text and language id):
- backslash        -> \\\\
- carriage return  -> \\r   (so CRLF becomes the literal \\r\\n)
- line feed        -> \\n
- tab              -> \\t
- NUL              -> \\0
- double quote     -> ""   (CSV quote doubling inside the quoted span)

Every newline variant is escaped, so one row is always one physical line.
"""
import csv
import re
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .rows import COLUMN_COUNT, HEADER, EditRow, RowKind

if TYPE_CHECKING:
    from .session import Session

_ESCAPES = {
    "\\": "\\\\",
    "\r": "\\r",
    "\n": "\\n",
    "\t": "\\t",
    "\x00": "\\0",
}
_UNESCAPES = {"\\": "\\", "r": "\r", "n": "\n", "t": "\t", "0": "\x00"}

_ESCAPE_RE = re.compile(r"[\\\r\n\t\x00]")
_UNESCAPE_RE = re.compile(r"\\([\\rnt0])")


def escape_field(value: Optional[str]) -> str:
    """
    Escape a free-text field for a quoted row column.

    Parameters:
        value: Raw field value; None is treated as the empty string.

    Returns:
        str: The escaped value, without the surrounding quotes.
    """
    if not value:
        return ""
    # Single pass: a backslash emitted by one rule is never re-read by another
    escaped = _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], value)
    return escaped.replace('"', '""')


def unescape_field(value: str) -> str:
    """
    Invert escape_field for a field whose quote doubling was already removed.

    Unknown backslash sequences are kept verbatim.
    """
    return _UNESCAPE_RE.sub(lambda m: _UNESCAPES[m.group(1)], value)


def format_row(row: EditRow) -> str:
    """Format an EditRow as one newline-terminated line."""
    if row.kind == RowKind.HEADING:
        return HEADER
    return (
        f'{row.sequence},{row.elapsed_ms},"{escape_field(row.file_path)}",'
        f'{row.range_offset},{row.range_length},"{escape_field(row.text)}",'
        f'"{escape_field(row.language_id)}",{row.kind.value}\n'
    )


def encode(
    session: "Session",
    *,
    sequence: int = 0,
    file_path: str = "",
    range_offset: int = 0,
    range_length: int = 0,
    text: str = "",
    language_id: str = "",
    kind: RowKind = RowKind.CONTENT,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Encode a capture event into a row line, timestamped against the session.

    Parameters:
        session: The recording session providing the timing baseline.
        sequence: Sequence number assigned by the caller (ignored for HEADING).
        file_path: Relative path of the edited document.
        range_offset: Start of the replaced range (0 for TAB rows).
        range_length: Length of the replaced range (0 for TAB rows).
        text: Inserted text, or the full document for TAB rows.
        language_id: Free-form language identifier.
        kind: CONTENT, TAB, or the HEADING sentinel.
        now: Capture time; defaults to the session clock.

    Returns:
        The newline-terminated line, or None when the session has no start time.
    """
    if session.start_time is None:
        return None

    if kind == RowKind.HEADING:
        return HEADER

    row = EditRow(
        sequence=sequence,
        elapsed_ms=session.elapsed_ms(now),
        file_path=file_path,
        range_offset=range_offset,
        range_length=range_length,
        text=text,
        language_id=language_id,
        kind=kind,
    )
    return format_row(row)


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


def decode(line: str) -> Optional[EditRow]:
    """
    Decode one row line.

    Delimiters inside quoted spans are not split on, so the text column may
    legitimately contain commas.

    Returns:
        The decoded EditRow, or None for a malformed line (including the
        header, whose first column is not an integer).
    """
    line = line.rstrip("\r\n")
    if not line:
        return None

    try:
        fields = next(csv.reader([line], strict=True))
    except (csv.Error, StopIteration):
        return None

    if len(fields) != COLUMN_COUNT:
        return None

    sequence = _parse_int(fields[0])
    if sequence is None:
        return None

    elapsed_ms = _parse_int(fields[1])
    range_offset = _parse_int(fields[3])
    range_length = _parse_int(fields[4])
    if elapsed_ms is None or range_offset is None or range_length is None:
        return None

    try:
        kind = RowKind(fields[7].strip().lower())
    except ValueError:
        return None
    if kind == RowKind.HEADING:
        return None

    return EditRow(
        sequence=sequence,
        elapsed_ms=elapsed_ms,
        file_path=unescape_field(fields[2]),
        range_offset=range_offset,
        range_length=range_length,
        text=unescape_field(fields[5]),
        language_id=unescape_field(fields[6]),
        kind=kind,
    )
