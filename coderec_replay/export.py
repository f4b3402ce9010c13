"""
export.py - Export formatters for reconstructed changes.

Two independent formats:
- SRT: one numbered block per change, streamed as each change closes.
- JSON: the whole change sequence as one array, written once at the end.

Formatting is pure; writing goes through the session's WriteQueue.
"""

from pathlib import Path
from typing import Iterable, List, Sequence, Union

from .changes import Change
from .schemas import ChangeListAdapter, ChangeSchema, SubtitlePayloadSchema

SRT = "SRT"
JSON = "JSON"
EXPORT_FORMATS = (JSON, SRT)


def normalize_formats(formats: Iterable[str]) -> List[str]:
    """
    Upper-case and de-duplicate requested formats, keeping request order.

    Raises:
        ValueError: If a format is not one of EXPORT_FORMATS.
    """
    result: List[str] = []
    for fmt in formats:
        value = fmt.strip().upper()
        if value not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt!r}")
        if value not in result:
            result.append(value)
    return result


def format_srt_time(milliseconds: int) -> str:
    """
    Render a millisecond count as an SRT timestamp (HH:MM:SS,mmm).

    Purely a function of the count: 3661500 -> "01:01:01,500".
    Hours are not wrapped at 24.
    """
    milliseconds = max(0, int(milliseconds))
    seconds, millis = divmod(milliseconds, 1000)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def srt_block(change: Change) -> str:
    """
    Render one change as an SRT block.

    The text line is a compact JSON object with `text`, `file` and `language`,
    so multi-line documents stay on one line.
    """
    payload = SubtitlePayloadSchema(text=change.text, file=change.file, language=change.language)
    return (
        f"{change.sequence}\n"
        f"{format_srt_time(change.start_time)} --> {format_srt_time(change.end_time)}\n"
        f"{payload.model_dump_json()}\n\n"
    )


def changes_to_json(changes: Sequence[Change]) -> str:
    """Serialize the full change sequence as one JSON array."""
    schemas = [ChangeSchema.from_change(c) for c in changes]
    return ChangeListAdapter.dump_json(schemas, by_alias=True).decode("utf-8")


def load_json_export(source: Union[str, Path]) -> List[Change]:
    """
    Parse a structured export back into changes.

    Parameters:
        source: Path to a `.json` export file.

    Raises:
        pydantic.ValidationError: If the file is not a valid change array.
    """
    data = Path(source).read_text(encoding="utf-8")
    return [schema.to_change() for schema in ChangeListAdapter.validate_json(data)]
