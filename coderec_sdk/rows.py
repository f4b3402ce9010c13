"""
coderec_sdk/rows.py - Edit Row Definitions

One EditRow is one logged capture event. Rows are created once, appended
once, and never mutated.
"""
from dataclasses import dataclass
from enum import Enum

HEADER_COLUMNS = (
    "Sequence",
    "Time",
    "File",
    "RangeOffset",
    "RangeLength",
    "Text",
    "Language",
    "Type",
)
HEADER = ",".join(HEADER_COLUMNS) + "\n"
COLUMN_COUNT = len(HEADER_COLUMNS)


class RowKind(str, Enum):
    CONTENT = "content"  # Incremental splice against the running text
    TAB = "tab"          # Full-document baseline snapshot
    HEADING = "heading"  # Sentinel: encodes to the column header, never sequenced


@dataclass(frozen=True)
class EditRow:
    sequence: int
    elapsed_ms: int
    file_path: str
    range_offset: int
    range_length: int
    text: str
    language_id: str
    kind: RowKind = RowKind.CONTENT

    @property
    def is_baseline(self) -> bool:
        return self.kind == RowKind.TAB
