"""
recordings.py - Recording files discovery.

Groups the row logs and exports of an export directory by session
identifier. Read-only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from coderec_sdk.session import SESSION_PREFIX, parse_session_identifier
from coderec_sdk.write_queue import FileKind


@dataclass
class RecordingFiles:
    identifier: str
    started_at: Optional[datetime]
    files: Dict[FileKind, Path] = field(default_factory=dict)

    @property
    def log(self) -> Optional[Path]:
        return self.files.get(FileKind.CSV)

    @property
    def exported(self) -> List[FileKind]:
        return [kind for kind in (FileKind.SRT, FileKind.JSON) if kind in self.files]


def list_recordings(export_dir: Path) -> List[RecordingFiles]:
    """
    List the recordings found in `export_dir`, newest first.

    Only files named after a session identifier with a known extension are
    considered; anything else in the directory is ignored.
    """
    export_dir = Path(export_dir)
    if not export_dir.is_dir():
        return []

    recordings: Dict[str, RecordingFiles] = {}
    for path in export_dir.glob(f"{SESSION_PREFIX}*"):
        if not path.is_file():
            continue
        try:
            kind = FileKind(path.suffix.lstrip(".").lower())
        except ValueError:
            continue
        started_at = parse_session_identifier(path.stem)
        if started_at is None:
            continue
        entry = recordings.setdefault(path.stem, RecordingFiles(path.stem, started_at))
        entry.files[kind] = path

    return sorted(recordings.values(), key=lambda r: r.started_at, reverse=True)
