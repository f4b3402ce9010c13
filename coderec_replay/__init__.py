"""
Replay System Package.

Replay re-derives what the editor showed from the row log alone:
- READ-ONLY: the row log is never modified
- SEQUENTIAL: one lazy pass over the log, one line at a time
- DETERMINISTIC: same log and duration -> same changes, always
- TRANSPARENT: every row that could not be applied as recorded is a warning
"""

from .changes import Change, ReplayStatus
from .engine import ReplayResult, Reconstructor, build_replay, export_replay, iter_changes, replay_session, splice
from .export import changes_to_json, format_srt_time, load_json_export, srt_block
from .recordings import RecordingFiles, list_recordings
from .warnings import ReplayWarning, WarningCode, WarningSeverity

__all__ = [
    "Change",
    "RecordingFiles",
    "Reconstructor",
    "ReplayResult",
    "ReplayStatus",
    "ReplayWarning",
    "WarningCode",
    "WarningSeverity",
    "build_replay",
    "changes_to_json",
    "export_replay",
    "format_srt_time",
    "iter_changes",
    "list_recordings",
    "load_json_export",
    "replay_session",
    "splice",
    "srt_block",
]
