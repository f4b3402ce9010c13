import os
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import RecorderException, no_destination

WORKSPACE_TOKEN = "${workspaceFolder}"
SUPPORTED_FORMATS = ("JSON", "SRT")


class RecorderSettings(BaseSettings):
    # Export
    EXPORT_PATH: str = f"{WORKSPACE_TOKEN}/code-recorder/"
    CREATE_PATH_OUTSIDE_WORKSPACE: bool = False
    EXPORT_FORMATS: List[str] = ["JSON", "SRT"]

    # Workspace
    WORKSPACE_FOLDER: Optional[str] = None

    # Replay
    OFFSET_ENCODING: Literal["utf-16", "codepoint"] = "utf-16"
    STRICT_REPLAY: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CODEREC_", env_file=".env", extra="ignore")

    @field_validator("EXPORT_FORMATS")
    @classmethod
    def _normalize_formats(cls, value: List[str]) -> List[str]:
        formats: List[str] = []
        for item in value:
            fmt = item.strip().upper()
            if fmt not in SUPPORTED_FORMATS:
                raise ValueError(f"Unsupported export format: {item!r}")
            if fmt not in formats:
                formats.append(fmt)
        return formats


def resolve_export_path(settings: RecorderSettings) -> Path:
    """
    Resolve the configured export path to an existing directory.

    - `${workspaceFolder}` is replaced by WORKSPACE_FOLDER and the directory
      is created when missing.
    - Any other path must exist unless CREATE_PATH_OUTSIDE_WORKSPACE is set.

    Returns:
        Path: Absolute, normalized export directory.

    Raises:
        RecorderException: NO_DESTINATION when the path cannot be resolved.
    """
    raw = (settings.EXPORT_PATH or "").strip()
    if not raw:
        raise RecorderException(no_destination("No export path specified"))

    if raw.startswith(WORKSPACE_TOKEN):
        if not settings.WORKSPACE_FOLDER:
            raise RecorderException(no_destination("Workspace folder not found", raw))
        raw = raw.replace(WORKSPACE_TOKEN, settings.WORKSPACE_FOLDER, 1)
    elif not Path(raw).exists() and not settings.CREATE_PATH_OUTSIDE_WORKSPACE:
        raise RecorderException(no_destination("Export path does not exist", raw))

    path = Path(os.path.normpath(raw.replace("\\", "/"))).expanduser().resolve()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RecorderException(no_destination(f"Export path cannot be created: {e}", str(path))) from e
    if not path.is_dir():
        raise RecorderException(no_destination("Export path is not a directory", str(path)))
    return path


settings = RecorderSettings()
