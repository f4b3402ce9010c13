"""Test configuration and fixtures."""

from datetime import datetime, timedelta

import pytest

from coderec_sdk.config import RecorderSettings


class FakeClock:
    """Deterministic clock for sessions; advance() moves time forward."""

    def __init__(self, start: datetime = datetime(2024, 5, 3, 10, 11, 12, 123000)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, ms: int) -> datetime:
        self.current += timedelta(milliseconds=ms)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def settings(workspace):
    """Settings exporting into <workspace>/code-recorder with both formats."""
    return RecorderSettings(
        EXPORT_PATH="${workspaceFolder}/code-recorder/",
        WORKSPACE_FOLDER=str(workspace),
        EXPORT_FORMATS=["JSON", "SRT"],
        _env_file=None,
    )
