"""
coderec_sdk/test_config.py - Settings and export path resolution
"""
import pytest
from pydantic import ValidationError

from .config import RecorderSettings, resolve_export_path
from .errors import ErrorKind, RecorderException


def make_settings(**overrides) -> RecorderSettings:
    return RecorderSettings(_env_file=None, **overrides)


class TestSettings:

    def test_defaults(self):
        settings = make_settings()

        assert settings.EXPORT_PATH == "${workspaceFolder}/code-recorder/"
        assert settings.EXPORT_FORMATS == ["JSON", "SRT"]
        assert settings.OFFSET_ENCODING == "utf-16"
        assert settings.STRICT_REPLAY is False

    def test_formats_normalized(self):
        settings = make_settings(EXPORT_FORMATS=["srt", "SRT", " json "])

        assert settings.EXPORT_FORMATS == ["SRT", "JSON"]

    def test_empty_formats_allowed(self):
        assert make_settings(EXPORT_FORMATS=[]).EXPORT_FORMATS == []

    def test_unknown_format_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(EXPORT_FORMATS=["MP4"])

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("CODEREC_EXPORT_FORMATS", '["SRT"]')
        monkeypatch.setenv("CODEREC_STRICT_REPLAY", "true")

        settings = make_settings()

        assert settings.EXPORT_FORMATS == ["SRT"]
        assert settings.STRICT_REPLAY is True


class TestResolveExportPath:

    def test_workspace_token_replaced_and_created(self, tmp_path):
        settings = make_settings(WORKSPACE_FOLDER=str(tmp_path))

        path = resolve_export_path(settings)

        assert path == (tmp_path / "code-recorder").resolve()
        assert path.is_dir()

    def test_workspace_token_without_workspace(self):
        with pytest.raises(RecorderException) as exc:
            resolve_export_path(make_settings(WORKSPACE_FOLDER=None))

        assert exc.value.kind == ErrorKind.NO_DESTINATION

    def test_empty_path(self):
        with pytest.raises(RecorderException) as exc:
            resolve_export_path(make_settings(EXPORT_PATH="  "))

        assert exc.value.kind == ErrorKind.NO_DESTINATION
        assert "No export path" in str(exc.value)

    def test_missing_outside_path_not_created(self, tmp_path):
        target = tmp_path / "elsewhere"

        with pytest.raises(RecorderException) as exc:
            resolve_export_path(make_settings(EXPORT_PATH=str(target)))

        assert exc.value.kind == ErrorKind.NO_DESTINATION
        assert not target.exists()

    def test_missing_outside_path_created_when_allowed(self, tmp_path):
        target = tmp_path / "elsewhere" / "deep"

        path = resolve_export_path(make_settings(EXPORT_PATH=str(target), CREATE_PATH_OUTSIDE_WORKSPACE=True))

        assert path == target.resolve()
        assert path.is_dir()

    def test_existing_outside_path(self, tmp_path):
        assert resolve_export_path(make_settings(EXPORT_PATH=str(tmp_path))) == tmp_path.resolve()

    def test_path_is_a_file(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")

        with pytest.raises(RecorderException) as exc:
            resolve_export_path(make_settings(EXPORT_PATH=str(target)))

        assert exc.value.kind == ErrorKind.NO_DESTINATION
