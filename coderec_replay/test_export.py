"""
coderec_replay/test_export.py - Export Format Tests
"""
import json

import pytest
from pydantic import ValidationError

from .changes import Change
from .export import changes_to_json, format_srt_time, load_json_export, normalize_formats, srt_block


def make_change(**overrides) -> Change:
    values = dict(sequence=1, file="src/app.py", start_time=0, end_time=1500, language="python", text="x = 1\n")
    values.update(overrides)
    return Change(**values)


class TestSrtTime:

    @pytest.mark.parametrize("ms,expected", [
        (0, "00:00:00,000"),
        (999, "00:00:00,999"),
        (61_000, "00:01:01,000"),
        (3_661_500, "01:01:01,500"),
        (90_000_000, "25:00:00,000"),
    ])
    def test_format(self, ms, expected):
        assert format_srt_time(ms) == expected


class TestSrtBlock:

    def test_block_layout(self):
        block = srt_block(make_change(sequence=4, start_time=1000, end_time=2500))
        lines = block.split("\n")

        assert lines[0] == "4"
        assert lines[1] == "00:00:01,000 --> 00:00:02,500"
        assert json.loads(lines[2]) == {"text": "x = 1\n", "file": "src/app.py", "language": "python"}
        assert block.endswith("\n\n")
        assert block.count("\n") == 4

    def test_payload_key_order(self):
        line = srt_block(make_change()).split("\n")[2]

        assert list(json.loads(line)) == ["text", "file", "language"]


class TestJson:

    def test_array_shape_and_key_order(self):
        data = json.loads(changes_to_json([make_change(), make_change(sequence=2, start_time=1500, end_time=3000)]))

        assert len(data) == 2
        assert list(data[0]) == ["sequence", "file", "startTime", "endTime", "language", "text"]
        assert data[1]["startTime"] == 1500

    def test_empty_sequence(self):
        assert json.loads(changes_to_json([])) == []

    def test_load_export(self, tmp_path):
        changes = [make_change(text='quote " and\r\nnewline'), make_change(sequence=2, text="")]
        path = tmp_path / "export.json"
        path.write_text(changes_to_json(changes), encoding="utf-8")

        assert load_json_export(path) == changes

    def test_load_rejects_invalid_export(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text('[{"sequence": 0}]', encoding="utf-8")

        with pytest.raises(ValidationError):
            load_json_export(path)


class TestFormats:

    def test_normalize(self):
        assert normalize_formats(["srt", "JSON", "Srt"]) == ["SRT", "JSON"]

    def test_unknown(self):
        with pytest.raises(ValueError):
            normalize_formats(["csv"])
