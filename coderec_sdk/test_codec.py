"""
coderec_sdk/test_codec.py - Row Codec Test Vectors

Tests:
- Escaping is round-trip safe for every newline variant, quotes, backslashes
- Row layout (quoted text columns, bare numeric and kind columns)
- Header and malformed lines decode to None
"""
import pytest

from .codec import decode, encode, escape_field, format_row, unescape_field
from .rows import HEADER, EditRow, RowKind
from .session import Session

TRICKY_TEXTS = [
    "",
    "plain",
    'say "hi"',
    '""',
    "a,b,c",
    '",",",\n',
    "line1\nline2",
    "crlf\r\nline",
    "lone\rcarriage",
    "\n\r\r\n\n",
    "tab\there",
    "back\\slash",
    "literal \\n is not a newline",
    "\\r\\n\\t\\\\",
    "trailing backslash \\",
    "ünïcödé 😀 漢字",
    "\x00\x01\x0b\x0c\x1c\x1d\x1e\x85 ",
    "nul\x00inside and \\0 literal",
    'mixed "quote", \\n and \r\n\t all',
]


def make_row(**overrides) -> EditRow:
    values = dict(
        sequence=3,
        elapsed_ms=1500,
        file_path="src/app.py",
        range_offset=10,
        range_length=2,
        text="x",
        language_id="python",
        kind=RowKind.CONTENT,
    )
    values.update(overrides)
    return EditRow(**values)


class TestEscaping:

    @pytest.mark.parametrize("text", TRICKY_TEXTS)
    def test_text_round_trip(self, text):
        """decode(encode(x)).text == x for printable and control characters."""
        row = decode(format_row(make_row(text=text)))

        assert row is not None
        assert row.text == text

    @pytest.mark.parametrize("path", ['dir, with comma/f.py', 'quo"te.py', "tab\tname.py", "back\\slash.py"])
    def test_file_path_round_trip(self, path):
        row = decode(format_row(make_row(file_path=path)))

        assert row.file_path == path

    @pytest.mark.parametrize("language", ["c,sharp", 'say "lang"', "multi\nline", "back\\slash", ""])
    def test_language_round_trip(self, language):
        """A free-form language id never breaks the row, even as a TAB baseline."""
        row = decode(format_row(make_row(language_id=language, kind=RowKind.TAB)))

        assert row is not None
        assert row.language_id == language
        assert row.kind == RowKind.TAB

    def test_nul_is_escaped(self):
        assert escape_field("a\x00b") == "a\\0b"
        assert "\x00" not in format_row(make_row(text="\x00"))

    def test_bare_language_column_still_decodes(self):
        row = decode('1,0,"a.py",0,0,"x",python,tab')

        assert row.language_id == "python"

    def test_crlf_is_escaped_as_literal_sequence(self):
        assert escape_field("a\r\nb") == "a\\r\\nb"

    def test_newlines_never_reach_the_line(self):
        line = format_row(make_row(text="a\nb\rc\r\nd"))

        assert line.count("\n") == 1
        assert line.endswith("\n")
        assert "\r" not in line

    def test_quotes_are_doubled(self):
        assert escape_field('say "hi"') == 'say ""hi""'

    def test_unknown_escape_kept_verbatim(self):
        assert unescape_field("\\x\\q") == "\\x\\q"

    def test_none_escapes_to_empty(self):
        assert escape_field(None) == ""


class TestRowLayout:

    def test_exact_layout(self):
        line = format_row(make_row(text='a "b"'))

        assert line == '3,1500,"src/app.py",10,2,"a ""b""","python",content\n'

    def test_tab_row_layout(self):
        line = format_row(make_row(sequence=1, elapsed_ms=0, range_offset=0, range_length=0, kind=RowKind.TAB))

        assert line.endswith(',"python",tab\n')

    def test_heading_formats_header(self):
        assert format_row(make_row(kind=RowKind.HEADING)) == HEADER
        assert HEADER == "Sequence,Time,File,RangeOffset,RangeLength,Text,Language,Type\n"

    def test_empty_language(self):
        row = decode(format_row(make_row(language_id="")))

        assert row.language_id == ""


class TestEncode:

    def test_no_session_start_returns_none(self):
        session = Session()

        assert encode(session, sequence=1, text="x") is None

    def test_heading_ignores_sequence(self, clock, tmp_path):
        session = Session(tmp_path, clock=clock)
        session.begin()

        assert encode(session, kind=RowKind.HEADING) == HEADER

    def test_elapsed_time_from_session_start(self, clock, tmp_path):
        session = Session(tmp_path, clock=clock)
        session.begin()
        clock.advance(2750)

        row = decode(encode(session, sequence=1, file_path="a.py", text="hi", language_id="python"))

        assert row.elapsed_ms == 2750
        assert row.sequence == 1
        assert row.kind == RowKind.CONTENT


class TestDecode:

    def test_header_is_malformed(self):
        assert decode(HEADER) is None

    def test_non_numeric_first_field(self):
        assert decode('abc,0,"a.py",0,0,"x",python,content') is None

    def test_wrong_column_count(self):
        assert decode('1,0,"a.py",0,0,"x",python') is None

    def test_unknown_kind(self):
        assert decode('1,0,"a.py",0,0,"x",python,bogus') is None

    def test_non_numeric_range(self):
        assert decode('1,0,"a.py",zero,0,"x",python,content') is None

    def test_blank_line(self):
        assert decode("\n") is None

    def test_unterminated_quote_is_malformed(self):
        assert decode('1,0,"a.py",0,0,"x,python,content') is None

    def test_upper_case_kind_accepted(self):
        row = decode('1,0,"a.py",0,0,"x",python,TAB')

        assert row.kind == RowKind.TAB

    def test_crlf_terminated_line(self):
        row = decode('1,0,"a.py",0,0,"x",python,content\r\n')

        assert row.kind == RowKind.CONTENT
        assert row.text == "x"

    def test_delimiter_inside_text(self):
        row = decode('7,42,"a.py",1,0,"a, b, c",python,content')

        assert row.text == "a, b, c"
        assert row.language_id == "python"
