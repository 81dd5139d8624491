"""
Unit tests for the redirect CSV reader/writer.

Run: pytest tests/unit/test_redirect_csv_parser.py -v
"""

import io

import pytest

from parsers.redirect_csv_parser import (
    ImportRow,
    MalformedRecord,
    decode_upload,
    iter_redirect_records,
    write_redirects_csv,
)


def rows_of(records):
    return [(r.source, r.destination) for r in records if isinstance(r, ImportRow)]


class TestDecodeUpload:
    """Tests for decode_upload()"""

    def test_strips_utf8_bom(self):
        assert decode_upload(b"\xef\xbb\xbf/a,/b\n") == "/a,/b\n"

    def test_replaces_undecodable_bytes(self):
        result = decode_upload(b"/caf\xe9,/b\n")
        assert result.startswith("/caf")
        assert "�" in result

    def test_keeps_utf8_text(self):
        assert decode_upload("/café,/b".encode("utf-8")) == "/café,/b"


class TestIterRedirectRecords:
    """Tests for iter_redirect_records()"""

    def test_reads_two_columns(self):
        records = list(iter_redirect_records("/old,/new\n/a,/b\n"))

        assert records == [
            ImportRow(line=1, source="/old", destination="/new"),
            ImportRow(line=2, source="/a", destination="/b"),
        ]

    def test_ignores_extra_columns(self):
        records = list(iter_redirect_records("/old,/new,301,note\n"))

        assert rows_of(records) == [("/old", "/new")]

    def test_missing_second_column_is_empty_destination(self):
        records = list(iter_redirect_records("/lonely\n"))

        assert rows_of(records) == [("/lonely", "")]

    def test_skips_blank_lines(self):
        records = list(iter_redirect_records("/a,/b\n\n\n/c,/d\n"))

        assert rows_of(records) == [("/a", "/b"), ("/c", "/d")]
        assert [r.line for r in records] == [1, 4]

    def test_last_line_without_newline(self):
        records = list(iter_redirect_records("/a,/b\n/c,/d"))

        assert rows_of(records) == [("/a", "/b"), ("/c", "/d")]

    def test_quoted_fields(self):
        text = '"/a,b","/x ""quoted"""\n'

        records = list(iter_redirect_records(text))

        assert rows_of(records) == [("/a,b", '/x "quoted"')]

    def test_quoted_field_spanning_lines(self):
        text = '"/multi\nline",/dest\n/next,/one\n'

        records = list(iter_redirect_records(text))

        assert rows_of(records) == [("/multi\nline", "/dest"), ("/next", "/one")]
        assert records[0].line == 2

    def test_crlf_accepted_without_detection(self):
        records = list(iter_redirect_records("/a,/b\r\n/c,/d\r\n"))

        assert rows_of(records) == [("/a", "/b"), ("/c", "/d")]

    def test_lf_accepted_with_detection(self):
        records = list(iter_redirect_records("/a,/b\n/c,/d\n", detect_line_endings=True))

        assert rows_of(records) == [("/a", "/b"), ("/c", "/d")]

    def test_crlf_accepted_with_detection(self):
        records = list(iter_redirect_records("/a,/b\r\n/c,/d\r\n", detect_line_endings=True))

        assert rows_of(records) == [("/a", "/b"), ("/c", "/d")]

    def test_bare_cr_split_with_detection(self):
        records = list(iter_redirect_records("/a,/b\r/c,/d\r", detect_line_endings=True))

        assert rows_of(records) == [("/a", "/b"), ("/c", "/d")]

    def test_bare_cr_is_malformed_without_detection(self):
        records = list(iter_redirect_records("/a,/b\r/c,/d\r"))

        assert len(records) == 1
        assert isinstance(records[0], MalformedRecord)
        assert records[0].line == 1

    def test_parsing_continues_after_malformed_record(self):
        records = list(iter_redirect_records("/a,/b\r/c,/d\n/e,/f\n"))

        assert isinstance(records[0], MalformedRecord)
        assert rows_of(records) == [("/e", "/f")]

    def test_detection_does_not_leak_between_calls(self):
        text = "/a,/b\r/c,/d\r"

        with_detection = list(iter_redirect_records(text, detect_line_endings=True))
        without_detection = list(iter_redirect_records(text))

        assert len(rows_of(with_detection)) == 2
        assert isinstance(without_detection[0], MalformedRecord)


class TestRecordLengthGuard:
    """Tests for the per-line length limit."""

    def test_long_line_is_reported_not_imported(self):
        long_destination = "/" + "x" * 100
        text = f"/src,{long_destination}\n/next,/ok\n"

        records = list(iter_redirect_records(text, max_record_length=20))

        assert records[0] == MalformedRecord(
            line=1, error="longer than 20 characters", too_long=True
        )
        assert records[1] == ImportRow(line=2, source="/next", destination="/ok")

    def test_line_at_limit_is_kept(self):
        text = "/a,/bcdefg\n"  # 10 chars + newline

        records = list(iter_redirect_records(text, max_record_length=10))

        assert rows_of(records) == [("/a", "/bcdefg")]

    def test_line_at_limit_without_newline_is_kept(self):
        records = list(iter_redirect_records("/a,/bcdefg", max_record_length=10))

        assert rows_of(records) == [("/a", "/bcdefg")]

    def test_long_last_line_without_newline(self):
        text = "/a," + "/" + "y" * 50

        records = list(iter_redirect_records(text, max_record_length=16))

        assert len(records) == 1
        assert records[0].too_long is True

    def test_line_numbers_count_physical_lines(self):
        text = "/a," + "z" * 40 + "\n/b,/c\n"

        records = list(iter_redirect_records(text, max_record_length=16))

        assert [r.line for r in records] == [1, 2]

    def test_open_quote_on_long_line_does_not_swallow_later_rows(self):
        text = '"/a' + "x" * 2000 + '",/b\n/c,/d\n/e,/f\n'

        records = list(iter_redirect_records(text, max_record_length=1000))

        assert records[0].too_long is True
        assert rows_of(records) == [("/c", "/d"), ("/e", "/f")]
        assert [r.line for r in records] == [1, 2, 3]

    def test_quoted_record_running_into_long_line_is_dropped(self):
        text = '"/a\n' + "x" * 50 + '",/b\n/c,/d\n'

        records = list(iter_redirect_records(text, max_record_length=16))

        assert records == [
            MalformedRecord(line=2, error="longer than 16 characters", too_long=True),
            ImportRow(line=3, source="/c", destination="/d"),
        ]

    def test_several_long_lines(self):
        long_row = "/" + "q" * 30 + ",/r\n"
        text = long_row + "/a,/b\n" + long_row + "/c,/d\n"

        records = list(iter_redirect_records(text, max_record_length=16))

        assert [getattr(r, "too_long", False) for r in records] == [True, False, True, False]
        assert rows_of(records) == [("/a", "/b"), ("/c", "/d")]

    def test_long_line_with_detection(self):
        text = "/" + "w" * 40 + ",/x\r/a,/b\r"

        records = list(iter_redirect_records(text, detect_line_endings=True, max_record_length=16))

        assert records[0].too_long is True
        assert rows_of(records) == [("/a", "/b")]


class TestWriteRedirectsCsv:
    """Tests for write_redirects_csv()"""

    def test_writes_one_row_per_pair(self):
        out = io.StringIO()

        count = write_redirects_csv([("/a", "/b"), ("/c", "/d")], out)

        assert count == 2
        assert out.getvalue() == "/a,/b\n/c,/d\n"

    def test_quotes_special_characters(self):
        out = io.StringIO()

        write_redirects_csv([("/a,b", '/say "hi"'), ("/line\nbreak", "/ok")], out)

        assert out.getvalue() == '"/a,b","/say ""hi"""\n"/line\nbreak",/ok\n'

    def test_empty_input_writes_nothing(self):
        out = io.StringIO()

        assert write_redirects_csv([], out) == 0
        assert out.getvalue() == ""

    @pytest.mark.parametrize("source,destination", [
        ("/plain", "/dest"),
        ("/with,comma", "/dest"),
        ('/with"quote', "/dest"),
        ("/with\r\ncrlf", "/dest"),
        (" /padded ", "/dest"),
    ])
    def test_written_row_reads_back(self, source, destination):
        out = io.StringIO(newline="")
        write_redirects_csv([(source, destination)], out)

        records = list(iter_redirect_records(out.getvalue()))

        assert rows_of(records) == [(source, destination)]
