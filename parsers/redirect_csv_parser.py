"""
CSV reader and writer for redirect files.

Format: two columns per record, source then destination, comma
delimited, double-quote quoting, no header row.

Reading rules:
    - The upload is decoded as UTF-8. A leading BOM is dropped and
      undecodable bytes are replaced, so decoding never fails.
    - Each physical line is read at most max_record_length characters
      at a time. A longer line is not imported: the rest of it is
      discarded, it is reported as too long and parsing starts afresh on
      the next line. Memory per record stays bounded on files that are
      not really CSV.
    - With detect_line_endings, CR, LF and CRLF all end a record.
      Without it only LF (and CRLF) do; a bare CR in an unquoted field
      makes that record malformed and parsing moves on.
"""

import csv
import io
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, TextIO, Union
import structlog

logger = structlog.get_logger(__name__)

DELIMITER = ","
QUOTECHAR = '"'
LINE_TERMINATOR = "\n"

DEFAULT_MAX_RECORD_LENGTH = 1000


@dataclass
class ImportRow:
    """One redirect rule read from the file."""
    line: int
    source: str
    destination: str


@dataclass
class MalformedRecord:
    """A record the CSV reader could not make sense of."""
    line: int
    error: str
    too_long: bool = False


ParsedRecord = Union[ImportRow, MalformedRecord]


def decode_upload(raw: bytes) -> str:
    """Decode uploaded bytes to text (UTF-8, BOM stripped, errors replaced)."""
    return raw.decode("utf-8-sig", errors="replace")


class _BoundedLines:
    """
    Physical lines of a stream, read max_record_length characters at a time.

    Iteration stops at the first line longer than the limit. The rest of
    that line is consumed and thrown away, too_long_line holds its number,
    and clearing too_long_line lets iteration carry on after it.
    """

    def __init__(self, stream: TextIO, max_record_length: int):
        self.stream = stream
        self.max_record_length = max_record_length
        self.line_num = 0
        self.too_long_line: Optional[int] = None

    def __iter__(self):
        return self

    def __next__(self) -> str:
        if self.too_long_line is not None:
            raise StopIteration

        line = self.stream.readline(self.max_record_length)
        if not line:
            raise StopIteration
        self.line_num += 1
        if line.endswith("\n") or len(line) < self.max_record_length:
            return line

        dropped = 0
        rest = self.stream.readline(self.max_record_length)
        if rest == "\n":
            # Exactly at the limit
            return line + rest
        while rest:
            if rest.endswith("\n"):
                dropped += len(rest) - 1
                break
            dropped += len(rest)
            rest = self.stream.readline(self.max_record_length)

        if not dropped:
            return line

        logger.warning(
            "redirect_record_too_long",
            line=self.line_num,
            limit=self.max_record_length,
            dropped=dropped,
        )
        self.too_long_line = self.line_num
        raise StopIteration


def iter_redirect_records(
    text: str,
    detect_line_endings: bool = False,
    max_record_length: int = DEFAULT_MAX_RECORD_LENGTH,
) -> Iterator[ParsedRecord]:
    """
    Parse decoded CSV text into redirect rows.

    Args:
        text: Decoded file content
        detect_line_endings: Accept bare CR as a record terminator
        max_record_length: Characters allowed per physical line

    Yields:
        ImportRow for every non-blank record, MalformedRecord for records
        the reader rejected or that ran past max_record_length. Only the
        first two fields of a record are used; a missing second field
        reads as an empty destination. line is the physical line on which
        the record ends.
    """
    # newline=None turns CR and CRLF into LF before the reader sees them
    stream = io.StringIO(text, newline=None if detect_line_endings else "\n")
    lines = _BoundedLines(stream, max_record_length)

    while True:
        # A fresh reader after an over-long line, so a quote left open by
        # the cut cannot run on into the following records
        reader = csv.reader(lines, delimiter=DELIMITER, quotechar=QUOTECHAR)
        yield from _read_records(reader, lines)

        if lines.too_long_line is None:
            return
        yield MalformedRecord(
            line=lines.too_long_line,
            error=f"longer than {max_record_length} characters",
            too_long=True,
        )
        lines.too_long_line = None


def _read_records(reader, lines: _BoundedLines) -> Iterator[ParsedRecord]:
    while True:
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            logger.warning("redirect_record_malformed", line=lines.line_num, error=str(e))
            yield MalformedRecord(line=lines.line_num, error=str(e))
            continue

        if lines.too_long_line is not None:
            # Record ran into the over-long line; reported with it
            return

        if not fields or fields == [""]:
            # Blank line
            continue

        source = fields[0]
        destination = fields[1] if len(fields) > 1 else ""
        yield ImportRow(line=lines.line_num, source=source, destination=destination)


def write_redirects_csv(rows: Iterable[tuple[str, str]], out: TextIO) -> int:
    """
    Write (source, destination) pairs to a text stream.

    Fields holding the delimiter, a quote or a line break are quoted,
    quotes are doubled. No header.

    Returns:
        Number of rows written
    """
    writer = csv.writer(
        out,
        delimiter=DELIMITER,
        quotechar=QUOTECHAR,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator=LINE_TERMINATOR,
    )
    count = 0
    for source, destination in rows:
        writer.writerow([source, destination])
        count += 1
    return count
