"""Incremental CSV tokenizer fed with arbitrary text chunks."""

import csv
import io
import logging
from typing import NamedTuple, Optional

from .models import RowError

logger = logging.getLogger(__name__)

QUOTE = '"'

# Per-character states used to find where a record ends
FIELD_START = 0
UNQUOTED = 1
QUOTED = 2
QUOTE_CLOSED = 3


class ParsedRow(NamedTuple):
    """One data record. ``number`` is 1-based and excludes the header."""

    number: int
    fields: list[str]


class CsvTokenizer:
    """Split a stream of text into CSV records as the text arrives.

    Physical lines are grouped into logical records by tracking whether a
    line ends inside a quoted field, so a quoted field may span lines and
    chunk boundaries may fall anywhere. A quote only opens a quoted field as
    the first character of a field; anywhere else it is literal text. The
    first non-blank record is the header. Malformed records are dropped and
    reported in ``errors`` instead of being raised.
    """

    def __init__(self, delimiter: str = ",") -> None:
        self.delimiter = delimiter
        self.header: Optional[list[str]] = None
        self.errors: list[RowError] = []
        self._partial = ""
        self._record_lines: list[str] = []
        self._state = FIELD_START
        self._row_number = 0

    @property
    def rows_seen(self) -> int:
        return self._row_number

    def feed(self, text: str) -> list[ParsedRow]:
        """Consume a chunk of text and return the records it completed."""
        data = self._partial + text
        self._partial = ""

        lines = io.StringIO(data, newline="").readlines()
        # Hold back an unterminated line, and a lone CR that may be half of CRLF
        if lines and (lines[-1].endswith("\r") or not lines[-1].endswith("\n")):
            self._partial = lines.pop()

        rows: list[ParsedRow] = []
        for line in lines:
            rows.extend(self._take_line(line))
        return rows

    def close(self) -> list[ParsedRow]:
        """Flush buffered text at end of input."""
        rows: list[ParsedRow] = []
        if self._partial:
            rows.extend(self._take_line(self._partial))
            self._partial = ""

        if self._record_lines:
            # The last quoted field never closed
            text = "".join(self._record_lines)
            self._record_lines = []
            self._state = FIELD_START
            rows.extend(self._parse_record(text))

        return rows

    def _take_line(self, line: str) -> list[ParsedRow]:
        self._record_lines.append(line)
        if self._state != QUOTED and QUOTE not in line:
            self._state = FIELD_START
        else:
            self._scan(line)
            if self._state == QUOTED:
                return []
            self._state = FIELD_START

        text = "".join(self._record_lines)
        self._record_lines = []
        return self._parse_record(text)

    def _scan(self, line: str) -> None:
        state = self._state
        for ch in line:
            if state == QUOTED:
                if ch == QUOTE:
                    state = QUOTE_CLOSED
            elif ch == self.delimiter:
                state = FIELD_START
            elif state == FIELD_START:
                state = QUOTED if ch == QUOTE else UNQUOTED
            elif state == QUOTE_CLOSED:
                # A doubled quote is an escaped quote inside the field
                state = QUOTED if ch == QUOTE else UNQUOTED
        self._state = state

    def _parse_record(self, text: str) -> list[ParsedRow]:
        if not text.strip():
            return []

        try:
            fields = next(csv.reader([text], delimiter=self.delimiter, strict=True))
        except csv.Error as e:
            if self.header is None:
                self.header = self._recover_header(text, e)
                return []
            self._row_number += 1
            logger.warning(f"Malformed CSV record at row {self._row_number}: {e}")
            self.errors.append(
                RowError(row=self._row_number, message=f"Parse error: {e}", data=text)
            )
            return []
        except StopIteration:
            return []

        if self.header is None:
            self.header = fields
            return []

        self._row_number += 1
        self._check_width(fields)
        return [ParsedRow(self._row_number, fields)]

    def _recover_header(self, text: str, error: csv.Error) -> list[str]:
        """Read a malformed header leniently so data rows keep their columns."""
        logger.warning(f"Malformed CSV header: {error}")
        self.errors.append(RowError(row=0, message=f"Parse error: {error}", data=text))
        try:
            return next(csv.reader([text], delimiter=self.delimiter, strict=False))
        except (csv.Error, StopIteration):
            return []

    def _check_width(self, fields: list[str]) -> None:
        expected = len(self.header)
        parsed = len(fields)
        if parsed == expected:
            return

        kind = "Too few fields" if parsed < expected else "Too many fields"
        self.errors.append(
            RowError(
                row=self._row_number,
                message=f"Parse error: {kind}: expected {expected} fields but parsed {parsed}",
                data=fields,
            )
        )
