"""
Tolerant CSV text parsing.

Spreadsheet exports arrive with mixed line endings, either ``,`` or ``;`` as
separator, quoted cells that may contain separators or line breaks, and the
occasional broken row. The parser favours partial success: rows that cannot
be aligned with the header are dropped and counted, never coerced.
"""

import csv
from dataclasses import dataclass, field

from serielookup.normalization.columns import normalize_headers
from serielookup.utils.logging import get_logger

log = get_logger(__name__)

DELIMITER_CANDIDATES: tuple[str, ...] = (",", ";")

_BOM = "\ufeff"


@dataclass(frozen=True)
class ParsedTable:
    """
    Result of parsing one CSV payload.

    Attributes:
        headers: Header names, trimmed, lower-cased and with inner
            whitespace collapsed.
        rows: Trimmed field values in header order. Every row has
            ``len(headers)`` fields.
        delimiter: Delimiter used to split fields.
        discarded: Logical lines dropped because their field count did not
            match the header.
        recovered: Rows rebuilt by stitching short lines together.
    """

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    delimiter: str = ","
    discarded: int = 0
    recovered: int = 0

    @property
    def is_empty(self) -> bool:
        """True when there are no data rows."""
        return not self.rows

    def __len__(self) -> int:
        return len(self.rows)


def normalize_line_endings(text: str) -> str:
    """Convert ``\\r\\n`` and bare ``\\r`` line endings to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _ends_inside_quotes(line: str, delimiter: str, in_quotes: bool) -> bool:
    """
    Scan one physical line and report whether a quoted field is still open.

    Only a quote at the start of a field (leading spaces allowed) opens a
    quoted field. A quote in the middle of an unquoted value, as in
    ``24" wide``, is a literal character.
    """
    field_start = not in_quotes
    position = 0
    while position < len(line):
        char = line[position]
        if in_quotes:
            if char == '"':
                if line[position + 1 : position + 2] == '"':
                    position += 1
                else:
                    in_quotes = False
        elif char == delimiter:
            field_start = True
        elif char == '"' and field_start:
            in_quotes = True
            field_start = False
        elif not char.isspace():
            field_start = False
        position += 1
    return in_quotes


def split_logical_lines(text: str, delimiter: str = ",") -> list[str]:
    """
    Split normalized text into logical CSV lines.

    A physical line break inside a quoted field does not end the logical
    line. A quoted field that is never closed does not swallow the rest of
    the text: its opening line stands alone and scanning resumes on the
    next physical line. Blank lines are dropped.

    Args:
        text: Text with ``\\n`` line endings only.
        delimiter: Field delimiter, needed to tell where fields start.

    Returns:
        Non-blank logical lines in source order.
    """
    physical = text.split("\n")
    lines: list[str] = []
    position = 0

    while position < len(physical):
        start = position
        in_quotes = _ends_inside_quotes(physical[position], delimiter, False)
        position += 1
        while in_quotes and position < len(physical):
            in_quotes = _ends_inside_quotes(physical[position], delimiter, True)
            position += 1

        if in_quotes:
            log.debug("Unterminated quoted field", line=start + 1)
            lines.append(physical[start])
            position = start + 1
        else:
            lines.append("\n".join(physical[start:position]))

    return [line for line in lines if line.strip()]


def detect_delimiter(line: str) -> str:
    """
    Guess the field delimiter from a header line.

    Best-effort heuristic: ``;`` when the line contains ``;`` and no ``,``,
    otherwise ``,``. A header whose names contain commas will be misread,
    which is why loaders retry with the other candidate on failure.
    """
    if ";" in line and "," not in line:
        return ";"
    return ","


def split_fields(line: str, delimiter: str) -> list[str] | None:
    """
    Split one logical line into trimmed, unquoted fields.

    Args:
        line: Logical CSV line.
        delimiter: Field delimiter.

    Returns:
        Field values, or None when the line is not valid CSV.
    """
    try:
        reader = csv.reader([line], delimiter=delimiter, skipinitialspace=True)
        fields = next(reader, [])
    except csv.Error:
        return None
    return [value.strip() for value in fields]


def _stitch_short_row(
    lines: list[str],
    start: int,
    delimiter: str,
    width: int,
) -> tuple[list[str] | None, int]:
    """
    Merge a short row with the physical lines that follow it.

    Lines are appended (joined with a space) while the candidate stays
    short and the next line is not itself a complete row.

    Returns:
        Tuple of (fields of the merged candidate, index of the next unread line).
    """
    candidate = lines[start]
    fields = split_fields(candidate, delimiter)
    position = start + 1

    while fields is not None and len(fields) < width and position < len(lines):
        following = split_fields(lines[position], delimiter)
        if following is not None and len(following) == width:
            break
        candidate = f"{candidate} {lines[position]}"
        position += 1
        fields = split_fields(candidate, delimiter)

    return fields, position


def parse_csv(
    text: str | None,
    *,
    delimiter: str | None = None,
    recover_short_rows: bool = False,
) -> ParsedTable:
    """
    Parse raw CSV text into headers and aligned rows.

    The first logical line is the header. Rows whose field count differs
    from the header's are discarded. With ``recover_short_rows`` a short
    row is first stitched together with the lines that follow it, which
    repairs cells that were broken across lines without quoting.

    Args:
        text: Raw CSV payload.
        delimiter: Explicit delimiter. Detected from the header when None.
        recover_short_rows: Attempt line stitching before discarding short rows.

    Returns:
        ParsedTable. Empty (no headers, no rows) when the text has fewer
        than two non-blank lines.
    """
    if not text:
        return ParsedTable(delimiter=delimiter or ",")

    if text.startswith(_BOM):
        text = text[len(_BOM) :]

    text = normalize_line_endings(text)
    first_line = next((line for line in text.split("\n") if line.strip()), "")
    sep = delimiter or detect_delimiter(first_line)

    lines = split_logical_lines(text, sep)
    if len(lines) < 2:
        log.debug("Not enough lines to parse", lines=len(lines))
        return ParsedTable(delimiter=sep)

    header_fields = split_fields(lines[0], sep)
    if not header_fields:
        log.warning("Header line could not be parsed", delimiter=sep)
        return ParsedTable(delimiter=sep, discarded=len(lines) - 1)

    headers = normalize_headers(header_fields)
    width = len(headers)

    rows: list[list[str]] = []
    discarded = 0
    recovered = 0
    position = 1

    while position < len(lines):
        start = position
        fields = split_fields(lines[position], sep)
        position += 1

        # A multi-line record the csv module rejects is retried line by line
        if fields is None and "\n" in lines[start]:
            parts = [part for part in lines[start].split("\n") if part.strip()]
            lines[start : start + 1] = parts
            position = start
            continue

        if recover_short_rows and fields is not None and len(fields) < width:
            fields, position = _stitch_short_row(lines, start, sep, width)
            if fields is not None and len(fields) == width:
                recovered += 1

        if fields is None or len(fields) != width:
            discarded += position - start
            continue

        rows.append(fields)

    if discarded:
        log.info(
            "Discarded misaligned rows",
            discarded=discarded,
            kept=len(rows),
            delimiter=sep,
        )

    return ParsedTable(
        headers=headers,
        rows=rows,
        delimiter=sep,
        discarded=discarded,
        recovered=recovered,
    )
