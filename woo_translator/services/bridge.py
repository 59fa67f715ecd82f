from __future__ import annotations

import re
from collections.abc import Iterator, Sequence

from ..models.coverage import Row

"""Encode/decode of row batches for the generation prompt.

Wire format (one tabular block, comma delimited)::

    [2]{ID,Name,"Short description","Attribute 1"}:
      "101","Shirt","NULL_Short description","Color: Red"
      "102","Cap","Warm \\"winter\\" cap","NULL_Attribute 1"

- every value is double quoted; ``\\``, ``"``, newline, CR and tab are
  backslash escaped
- field names are quoted unless they are plain identifiers
- an empty value is sent as the column's placeholder ``NULL_<column>``, so a
  reply that drops or merges empty cells changes the column count and is
  rejected instead of silently shifting values

Decoding extracts the fenced code block (if any), removes every quoted
placeholder, parses strictly and raises DecodeFailed on any deviation. Decode
errors are never retried here.
"""

__all__ = [
    "DELIMITER",
    "NULL_PREFIX",
    "DecodeFailed",
    "null_placeholder",
    "encode_batch",
    "iter_batches",
    "encode_batches",
    "extract_code",
    "strip_placeholders",
    "parse_table",
    "decode_batch",
    "restore_attribute_columns",
    "batch_fields",
]

DELIMITER = ","
NULL_PREFIX = "NULL_"
INDENT = "  "

_CODE_BLOCK = re.compile(r"```(?:\w+)?\s*([\s\S]*?)\s*```")
_PLACEHOLDER = re.compile(r'(?<!\\)"NULL_(?:[^"\\\n]|\\.)*"')
_HEADER = re.compile(r"^\[(\d+)\]\{(.*)\}:$")
_BARE_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
_ATTRIBUTE_KEY = re.compile(r"^Attribute (\d+)$")

_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {"\\": "\\", '"': '"', "n": "\n", "r": "\r", "t": "\t"}


class DecodeFailed(Exception):
    """The reply does not follow the tabular grammar."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"decode failed: {reason}")


def null_placeholder(column: str) -> str:
    """Placeholder for an empty cell of ``column`` (unique per column name).

    The column name is kept verbatim; quotes and control characters are
    escaped like any other value when the placeholder is quoted.
    """
    return NULL_PREFIX + column


def _quote(value: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in value) + '"'


def _encode_key(key: str) -> str:
    return key if _BARE_KEY.match(key) else _quote(key)


def _fields_of(rows: Sequence[Row]) -> list[str]:
    fields: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                fields.append(key)
    return fields


def encode_batch(rows: Sequence[Row], batch_size: int) -> str:
    """Encode ``rows[0:batch_size]``; the remainder is left to the caller.

    Returns "" when there is nothing to encode.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    batch = list(rows[:batch_size])
    if not batch:
        return ""
    fields = _fields_of(batch)
    lines = [f"[{len(batch)}]{{{DELIMITER.join(_encode_key(f) for f in fields)}}}:"]
    for row in batch:
        cells = []
        for f in fields:
            value = row.get(f)
            cells.append(_quote(value if value else null_placeholder(f)))
        lines.append(INDENT + DELIMITER.join(cells))
    return "\n".join(lines)


def iter_batches(rows: Sequence[Row], batch_size: int) -> Iterator[tuple[int, Sequence[Row]]]:
    """Yield ``(batch_index, slice)`` covering ``rows`` in order."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    for index, offset in enumerate(range(0, len(rows), batch_size)):
        yield index, rows[offset : offset + batch_size]


def encode_batches(rows: Sequence[Row], batch_size: int) -> list[str]:
    return [encode_batch(chunk, batch_size) for _, chunk in iter_batches(rows, batch_size)]


def extract_code(text: str) -> str:
    """Content of the first fenced code block, or the whole text stripped."""
    m = _CODE_BLOCK.search(text)
    return m.group(1).strip() if m else text.strip()


def strip_placeholders(text: str) -> str:
    # an empty quoted value keeps an all-placeholder row from becoming a blank line
    return _PLACEHOLDER.sub('""', text)


def _split_fields(line: str, line_no: int) -> list[str]:
    """Split one delimited line. Quoted fields are unescaped, bare fields stripped."""
    fields: list[str] = []
    i, n = 0, len(line)
    while True:
        while i < n and line[i] in " \t":
            i += 1
        if i < n and line[i] == '"':
            i += 1
            buf: list[str] = []
            while True:
                if i >= n:
                    raise DecodeFailed(f"line {line_no}: unterminated quoted value")
                ch = line[i]
                if ch == "\\":
                    if i + 1 >= n:
                        raise DecodeFailed(f"line {line_no}: dangling escape at end of line")
                    esc = line[i + 1]
                    if esc not in _UNESCAPES:
                        raise DecodeFailed(f"line {line_no}: invalid escape sequence \\{esc}")
                    buf.append(_UNESCAPES[esc])
                    i += 2
                elif ch == '"':
                    i += 1
                    break
                else:
                    buf.append(ch)
                    i += 1
            fields.append("".join(buf))
            while i < n and line[i] in " \t":
                i += 1
            if i < n and line[i] != DELIMITER:
                raise DecodeFailed(f"line {line_no}: unexpected text after quoted value")
        else:
            end = line.find(DELIMITER, i)
            end = n if end == -1 else end
            bare = line[i:end].strip()
            if '"' in bare:
                raise DecodeFailed(f"line {line_no}: stray quote in unquoted value")
            fields.append(bare)
            i = end
        if i >= n:
            return fields
        i += 1  # delimiter


def parse_table(text: str, expected_fields: Sequence[str] | None = None) -> list[Row]:
    """Strictly parse one tabular block (placeholders already removed).

    When ``expected_fields`` is given the reply header must list exactly those
    fields in that order.

    Raises:
        DecodeFailed: bad header, wrong row count or wrong field count
    """
    lines = [(no, line) for no, line in enumerate(text.splitlines(), start=1) if line.strip()]
    if not lines:
        raise DecodeFailed("empty reply")
    header_no, header = lines[0]
    m = _HEADER.match(header.strip())
    if not m:
        raise DecodeFailed(f"line {header_no}: invalid header {header.strip()[:80]!r}")
    expected_rows = int(m.group(1))
    fields = _split_fields(m.group(2), header_no)
    if not all(fields):
        raise DecodeFailed(f"line {header_no}: empty field name in header")
    if len(set(fields)) != len(fields):
        raise DecodeFailed(f"line {header_no}: duplicate field name in header")
    if expected_fields is not None and list(expected_fields) != fields:
        raise DecodeFailed(
            f"line {header_no}: header fields {fields} do not match the request {list(expected_fields)}"
        )

    body = lines[1:]
    if len(body) != expected_rows:
        raise DecodeFailed(f"expected {expected_rows} row(s), got {len(body)}")

    rows: list[Row] = []
    for no, line in body:
        values = _split_fields(line.strip(), no)
        if len(values) != len(fields):
            raise DecodeFailed(f"line {no}: expected {len(fields)} field(s), got {len(values)}")
        rows.append(dict(zip(fields, values)))
    return rows


def restore_attribute_columns(row: Row) -> Row:
    """Rewrite ``Attribute N`` ("Label: Value") into ``Attribute N value(s)`` (value only)."""
    restored: Row = {}
    for key, value in row.items():
        m = _ATTRIBUTE_KEY.match(key)
        if m:
            _, sep, tail = value.partition(": ")
            restored[f"Attribute {m.group(1)} value(s)"] = tail if sep else value
        else:
            restored[key] = value
    return restored


def decode_batch(
    text: str, *, expected_fields: Sequence[str] | None = None, expected_rows: int | None = None
) -> list[Row]:
    """Decode a model reply back into rows with restored attribute columns.

    Raises:
        DecodeFailed: if the reply does not match the tabular grammar, or does
            not echo the requested fields / row count
    """
    cleaned = strip_placeholders(extract_code(text))
    rows = parse_table(cleaned, expected_fields)
    if expected_rows is not None and len(rows) != expected_rows:
        raise DecodeFailed(f"expected {expected_rows} row(s) for this batch, got {len(rows)}")
    return [restore_attribute_columns(row) for row in rows]


def batch_fields(rows: Sequence[Row], batch_size: int) -> list[str]:
    """Field order encode_batch uses for ``rows[0:batch_size]``."""
    return _fields_of(rows[:batch_size])
