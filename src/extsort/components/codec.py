"""Line codec for unsigned 64-bit integers.

Input and output files hold one decimal integer per line.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

from ..core.errors import InputError
from ..core.types import U64_MAX, Value

logger = logging.getLogger(__name__)

_VALUE_RE = re.compile(r"\+?[0-9]+")
_MAX_DIGITS = len(str(U64_MAX))

STDIN_NAME = "-"


def parse_value(text: str, line_no: int | None = None, source: str | None = None) -> Value:
    """Parse one line of input into a u64 value.

    Accepts an optional leading '+' followed by ASCII digits. One trailing line
    feed and then one carriage return are stripped; any other character makes
    the line malformed.

    Raises:
        InputError: If the text is malformed or exceeds U64_MAX
    """
    line = text.removesuffix("\n").removesuffix("\r")
    if not _VALUE_RE.fullmatch(line):
        raise InputError(f"{_where(line_no, source)}invalid unsigned integer {line!r}")

    digits = line.lstrip("+").lstrip("0") or "0"
    if len(digits) > _MAX_DIGITS or int(digits) > U64_MAX:
        raise InputError(f"{_where(line_no, source)}value {line!r} exceeds u64 range")
    return int(digits)


def _where(line_no: int | None, source: str | None) -> str:
    if line_no is None:
        return f"{source}: " if source else ""
    return f"{source or '<input>'}:{line_no}: "


def iter_values(stream: TextIO, source: str = "<input>") -> Iterator[Value]:
    """Parse a text stream line by line."""
    line_no = 0
    try:
        for line_no, line in enumerate(stream, start=1):
            yield parse_value(line, line_no, source)
    except UnicodeDecodeError as e:
        raise InputError(f"{source}:{line_no + 1}: not valid UTF-8 text: {e}") from e
    except OSError as e:
        raise InputError(f"Failed to read {source}: {e}") from e
    logger.debug(f"Parsed {line_no} values from {source}")


def read_values(path: str | Path) -> Iterator[Value]:
    """Yield values from a file, or from stdin when path is '-'."""
    if str(path) == STDIN_NAME:
        yield from iter_values(sys.stdin, "<stdin>")
        return

    path = Path(path)
    try:
        f = open(path, encoding="utf-8", newline="\n")
    except OSError as e:
        raise InputError(f"Cannot open input {path}: {e}") from e
    with f:
        yield from iter_values(f, str(path))


def format_value(value: Value) -> str:
    """Render a value as one output line."""
    return f"{value}\n"
