"""Internal helpers shared by the text codecs.

Private module: fixed-column field access, number parsing that raises
`FormatError` with the file location, and width checks for fixed-width output.
"""

from __future__ import annotations

from typing import Sequence

from trajtext.core.errors import EndOfFileError, FormatError
from trajtext.io.textfile import TextFile


def column(line: str, start: int, width: int) -> str:
    """Fixed-width field, tolerant of short lines."""
    return line[start:start + width]


def parse_int(text: str, *, what: str, file: TextFile | None = None) -> int:
    value = text.strip()
    try:
        return int(value)
    except ValueError:
        raise FormatError(
            f"expected an integer for {what}, got '{value}'",
            path=None if file is None else str(file.path),
            position=None if file is None else file.tell(),
        ) from None


def parse_float(text: str, *, what: str, file: TextFile | None = None) -> float:
    value = text.strip()
    try:
        return float(value)
    except ValueError:
        raise FormatError(
            f"expected a number for {what}, got '{value}'",
            path=None if file is None else str(file.path),
            position=None if file is None else file.tell(),
        ) from None


def only_blank_remaining(file: TextFile) -> bool:
    """True when nothing but whitespace is left; the position is kept otherwise."""
    position = file.tell()
    while not file.eof():
        if file.readline().strip():
            file.seek(position)
            return False
    return True


def truncated(file: TextFile, fmt: str, detail: str) -> FormatError:
    return FormatError(f"truncated {fmt} frame: {detail}", path=str(file.path), position=file.tell())


def readline_or_fail(file: TextFile, fmt: str, detail: str) -> str:
    """`readline()` for a frame that has already begun."""
    try:
        return file.readline()
    except EndOfFileError:
        raise truncated(file, fmt, detail) from None


def skiplines_or_fail(file: TextFile, n: int, fmt: str, detail: str) -> None:
    for _ in range(n):
        readline_or_fail(file, fmt, detail)


def fits(value: float, width: int, precision: int) -> bool:
    return len(f"{value:{width}.{precision}f}") <= width


def check_fixed_width(values: Sequence[float], width: int, precision: int, *, fmt: str, what: str) -> None:
    """Hard failure when a number does not fit its fixed-width output column."""
    for value in values:
        if not fits(value, width, precision):
            raise FormatError(f"value {value} in {what} is too big for representation in {fmt} format")
