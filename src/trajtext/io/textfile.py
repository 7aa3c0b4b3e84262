"""Line-oriented text stream with byte offsets and transparent compression.

`TextFile` wraps a binary handle so that `tell()`/`seek()` always work on byte
offsets of the (decompressed) content. Lines are returned without their
trailing newline; reading past the end raises `EndOfFileError`.

Compression is taken from the `compression=` argument, or inferred from the
`.gz`, `.bz2` and `.xz` suffixes when it is None.
"""

from __future__ import annotations

import bz2
import gzip
import logging
import lzma
from pathlib import Path
from typing import IO, Iterator

from trajtext.core.errors import EndOfFileError, FileError

logger = logging.getLogger(__name__)

COMPRESSION_SUFFIXES: dict[str, str] = {".gz": "gzip", ".bz2": "bz2", ".xz": "xz"}

_MODES = ("r", "w", "a")


def infer_compression(path: str | Path) -> str | None:
    return COMPRESSION_SUFFIXES.get(Path(path).suffix.lower())


def strip_compression_suffix(path: str | Path) -> Path:
    """`traj.pdb.gz` -> `traj.pdb`; other paths are returned unchanged."""
    p = Path(path)
    if p.suffix.lower() in COMPRESSION_SUFFIXES:
        return p.with_suffix("")
    return p


def _open_binary(path: Path, mode: str, compression: str | None) -> IO[bytes]:
    bmode = f"{mode}b"
    if compression is None:
        return open(path, bmode)
    if compression == "gzip":
        return gzip.open(path, bmode)  # type: ignore[return-value]
    if compression == "bz2":
        return bz2.open(path, bmode)  # type: ignore[return-value]
    if compression == "xz":
        return lzma.open(path, bmode)  # type: ignore[return-value]
    raise ValueError(f"unknown compression {compression!r}; expected one of gzip, bz2, xz")


class TextFile:
    """A text file opened in mode `r`, `w` or `a`."""

    def __init__(self, path: str | Path, mode: str = "r", *, compression: str | None = None) -> None:
        if mode not in _MODES:
            raise ValueError(f"unknown file mode {mode!r}; expected one of {list(_MODES)}")
        self.path = Path(path)
        self.mode = mode
        self.compression = compression if compression is not None else infer_compression(self.path)
        try:
            self._fh: IO[bytes] | None = _open_binary(self.path, mode, self.compression)
        except OSError as e:
            raise FileError(f"could not open the file at '{self.path}': {e}") from e
        logger.debug("opened %s (mode=%s, compression=%s)", self.path, mode, self.compression)

    # ---- state ----

    def _handle(self) -> IO[bytes]:
        if self._fh is None:
            raise FileError(f"file '{self.path}' is closed")
        return self._fh

    def _require_read(self) -> IO[bytes]:
        if self.mode != "r":
            raise FileError(f"can not read file '{self.path}' opened in mode '{self.mode}'")
        return self._handle()

    @property
    def closed(self) -> bool:
        return self._fh is None

    def tell(self) -> int:
        try:
            return self._handle().tell()
        except OSError as e:
            raise FileError(f"could not get position in '{self.path}': {e}") from e

    def seek(self, offset: int) -> None:
        try:
            self._require_read().seek(offset)
        except OSError as e:
            raise FileError(f"could not seek to byte {offset} in '{self.path}': {e}") from e

    def eof(self) -> bool:
        fh = self._require_read()
        try:
            return not fh.peek(1)  # type: ignore[attr-defined]
        except OSError as e:
            raise FileError(f"could not read from '{self.path}': {e}") from e

    # ---- reading ----

    def readline(self) -> str:
        """Next line without its line terminator."""
        fh = self._require_read()
        try:
            data = fh.readline()
        except OSError as e:
            raise FileError(f"could not read from '{self.path}': {e}") from e
        if not data:
            raise EndOfFileError(f"end of file reached in '{self.path}'")
        line = data.decode("utf-8", errors="replace")
        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
        return line

    def readlines(self, n: int) -> list[str]:
        return [self.readline() for _ in range(n)]

    def skipline(self) -> None:
        self.readline()

    def skiplines(self, n: int) -> None:
        for _ in range(n):
            self.readline()

    def __iter__(self) -> Iterator[str]:
        while not self.eof():
            yield self.readline()

    # ---- writing ----

    def write(self, text: str) -> None:
        if self.mode == "r":
            raise FileError(f"can not write file '{self.path}' opened in mode 'r'")
        try:
            self._handle().write(text.encode("utf-8"))
        except OSError as e:
            raise FileError(f"could not write to '{self.path}': {e}") from e

    # ---- lifecycle ----

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            finally:
                self._fh = None

    def __enter__(self) -> "TextFile":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TextFile('{self.path}', mode='{self.mode}')"
