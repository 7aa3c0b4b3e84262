"""Codecs for reading/writing frames in text chemistry formats.

Each codec is a small stateless-ish class implementing `FrameCodec`; the
registry below maps a format name to its file extensions and a factory.
Formats are selected by explicit name, or guessed from the file extension
after compression suffixes are removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol

from trajtext.io.textfile import strip_compression_suffix

from .cssr import CSSRCodec
from .gro import GROCodec
from .lammps_data import LAMMPSDataCodec
from .mol2 import MOL2Codec
from .pdb import PDBCodec
from .sdf import SDFCodec

if TYPE_CHECKING:  # pragma: no cover
    from trajtext.core.model import Frame
    from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)


class FrameCodec(Protocol):
    """One text grammar.

    - `forward(file)`: skip one frame, return its start offset, or None when
      no frame remains.
    - `read(file)`: parse one frame at the current position.
    - `write(file, frame)`: append one frame.
    - `close(file)`: write any trailer before the stream is closed.
    """

    name: str

    def forward(self, file: "TextFile") -> int | None: ...

    def read(self, file: "TextFile") -> "Frame": ...

    def write(self, file: "TextFile", frame: "Frame") -> None: ...

    def close(self, file: "TextFile") -> None: ...


@dataclass(frozen=True)
class FormatInfo:
    name: str
    extensions: tuple[str, ...]
    description: str
    factory: Callable[[], FrameCodec]
    multi_frame: bool = True


FORMATS: dict[str, FormatInfo] = {
    info.name: info
    for info in (
        FormatInfo("GRO", (".gro",), "GROMACS structure file", GROCodec),
        FormatInfo("PDB", (".pdb",), "Protein Data Bank file", PDBCodec),
        FormatInfo("SDF", (".sdf",), "MDL structure-data file (V2000 molfile blocks)", SDFCodec),
        FormatInfo("MOL2", (".mol2",), "Tripos mol2 file", MOL2Codec),
        FormatInfo("CSSR", (".cssr",), "Cambridge Structure Search and Retrieval file", CSSRCodec, multi_frame=False),
        # `.data`/`.lmp` are too generic to be guessed
        FormatInfo("LAMMPS Data", (), "LAMMPS text data file", LAMMPSDataCodec, multi_frame=False),
    )
}


def format_info(name: str) -> FormatInfo:
    """Registry entry for `name` (case-insensitive)."""
    wanted = name.strip().lower()
    for info in FORMATS.values():
        if info.name.lower() == wanted:
            return info
    raise ValueError(f"unknown format {name!r}; expected one of {sorted(FORMATS)}")


def guess_format(path: str | Path) -> FormatInfo:
    """Registry entry for the extension of `path`, ignoring compression suffixes."""
    suffix = strip_compression_suffix(path).suffix.lower()
    if not suffix:
        raise ValueError(f"can not guess a format for '{path}': no file extension")
    for info in FORMATS.values():
        if suffix in info.extensions:
            logger.debug("guessed format %s for %s", info.name, path)
            return info
    raise ValueError(f"can not find a format associated with the '{suffix}' extension ('{path}')")


def make_codec(path: str | Path, format: str | None = None) -> FrameCodec:
    info = format_info(format) if format else guess_format(path)
    return info.factory()


__all__ = [
    "FrameCodec",
    "FormatInfo",
    "FORMATS",
    "format_info",
    "guess_format",
    "make_codec",
    "CSSRCodec",
    "GROCodec",
    "LAMMPSDataCodec",
    "MOL2Codec",
    "PDBCodec",
    "SDFCodec",
]
