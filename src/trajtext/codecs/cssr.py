"""Cambridge Structure Search and Retrieval (`.cssr`) codec.

Single-frame format: two cell lines, a count/coordinate-style line, a title,
then one line per atom with up to 8 connectivity columns and a charge.
"""

from __future__ import annotations

import logging

import numpy as np

from trajtext.codecs._text import parse_float, parse_int, readline_or_fail
from trajtext.core.diagnostics import send_warning
from trajtext.core.errors import EndOfFileError, FormatError
from trajtext.core.model import Atom, CellShape, Frame, UnitCell
from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)

_CONTEXT_READ = "CSSR reader"
_CONTEXT_WRITE = "CSSR writer"
_MAX_ATOMS = 9999
_MAX_BONDS = 8


def _cell_values(line: str, skip: int, what: str, file: TextFile) -> list[float]:
    values = line[skip:].split()
    if len(values) < 3:
        raise FormatError(f"could not read CSSR {what} in '{line}'", path=str(file.path), position=file.tell())
    return [parse_float(v, what=f"CSSR {what}", file=file) for v in values[:3]]


def _type_from_name(name: str) -> str:
    """Names are often `<type><id>`, eg `O121`."""
    for n, char in enumerate(name):
        if char.isdigit():
            return name[:n]
    return name


class CSSRCodec:
    """Single-frame CSSR reader/writer."""

    name = "CSSR"

    def forward(self, file: TextFile) -> int | None:
        if file.tell() != 0 or file.eof():
            return None
        while not file.eof():
            file.skipline()
        return 0

    def read(self, file: TextFile) -> Frame:
        if file.tell() != 0:
            raise FormatError("CSSR format only supports reading one frame", path=str(file.path))
        if file.eof():
            raise EndOfFileError(f"no CSSR frame in '{file.path}'")

        frame = Frame()
        lengths = _cell_values(readline_or_fail(file, "CSSR", "missing cell lengths"), 38, "cell lengths", file)
        angles = _cell_values(readline_or_fail(file, "CSSR", "missing cell angles"), 21, "cell angles", file)
        frame.cell = UnitCell(lengths, angles)

        counts = readline_or_fail(file, "CSSR", "missing atom count").split()
        if not counts:
            raise FormatError("missing CSSR atom count", path=str(file.path), position=file.tell())
        natoms = parse_int(counts[0], what="CSSR atom count", file=file)
        style = parse_int(counts[1], what="CSSR coordinate style", file=file) if len(counts) > 1 else -1
        fractional = style == 0

        frame.properties["name"] = readline_or_fail(file, "CSSR", "missing title").strip()

        matrix = frame.cell.matrix
        connectivity: list[list[int]] = []
        for n in range(natoms):
            line = readline_or_fail(file, "CSSR", f"expected {natoms} atom lines, got {n}")
            fields = line.split()
            if len(fields) < 5:
                raise FormatError(f"CSSR atom line is too small: '{line}'", path=str(file.path), position=file.tell())
            name = fields[1]
            position = np.array([parse_float(v, what="CSSR position", file=file) for v in fields[2:5]])
            if fractional:
                position = matrix @ position

            partners = [parse_int(v, what="CSSR connectivity", file=file) for v in fields[5:5 + _MAX_BONDS]]
            atom = Atom(name, _type_from_name(name))
            if len(fields) > 5 + _MAX_BONDS:
                atom.charge = parse_float(fields[5 + _MAX_BONDS], what="CSSR charge", file=file)
            frame.add_atom(atom, position)
            connectivity.append([p - 1 for p in partners if p != 0])

        for i, partners in enumerate(connectivity):
            for j in partners:
                if not 0 <= j < natoms or j == i:
                    send_warning(_CONTEXT_READ, f"ignoring invalid bond between atoms {i + 1} and {j + 1}")
                    continue
                frame.add_bond(i, j)

        # single frame: consume whatever trails it
        while not file.eof():
            file.skipline()
        return frame

    def write(self, file: TextFile, frame: Frame) -> None:
        if file.tell() != 0:
            raise FormatError("CSSR format only supports writing one frame", path=str(file.path))

        cell = frame.cell
        out = [
            f" REFERENCE STRUCTURE = 00000   A,B,C ={cell.a:8.3f}{cell.b:8.3f}{cell.c:8.3f}",
            f"   ALPHA,BETA,GAMMA ={cell.alpha:8.3f}{cell.beta:8.3f}{cell.gamma:8.3f}    SPGR =  1 P1",
        ]

        # infinite cells have no fractional coordinates
        fractional = cell.shape is not CellShape.INFINITE
        style = 0 if fractional else 1
        if len(frame) > _MAX_ATOMS:
            send_warning(_CONTEXT_WRITE, "too many atoms, the file might not open with other programs")
            out.append(f"{len(frame)} {style}")
        else:
            out.append(f"{len(frame):4}   {style}")
        out.append(" " + str(frame.properties.get("name", "file created with trajtext")))

        connectivity: list[list[int]] = [[] for _ in range(len(frame))]
        for i, j in frame.bonds():
            if i >= _MAX_ATOMS or j >= _MAX_ATOMS:
                send_warning(_CONTEXT_WRITE, "atomic index is too big for connectivity record, removing the bond")
                continue
            connectivity[i].append(j)
            connectivity[j].append(i)

        positions = frame.positions
        if fractional:
            positions = positions @ np.linalg.inv(cell.matrix).T

        for i, atom in enumerate(frame.atoms):
            atom_id = str(i + 1) if i < _MAX_ATOMS else "****"
            x, y, z = positions[i]
            line = f"{atom_id:>4} {atom.name:<4}  {x:9.5f} {y:9.5f} {z:9.5f}"

            partners = connectivity[i]
            if len(partners) > _MAX_BONDS:
                send_warning(_CONTEXT_WRITE, f"too many bonds with atom {i}, only {_MAX_BONDS} are supported")
                partners = partners[:_MAX_BONDS]
            line += "".join(f"{j + 1:4}" for j in partners)
            line += "   0" * (_MAX_BONDS - len(partners))
            line += f" {atom.charge:7.3f}"
            out.append(line)

        file.write("\n".join(out) + "\n")

    def close(self, file: TextFile) -> None:
        pass
