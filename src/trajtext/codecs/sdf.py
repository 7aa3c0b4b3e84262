"""MDL structure-data file (`.sdf`, V2000 molfile blocks) codec.

Each frame is a molfile block (3 header lines, a counts line, atom and bond
blocks, `M  END`) followed by `> <NAME>` data items, terminated by `$$$$`.
"""

from __future__ import annotations

import logging
import math

from trajtext.codecs._text import (
    check_fixed_width,
    column,
    only_blank_remaining,
    parse_float,
    parse_int,
    readline_or_fail,
    skiplines_or_fail,
)
from trajtext.core.diagnostics import send_warning
from trajtext.core.errors import EndOfFileError, FormatError
from trajtext.core.model import Atom, BondOrder, Frame
from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)

_CONTEXT_READ = "SDF reader"
_CONTEXT_WRITE = "SDF writer"
_TERMINATOR = "$$$$"
_MAX_COUNT = 999

# molfile charge codes <-> formal charges
_CHARGE_FROM_CODE = {0: 0.0, 1: 3.0, 2: 2.0, 3: 1.0, 5: -1.0, 6: -2.0, 7: -3.0}
_CODE_FROM_CHARGE = {int(v): k for k, v in _CHARGE_FROM_CODE.items()}

_ORDER_FROM_CODE = {1: BondOrder.SINGLE, 2: BondOrder.DOUBLE, 3: BondOrder.TRIPLE, 4: BondOrder.AROMATIC}
_CODE_FROM_ORDER = {v: k for k, v in _ORDER_FROM_CODE.items()}
_UNSPECIFIED_ORDER = 8


def _read_counts(file: TextFile) -> tuple[int, int]:
    line = readline_or_fail(file, "SDF", "missing counts line")
    if len(line) < 10:
        raise FormatError(
            f"SDF counts line must have at least 10 characters, it has {len(line)}",
            path=str(file.path),
            position=file.tell(),
        )
    natoms = parse_int(column(line, 0, 3), what="SDF atom count", file=file)
    nbonds = parse_int(column(line, 3, 3), what="SDF bond count", file=file)
    if natoms < 0 or nbonds < 0:
        raise FormatError(f"negative SDF counts in '{line}'", path=str(file.path), position=file.tell())
    return natoms, nbonds


def _read_data_items(file: TextFile, frame: Frame) -> None:
    """`> <NAME>` items up to the `$$$$` terminator."""
    name: str | None = None
    value: list[str] = []
    while True:
        try:
            line = file.readline()
        except EndOfFileError:
            send_warning(_CONTEXT_READ, "premature end of file while reading global property")
            if name is not None:
                frame.properties[name] = "\n".join(value)
            return
        if line.startswith(_TERMINATOR):
            return
        if not line.strip():
            # a blank line closes the current item
            if name is None:
                send_warning(_CONTEXT_READ, "missing property name")
                continue
            frame.properties[name] = "\n".join(value)
            name = None
            value = []
        elif line.startswith("> <") or line.startswith(">  <"):
            start = line.index("<") + 1
            end = line.rfind(">")
            name = line[start:end]
            value = []
        elif name is not None:
            value.append(line)


class SDFCodec:
    """Multi-frame SDF reader/writer."""

    name = "SDF"

    def forward(self, file: TextFile) -> int | None:
        if only_blank_remaining(file):
            return None
        position = file.tell()
        skiplines_or_fail(file, 3, "SDF", "missing molfile header lines")
        natoms, nbonds = _read_counts(file)
        skiplines_or_fail(file, natoms + nbonds, "SDF", f"expected {natoms} atoms and {nbonds} bonds")
        while not file.eof():
            if file.readline().startswith(_TERMINATOR):
                break
        return position

    def read(self, file: TextFile) -> Frame:
        if only_blank_remaining(file):
            raise EndOfFileError(f"no SDF frame left in '{file.path}'")

        frame = Frame()
        frame.properties["name"] = file.readline()
        skiplines_or_fail(file, 2, "SDF", "missing molfile header lines")
        natoms, nbonds = _read_counts(file)

        for n in range(natoms):
            line = readline_or_fail(file, "SDF", f"expected {natoms} atom lines, got {n}")
            if len(line) < 34:
                raise FormatError(f"atom line is too small for SDF: '{line}'", path=str(file.path), position=file.tell())
            position = [parse_float(column(line, 10 * k, 10), what="SDF position", file=file) for k in range(3)]
            atom = Atom(column(line, 31, 3).strip())
            if len(line) >= 39:
                try:
                    code = int(column(line, 36, 3))
                except ValueError:
                    send_warning(_CONTEXT_READ, f"charge code not numeric: '{column(line, 36, 3)}'")
                    code = 0
                charge = _CHARGE_FROM_CODE.get(code)
                if charge is None:
                    send_warning(_CONTEXT_READ, f"unknown charge code: '{code}'")
                else:
                    atom.charge = charge
            frame.add_atom(atom, position)

        for n in range(nbonds):
            line = readline_or_fail(file, "SDF", f"expected {nbonds} bond lines, got {n}")
            i = parse_int(column(line, 0, 3), what="SDF bond atom", file=file) - 1
            j = parse_int(column(line, 3, 3), what="SDF bond atom", file=file) - 1
            code = parse_int(column(line, 6, 3), what="SDF bond order", file=file)
            if not (0 <= i < natoms and 0 <= j < natoms) or i == j:
                send_warning(_CONTEXT_READ, f"ignoring invalid bond between atoms {i + 1} and {j + 1}")
                continue
            frame.add_bond(i, j, _ORDER_FROM_CODE.get(code, BondOrder.UNKNOWN))

        # atom property block, up to `M  END`
        while True:
            try:
                line = file.readline()
            except EndOfFileError:
                send_warning(_CONTEXT_READ, "premature end of file while reading atom property")
                return frame
            if line.startswith(_TERMINATOR):
                return frame
            if line.startswith("M  END"):
                break

        _read_data_items(file, frame)
        return frame

    def write(self, file: TextFile, frame: Frame) -> None:
        bonds = frame.bonds()
        if len(frame) > _MAX_COUNT or len(bonds) > _MAX_COUNT:
            raise FormatError(
                f"SDF V2000 supports at most {_MAX_COUNT} atoms and bonds, "
                f"got {len(frame)} atoms and {len(bonds)} bonds"
            )

        out = [str(frame.properties.get("name", "NONAME")), " trajtext", ""]
        out.append(f"{len(frame):>3}{len(bonds):>3}  0     0  0  0  0  0  0999 V2000")

        positions = frame.positions
        for i, atom in enumerate(frame.atoms):
            kind = atom.type or ""
            if not kind or len(kind) > 3:
                kind = "Xxx"

            code = 0
            charge = float(atom.charge)
            if charge.is_integer():
                found = _CODE_FROM_CHARGE.get(int(charge))
                if found is None:
                    send_warning(_CONTEXT_WRITE, f"charge code not available for '{int(charge)}'")
                else:
                    code = found
            elif not math.isnan(charge):
                send_warning(_CONTEXT_WRITE, f"charge not an integer: '{charge}'")

            pos = positions[i]
            check_fixed_width(pos, 10, 4, fmt="SDF", what="atomic position")
            out.append(
                f"{pos[0]:>10.4f}{pos[1]:>10.4f}{pos[2]:>10.4f} {kind:<3} 0{code:>3}  0  0  0  0  0  0  0  0  0  0"
            )

        for i, j in bonds:
            code = _CODE_FROM_ORDER.get(frame.bond_order(i, j), _UNSPECIFIED_ORDER)
            out.append(f"{i + 1:>3}{j + 1:>3}{code:>3}  0  0  0  0")

        out.append("M  END")
        for key, value in frame.properties.items():
            if key == "name":
                continue
            out.append(f"> <{key}>")
            out.append(str(value))
            out.append("")
        out.append(_TERMINATOR)
        file.write("\n".join(out) + "\n")

    def close(self, file: TextFile) -> None:
        pass
