"""Tripos `.mol2` codec.

A frame starts at an `@<TRIPOS>MOLECULE` record and runs until the next one.
The counts line of the MOLECULE record gates how many ATOM and BOND lines
belong to the frame.
"""

from __future__ import annotations

import logging

from trajtext.codecs._text import only_blank_remaining, parse_float, parse_int, readline_or_fail, skiplines_or_fail
from trajtext.core.diagnostics import send_warning
from trajtext.core.elements import find_element
from trajtext.core.errors import EndOfFileError, FormatError
from trajtext.core.model import Atom, BondOrder, CellShape, Frame, Residue, UnitCell
from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)

_CONTEXT_READ = "MOL2 reader"
_CONTEXT_WRITE = "MOL2 writer"

MOLECULE = "@<TRIPOS>MOLECULE"
ATOM = "@<TRIPOS>ATOM"
BOND = "@<TRIPOS>BOND"
CRYSIN = "@<TRIPOS>CRYSIN"

_ORDER_FROM_TEXT = {
    "1": BondOrder.SINGLE,
    "2": BondOrder.DOUBLE,
    "3": BondOrder.TRIPLE,
    "ar": BondOrder.AROMATIC,
    "am": BondOrder.AMIDE,
    "du": BondOrder.UNKNOWN,
}
_TEXT_FROM_ORDER = {
    BondOrder.SINGLE: "1",
    BondOrder.DOUBLE: "2",
    BondOrder.TRIPLE: "3",
    BondOrder.AROMATIC: "ar",
    BondOrder.AMIDE: "am",
}


def _find_tag(file: TextFile, tag: str) -> int | None:
    """Advance past the next line starting with `tag`; return that line's offset."""
    while not file.eof():
        position = file.tell()
        if file.readline().startswith(tag):
            return position
    return None


def _read_counts(file: TextFile) -> tuple[int, int]:
    line = readline_or_fail(file, "MOL2", "missing counts line")
    fields = line.split()
    if not fields:
        raise FormatError("empty MOL2 counts line", path=str(file.path), position=file.tell())
    natoms = parse_int(fields[0], what="MOL2 atom count", file=file)
    nbonds = parse_int(fields[1], what="MOL2 bond count", file=file) if len(fields) >= 2 else 0
    if natoms < 0 or nbonds < 0:
        raise FormatError(f"negative MOL2 counts in '{line}'", path=str(file.path), position=file.tell())
    return natoms, nbonds


def _guess_element(name: str) -> str:
    """Longest alphabetic prefix of `name` that is an element symbol."""
    guess = ""
    for char in name:
        if not char.isalpha() or find_element(guess + char) is None:
            break
        guess += char
    return guess


class MOL2Codec:
    """Multi-frame MOL2 reader/writer."""

    name = "MOL2"

    def forward(self, file: TextFile) -> int | None:
        position = _find_tag(file, MOLECULE)
        if position is None:
            return None
        file.skipline()
        natoms, nbonds = _read_counts(file)

        if _find_tag(file, ATOM) is None:
            raise FormatError(f"missing {ATOM} section", path=str(file.path), position=file.tell())
        skiplines_or_fail(file, natoms, "MOL2", f"expected {natoms} atom lines")

        if nbonds > 0:
            if _find_tag(file, BOND) is None:
                raise FormatError(f"missing {BOND} section", path=str(file.path), position=file.tell())
            skiplines_or_fail(file, nbonds, "MOL2", f"expected {nbonds} bond lines")
        return position

    def read(self, file: TextFile) -> Frame:
        if only_blank_remaining(file):
            raise EndOfFileError(f"no MOL2 frame left in '{file.path}'")
        if _find_tag(file, MOLECULE) is None:
            raise FormatError(f"no {MOLECULE} record found", path=str(file.path), position=file.tell())

        frame = Frame()
        frame.properties["name"] = readline_or_fail(file, "MOL2", "missing molecule name").strip()
        natoms, nbonds = _read_counts(file)
        readline_or_fail(file, "MOL2", "missing molecule type")
        charges = readline_or_fail(file, "MOL2", "missing charge type").strip() != "NO_CHARGES"

        residues: dict[int, Residue] = {}
        while not file.eof():
            position = file.tell()
            line = file.readline().strip()
            if line == ATOM:
                self._read_atoms(file, frame, natoms, charges, residues)
            elif line == BOND:
                self._read_bonds(file, frame, nbonds)
            elif line == CRYSIN:
                values = readline_or_fail(file, "MOL2", "missing CRYSIN line").split()
                if len(values) < 6:
                    raise FormatError(f"CRYSIN line is too small: {values}", path=str(file.path), position=file.tell())
                cell = [parse_float(v, what="MOL2 cell", file=file) for v in values[:6]]
                frame.cell = UnitCell(cell[:3], cell[3:])
            elif line == MOLECULE:
                file.seek(position)
                break

        for resid in sorted(residues):
            frame.add_residue(residues[resid])
        return frame

    def _read_atoms(
        self,
        file: TextFile,
        frame: Frame,
        natoms: int,
        charges: bool,
        residues: dict[int, Residue],
    ) -> None:
        for n in range(natoms):
            line = readline_or_fail(file, "MOL2", f"expected {natoms} atom lines, got {n}")
            fields = line.split()
            if len(fields) < 6:
                raise FormatError(f"MOL2 atom line is too small: '{line}'", path=str(file.path), position=file.tell())
            name = fields[1]
            position = [parse_float(v, what="MOL2 position", file=file) for v in fields[2:5]]
            sybyl = fields[5]

            if "." in sybyl or find_element(sybyl) is not None:
                atom = Atom(name, sybyl.split(".")[0])
                atom.properties["sybyl"] = sybyl
            else:
                guess = _guess_element(name)
                send_warning(_CONTEXT_READ, f"invalid sybyl type: '{sybyl}'; guessing '{guess}' from '{name}'")
                atom = Atom(name, guess)
            if charges and len(fields) >= 9:
                atom.charge = parse_float(fields[8], what="MOL2 charge", file=file)
            index = frame.add_atom(atom, position)

            if len(fields) >= 8:
                resid = parse_int(fields[6], what="MOL2 residue id", file=file)
                residue = residues.get(resid)
                if residue is None:
                    residue = Residue(fields[7], resid)
                    residues[resid] = residue
                residue.add_atom(index)

    def _read_bonds(self, file: TextFile, frame: Frame, nbonds: int) -> None:
        for n in range(nbonds):
            line = readline_or_fail(file, "MOL2", f"expected {nbonds} bond lines, got {n}")
            fields = line.split()
            if len(fields) < 3:
                raise FormatError(f"MOL2 bond line is too small: '{line}'", path=str(file.path), position=file.tell())
            i = parse_int(fields[1], what="MOL2 bond atom", file=file) - 1
            j = parse_int(fields[2], what="MOL2 bond atom", file=file) - 1
            if not (0 <= i < len(frame) and 0 <= j < len(frame)):
                raise FormatError(
                    f"found a bond ({i + 1}--{j + 1}) between atoms at indexes larger "
                    f"than the number of atoms ({len(frame)})",
                    path=str(file.path),
                    position=file.tell(),
                )
            order = _ORDER_FROM_TEXT.get(fields[3] if len(fields) >= 4 else "", BondOrder.UNKNOWN)
            frame.add_bond(i, j, order)

    def write(self, file: TextFile, frame: Frame) -> None:
        bonds = frame.bonds()
        out = [MOLECULE, str(frame.properties.get("name", ""))]
        out.append(f"{len(frame):4d}  {len(bonds):4d}    1    0    0")
        out.extend(["SMALL", "USER_CHARGES", "", ATOM])

        # atoms outside any residue get ids above every existing residue id
        max_resid = max((r.id for r in frame.residues if r.id is not None), default=0)

        positions = frame.positions
        warned_sybyl = False
        for i, atom in enumerate(frame.atoms):
            residue = frame.residue_for_atom(i)
            if residue is not None:
                resname = residue.name
                if residue.id is not None:
                    resid = residue.id
                else:
                    max_resid += 1
                    resid = max_resid
            else:
                resname = "XXX"
                max_resid += 1
                resid = max_resid

            sybyl = atom.properties.get("sybyl")
            if not isinstance(sybyl, str):
                sybyl = atom.type or "Du"
                if not warned_sybyl:
                    send_warning(_CONTEXT_WRITE, "sybyl type is not set, using element type instead")
                    warned_sybyl = True

            x, y, z = positions[i]
            out.append(f"{i + 1:4d} {atom.name:<4}  {x:.6f} {y:.6f} {z:.6f} {sybyl} {resid} {resname} {atom.charge:.6f}")

        out.append(BOND)
        for n, (i, j) in enumerate(bonds):
            order = _TEXT_FROM_ORDER.get(frame.bond_order(i, j), "du")
            out.append(f"{n + 1:4d}  {i + 1:4d}  {j + 1:4d}    {order}")

        cell = frame.cell
        if cell.shape is not CellShape.INFINITE:
            out.append(CRYSIN)
            out.append(
                f"   {cell.a:.4f}   {cell.b:.4f}   {cell.c:.4f}"
                f"   {cell.alpha:.4f}   {cell.beta:.4f}   {cell.gamma:.4f} 1 1"
            )

        out.append("@<TRIPOS>SUBSTRUCTURE")
        out.append("   1 ****        1 TEMP                        0 ****  **** 0 ROOT")
        out.append("")
        file.write("\n".join(out) + "\n")

    def close(self, file: TextFile) -> None:
        pass
