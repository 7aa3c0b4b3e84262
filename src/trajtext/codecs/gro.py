"""GROMACS `.gro` codec.

One frame is a title line, an atom count, one fixed-column line per atom and a
box line. Positions and velocities are stored in nm (nm/ps) on disk and in
Angstrom (Angstrom/ps) in memory.
"""

from __future__ import annotations

import logging

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
from trajtext.core.model import Atom, CellShape, Frame, Residue, UnitCell
from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)

_CONTEXT_READ = "GRO reader"
_CONTEXT_WRITE = "GRO writer"
_DEFAULT_TITLE = "GRO File produced by trajtext"
_MAX_ID = 99999


def _read_count(file: TextFile) -> int:
    line = readline_or_fail(file, "GRO", "missing atom count line")
    natoms = parse_int(line, what="GRO atom count", file=file)
    if natoms < 0:
        raise FormatError(f"negative GRO atom count {natoms}", path=str(file.path), position=file.tell())
    return natoms


def _parse_box(line: str, file: TextFile) -> UnitCell | None:
    values = [parse_float(v, what="GRO box", file=file) * 10 for v in line.split()]
    if len(values) == 3:
        return UnitCell(values)
    if len(values) == 9:
        v1x, v2y, v3z, _, _, v2x, _, v3x, v3y = values
        matrix = [
            [v1x, v2x, v3x],
            [0.0, v2y, v3y],
            [0.0, 0.0, v3z],
        ]
        return UnitCell.from_matrix(matrix, shape=CellShape.TRICLINIC)
    send_warning(_CONTEXT_READ, f"ignoring box line with {len(values)} values: '{line.strip()}'")
    return None


class GROCodec:
    """Multi-frame GRO reader/writer."""

    name = "GRO"

    def forward(self, file: TextFile) -> int | None:
        if only_blank_remaining(file):
            return None
        position = file.tell()
        file.skipline()
        natoms = _read_count(file)
        skiplines_or_fail(file, natoms + 1, "GRO", f"expected {natoms} atom lines and a box line")
        return position

    def read(self, file: TextFile) -> Frame:
        if only_blank_remaining(file):
            raise EndOfFileError(f"no GRO frame left in '{file.path}'")

        frame = Frame()
        frame.properties["name"] = file.readline().strip()
        natoms = _read_count(file)

        residues: dict[int, Residue] = {}
        for n in range(natoms):
            line = readline_or_fail(file, "GRO", f"expected {natoms} atom lines, got {n}")
            if len(line) < 44:
                raise FormatError(f"GRO atom line is too small: '{line}'", path=str(file.path), position=file.tell())

            try:
                resid: int | None = int(column(line, 0, 5))
            except ValueError:
                resid = None
            resname = column(line, 5, 5).strip()
            name = column(line, 10, 5).strip()
            position = [parse_float(column(line, 20 + 8 * k, 8), what="GRO position", file=file) * 10 for k in range(3)]

            velocity = None
            if len(line) >= 68:
                velocity = [
                    parse_float(column(line, 44 + 8 * k, 8), what="GRO velocity", file=file) * 10 for k in range(3)
                ]
                frame.add_velocities()

            index = frame.add_atom(Atom(name), position, velocity)
            if resid is not None:
                residue = residues.get(resid)
                if residue is None:
                    residue = Residue(resname, resid)
                    residues[resid] = residue
                residue.add_atom(index)

        box = readline_or_fail(file, "GRO", "missing box line")
        cell = _parse_box(box, file)
        if cell is not None:
            frame.cell = cell

        for resid in sorted(residues):
            frame.add_residue(residues[resid])
        return frame

    def write(self, file: TextFile, frame: Frame) -> None:
        lines = [str(frame.properties.get("name", _DEFAULT_TITLE)), f"{len(frame):>5d}"]

        # atoms outside any residue get ids above every existing residue id
        next_resid = 1 + max((r.id for r in frame.residues if r.id is not None), default=0)

        positions = frame.positions / 10
        velocities = frame.velocities
        if velocities is not None:
            velocities = velocities / 10

        warned_ids = False
        for i, atom in enumerate(frame.atoms):
            residue = frame.residue_for_atom(i)
            resname = "XXXXX"
            resid = "-1"
            if residue is not None:
                resname = residue.name
                if len(resname) > 5:
                    send_warning(_CONTEXT_WRITE, f"residue '{resname}' name is too long, it will be truncated")
                    resname = resname[:5]
            if residue is not None and residue.id is not None:
                if residue.id <= _MAX_ID:
                    resid = str(residue.id)
                else:
                    send_warning(_CONTEXT_WRITE, f"residue id {residue.id} is too big, removing it")
            else:
                if next_resid <= _MAX_ID:
                    resid = str(next_resid)
                next_resid += 1

            name = atom.name
            if len(name) > 5:
                send_warning(_CONTEXT_WRITE, f"atom name '{name}' is too long, it will be truncated")
                name = name[:5]

            if i < _MAX_ID:
                atom_id = str(i + 1)
            else:
                if not warned_ids:
                    send_warning(_CONTEXT_WRITE, "too many atoms, removing atomic id bigger than 99999")
                    warned_ids = True
                atom_id = "*****"

            pos = positions[i]
            check_fixed_width(pos, 8, 3, fmt="GRO", what="atomic position")
            text = f"{resid:>5}{resname:<5}{name:>5}{atom_id:>5}{pos[0]:8.3f}{pos[1]:8.3f}{pos[2]:8.3f}"
            if velocities is not None:
                vel = velocities[i]
                check_fixed_width(vel, 8, 4, fmt="GRO", what="atomic velocity")
                text += f"{vel[0]:8.4f}{vel[1]:8.4f}{vel[2]:8.4f}"
            lines.append(text)

        cell = frame.cell
        if cell.shape in (CellShape.ORTHORHOMBIC, CellShape.INFINITE):
            lengths = [x / 10 for x in cell.lengths]
            check_fixed_width(lengths, 8, 5, fmt="GRO", what="unit cell")
            lines.append(f"  {lengths[0]:8.5f}  {lengths[1]:8.5f}  {lengths[2]:8.5f}")
        else:
            m = cell.matrix / 10
            check_fixed_width([m[0, 0], m[1, 1], m[2, 2], m[0, 1], m[0, 2], m[1, 2]], 8, 5, fmt="GRO", what="unit cell")
            lines.append(
                f"  {m[0, 0]:8.5f}  {m[1, 1]:8.5f}  {m[2, 2]:8.5f} 0.0 0.0  {m[0, 1]:8.5f} 0.0"
                f"  {m[0, 2]:8.5f}  {m[1, 2]:8.5f}"
            )

        file.write("\n".join(lines) + "\n")
        logger.debug("wrote GRO frame with %d atoms", len(frame))

    def close(self, file: TextFile) -> None:
        pass
