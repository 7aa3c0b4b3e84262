"""LAMMPS text data file codec.

Single-frame format: a free-form header of counts and box bounds, followed by
named sections (`Masses`, `Atoms`, `Velocities`, `Bonds`, ...). The reader
handles every atom style; the writer always emits `atom_style full`, with type
ids from `TopologyTypes` and molecule ids from `guess_molecules`.

Only selectable by its explicit format name, `"LAMMPS Data"`.
"""

from __future__ import annotations

import logging
import math
from enum import Enum

import numpy as np

from trajtext.codecs._lammps_styles import AtomData, AtomStyle
from trajtext.core.diagnostics import send_warning
from trajtext.core.errors import EndOfFileError, FormatError
from trajtext.core.model import Atom, CellShape, Frame, Residue, UnitCell
from trajtext.core.molecules import guess_molecules
from trajtext.core.types import TopologyTypes
from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)

_CONTEXT_READ = "LAMMPS Data reader"


class Section(Enum):
    HEADER = "header"
    ATOMS = "Atoms"
    MASSES = "Masses"
    BONDS = "Bonds"
    VELOCITIES = "Velocities"
    IGNORED = "ignored"
    NOT_A_SECTION = "not a section"


_IGNORED_SECTIONS = frozenset(
    [
        "Ellipsoids", "Lines", "Triangles", "Bodies", "Pair Coeffs", "PairIJ Coeffs",
        "Bond Coeffs", "Angle Coeffs", "Dihedral Coeffs", "Improper Coeffs",
        "BondBond Coeffs", "BondAngle Coeffs", "MiddleBondTorsion Coeffs",
        "EndBondTorsion Coeffs", "AngleTorsion Coeffs", "AngleAngleTorsion Coeffs",
        "BondBond13 Coeffs", "AngleAngle Coeffs",
    ]
)

# derived from bonds on write, so skipped silently on read
_TOPOLOGY_SECTIONS = frozenset(["Angles", "Dihedrals", "Impropers"])

_UNUSED_HEADERS = (
    "angles", "dihedrals", "impropers", "bond types", "angle types", "dihedral types",
    "improper types", "extra bond per atom", "extra angle per atom",
    "extra dihedral per atom", "extra improper per atom", "extra special per atom",
    "ellipsoids", "lines", "triangles", "bodies",
)


def split_comment(line: str) -> tuple[str, str]:
    """`(content, comment)` around the first `#`."""
    content, _, comment = line.partition("#")
    return content, comment


def _is_unused_header(content: str) -> bool:
    return any(key in content for key in _UNUSED_HEADERS)


def tilt_factor(matrix: np.ndarray, i: int, j: int) -> float:
    """Reduce `matrix[i, j]` into `[-matrix[i, i] / 2, matrix[i, i] / 2]`."""
    factor = float(matrix[i, j])
    length = float(matrix[i, i])
    if length > 0:
        if factor >= 0:
            while abs(factor) > length / 2:
                factor -= length
        else:
            while factor < -length / 2:
                factor += length
    # rounding noise from sin/cos
    if abs(factor) < 1e-15:
        factor = 0.0
    return factor


class _DataReader:
    """State for reading the single frame of one data file."""

    def __init__(self, file: TextFile) -> None:
        self.file = file
        self.section = Section.HEADER
        self.style_name = ""
        self.natoms = 0
        self.nbonds = 0
        self.natom_types = 0
        self.matrix = np.eye(3)
        self.shape = CellShape.ORTHORHOMBIC
        self.atoms: list[AtomData | None] = []
        self.names: dict[int, str] = {}
        self.masses: dict[str, float] = {}
        self.bonds: list[tuple[int, int]] = []
        self.velocities: dict[int, tuple[float, float, float]] = {}

    def error(self, message: str) -> FormatError:
        return FormatError(message, path=str(self.file.path), position=self.file.tell())

    def _lines(self, count: int, what: str):
        """Yield `count` non-blank data lines with comments removed."""
        n = 0
        while n < count:
            if self.file.eof():
                raise self.error(f"end of file found before getting all {what} ({n} of {count})")
            content, comment = split_comment(self.file.readline())
            if not content.strip():
                continue
            yield content, comment
            n += 1

    def get_section(self, line: str) -> Section:
        content, comment = split_comment(line)
        name = content.strip()
        if name == "Atoms":
            if comment.strip():
                self.style_name = comment.strip()
            return Section.ATOMS
        if name == "Bonds":
            return Section.BONDS
        if name == "Velocities":
            return Section.VELOCITIES
        if name == "Masses":
            return Section.MASSES
        if name in _TOPOLOGY_SECTIONS:
            return Section.IGNORED
        if name in _IGNORED_SECTIONS:
            if "Coeffs" not in name:
                send_warning(_CONTEXT_READ, f"ignoring section '{name}'")
            return Section.IGNORED
        return Section.NOT_A_SECTION

    def next_section(self, *, strict: bool) -> None:
        while not self.file.eof():
            line = self.file.readline()
            if not line.strip():
                continue
            section = self.get_section(line)
            if section is Section.NOT_A_SECTION:
                if strict:
                    raise self.error(f"expected section name, got '{line}'")
                continue
            self.section = section
            return

    def header_integer(self, content: str, what: str) -> int:
        fields = content.split()
        if len(fields) < 2:
            raise self.error(f"invalid header value: expected '<n> {what}', got '{content}'")
        try:
            return int(fields[0])
        except ValueError:
            raise self.error(f"invalid header value: expected '<n> {what}', got '{content}'") from None

    def header_bounds(self, content: str, what: str) -> float:
        fields = content.split()
        if len(fields) < 4:
            raise self.error(f"invalid header value: expected '<lo> <hi> {what}', got '{content}'")
        try:
            return float(fields[1]) - float(fields[0])
        except ValueError:
            raise self.error(f"invalid header value: expected '<lo> <hi> {what}', got '{content}'") from None

    def read_header(self) -> None:
        while not self.file.eof():
            line = self.file.readline()
            content, _ = split_comment(line)
            if not content.strip() or _is_unused_header(content):
                continue
            if "atoms" in content:
                self.natoms = self.header_integer(content, "atoms")
            elif "bonds" in content:
                self.nbonds = self.header_integer(content, "bonds")
            elif "atom types" in content:
                self.natom_types = self.header_integer(content, "atom types")
            elif "xlo xhi" in content:
                self.matrix[0, 0] = self.header_bounds(content, "xlo xhi")
            elif "ylo yhi" in content:
                self.matrix[1, 1] = self.header_bounds(content, "ylo yhi")
            elif "zlo zhi" in content:
                self.matrix[2, 2] = self.header_bounds(content, "zlo zhi")
            elif "xy xz yz" in content:
                fields = content.split()
                if len(fields) != 6:
                    raise self.error(f"invalid header value: expected '<xy> <xz> <yz> xy xz yz', got '{content}'")
                try:
                    self.matrix[0, 1], self.matrix[0, 2], self.matrix[1, 2] = (float(v) for v in fields[:3])
                except ValueError:
                    raise self.error(f"invalid tilt factors in '{content}'") from None
                # triclinic even when every tilt is zero
                self.shape = CellShape.TRICLINIC
            else:
                self.section = self.get_section(line)
                if self.section is Section.NOT_A_SECTION:
                    raise self.error(f"expected section name, got '{line}'")
                return
        self.section = Section.IGNORED

    def read_atoms(self) -> None:
        if self.natoms == 0:
            raise self.error("missing atoms count in header")
        if not self.style_name:
            send_warning(_CONTEXT_READ, "unknown atom style, defaulting to 'full'")
            self.style_name = "full"
        style = AtomStyle(self.style_name)

        self.atoms = [None] * self.natoms
        for n, (content, comment) in enumerate(self._lines(self.natoms, "atoms")):
            data = style.read_line(content, n)
            if not 0 <= data.index < self.natoms:
                raise self.error(
                    f"too many atoms in [Atoms] section: expected {self.natoms} atoms, "
                    f"got atom with index {data.index + 1}"
                )
            if comment.strip():
                # the first word of the comment is the atom name
                self.names[data.index] = comment.split()[0]
            self.atoms[data.index] = data
        self.next_section(strict=True)

    def read_masses(self) -> None:
        if self.natom_types == 0:
            raise self.error("missing atom types count in header")
        for content, _ in self._lines(self.natom_types, "masses"):
            fields = content.split()
            if len(fields) != 2:
                raise self.error(f"bad mass specification '{content}'")
            try:
                self.masses[fields[0]] = float(fields[1])
            except ValueError:
                raise self.error(f"bad mass specification '{content}'") from None
        self.next_section(strict=True)

    def read_bonds(self) -> None:
        if self.nbonds == 0:
            raise self.error("missing bonds count in header")
        for content, _ in self._lines(self.nbonds, "bonds"):
            fields = content.split()
            if len(fields) != 4:
                raise self.error(f"bad bond specification '{content}'")
            try:
                self.bonds.append((int(fields[2]) - 1, int(fields[3]) - 1))
            except ValueError:
                raise self.error(f"bad bond specification '{content}'") from None
        self.next_section(strict=True)

    def read_velocities(self) -> None:
        if self.natoms == 0:
            raise self.error("missing atoms count in header")
        for content, _ in self._lines(self.natoms, "velocities"):
            fields = content.split()
            if len(fields) < 4:
                raise self.error(f"bad velocity specification '{content}'")
            try:
                index = int(fields[0]) - 1
                self.velocities[index] = (float(fields[1]), float(fields[2]), float(fields[3]))
            except ValueError:
                raise self.error(f"bad velocity specification '{content}'") from None
        self.next_section(strict=True)

    def read(self) -> Frame:
        comment = self.file.readline()
        # VMD topotools writes the atom style in the first line
        if "atom_style" in comment:
            rest = comment[comment.index("atom_style") + len("atom_style"):].split()
            if rest:
                self.style_name = rest[0]

        while not self.file.eof():
            if self.section is Section.HEADER:
                self.read_header()
            elif self.section is Section.ATOMS:
                self.read_atoms()
            elif self.section is Section.MASSES:
                self.read_masses()
            elif self.section is Section.BONDS:
                self.read_bonds()
            elif self.section is Section.VELOCITIES:
                self.read_velocities()
            else:
                self.next_section(strict=False)
        return self.build()

    def build(self) -> Frame:
        frame = Frame(UnitCell.from_matrix(self.matrix, shape=self.shape))
        if self.velocities:
            frame.add_velocities()

        residues: dict[int, Residue] = {}
        for index, data in enumerate(self.atoms):
            if data is None:
                frame.add_atom(Atom(""), (0.0, 0.0, 0.0))
                continue
            atom = Atom(str(data.type))
            if not math.isnan(data.charge):
                atom.charge = data.charge
            if not math.isnan(data.mass):
                atom.mass = data.mass
            elif atom.type in self.masses:
                atom.mass = self.masses[atom.type]
            name = self.names.get(index)
            if name:
                atom.name = name
                atom.type = name
            frame.add_atom(atom, (data.x, data.y, data.z), self.velocities.get(index))

            if data.mol != 0:
                residue = residues.get(data.mol)
                if residue is None:
                    residue = Residue("", data.mol)
                    residues[data.mol] = residue
                residue.add_atom(index)

        for i, j in self.bonds:
            if not (0 <= i < len(frame) and 0 <= j < len(frame)) or i == j:
                raise self.error(f"invalid bond between atoms {i + 1} and {j + 1}")
            frame.add_bond(i, j)

        for molid in sorted(residues):
            frame.add_residue(residues[molid])
        return frame


def _type_label(types: TopologyTypes, kind: int) -> str:
    return types.atoms.keys()[kind][0]


class LAMMPSDataCodec:
    """Single-frame LAMMPS data reader/writer."""

    name = "LAMMPS Data"

    def forward(self, file: TextFile) -> int | None:
        if file.tell() != 0 or file.eof():
            return None
        while not file.eof():
            file.skipline()
        return 0

    def read(self, file: TextFile) -> Frame:
        if file.tell() != 0:
            raise FormatError("LAMMPS Data format only supports reading one frame", path=str(file.path))
        if file.eof():
            raise EndOfFileError(f"no LAMMPS data in '{file.path}'")
        frame = _DataReader(file).read()
        logger.debug("read LAMMPS data frame with %d atoms", len(frame))
        return frame

    def write(self, file: TextFile, frame: Frame) -> None:
        if file.tell() != 0:
            raise FormatError("LAMMPS Data format only supports writing one frame", path=str(file.path))

        types = TopologyTypes.from_frame(frame)
        bonds = frame.bonds()
        angles = frame.angles()
        dihedrals = frame.dihedrals()
        impropers = frame.impropers()

        out = ["LAMMPS data file -- atom_style full -- generated by trajtext"]
        out.append(f"{len(frame)} atoms")
        out.append(f"{len(bonds)} bonds")
        out.append(f"{len(angles)} angles")
        out.append(f"{len(dihedrals)} dihedrals")
        out.append(f"{len(impropers)} impropers")
        out.append(f"{len(types.atoms)} atom types")
        out.append(f"{len(types.bonds)} bond types")
        out.append(f"{len(types.angles)} angle types")
        out.append(f"{len(types.dihedrals)} dihedral types")
        out.append(f"{len(types.impropers)} improper types")

        matrix = frame.cell.matrix
        out.append(f"0 {float(matrix[0, 0])} xlo xhi")
        out.append(f"0 {float(matrix[1, 1])} ylo yhi")
        out.append(f"0 {float(matrix[2, 2])} zlo zhi")
        if frame.cell.shape is CellShape.TRICLINIC:
            out.append(
                f"{tilt_factor(matrix, 0, 1)} {tilt_factor(matrix, 0, 2)} {tilt_factor(matrix, 1, 2)} xy xz yz"
            )
        out.append("")

        # type comments, for users filling in the coefficients
        for title, table in (
            ("Pair Coeffs", None),
            ("Bond Coeffs", types.bonds),
            ("Angle Coeffs", types.angles),
            ("Dihedral Coeffs", types.dihedrals),
            ("Improper Coeffs", types.impropers),
        ):
            keys = [(k,) for k in range(len(types.atoms))] if table is None else table.keys()
            if not keys:
                continue
            if title != "Pair Coeffs":
                out.append("")
            out.append(f"# {title}")
            for n, key in enumerate(keys):
                out.append(f"# {n + 1} " + "-".join(_type_label(types, k) for k in key))

        out.extend(["", "Masses", ""])
        for n, (label, mass) in enumerate(types.atoms):
            out.append(f"{n + 1} {mass} # {label}")

        out.extend(["", "Atoms # full", ""])
        positions = frame.positions
        molids = guess_molecules(len(frame), bonds)
        for i, atom in enumerate(frame.atoms):
            x, y, z = (float(v) for v in positions[i])
            out.append(
                f"{i + 1} {molids[i] + 1} {types.atom_type_id(atom) + 1} {float(atom.charge)} {x} {y} {z} # {atom.type}"
            )

        velocities = frame.velocities
        if velocities is not None:
            out.extend(["", "Velocities", ""])
            for i in range(len(frame)):
                vx, vy, vz = (float(v) for v in velocities[i])
                out.append(f"{i + 1} {vx} {vy} {vz}")

        if bonds:
            out.extend(["", "Bonds", ""])
            for n, (i, j) in enumerate(bonds):
                out.append(f"{n + 1} {types.bond_type_id(i, j) + 1} {i + 1} {j + 1}")
        if angles:
            out.extend(["", "Angles", ""])
            for n, (i, j, k) in enumerate(angles):
                out.append(f"{n + 1} {types.angle_type_id(i, j, k) + 1} {i + 1} {j + 1} {k + 1}")
        if dihedrals:
            out.extend(["", "Dihedrals", ""])
            for n, (i, j, k, m) in enumerate(dihedrals):
                out.append(f"{n + 1} {types.dihedral_type_id(i, j, k, m) + 1} {i + 1} {j + 1} {k + 1} {m + 1}")
        if impropers:
            out.extend(["", "Impropers", ""])
            for n, (i, j, k, m) in enumerate(impropers):
                out.append(f"{n + 1} {types.improper_type_id(i, j, k, m) + 1} {i + 1} {j + 1} {k + 1} {m + 1}")

        file.write("\n".join(out) + "\n")

    def close(self, file: TextFile) -> None:
        pass
