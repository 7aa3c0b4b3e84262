"""Core data model for trajtext.

Frames are plain mutable containers owned by whoever reads or writes them; the
readers never keep a reference to a frame they returned.

This module must not import codecs/io/cli.
"""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from itertools import combinations
from typing import Any, Iterable, Iterator, Sequence

import numpy as np

from trajtext.core.elements import element_mass

# Keep these as plain assignments (no typing.TypeAlias).
BondKey = tuple[int, int]
AngleKey = tuple[int, int, int]
DihedralKey = tuple[int, int, int, int]
ImproperKey = tuple[int, int, int, int]


class BondOrder(IntEnum):
    UNKNOWN = 0
    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3
    AROMATIC = 4
    AMIDE = 5


@dataclass
class Atom:
    """A single atom.

    `type` is the chemical kind label and defaults to `name`. `mass` defaults to
    the element mass of `type`, or 0.0 when `type` is not an element symbol.
    """

    name: str
    type: str | None = None
    mass: float | None = None
    charge: float = 0.0
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type is None:
            self.type = self.name
        if self.mass is None:
            self.mass = element_mass(self.type) or 0.0


@dataclass
class Residue:
    """A named group of atoms, with an optional numeric id.

    Member indices are kept sorted and unique.
    """

    name: str
    id: int | None = None
    atoms: list[int] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.atoms = sorted(set(self.atoms))

    def add_atom(self, index: int) -> None:
        pos = bisect.bisect_left(self.atoms, index)
        if pos == len(self.atoms) or self.atoms[pos] != index:
            self.atoms.insert(pos, index)

    def __contains__(self, index: object) -> bool:
        if not isinstance(index, int):
            return False
        pos = bisect.bisect_left(self.atoms, index)
        return pos < len(self.atoms) and self.atoms[pos] == index

    def __iter__(self) -> Iterator[int]:
        return iter(self.atoms)

    def __len__(self) -> int:
        return len(self.atoms)


class CellShape(Enum):
    INFINITE = "infinite"
    ORTHORHOMBIC = "orthorhombic"
    TRICLINIC = "triclinic"


def _cos_deg(angle: float) -> float:
    # exact zero for right angles so orthorhombic matrices stay diagonal
    if angle == 90.0:
        return 0.0
    return math.cos(math.radians(angle))


def _sin_deg(angle: float) -> float:
    if angle == 90.0:
        return 1.0
    return math.sin(math.radians(angle))


class UnitCell:
    """Periodic box described by lengths (Angstrom) and angles (degrees).

    `matrix` stores the three cell vectors as columns, upper-triangular.
    """

    def __init__(
        self,
        lengths: Sequence[float] = (0.0, 0.0, 0.0),
        angles: Sequence[float] = (90.0, 90.0, 90.0),
        *,
        shape: CellShape | None = None,
    ) -> None:
        if len(lengths) != 3 or len(angles) != 3:
            raise ValueError("UnitCell: expected 3 lengths and 3 angles")
        a, b, c = (float(x) for x in lengths)
        alpha, beta, gamma = (float(x) for x in angles)
        if min(a, b, c) < 0:
            raise ValueError(f"UnitCell: lengths must be positive, got {(a, b, c)}")

        matrix = np.zeros((3, 3), dtype=np.float64)
        matrix[0, 0] = a
        matrix[0, 1] = b * _cos_deg(gamma)
        matrix[1, 1] = b * _sin_deg(gamma)
        matrix[0, 2] = c * _cos_deg(beta)
        sin_gamma = _sin_deg(gamma)
        if sin_gamma != 0.0:
            matrix[1, 2] = c * (_cos_deg(alpha) - _cos_deg(beta) * _cos_deg(gamma)) / sin_gamma
        matrix[2, 2] = math.sqrt(max(c * c - matrix[0, 2] ** 2 - matrix[1, 2] ** 2, 0.0))

        self._lengths = (a, b, c)
        self._angles = (alpha, beta, gamma)
        self._matrix = matrix

        if shape is None:
            if a == 0.0 and b == 0.0 and c == 0.0:
                shape = CellShape.INFINITE
            elif alpha == 90.0 and beta == 90.0 and gamma == 90.0:
                shape = CellShape.ORTHORHOMBIC
            else:
                shape = CellShape.TRICLINIC
        self._shape = shape

    @classmethod
    def from_matrix(cls, matrix: Any, *, shape: CellShape | None = None) -> "UnitCell":
        """Build a cell from a 3x3 matrix whose columns are the cell vectors."""
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape != (3, 3):
            raise ValueError(f"UnitCell.from_matrix: expected a 3x3 matrix, got shape {m.shape}")
        va, vb, vc = m[:, 0], m[:, 1], m[:, 2]
        a, b, c = (float(np.linalg.norm(v)) for v in (va, vb, vc))

        def _angle(u: np.ndarray, v: np.ndarray, nu: float, nv: float) -> float:
            if nu == 0.0 or nv == 0.0:
                return 90.0
            cos = float(np.dot(u, v)) / (nu * nv)
            if abs(cos) < 1e-12:
                return 90.0
            return math.degrees(math.acos(max(-1.0, min(1.0, cos))))

        angles = (_angle(vb, vc, b, c), _angle(va, vc, a, c), _angle(va, vb, a, b))
        if shape is None and not np.any(m):
            shape = CellShape.INFINITE
        cell = cls((a, b, c), angles, shape=shape)
        # keep the caller's exact vectors when they are already upper-triangular
        if m[1, 0] == 0.0 and m[2, 0] == 0.0 and m[2, 1] == 0.0:
            cell._matrix = m.copy()
        return cell

    @property
    def a(self) -> float:
        return self._lengths[0]

    @property
    def b(self) -> float:
        return self._lengths[1]

    @property
    def c(self) -> float:
        return self._lengths[2]

    @property
    def alpha(self) -> float:
        return self._angles[0]

    @property
    def beta(self) -> float:
        return self._angles[1]

    @property
    def gamma(self) -> float:
        return self._angles[2]

    @property
    def lengths(self) -> tuple[float, float, float]:
        return self._lengths

    @property
    def angles(self) -> tuple[float, float, float]:
        return self._angles

    @property
    def shape(self) -> CellShape:
        return self._shape

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix.copy()

    def __repr__(self) -> str:
        return f"UnitCell(lengths={self._lengths}, angles={self._angles}, shape={self._shape.value})"


class Frame:
    """One structural snapshot: atoms, positions, bonds, residues, cell, properties."""

    def __init__(self, cell: UnitCell | None = None) -> None:
        self.atoms: list[Atom] = []
        self._positions: list[tuple[float, float, float]] = []
        self._velocities: list[tuple[float, float, float]] | None = None
        self._bonds: dict[BondKey, BondOrder] = {}
        self._neighbors: dict[int, set[int]] | None = None
        self.residues: list[Residue] = []
        self._residue_of_atom: dict[int, int] = {}
        self.cell: UnitCell = cell if cell is not None else UnitCell()
        self.properties: dict[str, Any] = {}

    # ---- atoms ----

    def __len__(self) -> int:
        return len(self.atoms)

    def __getitem__(self, index: int) -> Atom:
        return self.atoms[index]

    def __iter__(self) -> Iterator[Atom]:
        return iter(self.atoms)

    def add_atom(
        self,
        atom: Atom,
        position: Sequence[float],
        velocity: Sequence[float] | None = None,
    ) -> int:
        """Append an atom and return its index."""
        x, y, z = (float(v) for v in position)
        self.atoms.append(atom)
        self._positions.append((x, y, z))
        if self._velocities is not None:
            if velocity is None:
                self._velocities.append((0.0, 0.0, 0.0))
            else:
                vx, vy, vz = (float(v) for v in velocity)
                self._velocities.append((vx, vy, vz))
        return len(self.atoms) - 1

    @property
    def positions(self) -> np.ndarray:
        """Positions as a new `(n, 3)` float64 array."""
        return np.array(self._positions, dtype=np.float64).reshape(-1, 3)

    def set_position(self, index: int, position: Sequence[float]) -> None:
        x, y, z = (float(v) for v in position)
        self._positions[index] = (x, y, z)

    def add_velocities(self) -> None:
        """Enable per-atom velocities, initialized to zero."""
        if self._velocities is None:
            self._velocities = [(0.0, 0.0, 0.0)] * len(self.atoms)

    @property
    def velocities(self) -> np.ndarray | None:
        if self._velocities is None:
            return None
        return np.array(self._velocities, dtype=np.float64).reshape(-1, 3)

    def set_velocity(self, index: int, velocity: Sequence[float]) -> None:
        vx, vy, vz = (float(v) for v in velocity)
        if self._velocities is None:
            self._velocities = [(0.0, 0.0, 0.0)] * len(self.atoms)
        self._velocities[index] = (vx, vy, vz)

    # ---- bonds & derived topology ----

    def add_bond(self, i: int, j: int, order: BondOrder = BondOrder.UNKNOWN) -> None:
        n = len(self.atoms)
        if i < 0 or j < 0 or i >= n or j >= n:
            raise IndexError(f"add_bond: atom index out of range: ({i}, {j}) (n_atoms={n})")
        if i == j:
            raise IndexError(f"add_bond: self-bond not allowed (atom {i})")
        key: BondKey = (i, j) if i < j else (j, i)
        previous = self._bonds.get(key)
        if previous is not None and order == BondOrder.UNKNOWN:
            return
        self._bonds[key] = BondOrder(order)
        self._neighbors = None

    def remove_bond(self, i: int, j: int) -> None:
        key: BondKey = (i, j) if i < j else (j, i)
        if self._bonds.pop(key, None) is not None:
            self._neighbors = None

    def bonds(self) -> list[BondKey]:
        """All bonds as sorted `(i, j)` pairs with `i < j`."""
        return sorted(self._bonds)

    def bond_order(self, i: int, j: int) -> BondOrder:
        key: BondKey = (i, j) if i < j else (j, i)
        try:
            return self._bonds[key]
        except KeyError:
            raise KeyError(f"no bond between atoms {i} and {j}") from None

    def _neighbor_map(self) -> dict[int, set[int]]:
        if self._neighbors is None:
            neighbors: dict[int, set[int]] = {}
            for i, j in self._bonds:
                neighbors.setdefault(i, set()).add(j)
                neighbors.setdefault(j, set()).add(i)
            self._neighbors = neighbors
        return self._neighbors

    def angles(self) -> list[AngleKey]:
        """Angles `(i, j, k)` around every center `j`, with `i < k`."""
        neighbors = self._neighbor_map()
        out: list[AngleKey] = []
        for center in sorted(neighbors):
            for i, k in combinations(sorted(neighbors[center]), 2):
                out.append((i, center, k))
        return out

    def dihedrals(self) -> list[DihedralKey]:
        """Dihedrals `(i, j, k, m)` along every bond `(j, k)`; three-membered rings are skipped."""
        neighbors = self._neighbor_map()
        out: list[DihedralKey] = []
        for j, k in sorted(self._bonds):
            for i in sorted(neighbors[j] - {k}):
                for m in sorted(neighbors[k] - {j}):
                    if i != m:
                        out.append((i, j, k, m))
        return out

    def impropers(self) -> list[ImproperKey]:
        """Impropers `(i, j, k, m)` with `j` the center bonded to `i`, `k` and `m`."""
        neighbors = self._neighbor_map()
        out: list[ImproperKey] = []
        for center in sorted(neighbors):
            if len(neighbors[center]) < 3:
                continue
            for i, k, m in combinations(sorted(neighbors[center]), 3):
                out.append((i, center, k, m))
        return out

    # ---- residues ----

    def add_residue(self, residue: Residue) -> None:
        """Register a residue; an atom may belong to at most one residue."""
        n = len(self.atoms)
        for index in residue.atoms:
            if index < 0 or index >= n:
                raise IndexError(f"add_residue: atom index {index} out of range (n_atoms={n})")
            if index in self._residue_of_atom:
                raise ValueError(
                    f"add_residue: atom {index} already belongs to residue "
                    f"'{self.residues[self._residue_of_atom[index]].name}'"
                )
        position = len(self.residues)
        self.residues.append(residue)
        for index in residue.atoms:
            self._residue_of_atom[index] = position

    def residue_for_atom(self, index: int) -> Residue | None:
        position = self._residue_of_atom.get(index)
        return None if position is None else self.residues[position]

    def are_linked(self, first: Residue, second: Residue) -> bool:
        """True when any bond connects an atom of `first` to an atom of `second`."""
        if first is second:
            return True
        neighbors = self._neighbor_map()
        for i in first.atoms:
            for j in neighbors.get(i, ()):
                if j in second:
                    return True
        return False


def iter_positions(frame: Frame) -> Iterable[tuple[float, float, float]]:
    """Positions as plain tuples, without building an array."""
    return iter(frame._positions)
