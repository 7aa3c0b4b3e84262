"""Order-independent type identities for bonded interactions.

Every distinct atom kind `(type, mass)` gets a dense id in first-seen order.
Bonds, angles, dihedrals and impropers are then expressed as tuples of atom-kind
ids, canonicalized so that the same pattern listed in a different order maps to
a single entry, and deduplicated into dense ids (insertion rank).

The same canonicalization runs when a table is built and when it is queried;
a query that misses is an internal-consistency failure
(`UnregisteredTypeError`), never a user-input error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Hashable, Iterator, TypeVar

from trajtext.core.errors import UnregisteredTypeError

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd

    from trajtext.core.model import Atom, Frame


BondType = tuple[int, int]
AngleType = tuple[int, int, int]
DihedralType = tuple[int, int, int, int]
ImproperType = tuple[int, int, int, int]
AtomKind = tuple[str, float]

K = TypeVar("K", bound=Hashable)


def canonical_bond(i: int, j: int) -> BondType:
    return (i, j) if i <= j else (j, i)


def canonical_angle(i: int, j: int, k: int) -> AngleType:
    """`j` is the vertex; endpoints are ordered."""
    return (i, j, k) if i <= k else (k, j, i)


def canonical_dihedral(i: int, j: int, k: int, m: int) -> DihedralType:
    """Orient the 4-chain so the end pair with the smaller maximum comes first.

    Ties on the maximum fall back to the minimum of each pair. When both tie
    (eg kinds 0-1-0-1) the smaller of the two orientations is kept.
    """
    forward, backward = (i, j, k, m), (m, k, j, i)
    max_ij, max_km = max(i, j), max(k, m)
    if max_ij != max_km:
        return forward if max_ij < max_km else backward
    min_ij, min_km = min(i, j), min(k, m)
    if min_ij != min_km:
        return forward if min_ij < min_km else backward
    return min(forward, backward)


def canonical_improper(i: int, j: int, k: int, m: int) -> ImproperType:
    """`j` is the central atom; the three others are sorted."""
    a, b, c = sorted((i, k, m))
    return (a, j, b, c)


class TypeTable(Generic[K]):
    """Insertion-ordered set of keys, each mapped to its insertion rank."""

    def __init__(self) -> None:
        self._ids: dict[K, int] = {}

    def add(self, key: K) -> int:
        existing = self._ids.get(key)
        if existing is not None:
            return existing
        new_id = len(self._ids)
        self._ids[key] = new_id
        return new_id

    def index(self, key: K) -> int:
        """Dense id of `key`; raises KeyError when it was never added."""
        return self._ids[key]

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[K]:
        return iter(self._ids)

    def keys(self) -> list[K]:
        return list(self._ids)


def _atom_kind(atom: "Atom") -> AtomKind:
    return (atom.type or "", float(atom.mass or 0.0))


@dataclass
class TopologyTypes:
    """Type tables for one frame's topology.

    Built fresh for a single write and discarded afterwards.
    """

    atoms: TypeTable[AtomKind] = field(default_factory=TypeTable)
    bonds: TypeTable[BondType] = field(default_factory=TypeTable)
    angles: TypeTable[AngleType] = field(default_factory=TypeTable)
    dihedrals: TypeTable[DihedralType] = field(default_factory=TypeTable)
    impropers: TypeTable[ImproperType] = field(default_factory=TypeTable)
    _atom_ids: list[int] = field(default_factory=list, repr=False)

    @classmethod
    def from_frame(cls, frame: "Frame") -> "TopologyTypes":
        types = cls()
        for atom in frame.atoms:
            types._atom_ids.append(types.atoms.add(_atom_kind(atom)))

        kind = types._atom_ids
        for i, j in frame.bonds():
            types.bonds.add(canonical_bond(kind[i], kind[j]))
        for i, j, k in frame.angles():
            types.angles.add(canonical_angle(kind[i], kind[j], kind[k]))
        for i, j, k, m in frame.dihedrals():
            types.dihedrals.add(canonical_dihedral(kind[i], kind[j], kind[k], kind[m]))
        for i, j, k, m in frame.impropers():
            types.impropers.add(canonical_improper(kind[i], kind[j], kind[k], kind[m]))
        return types

    # ---- lookups (0-based ids) ----

    def atom_type_id(self, atom: "Atom") -> int:
        key = _atom_kind(atom)
        try:
            return self.atoms.index(key)
        except KeyError:
            raise UnregisteredTypeError("atom", key) from None

    def atom_kind_of(self, index: int) -> int:
        """Atom-kind id of the frame atom at `index`."""
        return self._atom_ids[index]

    def bond_type_id(self, i: int, j: int) -> int:
        kind = self._atom_ids
        return self._lookup(self.bonds, "bond", canonical_bond(kind[i], kind[j]))

    def angle_type_id(self, i: int, j: int, k: int) -> int:
        kind = self._atom_ids
        return self._lookup(self.angles, "angle", canonical_angle(kind[i], kind[j], kind[k]))

    def dihedral_type_id(self, i: int, j: int, k: int, m: int) -> int:
        kind = self._atom_ids
        key = canonical_dihedral(kind[i], kind[j], kind[k], kind[m])
        return self._lookup(self.dihedrals, "dihedral", key)

    def improper_type_id(self, i: int, j: int, k: int, m: int) -> int:
        kind = self._atom_ids
        key = canonical_improper(kind[i], kind[j], kind[k], kind[m])
        return self._lookup(self.impropers, "improper", key)

    @staticmethod
    def _lookup(table: TypeTable, kind: str, key: tuple) -> int:
        try:
            return table.index(key)
        except KeyError:
            raise UnregisteredTypeError(kind, key) from None

    # ---- tabular views ----

    def to_tables(self) -> dict[str, "pd.DataFrame"]:
        """Return each type table as a DataFrame keyed by dense `type_id`.

        Atom-kind columns hold atom-kind ids (`t1`..`t4`), in canonical order.
        """
        import pandas as pd

        out: dict[str, pd.DataFrame] = {}
        out["atom_types"] = pd.DataFrame(
            {
                "type_id": pd.array(range(len(self.atoms)), dtype="Int64"),
                "type": pd.array([t for t, _ in self.atoms], dtype="string"),
                "mass": pd.array([m for _, m in self.atoms], dtype="Float64"),
            }
        )
        for name, table, width in (
            ("bond_types", self.bonds, 2),
            ("angle_types", self.angles, 3),
            ("dihedral_types", self.dihedrals, 4),
            ("improper_types", self.impropers, 4),
        ):
            keys = table.keys()
            data: dict[str, object] = {"type_id": pd.array(range(len(keys)), dtype="Int64")}
            for col in range(width):
                data[f"t{col + 1}"] = pd.array([k[col] for k in keys], dtype="Int64")
            out[name] = pd.DataFrame(data)
        return out
