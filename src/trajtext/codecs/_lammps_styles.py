"""Internal LAMMPS atom-style column layouts.

Private module; the public codec is in `lammps_data.py`. Every style maps to
the ordered columns of one line in the `Atoms` section. Columns named `_` are
present in the file but not used.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from trajtext.core.diagnostics import send_warning
from trajtext.core.errors import FormatError

_CONTEXT = "LAMMPS Data reader"

ATOM_STYLES: dict[str, tuple[str, ...]] = {
    "angle": ("id", "mol", "type", "x", "y", "z"),
    "atomic": ("id", "type", "x", "y", "z"),
    "body": ("id", "type", "_", "mass", "x", "y", "z"),
    "bond": ("id", "mol", "type", "x", "y", "z"),
    "charge": ("id", "type", "q", "x", "y", "z"),
    "dipole": ("id", "type", "q", "x", "y", "z"),
    "dpd": ("id", "type", "_", "x", "y", "z"),
    "electron": ("id", "type", "_", "_", "_", "x", "y", "z"),
    "ellipsoid": ("id", "type", "_", "_", "x", "y", "z"),
    "full": ("id", "mol", "type", "q", "x", "y", "z"),
    "line": ("id", "mol", "type", "_", "_", "x", "y", "z"),
    "meso": ("id", "type", "_", "_", "_", "x", "y", "z"),
    "molecular": ("id", "mol", "type", "x", "y", "z"),
    "peri": ("id", "type", "_", "_", "x", "y", "z"),
    "smd": ("id", "type", "mol", "_", "mass", "_", "_", "x", "y", "z"),
    "sphere": ("id", "type", "_", "_", "x", "y", "z"),
    "template": ("id", "mol", "_", "_", "type", "x", "y", "z"),
    "tri": ("id", "mol", "type", "_", "_", "x", "y", "z"),
    "wavepacket": ("id", "type", "q", "_", "_", "_", "_", "_", "x", "y", "z"),
    "hybrid": ("id", "type", "x", "y", "z"),
}

_INTEGER_COLUMNS = frozenset(["id", "mol", "type"])


@dataclass
class AtomData:
    index: int
    type: int
    x: float
    y: float
    z: float
    mol: int = 0
    charge: float = math.nan
    mass: float = math.nan


class AtomStyle:
    """Parser for the `Atoms` lines of one atom style."""

    def __init__(self, name: str) -> None:
        columns = ATOM_STYLES.get(name)
        if columns is None:
            raise FormatError(f"unknown atom style '{name}'")
        self.name = name
        self.columns = columns
        self._warned = False

    def read_line(self, line: str, index: int) -> AtomData:
        """Parse one line; `index` is used when the file gives atom id 0."""
        if self.name == "hybrid" and not self._warned:
            send_warning(_CONTEXT, "only reading the first style for atom_style hybrid")
            self._warned = True

        fields = line.split()
        if len(fields) < len(self.columns):
            raise FormatError(f"invalid line for atom style {self.name}: {line}")

        values: dict[str, float | int] = {}
        try:
            for column, text in zip(self.columns, fields):
                if column == "_":
                    continue
                values[column] = int(text) if column in _INTEGER_COLUMNS else float(text)
        except ValueError:
            raise FormatError(f"invalid line for atom style {self.name}: {line}") from None

        atom_id = int(values["id"])
        data = AtomData(
            # LAMMPS ids are 1-based; 0 means "any"
            index=index if atom_id == 0 else atom_id - 1,
            type=int(values["type"]),
            x=float(values["x"]),
            y=float(values["y"]),
            z=float(values["z"]),
        )
        if "mol" in values:
            data.mol = int(values["mol"])
        if "q" in values:
            data.charge = float(values["q"])
        if "mass" in values:
            data.mass = float(values["mass"])
        return data
