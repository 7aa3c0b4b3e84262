"""trajtext: read and write chemistry trajectory text formats.

Frames are read from GRO, PDB, SDF, MOL2, CSSR and LAMMPS data files through
`Trajectory`, which indexes frame offsets for random access by step.
"""

from __future__ import annotations

from trajtext.core import (
    Atom,
    BondOrder,
    CellShape,
    EndOfFileError,
    FileError,
    FormatError,
    Frame,
    Residue,
    StepIndexError,
    TrajTextError,
    UnitCell,
    capture_warnings,
    set_warning_callback,
)
from trajtext.trajectory import Trajectory

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Trajectory",
    "Atom",
    "BondOrder",
    "CellShape",
    "Frame",
    "Residue",
    "UnitCell",
    "TrajTextError",
    "FileError",
    "EndOfFileError",
    "StepIndexError",
    "FormatError",
    "capture_warnings",
    "set_warning_callback",
]
