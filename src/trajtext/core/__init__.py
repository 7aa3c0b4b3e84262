"""trajtext core: data model and topology algorithms.

This package is standalone and must not import io/codecs/bundle/cli.
"""

from __future__ import annotations

from .connectivity import AtomOffsetTable, SecondaryStructureRanges, link_standard_residues, resolve_bonds
from .diagnostics import capture_warnings, send_warning, set_warning_callback
from .errors import (
    EndOfFileError,
    FileError,
    FormatError,
    IndexConsistencyError,
    StepIndexError,
    TopologyError,
    TrajTextError,
    UnregisteredTypeError,
)
from .model import Atom, BondOrder, CellShape, Frame, Residue, UnitCell
from .molecules import guess_molecules
from .tables import TABLE_COLUMN_ORDER, TABLE_KEYS, TABLE_SCHEMAS, frame_tables, normalize_table
from .types import (
    TopologyTypes,
    TypeTable,
    canonical_angle,
    canonical_bond,
    canonical_dihedral,
    canonical_improper,
)

__all__ = [
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
    "IndexConsistencyError",
    "TopologyError",
    "UnregisteredTypeError",
    "send_warning",
    "set_warning_callback",
    "capture_warnings",
    "canonical_bond",
    "canonical_angle",
    "canonical_dihedral",
    "canonical_improper",
    "TypeTable",
    "TopologyTypes",
    "guess_molecules",
    "AtomOffsetTable",
    "SecondaryStructureRanges",
    "link_standard_residues",
    "resolve_bonds",
    "TABLE_SCHEMAS",
    "TABLE_KEYS",
    "TABLE_COLUMN_ORDER",
    "frame_tables",
    "normalize_table",
]
