"""Intra-residue bond templates for standard PDB residues.

Each template is the ordered list of atom-name pairs bonded inside one residue
of that name (PDB v3 atom naming). Only heavy atoms and the backbone
hydrogens are listed; the resolver tolerates missing hydrogens.
"""

from __future__ import annotations

AtomPair = tuple[str, str]

_BACKBONE: list[AtomPair] = [
    ("N", "CA"), ("CA", "C"), ("C", "O"), ("C", "OXT"),
    ("N", "H"), ("N", "H2"), ("N", "H3"), ("CA", "HA"),
]

_SIDE_CHAINS: dict[str, list[AtomPair]] = {
    "ALA": [("CA", "CB")],
    "ARG": [("CA", "CB"), ("CB", "CG"), ("CG", "CD"), ("CD", "NE"), ("NE", "CZ"),
            ("CZ", "NH1"), ("CZ", "NH2")],
    "ASN": [("CA", "CB"), ("CB", "CG"), ("CG", "OD1"), ("CG", "ND2")],
    "ASP": [("CA", "CB"), ("CB", "CG"), ("CG", "OD1"), ("CG", "OD2")],
    "CYS": [("CA", "CB"), ("CB", "SG")],
    "GLN": [("CA", "CB"), ("CB", "CG"), ("CG", "CD"), ("CD", "OE1"), ("CD", "NE2")],
    "GLU": [("CA", "CB"), ("CB", "CG"), ("CG", "CD"), ("CD", "OE1"), ("CD", "OE2")],
    "GLY": [("CA", "HA2"), ("CA", "HA3")],
    "HIS": [("CA", "CB"), ("CB", "CG"), ("CG", "ND1"), ("CG", "CD2"), ("ND1", "CE1"),
            ("CD2", "NE2"), ("CE1", "NE2")],
    "ILE": [("CA", "CB"), ("CB", "CG1"), ("CB", "CG2"), ("CG1", "CD1")],
    "LEU": [("CA", "CB"), ("CB", "CG"), ("CG", "CD1"), ("CG", "CD2")],
    "LYS": [("CA", "CB"), ("CB", "CG"), ("CG", "CD"), ("CD", "CE"), ("CE", "NZ")],
    "MET": [("CA", "CB"), ("CB", "CG"), ("CG", "SD"), ("SD", "CE")],
    "PHE": [("CA", "CB"), ("CB", "CG"), ("CG", "CD1"), ("CG", "CD2"), ("CD1", "CE1"),
            ("CD2", "CE2"), ("CE1", "CZ"), ("CE2", "CZ")],
    "PRO": [("CA", "CB"), ("CB", "CG"), ("CG", "CD"), ("CD", "N")],
    "SER": [("CA", "CB"), ("CB", "OG")],
    "THR": [("CA", "CB"), ("CB", "OG1"), ("CB", "CG2")],
    "TRP": [("CA", "CB"), ("CB", "CG"), ("CG", "CD1"), ("CG", "CD2"), ("CD1", "NE1"),
            ("NE1", "CE2"), ("CD2", "CE2"), ("CD2", "CE3"), ("CE2", "CZ2"), ("CE3", "CZ3"),
            ("CZ2", "CH2"), ("CZ3", "CH2")],
    "TYR": [("CA", "CB"), ("CB", "CG"), ("CG", "CD1"), ("CG", "CD2"), ("CD1", "CE1"),
            ("CD2", "CE2"), ("CE1", "CZ"), ("CE2", "CZ"), ("CZ", "OH")],
    "VAL": [("CA", "CB"), ("CB", "CG1"), ("CB", "CG2")],
}

_SUGAR: list[AtomPair] = [
    ("OP3", "P"), ("P", "OP1"), ("P", "OP2"), ("P", "O5'"), ("O5'", "C5'"),
    ("C5'", "C4'"), ("C4'", "O4'"), ("C4'", "C3'"), ("C3'", "O3'"), ("C3'", "C2'"),
    ("C2'", "C1'"), ("C1'", "O4'"), ("O3'", "HO3'"),
]

_PURINE: list[AtomPair] = [
    ("C1'", "N9"), ("N9", "C8"), ("C8", "N7"), ("N7", "C5"), ("C5", "C6"), ("C6", "N1"),
    ("N1", "C2"), ("C2", "N3"), ("N3", "C4"), ("C4", "C5"), ("C4", "N9"),
]

_PYRIMIDINE: list[AtomPair] = [
    ("C1'", "N1"), ("N1", "C2"), ("C2", "O2"), ("C2", "N3"), ("N3", "C4"), ("C4", "C5"),
    ("C5", "C6"), ("C6", "N1"),
]

_BASES: dict[str, list[AtomPair]] = {
    "A": _PURINE + [("C6", "N6")],
    "G": _PURINE + [("C6", "O6"), ("C2", "N2")],
    "C": _PYRIMIDINE + [("C4", "N4")],
    "U": _PYRIMIDINE + [("C4", "O4")],
    "T": _PYRIMIDINE + [("C4", "O4"), ("C5", "C7")],
}


def _build() -> dict[str, tuple[AtomPair, ...]]:
    out: dict[str, tuple[AtomPair, ...]] = {}
    for name, side in _SIDE_CHAINS.items():
        out[name] = tuple(_BACKBONE + side)
    for base, pairs in _BASES.items():
        # deoxyribonucleotides
        out[f"D{base}"] = tuple(_SUGAR + pairs)
        if base != "T":
            out[base] = tuple(_SUGAR + [("C2'", "O2'")] + pairs)
    return out


TEMPLATES: dict[str, tuple[AtomPair, ...]] = _build()


def find(name: str) -> tuple[AtomPair, ...] | None:
    """Return the bond template of residue `name`, or None when unknown."""
    return TEMPLATES.get(name.strip().upper())
