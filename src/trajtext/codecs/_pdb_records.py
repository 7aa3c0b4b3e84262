"""Internal PDB record helpers.

Private module for record classification and secondary-structure record
parsing; the public codec lives in `pdb.py`.
"""

from __future__ import annotations

from enum import Enum

from trajtext.core.diagnostics import send_warning

ResidueKey = tuple[str, int, str]
SecondaryRecord = tuple[ResidueKey, ResidueKey, str]

_CONTEXT = "PDB reader"


class Record(Enum):
    HEADER = "HEADER"
    TITLE = "TITLE"
    CRYST1 = "CRYST1"
    ATOM = "ATOM"
    HETATM = "HETATM"
    CONECT = "CONECT"
    MODEL = "MODEL"
    ENDMDL = "ENDMDL"
    TER = "TER"
    END = "END"
    HELIX = "HELIX"
    SHEET = "SHEET"
    TURN = "TURN"
    IGNORED = "IGNORED"
    UNKNOWN = "UNKNOWN"


_IGNORED = frozenset(
    [
        "REMARK", "MASTER", "AUTHOR", "CAVEAT", "COMPND", "EXPDTA", "KEYWDS", "OBSLTE",
        "SOURCE", "SPLIT ", "SPRSDE", "JRNL  ", "SEQRES", "HET   ", "REVDAT", "SCALE1",
        "SCALE2", "SCALE3", "ORIGX1", "ORIGX2", "ORIGX3", "ANISOU", "SITE  ", "FORMUL",
        "DBREF ", "HETNAM", "HETSYN", "SSBOND", "LINK  ", "SEQADV", "MODRES", "CISPEP",
    ]
)

_EXACT = {
    "CRYST1": Record.CRYST1,
    "ATOM  ": Record.ATOM,
    "HETATM": Record.HETATM,
    "CONECT": Record.CONECT,
    "HELIX ": Record.HELIX,
    "SHEET ": Record.SHEET,
    "TURN  ": Record.TURN,
    "HEADER": Record.HEADER,
    "TITLE ": Record.TITLE,
}

# HELIX class codes, right- and left-handed treated the same
_HELIX_CLASSES = {
    1: "alpha helix",
    6: "alpha helix",
    2: "omega helix",
    7: "omega helix",
    3: "pi helix",
    4: "gamma helix",
    8: "gamma helix",
    5: "3-10 helix",
}


def record_type(line: str) -> Record:
    """Classify one PDB line by its record name."""
    rec = line[:6].ljust(6)
    if rec == "ENDMDL":
        return Record.ENDMDL
    if rec.startswith("END"):
        # tolerate a missing space after END
        return Record.END
    exact = _EXACT.get(rec)
    if exact is not None:
        return exact
    if rec.startswith("MODEL"):
        return Record.MODEL
    if rec.startswith("TER"):
        return Record.TER
    if rec in _IGNORED or not line.strip():
        return Record.IGNORED
    return Record.UNKNOWN


def _residue_number(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def parse_helix(line: str) -> SecondaryRecord | None:
    if len(line) < 38:
        send_warning(_CONTEXT, f"HELIX record too short: '{line}'")
        return None

    chain1, chain2 = line[19], line[31]
    start = _residue_number(line[21:25])
    end = _residue_number(line[33:37])
    if start is None or end is None:
        send_warning(_CONTEXT, f"HELIX record contains invalid numbers: '{line}'")
        return None
    if chain1 != chain2:
        send_warning(_CONTEXT, f"HELIX chain {chain1} and {chain2} are not the same")
        return None

    helix_class = _residue_number(line[38:40])
    if helix_class is None:
        send_warning(_CONTEXT, f"could not parse helix class in '{line}'")
        return None
    label = _HELIX_CLASSES.get(helix_class)
    if label is None:
        return None
    return ((chain1, start, line[25]), (chain2, end, line[37]), label)


def parse_strand(line: str, first: int, second: int, record: str) -> SecondaryRecord | None:
    """SHEET and TURN records: chain id at `first`/`second`, then resid and insertion code."""
    if len(line) < second + 6:
        send_warning(_CONTEXT, f"secondary structure record too short: '{line}'")
        return None

    chain1, chain2 = line[first], line[second]
    if chain1 != chain2:
        send_warning(_CONTEXT, f"{record} chain {chain1} and {chain2} are not the same")
        return None

    start = _residue_number(line[first + 1:first + 5])
    end = _residue_number(line[second + 1:second + 5])
    if start is None or end is None:
        send_warning(
            _CONTEXT,
            f"error parsing line: '{line}', check '{line[first + 1:first + 5]}' "
            f"and '{line[second + 1:second + 5]}'",
        )
        return None

    return ((chain1, start, line[first + 5]), (chain2, end, line[second + 5]), "extended")
