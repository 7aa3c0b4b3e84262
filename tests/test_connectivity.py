from __future__ import annotations

from trajtext.core.connectivity import (
    AtomOffsetTable,
    SecondaryStructureRanges,
    link_standard_residues,
    resolve_bonds,
)
from trajtext.core.diagnostics import capture_warnings
from trajtext.core.model import Atom, Frame, Residue


def _backbone_frame(resids: list[int], resname: str = "XYZ") -> Frame:
    """One residue per id, each with N and C atoms."""
    frame = Frame()
    for resid in resids:
        residue = Residue(resname, resid)
        for name in ("N", "C"):
            residue.add_atom(frame.add_atom(Atom(name), (0.0, 0.0, 0.0)))
        frame.add_residue(residue)
    return frame


def _peptide_template(name: str):
    return () if name == "XYZ" else None


def test_backbone_bonds_between_consecutive_residues() -> None:
    frame = _backbone_frame([5, 6, 7])
    link_standard_residues(frame, _peptide_template)
    # C of residue k links to N of residue k + 1
    assert frame.bonds() == [(1, 2), (3, 4)]


def test_gap_in_residue_ids_breaks_the_chain() -> None:
    frame = _backbone_frame([5, 6, 9])
    with capture_warnings() as messages:
        link_standard_residues(frame, _peptide_template)
    assert frame.bonds() == [(1, 2)]
    assert messages == []


def test_residues_without_template_are_skipped() -> None:
    frame = _backbone_frame([1, 2], resname="LIG")
    link_standard_residues(frame, _peptide_template)
    assert frame.bonds() == []


def test_template_bonds_and_missing_atom_diagnostics() -> None:
    frame = Frame()
    residue = Residue("ALA", 1)
    for name in ("N", "CA", "C", "O"):
        residue.add_atom(frame.add_atom(Atom(name), (0.0, 0.0, 0.0)))
    frame.add_residue(residue)

    with capture_warnings() as messages:
        link_standard_residues(frame)

    # N-CA, CA-C, C-O; CB is missing
    assert frame.bonds() == [(0, 1), (1, 2), (2, 3)]
    # optional OXT/H* endpoints are silent, CB is not
    assert messages == ["PDB reader: missing atom 'CB' in residue 'ALA' (resid 1)"]


def test_missing_atom_is_reported_once_per_residue() -> None:
    frame = Frame()
    residue = Residue("ALA", 3)
    for name in ("CA", "C", "O", "CB"):
        residue.add_atom(frame.add_atom(Atom(name), (0.0, 0.0, 0.0)))
    frame.add_residue(residue)

    with capture_warnings() as messages:
        link_standard_residues(frame)

    # N appears in four template pairs
    assert messages == ["PDB reader: missing atom 'N' in residue 'ALA' (resid 3)"]
    assert frame.bonds() == [(0, 1), (0, 3), (1, 2)]


def test_residue_without_carbon_does_not_link_forward() -> None:
    frame = Frame()
    for resid, names in ((5, ("N",)), (6, ("N", "C")), (7, ("N", "C"))):
        residue = Residue("XYZ", resid)
        for name in names:
            residue.add_atom(frame.add_atom(Atom(name), (0.0, 0.0, 0.0)))
        frame.add_residue(residue)

    link_standard_residues(frame, _peptide_template)
    assert frame.bonds() == [(2, 3)]


def test_nucleic_backbone_and_terminal_hydroxyl() -> None:
    frame = Frame()
    for resid, names in ((1, ("HO5'", "O5'", "O3'")), (2, ("P", "O3'"))):
        residue = Residue("NUC", resid)
        for name in names:
            residue.add_atom(frame.add_atom(Atom(name), (0.0, 0.0, 0.0)))
        frame.add_residue(residue)

    link_standard_residues(frame, lambda name: ())
    # HO5'-O5' and O3'(1)-P(2)
    assert frame.bonds() == [(0, 1), (2, 3)]


def test_offset_table_after_restart() -> None:
    table = AtomOffsetTable()
    for serial in range(1, 51):
        table.start(serial)
    # numbering restarts at 1 after atom 50
    for serial in range(1, 11):
        table.start(serial)

    assert table.baseline == 0
    assert table.restarts == [1]
    assert len(table) == 60
    assert table.resolve(3) == 52
    assert table.resolve(50) == 49


def test_offset_table_with_terminator_gap_and_unreadable_serials() -> None:
    table = AtomOffsetTable()
    for serial in (11, 12, 13):
        table.start(serial)
    # TER consumed serial 14
    table.start(15)
    table.start(None)

    assert table.baseline == 10
    assert table.resolve(11) == 0
    assert table.resolve(15) == 3
    assert table.resolve(16) == 4
    assert table.resolve(5) is None


def test_serials_in_a_numbering_gap_name_no_atom() -> None:
    frame = Frame()
    table = AtomOffsetTable()
    # atoms 1-3, TER 4, atoms 5-6
    for serial in (1, 2, 3, 5, 6):
        frame.add_atom(Atom("C"), (0.0, 0.0, 0.0))
        table.start(serial)

    assert table.resolve(4) is None
    assert table.resolve(7) is None
    assert table.resolve(5) == 3

    with capture_warnings() as messages:
        added = resolve_bonds(frame, [(3, 4), (5, 6)], table)
    assert added == 1
    assert frame.bonds() == [(3, 4)]
    assert messages == [
        "PDB reader: ignoring bond between atoms 3 and 4: atomic index out of range for frame size (5)"
    ]


def test_resolve_bonds_drops_out_of_range_and_self_bonds() -> None:
    frame = Frame()
    table = AtomOffsetTable()
    for serial in (1, 2, 3):
        frame.add_atom(Atom("C"), (0.0, 0.0, 0.0))
        table.start(serial)

    with capture_warnings() as messages:
        added = resolve_bonds(frame, [(1, 2), (2, 9), (3, 3)], table)

    assert added == 1
    assert frame.bonds() == [(0, 1)]
    assert len(messages) == 2
    assert "atomic index out of range" in messages[0]
    assert "to itself" in messages[1]


def test_secondary_structure_ranges_last_record_wins() -> None:
    residues = {("A", resid, " "): Residue("ALA", resid) for resid in range(1, 8)}
    ranges = SecondaryStructureRanges()
    ranges.add(("A", 1, " "), ("A", 5, " "), "alpha helix")
    ranges.add(("A", 4, " "), ("A", 6, " "), "extended")
    ranges.apply(residues)

    labels = {key[1]: r.properties.get("secondary_structure") for key, r in residues.items()}
    assert labels == {
        1: "alpha helix",
        2: "alpha helix",
        3: "alpha helix",
        4: "extended",
        5: "extended",
        6: "extended",
        7: None,
    }


def test_secondary_structure_ranges_use_insertion_codes() -> None:
    residues = {
        ("A", 10, " "): Residue("GLY", 10),
        ("A", 10, "A"): Residue("GLY", 10),
        ("A", 11, " "): Residue("GLY", 11),
        ("B", 10, " "): Residue("GLY", 10),
    }
    ranges = SecondaryStructureRanges()
    ranges.add(("A", 10, "A"), ("A", 11, " "), "turn")
    ranges.apply(residues)

    tagged = sorted(key for key, r in residues.items() if "secondary_structure" in r.properties)
    assert tagged == [("A", 10, "A"), ("A", 11, " ")]
