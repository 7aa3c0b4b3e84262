from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from conftest import make_chain, write_text
from trajtext.codecs.mol2 import MOL2Codec
from trajtext.core.diagnostics import capture_warnings
from trajtext.core.errors import FormatError
from trajtext.core.model import BondOrder, CellShape, Residue, UnitCell
from trajtext.io.steps import StepReader
from trajtext.io.textfile import TextFile

_ETHANOL = """\
@<TRIPOS>MOLECULE
ethanol
    3     2    1    0    0
SMALL
USER_CHARGES

@<TRIPOS>ATOM
      1 C1          0.0000    0.0000    0.0000 C.3       1 ETH       -0.1800
      2 C2          1.5200    0.0000    0.0000 C.3       1 ETH        0.1450
      3 O3          2.0000    1.3000    0.0000 O.3       1 ETH       -0.6830
@<TRIPOS>BOND
     1     1     2    1
     2     2     3   ar
@<TRIPOS>CRYSIN
   10.0000   11.0000   12.0000   90.0000   90.0000   90.0000 1 1
"""


def _read_all(path: Path) -> list:
    with TextFile(path) as f:
        reader = StepReader(f, MOL2Codec())
        return [reader.read_step(i) for i in range(reader.step_count())]


def test_read_atoms_sybyl_types_residues_bonds_and_cell(tmp_path: Path) -> None:
    frames = _read_all(write_text(tmp_path / "eth.mol2", _ETHANOL + "\n" + _ETHANOL))
    assert len(frames) == 2

    frame = frames[0]
    assert frame.properties["name"] == "ethanol"
    assert [a.name for a in frame.atoms] == ["C1", "C2", "O3"]
    assert [a.type for a in frame.atoms] == ["C", "C", "O"]
    assert frame.atoms[2].properties["sybyl"] == "O.3"
    assert frame.atoms[2].charge == pytest.approx(-0.683)
    assert frame.bond_order(0, 1) is BondOrder.SINGLE
    assert frame.bond_order(1, 2) is BondOrder.AROMATIC
    assert [(r.name, r.id, r.atoms) for r in frame.residues] == [("ETH", 1, [0, 1, 2])]
    assert frame.cell.shape is CellShape.ORTHORHOMBIC
    np.testing.assert_allclose(frame.cell.lengths, [10.0, 11.0, 12.0])


def test_invalid_sybyl_type_guesses_element_from_name(tmp_path: Path) -> None:
    text = _ETHANOL.replace("O.3       1 ETH", "Xx        1 ETH")
    with capture_warnings() as messages:
        (frame,) = _read_all(write_text(tmp_path / "eth.mol2", text))
    assert frame.atoms[2].type == "O"
    assert messages == ["MOL2 reader: invalid sybyl type: 'Xx'; guessing 'O' from 'O3'"]


def test_missing_bond_section_is_a_format_error(tmp_path: Path) -> None:
    text = _ETHANOL.split("@<TRIPOS>BOND")[0]
    path = write_text(tmp_path / "nobond.mol2", text)
    with TextFile(path) as f:
        with pytest.raises(FormatError, match="missing @<TRIPOS>BOND section"):
            StepReader(f, MOL2Codec()).step_count()


def test_write_then_read_round_trip(tmp_path: Path) -> None:
    frame = make_chain(3, kinds=["C", "N"])
    frame.add_bond(1, 2, BondOrder.DOUBLE)
    frame.cell = UnitCell((20.0, 20.0, 20.0), (90.0, 90.0, 100.0))
    frame.add_residue(Residue("LIG", 3, atoms=[0, 1]))
    frame.properties["name"] = "chain"

    path = tmp_path / "out.mol2"
    with capture_warnings() as messages:
        with TextFile(path, "w") as f:
            MOL2Codec().write(f, frame)
            MOL2Codec().write(f, frame)
    # one warning per written frame
    assert messages == ["MOL2 writer: sybyl type is not set, using element type instead"] * 2

    frames = _read_all(path)
    assert len(frames) == 2
    back = frames[1]
    assert back.properties["name"] == "chain"
    assert set(back.bonds()) == {(0, 1), (1, 2)}
    assert back.bond_order(1, 2) is BondOrder.DOUBLE
    assert back.bond_order(0, 1) is BondOrder.UNKNOWN
    np.testing.assert_allclose(back.positions, frame.positions, atol=1e-6)
    np.testing.assert_allclose(back.cell.angles, frame.cell.angles, atol=1e-4)
    # the atom outside any residue gets a fresh residue id
    assert [(r.name, r.id) for r in back.residues] == [("LIG", 3), ("XXX", 4)]
