from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from conftest import make_chain, write_text
from trajtext.codecs.gro import GROCodec
from trajtext.core.diagnostics import capture_warnings
from trajtext.core.errors import EndOfFileError, FormatError
from trajtext.core.model import Atom, CellShape, Frame, Residue, UnitCell
from trajtext.io.textfile import TextFile

_WATER = (
    "Water box, t= 0.0\n"
    "    3\n"
    "    1SOL     OW    1   0.126   1.624   1.679  0.1227 -0.0580  0.0434\n"
    "    1SOL    HW1    2   0.190   1.661   1.747  0.8085  0.3191 -0.7791\n"
    "    2NA      NA    3   0.177   1.568   1.613 -0.9045 -2.6469  1.3180\n"
    "   1.86206   1.86206   1.86206\n"
)


def _read(path: Path) -> Frame:
    with TextFile(path) as f:
        return GROCodec().read(f)


def test_read_atoms_velocities_residues_and_box(tmp_path: Path) -> None:
    frame = _read(write_text(tmp_path / "water.gro", _WATER))

    assert frame.properties["name"] == "Water box, t= 0.0"
    assert [a.name for a in frame.atoms] == ["OW", "HW1", "NA"]
    # nm -> Angstrom
    np.testing.assert_allclose(frame.positions[0], [1.26, 16.24, 16.79])
    np.testing.assert_allclose(frame.velocities[2], [-9.045, -26.469, 13.18])

    assert [(r.name, r.id, r.atoms) for r in frame.residues] == [("SOL", 1, [0, 1]), ("NA", 2, [2])]
    assert frame.cell.shape is CellShape.ORTHORHOMBIC
    np.testing.assert_allclose(frame.cell.lengths, [18.6206] * 3)


def test_triclinic_box_line(tmp_path: Path) -> None:
    text = (
        "tri\n"
        "    1\n"
        "    1ABC      C    1   0.000   0.000   0.000\n"
        "   2.00000   2.00000   2.00000   0.00000   0.00000   1.00000   0.00000   0.00000   0.00000\n"
    )
    frame = _read(write_text(tmp_path / "tri.gro", text))
    assert frame.cell.shape is CellShape.TRICLINIC
    assert frame.cell.matrix[0, 1] == pytest.approx(10.0)
    assert frame.cell.gamma == pytest.approx(np.degrees(np.arctan2(20.0, 10.0)))


def test_write_then_read_round_trip(tmp_path: Path) -> None:
    frame = make_chain(3, kinds=["C", "O"])
    frame.cell = UnitCell((20.0, 21.0, 22.0))
    residue = Residue("LIG", 7)
    for i in range(3):
        residue.add_atom(i)
    frame.add_residue(residue)

    path = tmp_path / "out.gro"
    with TextFile(path, "w") as f:
        GROCodec().write(f, frame)

    back = _read(path)
    assert len(back) == 3
    np.testing.assert_allclose(back.positions, frame.positions, atol=0.01)
    np.testing.assert_allclose(back.cell.lengths, frame.cell.lengths, atol=1e-4)
    assert [(r.name, r.id) for r in back.residues] == [("LIG", 7)]
    # GRO has no connectivity
    assert back.bonds() == []


def test_write_truncates_long_names_with_warnings(tmp_path: Path) -> None:
    frame = Frame()
    frame.add_atom(Atom("LONGNAME"), (0.0, 0.0, 0.0))
    residue = Residue("RESIDUE", 1, atoms=[0])
    frame.add_residue(residue)

    path = tmp_path / "long.gro"
    with capture_warnings() as messages:
        with TextFile(path, "w") as f:
            GROCodec().write(f, frame)

    assert len(messages) == 2
    assert "residue 'RESIDUE' name is too long" in messages[0]
    assert "atom name 'LONGNAME' is too long" in messages[1]
    back = _read(path)
    assert back.atoms[0].name == "LONGN"
    assert back.residues[0].name == "RESID"


def test_positions_too_large_for_columns_raise(tmp_path: Path) -> None:
    frame = Frame()
    frame.add_atom(Atom("C"), (1.0e6, 0.0, 0.0))
    with TextFile(tmp_path / "big.gro", "w") as f:
        with pytest.raises(FormatError, match="too big for representation in GRO format"):
            GROCodec().write(f, frame)


def test_read_past_the_last_frame(tmp_path: Path) -> None:
    path = write_text(tmp_path / "water.gro", _WATER + "\n")
    with TextFile(path) as f:
        codec = GROCodec()
        codec.read(f)
        with pytest.raises(EndOfFileError):
            codec.read(f)


def test_short_atom_line_is_a_format_error(tmp_path: Path) -> None:
    path = write_text(tmp_path / "short.gro", "t\n    1\n    1SOL     OW    1   0.1\n   1.0 1.0 1.0\n")
    with pytest.raises(FormatError, match="atom line is too small"):
        _read(path)
