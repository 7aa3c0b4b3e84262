from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from conftest import make_chain, write_text
from trajtext.codecs._lammps_styles import AtomStyle
from trajtext.codecs.lammps_data import LAMMPSDataCodec, tilt_factor
from trajtext.core.diagnostics import capture_warnings
from trajtext.core.errors import FormatError
from trajtext.core.model import CellShape, UnitCell
from trajtext.io.steps import StepReader
from trajtext.io.textfile import TextFile

_DATA = """\
LAMMPS data file via write_data, atom_style full

4 atoms
3 bonds
2 angles
2 atom types
1 bond types

0.0 10.0 xlo xhi
0.0 11.0 ylo yhi
-1.0 11.0 zlo zhi
1.0 0.0 0.0 xy xz yz

Masses

1 12.011
2 15.999

Pair Coeffs # lj/cut

1 0.1 3.4
2 0.2 3.0

Atoms # full

1 1 1 -0.5 0.0 0.0 0.0 # CT
2 1 1 0.2 1.5 0.0 0.0
3 1 2 0.3 3.0 0.0 0.0 # OH
4 2 2 0.0 5.0 5.0 5.0

Velocities

1 0.1 0.0 0.0
2 0.0 0.2 0.0
3 0.0 0.0 0.3
4 0.0 0.0 0.0

Bonds

1 1 1 2
2 1 2 3
3 1 3 4

Angles

1 1 1 2 3
2 1 2 3 4
"""


def _read(path: Path):
    with TextFile(path) as f:
        reader = StepReader(f, LAMMPSDataCodec())
        assert reader.step_count() == 1
        return reader.read_step(0)


def test_read_full_style_data_file(tmp_path: Path) -> None:
    with capture_warnings() as messages:
        frame = _read(write_text(tmp_path / "system.data", _DATA))
    assert messages == []

    assert len(frame) == 4
    assert [a.name for a in frame.atoms] == ["CT", "1", "OH", "2"]
    assert [a.mass for a in frame.atoms] == [12.011, 12.011, 15.999, 15.999]
    assert [a.charge for a in frame.atoms] == [-0.5, 0.2, 0.3, 0.0]
    np.testing.assert_allclose(frame.positions[3], [5.0, 5.0, 5.0])
    np.testing.assert_allclose(frame.velocities[2], [0.0, 0.0, 0.3])
    assert frame.bonds() == [(0, 1), (1, 2), (2, 3)]
    assert [(r.id, r.atoms) for r in frame.residues] == [(1, [0, 1, 2]), (2, [3])]

    assert frame.cell.shape is CellShape.TRICLINIC
    matrix = frame.cell.matrix
    np.testing.assert_allclose(np.diag(matrix), [10.0, 11.0, 12.0])
    assert matrix[0, 1] == pytest.approx(1.0)


def test_missing_atom_style_defaults_to_full(tmp_path: Path) -> None:
    text = "comment\n\n1 atoms\n1 atom types\n\nAtoms\n\n1 1 1 0.0 1.0 2.0 3.0\n"
    with capture_warnings() as messages:
        frame = _read(write_text(tmp_path / "one.data", text))
    assert messages == ["LAMMPS Data reader: unknown atom style, defaulting to 'full'"]
    np.testing.assert_allclose(frame.positions[0], [1.0, 2.0, 3.0])


def test_sections_and_headers_are_validated(tmp_path: Path) -> None:
    no_count = "comment\n\nAtoms # atomic\n\n1 1 0.0 0.0 0.0\n"
    with pytest.raises(FormatError, match="missing atoms count in header"):
        _read(write_text(tmp_path / "a.data", no_count))

    bad_index = "comment\n\n1 atoms\n\nAtoms # atomic\n\n5 1 0.0 0.0 0.0\n"
    with pytest.raises(FormatError, match="too many atoms in \\[Atoms\\] section"):
        _read(write_text(tmp_path / "b.data", bad_index))

    bad_section = "comment\n\n1 atoms\n\nAtoms # atomic\n\n1 1 0.0 0.0 0.0\nWhatever\n"
    with pytest.raises(FormatError, match="expected section name"):
        _read(write_text(tmp_path / "c.data", bad_section))


def test_atom_styles() -> None:
    data = AtomStyle("charge").read_line("3 2 -0.5 1.0 2.0 3.0", 0)
    assert (data.index, data.type, data.charge, data.z) == (2, 2, -0.5, 3.0)

    # id 0 falls back to the line index
    assert AtomStyle("atomic").read_line("0 1 0.0 0.0 0.0", 7).index == 7

    with pytest.raises(FormatError, match="unknown atom style 'bogus'"):
        AtomStyle("bogus")
    with pytest.raises(FormatError, match="invalid line for atom style full"):
        AtomStyle("full").read_line("1 1 1 0.0", 0)

    hybrid = AtomStyle("hybrid")
    with capture_warnings() as messages:
        hybrid.read_line("1 1 0.0 0.0 0.0 sphere 1 1", 0)
        hybrid.read_line("2 1 0.0 0.0 0.0 sphere 1 1", 1)
    assert len(messages) == 1


def test_tilt_factor_is_reduced_into_half_box() -> None:
    matrix = np.array([[10.0, 7.0, -6.0], [0.0, 10.0, 0.0], [0.0, 0.0, 10.0]])
    assert tilt_factor(matrix, 0, 1) == pytest.approx(-3.0)
    assert tilt_factor(matrix, 0, 2) == pytest.approx(4.0)
    assert tilt_factor(matrix, 1, 2) == 0.0


def test_write_then_read_round_trip(tmp_path: Path) -> None:
    frame = make_chain(4, kinds=["C", "O"])
    frame.cell = UnitCell((20.0, 21.0, 22.0))
    frame.atoms[0].charge = -0.25
    frame.set_velocity(3, (0.5, 0.0, 0.0))

    path = tmp_path / "out.data"
    with TextFile(path, "w") as f:
        LAMMPSDataCodec().write(f, frame)

    text = path.read_text(encoding="utf-8")
    assert "2 atom types" in text
    assert "2 angles" in text
    assert "1 dihedrals" in text
    assert "Atoms # full" in text

    back = _read(path)
    assert [a.type for a in back.atoms] == ["C", "O", "C", "O"]
    assert [a.mass for a in back.atoms] == [a.mass for a in frame.atoms]
    assert back.atoms[0].charge == -0.25
    assert set(back.bonds()) == set(frame.bonds())
    np.testing.assert_allclose(back.positions, frame.positions)
    np.testing.assert_allclose(back.velocities, frame.velocities)
    np.testing.assert_allclose(back.cell.lengths, frame.cell.lengths)
    # a single connected molecule
    assert [(r.id, r.atoms) for r in back.residues] == [(1, [0, 1, 2, 3])]


def test_write_triclinic_box(tmp_path: Path) -> None:
    frame = make_chain(2)
    frame.cell = UnitCell((10.0, 10.0, 10.0), (90.0, 90.0, 70.0))
    path = tmp_path / "tri.data"
    with TextFile(path, "w") as f:
        LAMMPSDataCodec().write(f, frame)

    back = _read(path)
    assert back.cell.shape is CellShape.TRICLINIC
    np.testing.assert_allclose(back.cell.angles, frame.cell.angles, atol=1e-6)
