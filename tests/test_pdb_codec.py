from __future__ import annotations

from pathlib import Path

import numpy as np

from conftest import make_chain, write_text
from trajtext.codecs.pdb import PDBCodec
from trajtext.core.diagnostics import capture_warnings
from trajtext.core.model import Residue, UnitCell
from trajtext.io.steps import StepReader
from trajtext.io.textfile import TextFile


def _atom(serial: int, name: str, resname: str, chain: str, resid: int, x: float, record: str = "ATOM") -> str:
    return (
        f"{record:<6}{serial:>5} {name:<4} {resname:<3} {chain}{resid:>4}    "
        f"{x:8.3f}{0.0:8.3f}{0.0:8.3f}{1.0:6.2f}{0.0:6.2f}          {name[0]:>2}"
    )


_CRYST1 = f"CRYST1{10.0:9.3f}{11.0:9.3f}{12.0:9.3f}{90.0:7.2f}{90.0:7.2f}{90.0:7.2f} P 1           1"
_HELIX = f"HELIX  {1:>3} {1:>3} GLY A {1:>4}  GLY A {2:>4} {1:>2}"


def _glycines() -> list[str]:
    lines = []
    serial = 1
    for resid in (1, 2):
        for name in ("N", "CA", "C", "O"):
            lines.append(_atom(serial, name, "GLY", "A", resid, float(serial)))
            serial += 1
    return lines


def _read_all(path: Path) -> list:
    with TextFile(path) as f:
        reader = StepReader(f, PDBCodec())
        return [reader.read_step(i) for i in range(reader.step_count())]


def test_standard_residues_get_template_and_peptide_bonds(tmp_path: Path) -> None:
    text = "\n".join([f"HEADER    {'PEPTIDE':<40}{'01-JAN-00':<9}   1ABC", _CRYST1, _HELIX, *_glycines(), "END"])
    with capture_warnings() as messages:
        (frame,) = _read_all(write_text(tmp_path / "gly.pdb", text + "\n"))

    assert messages == []
    assert frame.properties["pdb_idcode"] == "1ABC"
    np.testing.assert_allclose(frame.cell.lengths, [10.0, 11.0, 12.0])
    assert [(r.name, r.id) for r in frame.residues] == [("GLY", 1), ("GLY", 2)]
    assert frame.residues[0].properties["chainid"] == "A"
    assert frame.residues[0].properties["is_standard_pdb"] is True
    assert all(r.properties["secondary_structure"] == "alpha helix" for r in frame.residues)
    # N-CA, CA-C, C-O in each residue, plus C(1)-N(2)
    assert frame.bonds() == [(0, 1), (1, 2), (2, 3), (2, 4), (4, 5), (5, 6), (6, 7)]


def test_conect_records_after_numbering_restart(tmp_path: Path) -> None:
    lines = [_atom(serial, f"C{serial}", "LIG", "A", 1, float(serial), "HETATM") for serial in (1, 2, 3)]
    lines.append("TER")
    lines += [_atom(serial, f"O{serial}", "LIG", "B", 1, float(serial), "HETATM") for serial in (1, 2)]
    lines.append("CONECT    1    2")
    lines.append("CONECT    1    9")
    lines.append("END")

    with capture_warnings() as messages:
        (frame,) = _read_all(write_text(tmp_path / "restart.pdb", "\n".join(lines) + "\n"))

    assert len(frame) == 5
    # serials 1 and 2 now name the atoms of the second chain
    assert frame.bonds() == [(3, 4)]
    assert [r.properties["chainid"] for r in frame.residues] == ["A", "B"]
    assert frame.residues[0].properties["is_standard_pdb"] is False
    assert len(messages) == 1
    assert "ignoring bond between atoms 1 and 9" in messages[0]


def test_models_and_trailing_end_count_as_frames(tmp_path: Path) -> None:
    glycines = _glycines()
    text = "\n".join(["MODEL        1", *glycines[:4], "ENDMDL", "MODEL        2", *glycines[:4], "ENDMDL", "END"])
    frames = _read_all(write_text(tmp_path / "models.pdb", text + "\n"))
    assert len(frames) == 2
    assert all(len(f) == 4 for f in frames)


def test_unterminated_last_model_is_counted_by_scan_and_read(tmp_path: Path) -> None:
    glycines = _glycines()
    text = "\n".join(["MODEL        1", *glycines[:4], "ENDMDL", "MODEL        2", *glycines])
    path = write_text(tmp_path / "cut.pdb", text + "\n")

    with TextFile(path) as f:
        scanned = StepReader(f, PDBCodec())
        assert scanned.step_count() == 2
        with capture_warnings() as messages:
            last = scanned.read_step(1)
        assert len(last) == 8
        assert messages == ["PDB reader: missing END record in file"]

    with TextFile(path) as f, capture_warnings():
        sequential = StepReader(f, PDBCodec())
        sizes = [len(sequential.read()), len(sequential.read())]
        assert sequential.step_count() == 2
    assert sizes == [4, 8]


def test_unknown_records_and_missing_end_warn(tmp_path: Path) -> None:
    text = "\n".join(["FOOBAR not a record", "REMARK ignored", *_glycines()[:4]])
    with capture_warnings() as messages:
        (frame,) = _read_all(write_text(tmp_path / "noend.pdb", text + "\n"))
    assert len(frame) == 4
    assert messages == [
        "PDB reader: ignoring unknown record: FOOBAR not a record",
        "PDB reader: missing END record in file",
    ]


def test_write_models_then_read_back(tmp_path: Path) -> None:
    first = make_chain(3, kinds=["C", "N"])
    first.cell = UnitCell((15.0, 16.0, 17.0), (90.0, 90.0, 120.0))
    residue = Residue("LIG", 4, atoms=[0, 1, 2])
    residue.properties["chainid"] = "L"
    first.add_residue(residue)
    second = make_chain(2)

    path = tmp_path / "out.pdb"
    with TextFile(path, "w") as f:
        codec = PDBCodec()
        codec.write(f, first)
        codec.write(f, second)
        codec.close(f)

    text = path.read_text(encoding="utf-8")
    assert text.startswith("MODEL    1\n")
    assert "MODEL    2\n" in text
    assert text.endswith("ENDMDL\nEND\n")

    back_first, back_second = _read_all(path)
    assert len(back_first) == 3 and len(back_second) == 2
    assert set(back_first.bonds()) == set(first.bonds())
    assert set(back_second.bonds()) == set(second.bonds())
    np.testing.assert_allclose(back_first.positions, first.positions, atol=1e-3)
    np.testing.assert_allclose(back_first.cell.lengths, first.cell.lengths, atol=1e-3)
    np.testing.assert_allclose(back_first.cell.angles, first.cell.angles, atol=1e-2)
    assert [(r.name, r.id, r.properties["chainid"]) for r in back_first.residues] == [("LIG", 4, "L")]


def test_write_truncates_wide_fields_with_warnings(tmp_path: Path) -> None:
    frame = make_chain(1)
    frame.atoms[0].name = "CARBON"
    frame.add_residue(Residue("LONG", 1, atoms=[0]))

    with capture_warnings() as messages:
        with TextFile(tmp_path / "wide.pdb", "w") as f:
            PDBCodec().write(f, frame)

    assert "residue name 'LONG' is too long" in messages[0]
    assert "atom name 'CARBON' is too long" in messages[1]
