from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from trajtext.core.errors import EndOfFileError, FileError
from trajtext.io.textfile import TextFile, infer_compression, strip_compression_suffix


def test_lines_offsets_and_seek(tmp_path: Path) -> None:
    path = tmp_path / "demo.txt"
    path.write_bytes(b"first\r\nsecond\nthird")

    with TextFile(path) as f:
        assert f.tell() == 0
        assert f.readline() == "first"
        offset = f.tell()
        assert offset == 7
        assert list(f) == ["second", "third"]
        assert f.eof()
        with pytest.raises(EndOfFileError):
            f.readline()

        f.seek(offset)
        assert f.readline() == "second"


def test_gzip_is_inferred_and_offsets_are_decompressed(tmp_path: Path) -> None:
    path = tmp_path / "demo.pdb.gz"
    with TextFile(path, "w") as f:
        assert f.compression == "gzip"
        f.write("line 1\nline 2\n")

    with gzip.open(path, "rt", encoding="utf-8") as fh:
        assert fh.read() == "line 1\nline 2\n"

    with TextFile(path) as f:
        f.skipline()
        assert f.tell() == len("line 1\n")
        assert f.readline() == "line 2"
        assert f.eof()


def test_mode_misuse_and_missing_files_raise_file_error(tmp_path: Path) -> None:
    out = tmp_path / "out.txt"
    with TextFile(out, "w") as f:
        with pytest.raises(FileError, match="opened in mode 'w'"):
            f.readline()

    with TextFile(out) as f:
        with pytest.raises(FileError, match="opened in mode 'r'"):
            f.write("nope")

    with pytest.raises(FileError, match="could not open"):
        TextFile(tmp_path / "missing" / "file.txt")

    with pytest.raises(ValueError, match="unknown file mode"):
        TextFile(out, "x")


def test_compression_suffix_helpers() -> None:
    assert infer_compression("a/traj.gro.xz") == "xz"
    assert infer_compression("traj.gro") is None
    assert strip_compression_suffix("traj.sdf.bz2") == Path("traj.sdf")
    assert strip_compression_suffix("traj.sdf") == Path("traj.sdf")
