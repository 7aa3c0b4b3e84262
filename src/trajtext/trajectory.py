"""User-facing session over one trajectory file.

`Trajectory` ties together a `TextFile`, a codec picked from the format
registry, and a `StepReader` for indexed access:

    with Trajectory("traj.pdb") as traj:
        print(traj.nsteps)
        frame = traj.read_step(3)

    with Trajectory("out.gro", "w") as traj:
        traj.write(frame)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from trajtext.codecs import make_codec
from trajtext.core.errors import EndOfFileError, FileError
from trajtext.io.steps import StepReader
from trajtext.io.textfile import TextFile

if TYPE_CHECKING:  # pragma: no cover
    from trajtext.core.model import Frame

logger = logging.getLogger(__name__)


class Trajectory:
    """An open trajectory file, in mode `r`, `w` or `a`."""

    def __init__(
        self,
        path: str | Path,
        mode: str = "r",
        format: str | None = None,
        *,
        compression: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.mode = mode
        # resolve the codec first so an unknown format never creates a file
        self._codec = make_codec(self.path, format)
        self._file = TextFile(self.path, mode, compression=compression)
        self._steps = StepReader(self._file, self._codec)
        logger.debug("opened %s as %s (mode=%s)", self.path, self._codec.name, mode)

    @property
    def format(self) -> str:
        return self._codec.name

    def _check_open(self) -> None:
        if self._file.closed:
            raise FileError(f"can not use closed trajectory '{self.path}'")

    def _check_readable(self) -> None:
        self._check_open()
        if self.mode != "r":
            raise FileError(f"can not read file '{self.path}' opened in mode '{self.mode}'")

    def read(self) -> "Frame":
        """Read the next frame; raises `EndOfFileError` when none is left."""
        self._check_readable()
        return self._steps.read()

    def read_step(self, step: int) -> "Frame":
        """Read the frame at `step` (0-based); raises `StepIndexError` when out of range."""
        self._check_readable()
        return self._steps.read_step(step)

    def write(self, frame: "Frame") -> None:
        self._check_open()
        if self.mode == "r":
            raise FileError(f"can not write file '{self.path}' opened in mode 'r'")
        self._steps.write(frame)

    @property
    def nsteps(self) -> int:
        """Number of frames in the file (scans to the end on first use)."""
        self._check_readable()
        return self._steps.step_count()

    @property
    def step(self) -> int:
        """Step the next `read()` will produce."""
        return self._steps.step

    def __iter__(self) -> Iterator["Frame"]:
        self._check_readable()
        while True:
            try:
                frame = self._steps.read()
            except EndOfFileError:
                return
            yield frame

    def close(self) -> None:
        if self._file.closed:
            return
        try:
            if self.mode != "r":
                self._codec.close(self._file)
        finally:
            self._file.close()

    def __enter__(self) -> "Trajectory":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Trajectory('{self.path}', mode='{self.mode}', format='{self.format}')"
