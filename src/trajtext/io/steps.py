"""Indexed and sequential access to the frames of one open file.

`FrameIndex` is the per-handle list of discovered frame start offsets. It only
ever grows, and offsets stay strictly increasing. `StepReader` drives a codec
over a `TextFile`:

- `read()` parses at the current position and records that position when it
  is the first time this step is seen.
- `read_step(n)` seeks directly when step `n` is already known, and otherwise
  runs one forward scan to the end of the stream before seeking or failing.
- `step_count()` forces that scan.

The forward scan only uses the codec's `forward()` (skip one frame, return its
start offset), never a full parse.
"""

from __future__ import annotations

import bisect
import logging
from typing import TYPE_CHECKING, Iterator

from trajtext.core.errors import EndOfFileError, IndexConsistencyError, StepIndexError

if TYPE_CHECKING:  # pragma: no cover
    from trajtext.codecs import FrameCodec
    from trajtext.core.model import Frame
    from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)


class FrameIndex:
    """Strictly increasing frame start offsets, plus a `complete` flag."""

    def __init__(self, path: str | None = None) -> None:
        self._offsets: list[int] = []
        self.complete = False
        self.path = path

    def __len__(self) -> int:
        return len(self._offsets)

    def __getitem__(self, step: int) -> int:
        return self._offsets[step]

    def __iter__(self) -> Iterator[int]:
        return iter(self._offsets)

    @property
    def offsets(self) -> tuple[int, ...]:
        return tuple(self._offsets)

    def record(self, offset: int) -> bool:
        """Record `offset`; return True when it was new.

        Re-recording a known offset is a no-op. A new offset that does not come
        after every recorded one raises `IndexConsistencyError`.
        """
        if offset < 0:
            raise IndexConsistencyError(f"negative frame offset {offset}", path=self.path)
        if not self._offsets or offset > self._offsets[-1]:
            self._offsets.append(offset)
            return True
        pos = bisect.bisect_left(self._offsets, offset)
        if pos < len(self._offsets) and self._offsets[pos] == offset:
            return False
        raise IndexConsistencyError(
            f"frame offset {offset} is before the last known frame offset "
            f"{self._offsets[-1]} but was never recorded",
            path=self.path,
            position=offset,
        )


class StepReader:
    """Indexed step access for one `TextFile` and one codec instance."""

    def __init__(self, file: "TextFile", codec: "FrameCodec") -> None:
        self.file = file
        self.codec = codec
        self.index = FrameIndex(str(file.path))
        self._step = 0

    @property
    def step(self) -> int:
        """Step number the next `read()` will produce."""
        return self._step

    def read(self) -> "Frame":
        if self.file.eof():
            raise EndOfFileError(
                f"can not read file '{self.file.path}' at step {self._step}: no more steps"
            )
        position = self.file.tell()
        frame = self.codec.read(self.file)
        if self._step >= len(self.index):
            self.index.record(position)
        self._step += 1
        return frame

    def read_step(self, step: int) -> "Frame":
        if step < 0:
            raise StepIndexError(str(self.file.path), step, len(self.index))
        if step >= len(self.index):
            self.scan_all()
            if step >= len(self.index):
                raise StepIndexError(str(self.file.path), step, len(self.index))
        self.file.seek(self.index[step])
        frame = self.codec.read(self.file)
        self._step = step + 1
        return frame

    def step_count(self) -> int:
        self.scan_all()
        return len(self.index)

    def scan_all(self) -> None:
        """Index every remaining frame; a no-op once the index is complete."""
        if self.index.complete:
            return

        saved = self.file.tell()
        from_start = len(self.index) == 0
        if from_start:
            self.file.seek(0)
        else:
            # resume after the last known frame
            self.file.seek(self.index[-1])
            self.codec.forward(self.file)

        while True:
            offset = self.codec.forward(self.file)
            if offset is None:
                break
            self.index.record(offset)

        self.index.complete = True
        logger.debug("indexed %d frames in %s", len(self.index), self.file.path)

        if from_start and saved == 0 and len(self.index) > 0:
            self.file.seek(self.index[0])
        else:
            self.file.seek(saved)

    def write(self, frame: "Frame") -> None:
        position = self.file.tell()
        self.codec.write(self.file, frame)
        self.index.record(position)
        self._step += 1
