"""Typed hard failures for trajtext.

Soft failures (a dropped bond, a truncated output field) never raise; they are
reported through `trajtext.core.diagnostics`. Everything in this module aborts
the current operation and is never retried.
"""

from __future__ import annotations


class TrajTextError(Exception):
    """Base class for every error raised by trajtext."""


class FileError(TrajTextError, OSError):
    """I/O failure, or a handle used in a mode it was not opened for."""


class EndOfFileError(FileError):
    """A line was requested past the end of the stream."""


class StepIndexError(FileError, IndexError):
    """An explicit step request beyond the final step count."""

    def __init__(self, path: str, step: int, n_steps: int) -> None:
        if n_steps == 0:
            msg = f"can not read file '{path}' at step {step}, it does not contain any step"
        else:
            msg = f"can not read file '{path}' at step {step}: maximal step is {n_steps - 1}"
        super().__init__(msg)
        self.path = path
        self.step = step
        self.n_steps = n_steps


class FormatError(TrajTextError, ValueError):
    """Malformed or truncated content in a text grammar.

    `path` and `position` (byte offset) are appended to the message when known
    so the failure can be located in the file.
    """

    def __init__(self, message: str, *, path: str | None = None, position: int | None = None) -> None:
        where: list[str] = []
        if path is not None:
            where.append(f"in '{path}'")
        if position is not None:
            where.append(f"at byte {position}")
        full = f"{message} ({' '.join(where)})" if where else message
        super().__init__(full)
        self.message = message
        self.path = path
        self.position = position


class IndexConsistencyError(FormatError):
    """A frame offset that would make the frame index non-monotonic."""


class TopologyError(TrajTextError, RuntimeError):
    """Internal-consistency failure while deriving topology metadata."""


class UnregisteredTypeError(TopologyError, KeyError):
    """A bonded-interaction pattern was looked up but never registered.

    The type table is built from the same topology that is later queried, so
    this signals a bug rather than bad input.
    """

    def __init__(self, kind: str, key: tuple) -> None:
        super().__init__(f"invalid {kind} type {key!r} passed to {kind}_type_id, this is a bug")
        self.kind = kind
        self.key = key

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])
