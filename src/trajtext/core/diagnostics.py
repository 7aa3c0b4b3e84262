"""Process-wide sink for non-fatal diagnostics.

Readers and writers call `send_warning()` for every soft failure (skipped
record, truncated output field, dropped bond). The sink is a plain callable
taking one message string, invoked synchronously on the calling thread.

The default sink logs on the `trajtext` logger at WARNING level. With no
logging configuration this ends up on stderr through Python's last-resort
handler.

Replacing the sink is guarded by a lock; emission reads the current sink
without further coordination.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator

WarningCallback = Callable[[str], None]

_LOGGER = logging.getLogger("trajtext")


def _default_callback(message: str) -> None:
    _LOGGER.warning(message)


_lock = threading.Lock()
_callback: WarningCallback = _default_callback


def set_warning_callback(callback: WarningCallback | None) -> WarningCallback:
    """Replace the sink and return the previous one.

    Passing None restores the default logging sink.
    """
    global _callback
    if callback is not None and not callable(callback):
        raise TypeError(f"set_warning_callback: expected a callable, got {type(callback).__name__}")
    with _lock:
        previous = _callback
        _callback = callback if callback is not None else _default_callback
    return previous


def send_warning(context: str, message: str) -> None:
    """Report a soft failure, prefixed with its context (eg "PDB reader")."""
    text = f"{context}: {message}" if context else message
    _callback(text)


@contextmanager
def capture_warnings() -> Iterator[list[str]]:
    """Collect every diagnostic emitted inside the block into a list."""
    captured: list[str] = []
    previous = set_warning_callback(captured.append)
    try:
        yield captured
    finally:
        set_warning_callback(previous)
