"""Pytest configuration.

This repo follows the `src/` layout. Some environments may invoke a `pytest`
entrypoint from a different Python install than the one used for
`python -m pip install -e ...`, which can cause `import trajtext` to fail,
so `src/` is put on `sys.path` during tests.
"""

from __future__ import annotations

import sys
from pathlib import Path


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


# =============================================================================
# Shared test helpers
# =============================================================================


def write_text(path: Path, text: str) -> Path:
    """Write `text` exactly (no newline translation) and return `path`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
    return path


def make_chain(n_atoms: int, kinds: list[str] | None = None):
    """Linear chain frame `0-1-2-...` with atoms spaced along x."""
    from trajtext.core.model import Atom, Frame

    frame = Frame()
    for i in range(n_atoms):
        kind = kinds[i % len(kinds)] if kinds else "C"
        frame.add_atom(Atom(kind), (1.5 * i, 0.0, 0.0))
    for i in range(n_atoms - 1):
        frame.add_bond(i, i + 1)
    return frame
