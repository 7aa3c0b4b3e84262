"""trajtext bundle I/O (frame-tables-on-disk format).

- Save/load a frame's canonical tables as CSV under `tables/`
- Write/read `manifest.json` with sha256 hashes for reproducibility
"""

from __future__ import annotations

from .io import FrameBundle, load_frame_bundle, save_frame_bundle, save_tables

__all__ = [
    "FrameBundle",
    "save_frame_bundle",
    "save_tables",
    "load_frame_bundle",
]
