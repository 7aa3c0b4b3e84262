"""trajtext I/O: text streams and frame indexing."""

from __future__ import annotations

from .steps import FrameIndex, StepReader
from .textfile import TextFile, infer_compression, strip_compression_suffix

__all__ = [
    "FrameIndex",
    "StepReader",
    "TextFile",
    "infer_compression",
    "strip_compression_suffix",
]
