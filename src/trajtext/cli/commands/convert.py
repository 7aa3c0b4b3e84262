"""`trajtext convert` command.

Copies frames from one file to another, converting between formats. Every
step is copied unless `--step` selects a single one.
"""

from __future__ import annotations

from typing import Optional

import typer

from trajtext.core.errors import TrajTextError
from trajtext.trajectory import Trajectory


def register(app: typer.Typer) -> None:
    @app.command("convert")
    def convert(
        src: str = typer.Argument(..., help="Input trajectory file."),
        dst: str = typer.Argument(..., help="Output trajectory file (overwritten)."),
        step: Optional[int] = typer.Option(None, "--step", help="Only convert this step (0-based)."),
        in_format: Optional[str] = typer.Option(None, "--in-format", help="Input format name."),
        out_format: Optional[str] = typer.Option(None, "--out-format", help="Output format name."),
    ) -> None:
        """Convert a trajectory file to another format."""
        try:
            with Trajectory(src, "r", in_format) as reader:
                frames = [reader.read_step(step)] if step is not None else list(reader)
            with Trajectory(dst, "w", out_format) as writer:
                for frame in frames:
                    writer.write(frame)
        except (TrajTextError, ValueError) as e:
            raise typer.BadParameter(str(e)) from e

        typer.echo(f"wrote {len(frames)} frame(s) to {dst}")
