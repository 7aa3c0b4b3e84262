"""`trajtext tables` command.

Writes the atoms/bonds/residues tables of one step as a CSV bundle with a
sha256 manifest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from trajtext.bundle.io import save_frame_bundle
from trajtext.bundle.manifest import sha256_file
from trajtext.core.errors import TrajTextError
from trajtext.trajectory import Trajectory


def register(app: typer.Typer) -> None:
    @app.command("tables")
    def tables(
        path: str = typer.Argument(..., help="Trajectory file to export."),
        out_dir: str = typer.Option(..., "--out-dir", help="Bundle directory to create."),
        step: int = typer.Option(0, "--step", help="Step to export (0-based)."),
        format: Optional[str] = typer.Option(None, "--format", help="Format name; guessed from the extension if omitted."),
    ) -> None:
        """Export one step of a trajectory as CSV tables."""
        try:
            with Trajectory(path, "r", format) as traj:
                frame = traj.read_step(step)
                fmt = traj.format
        except (TrajTextError, ValueError) as e:
            raise typer.BadParameter(str(e)) from e

        source = {
            "path": Path(path).name,
            "format": fmt,
            "step": step,
            "sha256": sha256_file(Path(path)),
        }
        manifest = save_frame_bundle(Path(out_dir), frame, name=Path(path).stem, source=source)
        for table_name, meta in sorted(manifest["tables"].items()):
            typer.echo(f"{table_name}: {meta['rows']} rows -> {meta['path']}")
