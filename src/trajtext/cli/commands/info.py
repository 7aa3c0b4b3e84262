"""`trajtext info` command.

Prints the format, the number of steps, and per-step counts of atoms, bonds
and residues of a trajectory file.
"""

from __future__ import annotations

from typing import Optional

import typer

from trajtext.core.errors import TrajTextError
from trajtext.trajectory import Trajectory


def register(app: typer.Typer) -> None:
    @app.command("info")
    def info(
        path: str = typer.Argument(..., help="Trajectory file to inspect."),
        format: Optional[str] = typer.Option(None, "--format", help="Format name; guessed from the extension if omitted."),
    ) -> None:
        """Summarize the frames of a trajectory file."""
        try:
            with Trajectory(path, "r", format) as traj:
                typer.echo(f"format: {traj.format}")
                typer.echo(f"steps: {traj.nsteps}")
                for step in range(traj.nsteps):
                    frame = traj.read_step(step)
                    typer.echo(
                        f"step {step}: {len(frame)} atoms, {len(frame.bonds())} bonds, "
                        f"{len(frame.residues)} residues"
                    )
        except (TrajTextError, ValueError) as e:
            raise typer.BadParameter(str(e)) from e
