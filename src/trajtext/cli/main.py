"""trajtext CLI entrypoint.

A small Typer application; every subcommand lives in `trajtext.cli.commands`
and is attached through its `register(app)` function.
"""

from __future__ import annotations

import logging

import typer

app = typer.Typer(
    name="trajtext",
    add_completion=False,
    no_args_is_help=True,
    help="Read, convert and inspect text chemistry trajectory files.",
)


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages to stderr."),
) -> None:
    """trajtext CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("version")
def version() -> None:
    """Print the installed trajtext version."""
    from trajtext import __version__

    typer.echo(__version__)


def _register_commands() -> None:
    """Register CLI subcommands.

    Importing these modules must remain lightweight so `trajtext --help` is fast.
    """
    from trajtext.cli.commands import convert as convert_cmd
    from trajtext.cli.commands import info as info_cmd
    from trajtext.cli.commands import tables as tables_cmd

    info_cmd.register(app)
    convert_cmd.register(app)
    tables_cmd.register(app)


_register_commands()
