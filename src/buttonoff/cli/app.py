from __future__ import annotations

from typing import Annotated

import typer

from buttonoff.utils.logging import setup_logging

from . import config as config_cmd
from .run import register as register_run

app = typer.Typer(
    help="buttonoff - publish network button presses to MQTT", no_args_is_help=True
)

app.add_typer(config_cmd.app, name="config")

register_run(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """buttonoff CLI."""
    setup_logging()

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"buttonoff version {get_version('buttonoff')}")
        raise typer.Exit()
