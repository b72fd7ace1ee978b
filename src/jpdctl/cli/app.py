# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared options."""

from __future__ import annotations

from typing import Annotated

import typer

from .. import __version__
from ..logging import configure_debug_logging, echo
from .commands import register_commands

app = typer.Typer(
    name="jpdctl",
    help="Distribute JFrog Platform configuration and evidence keys across GitHub repositories.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        echo(f"jpdctl {__version__}")
        raise typer.Exit()


@app.callback()
def root(
    debug: Annotated[bool, typer.Option("--debug", help="Emit diagnostic logging.")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = False,
) -> None:
    """Distribute JFrog Platform configuration and evidence keys across GitHub repositories."""

    configure_debug_logging(debug)


register_commands(app)


def main() -> None:
    app()


__all__ = ["app", "main"]
