"""Command modules for the tm-sync CLI."""

from __future__ import annotations

import typer

from tm_sync.cli.commands import config_cmd
from tm_sync.cli.commands.scan import scan
from tm_sync.cli.commands.validate import validate


def register_commands(app: typer.Typer) -> None:
    """Attach every tm-sync command to ``app``."""
    app.command("scan")(scan)
    app.command("validate")(validate)
    app.add_typer(config_cmd.app, name="config")


__all__ = ["register_commands"]
