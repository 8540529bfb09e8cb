"""``tm-sync config``: inspect and scaffold configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from tm_sync.cli.helpers import console, print_json, resolve_config, run_or_exit
from tm_sync.utils.config_loader import write_config_template

app = typer.Typer(help="Configuration commands", no_args_is_help=True)

_REDACTED = "***"


@app.command("show")
def show_command(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
    reveal: bool = typer.Option(False, "--reveal", help="Print the API token instead of masking it"),
) -> None:
    """Print the resolved configuration as JSON."""
    config = run_or_exit(lambda: resolve_config(ctx, config_path))
    payload = config.to_dict()
    if payload["tms"]["apiToken"] and not reveal:
        payload["tms"]["apiToken"] = _REDACTED
    print_json(payload)


@app.command("init")
def init_command(
    directory: Path = typer.Argument(Path("."), help="Directory to write tm-sync.config.yaml into"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing configuration file"),
) -> None:
    """Write a starter tm-sync.config.yaml."""
    target = run_or_exit(lambda: write_config_template(directory, force=force))
    console.print(f"[green]Created[/green] {target}", highlight=False)
