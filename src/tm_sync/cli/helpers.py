"""Shared helpers for tm-sync commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from tm_sync.models.configuration import TmSyncConfig
from tm_sync.utils.config_loader import load_config
from tm_sync.utils.errors import TmSyncError, format_error
from tm_sync.utils.logger import configure_logging

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


def print_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def run_or_exit(fn: Callable[[], T]) -> T:
    """Run ``fn``; report tm-sync errors on stderr and exit with status 1."""
    try:
        return fn()
    except TmSyncError as exc:
        err_console.print(f"[red]Error:[/red] {escape(format_error(exc))}", highlight=False)
        raise typer.Exit(1) from exc


def is_verbose(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("verbose"))


def resolve_config(ctx: typer.Context, config_path: Optional[Path]) -> TmSyncConfig:
    """Load configuration and set up logging for the current invocation."""
    overrides = {"logging": {"level": "debug"}} if is_verbose(ctx) else None
    config = load_config(config_path=config_path, overrides=overrides)
    if is_verbose(ctx) and config.logging.level != "debug":
        # --verbose outranks TM_SYNC_LOG_LEVEL
        config = config.model_copy(update={"logging": config.logging.model_copy(update={"level": "debug"})})
    configure_logging(config.logging)
    return config


def write_output(text: str, output: Optional[Path]) -> None:
    """Write ``text`` to ``output`` or stdout."""
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
    err_console.print(f"Results written to: {output}", highlight=False)


def render_output(render: Callable[[Console], None], output: Optional[Path]) -> None:
    """Render rich output to the console, or as plain text into ``output``."""
    if output is None:
        render(console)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as handle:
        render(Console(file=handle, width=120, no_color=True, highlight=False))
    err_console.print(f"Results written to: {output}", highlight=False)
