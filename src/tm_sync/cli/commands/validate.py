"""``tm-sync validate``: check test documentation quality."""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Optional

import typer

from tm_sync.cli.formatters import format_validation_report
from tm_sync.cli.helpers import err_console, render_output, resolve_config, run_or_exit, write_output
from tm_sync.core.parser import TestParser
from tm_sync.core.validator import Validator, validate_files
from tm_sync.models.configuration import TmSyncConfig
from tm_sync.models.validation_result import ValidationReport
from tm_sync.utils.file_utils import find_files, is_excluded


class ValidateFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    QUIET = "quiet"


def _collect_files(path: Path, config: TmSyncConfig) -> list[Path]:
    """A directory uses the configured patterns, a file is taken as is, anything
    else is treated as a glob relative to the current directory."""
    if path.is_dir():
        return find_files(path, config.test_files.patterns, config.test_files.exclude)
    if path.is_file():
        return [path]
    if path.is_absolute():
        return []
    cwd = Path.cwd()
    return sorted(
        candidate
        for candidate in cwd.glob(str(path))
        if candidate.is_file() and not is_excluded(candidate.relative_to(cwd).as_posix(), config.test_files.exclude)
    )


def validate(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="Test file, directory or glob pattern"),
    output_format: ValidateFormat = typer.Option(ValidateFormat.TABLE, "--format", "-f", help="Output format"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write results to this file"),
    show_fixes: bool = typer.Option(False, "--fixes", help="Show suggested fixes in table output"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """Validate documentation tags and step comments in Playwright tests."""

    def _run() -> tuple[list[Path], ValidationReport]:
        config = resolve_config(ctx, config_path)
        files = _collect_files(path, config)
        if not files:
            return files, ValidationReport()
        parser = TestParser(config.validation.project_key)
        return files, validate_files(files, parser, Validator(config.validation))

    files, report = run_or_exit(_run)

    if not files:
        err_console.print("[red]No test files found[/red]")
        raise typer.Exit(1)

    if output_format is not ValidateFormat.QUIET:
        err_console.print(
            f"Validated {report.total_tests} test(s) from {len(files)} file(s)",
            highlight=False,
        )

    if output_format is ValidateFormat.JSON:
        write_output(json.dumps(report.to_dict(), indent=2), output)
    elif output_format is ValidateFormat.TABLE:
        render_output(lambda target: format_validation_report(report, target, show_fixes), output)

    if report.failed_tests > 0:
        raise typer.Exit(1)
