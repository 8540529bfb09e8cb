"""``tm-sync scan``: report the sync status of test files."""

from __future__ import annotations

import json
import logging
from enum import StrEnum
from pathlib import Path
from typing import Optional

import typer

from tm_sync.cli.formatters import format_scan_result
from tm_sync.cli.helpers import err_console, render_output, resolve_config, run_or_exit, write_output
from tm_sync.core.mapping_manager import MappingManager
from tm_sync.core.scanner import Scanner
from tm_sync.models.scan_result import ScanResult
from tm_sync.utils.errors import FileSystemError

logger = logging.getLogger(__name__)


class ScanFormat(StrEnum):
    TABLE = "table"
    JSON = "json"


def scan(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="Test file or directory to scan"),
    output_format: ScanFormat = typer.Option(ScanFormat.TABLE, "--format", "-f", help="Output format"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write results to this file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """Scan test files and report which tests are synced, unmapped or out of sync."""

    def _run() -> ScanResult:
        config = resolve_config(ctx, config_path)
        scanner = Scanner(config.validation, MappingManager(config.mappings))

        if path.is_dir():
            logger.debug("Scanning directory %s", path)
            return scanner.scan_directory(path, config.test_files.patterns, config.test_files.exclude)
        if path.is_file():
            return scanner.scan_paths([path])
        raise FileSystemError(f"Path not found: {path}", "read", str(path))

    result = run_or_exit(_run)

    if result.summary.total_tests == 0:
        err_console.print("[red]No tests found[/red]")
        raise typer.Exit(1)

    err_console.print(
        f"Scanned {result.summary.total_tests} test(s) from {result.summary.total_files} file(s)",
        highlight=False,
    )

    if output_format is ScanFormat.JSON:
        write_output(json.dumps(result.to_dict(), indent=2), output)
    else:
        render_output(lambda target: format_scan_result(result, target), output)

    if result.has_problems:
        raise typer.Exit(1)
