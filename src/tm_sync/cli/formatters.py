"""Rich renderings of scan and validation results."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tm_sync.models.scan_result import ScanResult
from tm_sync.models.validation_result import Severity, ValidationIssue, ValidationReport

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


def format_issue(issue: ValidationIssue) -> Text:
    """One issue line, with its source line and suggested fix when known."""
    text = Text()
    text.append(issue.severity.value.upper(), style=_SEVERITY_STYLES[issue.severity])
    text.append(f": {issue.message}")
    if issue.line_number:
        text.append(f" (line {issue.line_number})", style="dim")
    if issue.suggested_fix:
        text.append("\n  → ", style="cyan")
        text.append(issue.suggested_fix)
    return text


def format_validation_report(report: ValidationReport, target_console: Console, show_fixes: bool = False) -> None:
    """Render per-test validation results followed by a summary panel."""
    table = Table(title="Validation Results", show_header=True, header_style="bold", show_lines=True)
    table.add_column("File", overflow="fold", max_width=40)
    table.add_column("Test", overflow="fold", max_width=50)
    table.add_column("Status", justify="center")
    table.add_column("Issues")

    for result in report.test_results:
        status = Text("✓ PASS", style="green") if result.passed else Text("✗ FAIL", style="red")
        if result.issues:
            issues = Text("\n").join(
                format_issue(issue) if show_fixes else _short_issue(issue) for issue in result.issues
            )
        else:
            issues = Text("None", style="dim")
        table.add_row(result.file_path, result.test_title, status, issues)

    target_console.print(table)

    summary = report.summary
    lines = [
        f"[bold]Total tests:[/bold]   {report.total_tests}",
        f"[bold]Passed:[/bold]        [green]{report.passed_tests}[/green]",
        f"[bold]Failed:[/bold]        [red]{report.failed_tests}[/red]",
        f"[bold]Errors:[/bold]        {summary.total_errors}",
        f"[bold]Warnings:[/bold]      {summary.total_warnings}",
        f"[bold]Pass rate:[/bold]     {summary.pass_rate}%",
    ]
    if summary.common_issue_category is not None:
        lines.append(f"[bold]Common issue:[/bold]  {summary.common_issue_category.value}")
    target_console.print(Panel("\n".join(lines), title="Summary", border_style="cyan", expand=False))


def _short_issue(issue: ValidationIssue) -> Text:
    text = Text()
    text.append(issue.severity.value.upper(), style=_SEVERITY_STYLES[issue.severity])
    text.append(f": {issue.message}")
    return text


def format_scan_result(result: ScanResult, target_console: Console) -> None:
    """Render per-file counts, the issue list, and summary metrics."""
    files = Table(title="Scan Results", show_header=True, header_style="bold")
    files.add_column("File", overflow="fold", max_width=50)
    files.add_column("Tests", justify="right")
    files.add_column("Synced", justify="right", style="green")
    files.add_column("Unmapped", justify="right", style="yellow")
    files.add_column("Out of Sync", justify="right", style="red")
    files.add_column("Errors", justify="right")

    for file_result in result.file_results:
        errors = str(file_result.validation_error_count)
        files.add_row(
            file_result.file_path,
            str(file_result.test_count),
            str(file_result.synced_count),
            str(file_result.unmapped_count),
            str(file_result.out_of_sync_count),
            Text(errors, style="red" if file_result.validation_error_count else "dim"),
        )
    target_console.print(files)

    issue_rows = [
        (file_result.file_path, issue)
        for file_result in result.file_results
        for issue in file_result.issues
    ]
    if issue_rows:
        issues = Table(title="Issues", show_header=True, header_style="bold", show_lines=True)
        issues.add_column("File", overflow="fold", max_width=40)
        issues.add_column("Test", overflow="fold", max_width=50)
        issues.add_column("Status", style="yellow")
        issues.add_column("Message")
        for file_path, issue in issue_rows:
            issues.add_row(file_path, issue.test_title, issue.sync_status.value, issue.message)
        target_console.print(issues)

    summary = result.summary
    lines = [
        f"[bold]Total tests:[/bold]        {summary.total_tests}",
        f"[bold]Synced:[/bold]             [green]{summary.synced_tests}[/green]",
        f"[bold]Unmapped:[/bold]           [yellow]{summary.unmapped_tests}[/yellow]",
        f"[bold]Out of sync:[/bold]        [red]{summary.out_of_sync_tests}[/red]",
        f"[bold]Validation errors:[/bold]  {summary.validation_errors}",
        "",
        f"[bold]Sync coverage:[/bold]            {result.metrics.sync_coverage}%",
        f"[bold]Documentation compliance:[/bold] {result.metrics.documentation_compliance}%",
    ]
    target_console.print(Panel("\n".join(lines), title="Summary", border_style="cyan", expand=False))
