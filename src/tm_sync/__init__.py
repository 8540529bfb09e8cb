"""tm-sync: keep Playwright test documentation in step with a test management system.

Usage:
    tm-sync scan [PATH]
    tm-sync validate [PATH]
    tm-sync config show
    tm-sync config init
"""

import typer

from tm_sync.cli.commands import register_commands

__version__ = "0.1.0"

app = typer.Typer(
    name="tm-sync",
    help="Validate Playwright test documentation and report its sync status with the test management system",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tm-sync {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Global options shared by every command."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


register_commands(app)


def main():
    app()


if __name__ == "__main__":
    main()
