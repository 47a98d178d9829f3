"""smol-analytics CLI."""

import typer

from smol_analytics.cli._console import console
from smol_analytics.cli.report import report_command

app = typer.Typer(
    name="smol-analytics",
    help="Tiny visit counter with hourly and daily webhook reports.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        from smol_analytics import __version__

        console.print(f"[bold]smol-analytics[/bold] [dim]{__version__}[/dim]")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version",
    ),
) -> None:
    """Count visits, report the busiest routes."""


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (overrides SMOL_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (overrides SMOL_PORT)"),
) -> None:
    """Run the HTTP server."""
    import uvicorn

    from smol_analytics.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "smol_analytics.main:app",
        host=host or settings.host,
        port=port or settings.port,
    )


app.command("report")(report_command)
