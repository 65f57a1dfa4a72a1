"""Main CLI entry point for provider-switchboard."""

import os

import typer
from rich.console import Console

from switchboard.cli.commands import provider
from switchboard.core.logging import configure_root_logging

app = typer.Typer(
    name="switchboard",
    help="Provider Switchboard CLI - manage AI providers and API keys",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(provider.app, name="provider", help="Provider management")


@app.command()
def version() -> None:
    """Show version information."""
    from switchboard import __version__

    console = Console()
    console.print(f"[bold cyan]switchboard[/bold cyan] version [green]{__version__}[/green]")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    home: str = typer.Option(None, "--home", help="Directory holding providers.json"),
) -> None:
    """Provider Switchboard CLI."""
    if verbose:
        level = "DEBUG"
    elif "LOG_LEVEL" in os.environ:
        level = None
    else:
        # Keep command output readable unless logging was asked for
        level = "WARNING"
    configure_root_logging(level)
    ctx.obj = {"home": home}


if __name__ == "__main__":
    app()
