"""
Command Line Interface for the firmware release tooling.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import typer
from rich.console import Console

from .config import ConfigManager, ReleaseConfig, setup_logging
from .release import ReleaseCommands

app = typer.Typer(
    name="firmrel",
    help="Firmware release tooling",
    add_completion=False,
    no_args_is_help=True
)
release_app = typer.Typer(
    help="Commands specific to the firmware release process",
    no_args_is_help=True
)
show_app = typer.Typer(help="Show release info")
app.add_typer(release_app, name="release")
release_app.add_typer(show_app, name="show")

console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Disable log output (errors are still printed)"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Firmware release tooling."""
    try:
        config = ConfigManager().load(config_path)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if quiet:
        level = logging.CRITICAL + 1
    elif verbose:
        level = logging.DEBUG
    else:
        level = None
    setup_logging(config.logging, level)
    ctx.obj = config


def _run(ctx: typer.Context, command: Callable[[ReleaseCommands], Awaitable]) -> None:
    config: ReleaseConfig = ctx.obj or ReleaseConfig()
    try:
        asyncio.run(command(ReleaseCommands(config)))
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(1)


@release_app.command()
def init(
    ctx: typer.Context,
    version: str = typer.Argument(..., help="Version number")
):
    """Check out a new release branch and update the firmware version."""
    _run(ctx, lambda commands: commands.init(version))


@release_app.command()
def changelog(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(None, "--token", "-t", help="GitHub authentication token")
):
    """Generate changelog."""
    _run(ctx, lambda commands: commands.changelog(token))


@show_app.callback(invoke_without_command=True)
def show(ctx: typer.Context):
    """Show release info (defaults to the firmware version)."""
    if ctx.invoked_subcommand is None:
        _run(ctx, lambda commands: commands.show_version())


@show_app.command("version")
def show_version(ctx: typer.Context):
    """Show current firmware version."""
    _run(ctx, lambda commands: commands.show_version())


if __name__ == "__main__":
    app()
