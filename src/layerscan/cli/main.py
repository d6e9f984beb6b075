"""Main CLI entry point for layerscan."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from layerscan.cli import config, export, image

app = typer.Typer(
    name="layerscan",
    help="Locate package directories inside container images.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register subcommands
app.command(name="parse")(image.parse_cmd)
app.command(name="inspect")(image.inspect_cmd)
app.command(name="export")(export.export_cmd)
app.command(name="remove")(image.remove_cmd)
app.command(name="config")(config.config_cmd)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a layerscan config file"
    ),
) -> None:
    """
    layerscan: locate package directories inside container images.

    - [bold]parse[/bold]: Split an image reference into its parts
    - [bold]inspect[/bold]: Find an image in the engine, pulling it if needed
    - [bold]export[/bold]: Export an image and list package directories
    - [bold]remove[/bold]: Remove an image from the engine
    - [bold]config[/bold]: Show or save the effective configuration
    """
    from layerscan.utils.config import load_config, set_config
    from layerscan.utils.logging import configure_logging, select_level

    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)
    set_config(config)

    try:
        configure_logging(
            level=select_level(config.logging, verbose=verbose, quiet=quiet),
            structured=config.logging.structured,
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)


@app.command()
def version() -> None:
    """Show the layerscan version."""
    from layerscan import __version__

    console.print(f"layerscan version {__version__}")


if __name__ == "__main__":
    app()
