"""CLI command for showing and saving the effective configuration."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from layerscan.cli.utils import console, output_json


def config_cmd(
    format: str = typer.Option(
        "terminal",
        "--format",
        "-f",
        help="Output format (terminal, json)",
    ),
    save: bool = typer.Option(
        False,
        "--save",
        help="Write the effective configuration to a config file",
    ),
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        "-p",
        help="File written by --save (default: ~/.layerscan/config.yaml)",
    ),
) -> None:
    """
    Show the effective configuration.

    Values come from the config file, then DOCKER_HOST, DOCKER_CERT_PATH,
    DOCKER_TLS_VERIFY and the debug switches in the environment.

    Example:
        layerscan config --save --path .layerscan.yaml
    """
    from layerscan.engine.connection import ConnectionOptions
    from layerscan.utils.config import get_config, save_config
    from layerscan.utils.errors import ConfigurationError

    config = get_config()

    if save:
        written = save_config(config, path)
        console.print(f"Configuration written to {written}")
        return

    if format == "json":
        output_json(config)
        return

    try:
        base_url = ConnectionOptions.from_config(config.engine).base_url
    except ConfigurationError as e:
        base_url = f"[red]{e.message}[/red]"

    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("engine", base_url)
    table.add_row("cert path", config.engine.cert_path or "[dim]-[/dim]")
    table.add_row("tls verify", str(config.engine.tls_verify))
    table.add_row("api version", config.engine.api_version or "[dim]default[/dim]")
    table.add_row("timeout", str(config.engine.timeout) if config.engine.timeout else "[dim]none[/dim]")
    table.add_row("temp dir", config.export.temp_dir or "[dim]system default[/dim]")
    table.add_row("log level", config.logging.effective_level)
    console.print(table)
