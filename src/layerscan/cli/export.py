"""CLI command for exporting an image and listing package directories."""

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from layerscan.cli.utils import build_exporter, check_reference, console, output_json, print_errors


def export_cmd(
    image: str = typer.Argument(..., help="Image reference"),
    format: str = typer.Option(
        "terminal",
        "--format",
        "-f",
        help="Output format (terminal, json)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path",
    ),
    existing_only: bool = typer.Option(
        False,
        "--existing",
        help="Only list paths that exist in the image",
    ),
) -> None:
    """
    Export an image and list candidate package directories.

    The image is pulled if needed, exported, and its layers are applied in
    order to a temporary directory that is kept for further analysis.

    Example:
        layerscan export python:3.12-slim --format json -o paths.json
    """
    check_reference(image)
    exporter = build_exporter()

    with console.status(f"Exporting {image}..."):
        outcome = exporter.export(image)

    for warning in outcome.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    if not outcome.success or outcome.result is None:
        print_errors(outcome.errors, f"Unable to export {image} ({outcome.status.value})")
        raise typer.Exit(1)

    result = outcome.result
    paths = result.pkg_path_list
    if existing_only:
        paths = [path for path in paths if path.exists()]

    if format == "json":
        output_json(
            {
                "image": image,
                "allLayersDir": str(result.all_layers_dir),
                "allLayersExplodedDir": str(result.all_layers_exploded_dir),
                "layers": result.layers,
                "pkgPathList": [str(path) for path in paths],
                "warnings": outcome.warnings,
            },
            output,
        )
        return

    console.print()
    console.print(
        Panel(
            f"[bold]Image:[/bold] {image}\n"
            f"[bold]Layers:[/bold] {len(result.layers)}\n"
            f"[bold]Export dir:[/bold] {result.all_layers_dir}\n"
            f"[bold]Filesystem:[/bold] {result.all_layers_exploded_dir}",
            title="Image Export",
        )
    )

    table = Table(title="Package paths")
    table.add_column("Path")
    table.add_column("Exists", justify="center")
    for path in paths:
        table.add_row(str(path), "[green]yes[/green]" if path.exists() else "[dim]no[/dim]")
    console.print(table)
