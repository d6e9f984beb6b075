"""CLI commands for parsing, resolving and removing images."""

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from layerscan.cli.utils import build_exporter, check_reference, console, output_json, print_errors


def parse_cmd(
    image: str = typer.Argument(..., help="Image reference to parse"),
    format: str = typer.Option("terminal", "--format", "-f", help="Output format (terminal, json)"),
) -> None:
    """
    Split an image reference into registry, repo, tag and digest.

    Example:
        layerscan parse myregistry.local:5000/testing/test-image:1.0
    """
    from layerscan.core.reference import normalize_reference, parse_image_name

    identifier = parse_image_name(image)

    if format == "json":
        output_json(identifier)
        return

    table = Table(title=f"Reference: {image}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for field, value in identifier.model_dump().items():
        table.add_row(field, value or "[dim]-[/dim]")
    table.add_row("pull reference", normalize_reference(image))
    console.print(table)


def inspect_cmd(
    image: str = typer.Argument(..., help="Image reference"),
    format: str = typer.Option("terminal", "--format", "-f", help="Output format (terminal, json)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
) -> None:
    """
    Find an image in the engine, pulling it if it is not present.

    Example:
        layerscan inspect debian:bookworm --format json
    """
    check_reference(image)
    resolver = build_exporter().resolver

    with console.status("Resolving image..."):
        result = resolver.resolve(image)

    if format == "json":
        output_json(result, output)
    else:
        table = Table(title="Resolution steps")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Reason")
        for transition in result.transitions:
            table.add_row(transition.source.value, transition.target.value, transition.reason)
        console.print(table)

        if result.success:
            data = result.inspect_data or {}
            console.print(
                Panel(
                    f"[bold]Id:[/bold] {data.get('Id', '-')}\n"
                    f"[bold]Tags:[/bold] {', '.join(data.get('RepoTags') or []) or '-'}\n"
                    f"[bold]Platform:[/bold] {data.get('Os', '-')}/{data.get('Architecture', '-')}",
                    title=f"Image {image}",
                )
            )

    if not result.success:
        print_errors(result.errors, f"Unable to resolve {image} ({result.status.value})")
        raise typer.Exit(1)


def remove_cmd(
    image: str = typer.Argument(..., help="Image reference"),
    force: bool = typer.Option(False, "--force", help="Remove even if the image is in use"),
) -> None:
    """
    Remove an image from the engine.

    Example:
        layerscan remove debian:bookworm --force
    """
    from layerscan.engine.base import EngineError

    check_reference(image)
    resolver = build_exporter().resolver

    try:
        answer = resolver.remove_image(image, force=force)
    except EngineError as e:
        print_errors([e.to_error_detail()], f"Unable to remove {image}")
        raise typer.Exit(1)

    if answer is None:
        console.print("[red]Error:[/red] Engine connection unavailable")
        raise typer.Exit(1)

    console.print(f"Removed {image}")
