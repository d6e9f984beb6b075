"""Shared utilities for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape

from layerscan.utils.errors import ValidationError, validate_image_reference

if TYPE_CHECKING:
    from layerscan.core.exporter import ImageExporter

# Shared console instance
console = Console()


def build_exporter() -> "ImageExporter":
    """Wire an exporter from the active configuration."""
    from layerscan.core.exporter import ImageExporter
    from layerscan.utils.config import get_config

    return ImageExporter.from_config(get_config())


def check_reference(image: str) -> str:
    """Validate an image reference, exiting with an error if it is unusable."""
    try:
        validate_image_reference(image)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(2)
    return image


def print_errors(errors: list[Any], error_message: str) -> None:
    """Print a failure headline and its error details."""
    console.print(f"[red]Error:[/red] {escape(error_message)}")
    for error in errors:
        console.print(f"  {escape(str(error))}")


def output_json(data: dict[str, Any] | BaseModel, output: Path | None = None) -> None:
    """Output data as JSON to console or file.

    Args:
        data: Data to output (dict or Pydantic model)
        output: Optional output file path
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)

    json_str = json.dumps(data, indent=2, default=str)

    if output:
        output.write_text(json_str)
        console.print(f"Report written to {output}")
    else:
        console.print_json(json_str)
