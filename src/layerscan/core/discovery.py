"""Discovery of package-manager directories in an exploded image."""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple

from layerscan.models.image import ExportResult
from layerscan.utils.errors import safe_get
from layerscan.utils.logging import get_logger

logger = get_logger(__name__)

# Searched below the image working directory, in this order
KNOWN_SYSTEM_PATHS = (
    "/usr/lib",
    "/usr/lib64",
    "/usr/local/lib",
    "/usr/local/lib64",
    "/opt",
    "/home",
    "/usr/share",
    "/var/www/html",
    "/var/lib",
    "/mnt",
    "/app",
    "/data",
    "/srv",
)


class PackageMarker(NamedTuple):
    """A directory name used by a language package manager."""

    name: str
    hidden: bool


PACKAGE_MARKERS = (
    PackageMarker("site-packages", hidden=False),
    PackageMarker("gems", hidden=False),
    PackageMarker(".cargo", hidden=True),
    PackageMarker(".composer", hidden=True),
)


def get_dirs(dir_path: Path | str, dir_name: str, hidden: bool = False) -> list[Path]:
    """Find every directory below ``dir_path`` named ``dir_name``.

    Names are compared case-insensitively and symlinks are not followed.
    Dot-directories are only searched when ``hidden`` is set. Unreadable
    directories are skipped, so the result is empty rather than an error.

    Args:
        dir_path: Root directory for the search
        dir_name: Directory name to look for
        hidden: Whether to descend into and match hidden directories

    Returns:
        Matching directories in walk order
    """
    wanted = dir_name.lower()
    matches: list[Path] = []

    def on_error(error: OSError) -> None:
        logger.debug("Skipping %s: %s", error.filename, error)

    for root, dirnames, _ in os.walk(dir_path, onerror=on_error, followlinks=False):
        if not hidden:
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        dirnames.sort()
        for dirname in dirnames:
            if dirname.lower() == wanted:
                matches.append(Path(root) / dirname)

    return matches


def working_dir_of(export_result: ExportResult) -> str:
    """The image working directory, from the last layer config or the inspect data."""
    working_dir = safe_get(export_result.last_layer_config, "config", "WorkingDir")
    if not working_dir:
        working_dir = safe_get(export_result.inspect_data, "Config", "WorkingDir")
    return working_dir or ""


def known_roots(export_result: ExportResult) -> list[Path]:
    """The fixed search roots, mapped into the exploded directory."""
    exploded = Path(export_result.all_layers_exploded_dir)
    roots = [working_dir_of(export_result), *KNOWN_SYSTEM_PATHS]
    return [exploded / root.lstrip("/") for root in roots]


def get_pkg_path_list(export_result: ExportResult) -> list[Path]:
    """Build the ordered list of candidate package directories.

    Every known root is listed, whether it exists or not, followed by the
    matches for each package marker below it. Duplicates across roots are
    kept.
    """
    path_list: list[Path] = []
    for root in known_roots(export_result):
        path_list.append(root)
        for marker in PACKAGE_MARKERS:
            path_list.extend(get_dirs(root, marker.name, marker.hidden))
    return path_list
