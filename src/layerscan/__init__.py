"""layerscan: locate package directories inside container images.

layerscan gets an image from the local (or a remote) Docker engine,
pulling it when it is not present, exports it, rebuilds its layered
filesystem on disk and lists the directories that are likely to hold
language package installs for software-composition analysis:

- **Reference parsing**: split ``registry/repo:tag@sha256:digest`` references
- **Resolution**: local lookup first, pull on a miss, then re-inspect
- **Export**: stream ``docker save`` output and apply layers in order
- **Discovery**: find ``site-packages``, ``gems``, ``.cargo`` and ``.composer``

Usage:
    from layerscan import ImageExporter, load_config

    exporter = ImageExporter.from_config(load_config())
    outcome = exporter.export("python:3.12-slim")
    if outcome.success:
        print(outcome.result.pkg_path_list)

CLI:
    layerscan parse <image>
    layerscan inspect <image>
    layerscan export <image>
    layerscan remove <image>
"""

__version__ = "0.1.0"

from layerscan.core.discovery import get_dirs, get_pkg_path_list
from layerscan.core.exporter import ImageExporter
from layerscan.core.reference import normalize_reference, parse_image_name
from layerscan.core.resolver import ImageResolver
from layerscan.engine.connection import ConnectionOptions, EngineConnection
from layerscan.engine.gateway import RequestGateway
from layerscan.models.image import ExportResult, ImageIdentifier, ManifestEntry
from layerscan.models.scan import ExportOutcome, ResolveResult, ResolveState
from layerscan.utils.config import LayerScanConfig, load_config

__all__ = [
    "__version__",
    # Core
    "parse_image_name",
    "normalize_reference",
    "ImageResolver",
    "ImageExporter",
    "get_dirs",
    "get_pkg_path_list",
    # Engine
    "ConnectionOptions",
    "EngineConnection",
    "RequestGateway",
    # Models
    "ImageIdentifier",
    "ManifestEntry",
    "ExportResult",
    "ExportOutcome",
    "ResolveResult",
    "ResolveState",
    # Config
    "LayerScanConfig",
    "load_config",
]
