"""Data models for layerscan."""

from layerscan.models.common import ErrorDetail, ResultStatus
from layerscan.models.image import ExportResult, ImageIdentifier, ManifestEntry
from layerscan.models.scan import (
    ExportOutcome,
    ResolveResult,
    ResolveState,
    ResolveTransition,
)

__all__ = [
    # Common
    "ErrorDetail",
    "ResultStatus",
    # Image
    "ImageIdentifier",
    "ManifestEntry",
    "ExportResult",
    # Outcomes
    "ResolveState",
    "ResolveTransition",
    "ResolveResult",
    "ExportOutcome",
]
