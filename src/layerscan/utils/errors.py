"""Error handling utilities for layerscan."""

from __future__ import annotations

from typing import Any

from layerscan.models.common import ErrorDetail


class LayerScanError(Exception):
    """Base exception for layerscan."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_error_detail(self) -> ErrorDetail:
        """Convert to ErrorDetail model."""
        return ErrorDetail(code=self.code, message=self.message, details=self.details)


class ImageNotFoundError(LayerScanError):
    """Image could not be found locally or after a pull."""

    def __init__(self, reference: str):
        super().__init__(
            f"Image not found: {reference}",
            code="IMAGE_NOT_FOUND",
            details={"reference": reference},
        )


class ValidationError(LayerScanError):
    """Validation failed."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ConfigurationError(LayerScanError):
    """Configuration error."""

    def __init__(self, message: str, config_key: str | None = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ExportError(LayerScanError):
    """Exporting or extracting an image failed."""

    def __init__(self, message: str, path: str | None = None):
        details = {"path": path} if path else {}
        super().__init__(message, code="EXPORT_ERROR", details=details)


class ManifestError(LayerScanError):
    """The exported manifest is missing or malformed."""

    def __init__(self, message: str, path: str | None = None):
        details = {"path": path} if path else {}
        super().__init__(message, code="MANIFEST_ERROR", details=details)


# Characters that would break out of the engine API path or query string
UNSAFE_REFERENCE_CHARS = frozenset("<>|\"'\\ ?#\t\n")


def validate_image_reference(reference: str) -> None:
    """Reject references that cannot be placed in an engine API path.

    Only obviously unusable input is refused here; whether the image
    exists is left to the engine.

    Raises:
        ValidationError: If the reference is empty, looks like an option
            or contains a character listed in ``UNSAFE_REFERENCE_CHARS``
    """
    if not reference:
        raise ValidationError("Image reference cannot be empty", field="reference")

    if reference.startswith("-"):
        raise ValidationError("Image reference cannot start with '-'", field="reference")

    bad = next((c for c in reference if c in UNSAFE_REFERENCE_CHARS), None)
    if bad is not None:
        raise ValidationError(
            f"Image reference {reference!r} contains invalid character: {bad!r}",
            field="reference",
        )


def safe_get(data: Any, *keys: str, default: Any = None) -> Any:
    """Walk nested engine JSON, returning ``default`` at the first gap.

    Example:
        safe_get(inspect_data, "Config", "WorkingDir", default="")
    """
    current = data
    for key in keys:
        if not isinstance(current, dict) or current.get(key) is None:
            return default
        current = current[key]
    return current
