"""Utility functions for layerscan."""

from layerscan.utils.logging import configure_logging, get_logger, get_logger_with_context, select_level
from layerscan.utils.errors import (
    LayerScanError,
    ImageNotFoundError,
    ValidationError,
    ConfigurationError,
    ExportError,
    ManifestError,
    validate_image_reference,
    safe_get,
)
from layerscan.utils.config import (
    LayerScanConfig,
    EngineConfig,
    ExportConfig,
    LoggingConfig,
    apply_env_overrides,
    load_config,
    save_config,
    get_config,
    set_config,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "get_logger_with_context",
    "select_level",
    # Errors
    "LayerScanError",
    "ImageNotFoundError",
    "ValidationError",
    "ConfigurationError",
    "ExportError",
    "ManifestError",
    "validate_image_reference",
    "safe_get",
    # Config
    "LayerScanConfig",
    "EngineConfig",
    "ExportConfig",
    "LoggingConfig",
    "apply_env_overrides",
    "load_config",
    "save_config",
    "get_config",
    "set_config",
]
