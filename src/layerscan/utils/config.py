"""Configuration file and environment support for layerscan."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import BaseModel, Field

DEBUG_ENV_VARS = ("SCAN_DEBUG_MODE", "SHIFTLEFT_LOGGING_LEVEL")


class EngineConfig(BaseModel):
    """Docker engine connection settings."""

    host: str | None = Field(default=None, description="Remote engine URL (DOCKER_HOST)")
    cert_path: str | None = Field(
        default=None, description="Directory holding cert.pem/key.pem (DOCKER_CERT_PATH)"
    )
    tls_verify: bool = Field(default=False, description="Verify the engine certificate against ca.pem")
    api_version: str | None = Field(default=None, description="Engine API version to request")
    timeout: int | None = Field(default=None, description="Request timeout in seconds, None to wait forever")


class ExportConfig(BaseModel):
    """Export pipeline settings."""

    temp_dir: str | None = Field(
        default=None, description="Parent directory for export temp dirs (system temp if unset)"
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", description="Log level")
    debug: bool = Field(default=False, description="Debug mode, logs engine responses")
    structured: bool = Field(default=False, description="Structured log format")

    @property
    def effective_level(self) -> str:
        return "DEBUG" if self.debug else self.level.upper()


class LayerScanConfig(BaseModel):
    """Main configuration for layerscan."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_config_paths() -> list[Path]:
    """Get possible configuration file paths.

    Returns:
        List of paths to check for configuration files
    """
    paths = []

    paths.append(Path.cwd() / ".layerscan.yaml")
    paths.append(Path.cwd() / ".layerscan.yml")

    home = Path.home()
    paths.append(home / ".layerscan" / "config.yaml")
    paths.append(home / ".config" / "layerscan" / "config.yaml")

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        paths.append(Path(xdg_config) / "layerscan" / "config.yaml")

    return paths


def apply_env_overrides(
    config: LayerScanConfig, environ: Mapping[str, str] | None = None
) -> LayerScanConfig:
    """Overlay the Docker client environment variables on a configuration.

    DOCKER_HOST, DOCKER_CERT_PATH and DOCKER_TLS_VERIFY follow the docker CLI
    conventions. Debug mode is switched on when SCAN_DEBUG_MODE or
    SHIFTLEFT_LOGGING_LEVEL is "debug".
    """
    env = os.environ if environ is None else environ

    engine_updates: dict[str, object] = {}
    if env.get("DOCKER_HOST"):
        engine_updates["host"] = env["DOCKER_HOST"]
    if env.get("DOCKER_CERT_PATH"):
        engine_updates["cert_path"] = env["DOCKER_CERT_PATH"]
    if env.get("DOCKER_TLS_VERIFY"):
        engine_updates["tls_verify"] = env["DOCKER_TLS_VERIFY"] not in ("0", "false", "")

    logging_updates: dict[str, object] = {}
    if any(env.get(name, "").lower() == "debug" for name in DEBUG_ENV_VARS):
        logging_updates["debug"] = True

    return config.model_copy(
        update={
            "engine": config.engine.model_copy(update=engine_updates),
            "logging": config.logging.model_copy(update=logging_updates),
        }
    )


def load_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LayerScanConfig:
    """Load configuration from file, then apply environment overrides.

    Args:
        config_path: Explicit path to config file. If None, searches default locations.
        environ: Environment mapping, defaults to os.environ

    Returns:
        Loaded configuration
    """
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return apply_env_overrides(_load_config_file(path), environ)

    for path in get_config_paths():
        if path.exists():
            return apply_env_overrides(_load_config_file(path), environ)

    return apply_env_overrides(LayerScanConfig(), environ)


def _load_config_file(path: Path) -> LayerScanConfig:
    try:
        data = yaml.safe_load(path.read_text())
        if data is None:
            return LayerScanConfig()
        return LayerScanConfig.model_validate(data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except Exception as e:
        raise ValueError(f"Failed to load config file: {e}")


def save_config(config: LayerScanConfig, config_path: Path | str | None = None) -> Path:
    """Save configuration to file.

    Args:
        config: Configuration to save
        config_path: Path to save to. Defaults to ~/.layerscan/config.yaml

    Returns:
        Path where config was saved
    """
    if config_path is None:
        config_path = Path.home() / ".layerscan" / "config.yaml"
    else:
        config_path = Path(config_path)

    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", exclude_defaults=True)
    config_path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))

    return config_path


# Global config instance
_config: LayerScanConfig | None = None


def get_config() -> LayerScanConfig:
    """Get the global configuration instance, loading it on first call."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: LayerScanConfig | None) -> None:
    """Set (or with None, clear) the global configuration instance."""
    global _config
    _config = config
