"""Image export and layer extraction."""

from __future__ import annotations

import json
import os
import tarfile
import tempfile
from pathlib import Path
from typing import IO, Any

import requests
import urllib3
from pydantic import ValidationError as PydanticValidationError

from layerscan.core.discovery import get_pkg_path_list
from layerscan.core.reference import normalize_reference
from layerscan.core.resolver import ImageResolver
from layerscan.engine.base import EngineUnavailableError
from layerscan.engine.connection import EngineConnection
from layerscan.engine.gateway import RequestGateway
from layerscan.models.common import ErrorDetail, ResultStatus
from layerscan.models.image import ExportResult, ManifestEntry
from layerscan.models.scan import ExportOutcome
from layerscan.utils.errors import ExportError, LayerScanError, ManifestError
from layerscan.utils.logging import get_logger, get_logger_with_context

logger = get_logger(__name__)

TEMP_DIR_PREFIX = "docker-images-"
EXPLODED_DIR_NAME = "all-layers"
MANIFEST_FILE = "manifest.json"
LAYER_ARCHIVE_NAME = "layer.tar"
LAYER_CONFIG_NAME = "json"


def _unlink_replaced_symlink(member: tarfile.TarInfo, dest_path: str) -> None:
    """Remove a symlink left by an earlier layer where ``member`` will land.

    Both the destination check and the write would otherwise go through
    the old link, which in an image root often points at an absolute
    path such as ``/etc/alternatives/awk`` on the host.
    """
    name = member.name.strip("/" + os.sep)
    if name in ("", "."):
        return
    target = os.path.join(dest_path, name)
    if not os.path.islink(target):
        return
    dest_real = os.path.realpath(dest_path)
    parent_real = os.path.realpath(os.path.dirname(target))
    if os.path.commonpath([parent_real, dest_real]) != dest_real:
        # Left for tar_filter to reject
        return
    os.unlink(target)


def _extraction_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo | None:
    # Device nodes and FIFOs cannot be recreated without privileges
    if member.isdev():
        return None
    dest_path = os.fspath(dest_path)
    _unlink_replaced_symlink(member, dest_path)
    return tarfile.tar_filter(member, dest_path)


def extract_archive(fileobj: IO[bytes], dest: Path) -> None:
    """Extract a tar stream into ``dest`` without seeking.

    Members are written in archive order, so a later member replaces an
    earlier one at the same path. Compression is detected automatically.

    Raises:
        tarfile.TarError: If the stream is not a valid archive
        OSError: If a member cannot be written
    """
    with tarfile.open(fileobj=fileobj, mode="r|*") as archive:
        archive.extractall(dest, filter=_extraction_filter)


def read_manifest(all_layers_dir: Path) -> list[ManifestEntry]:
    """Read ``manifest.json`` from an extracted ``docker save`` archive.

    Raises:
        ManifestError: If the file is missing, unreadable or not a list of descriptors
    """
    manifest_file = all_layers_dir / MANIFEST_FILE
    if not all_layers_dir.is_dir() or not manifest_file.is_file():
        raise ManifestError(f"Unable to export image to {all_layers_dir}", path=str(manifest_file))

    try:
        data = json.loads(manifest_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ManifestError(f"Invalid manifest: {e}", path=str(manifest_file))

    if not isinstance(data, list) or not data:
        raise ManifestError("Manifest is not a list of image descriptors", path=str(manifest_file))

    try:
        return [ManifestEntry.model_validate(entry) for entry in data]
    except PydanticValidationError as e:
        raise ManifestError(f"Invalid manifest entry: {e}", path=str(manifest_file))


def layer_config_path(all_layers_dir: Path, layer: str) -> Path | None:
    """Path of the JSON config that sits next to a ``<id>/layer.tar`` archive.

    Archives in the OCI layout list layers as ``blobs/sha256/<hex>`` and
    keep no per-layer config, so None is returned for those.
    """
    if not layer.endswith(LAYER_ARCHIVE_NAME):
        return None
    return all_layers_dir / (layer[: -len(LAYER_ARCHIVE_NAME)] + LAYER_CONFIG_NAME)


def read_layer_config(path: Path | None) -> dict[str, Any]:
    """Parse a layer config file, or return an empty config if there is none."""
    if path is None or not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise ExportError(f"Invalid layer config: {e}", path=str(path))
    return data if isinstance(data, dict) else {}


class ImageExporter:
    """Exports an image from the engine and rebuilds its filesystem on disk.

    The image is resolved first (pulling it if necessary), then the full
    ``docker save`` archive is streamed straight into a tar extractor, and
    every layer listed in the manifest is applied, in order, to a single
    exploded directory.

    Example:
        exporter = ImageExporter.from_config(load_config())
        outcome = exporter.export("python:3.12-slim")
        if outcome.success:
            for path in outcome.result.pkg_path_list:
                print(path)
    """

    def __init__(
        self,
        gateway: RequestGateway,
        resolver: ImageResolver | None = None,
        temp_root: Path | str | None = None,
    ) -> None:
        self._gateway = gateway
        self._resolver = resolver or ImageResolver(gateway)
        self._temp_root = Path(temp_root) if temp_root else None

    @classmethod
    def from_config(cls, config: Any, connection: EngineConnection | None = None) -> "ImageExporter":
        """Wire a connection, gateway and resolver from a LayerScanConfig."""
        connection = connection or EngineConnection.from_config(config)
        return cls(RequestGateway(connection), temp_root=config.export.temp_dir)

    @property
    def resolver(self) -> ImageResolver:
        return self._resolver

    def export(self, full_name: str) -> ExportOutcome:
        """Export an image and locate its package directories.

        Temporary directories are left on disk on failure as well as on
        success; removing them is up to the caller.
        """
        resolution = self._resolver.resolve(full_name)
        if not resolution.success:
            return ExportOutcome(
                reference=full_name,
                status=resolution.status,
                resolution=resolution,
                errors=resolution.errors,
            )

        reference = normalize_reference(full_name)
        warnings: list[str] = []
        try:
            result = self._export(reference, resolution.inspect_data or {}, warnings)
        except LayerScanError as e:
            logger.error("Export of %s failed: %s", reference, e.message)
            return self._failed(full_name, resolution, [e.to_error_detail()], warnings)
        except (OSError, tarfile.TarError) as e:
            logger.error("Export of %s failed: %s", reference, e)
            error = ExportError(str(e), path=getattr(e, "filename", None))
            return self._failed(full_name, resolution, [error.to_error_detail()], warnings)

        return ExportOutcome(
            reference=full_name,
            status=ResultStatus.FOUND,
            result=result,
            resolution=resolution,
            warnings=warnings,
        )

    def export_image(self, full_name: str) -> ExportResult | None:
        """Export an image, returning None on any failure."""
        return self.export(full_name).result

    def _export(self, reference: str, inspect_data: dict[str, Any], warnings: list[str]) -> ExportResult:
        all_layers_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=self._temp_root))
        exploded_dir = all_layers_dir / EXPLODED_DIR_NAME
        exploded_dir.mkdir()
        log = get_logger_with_context(__name__, image=reference)

        log.info("About to export image %s to %s", reference, all_layers_dir)
        self._stream_export(reference, all_layers_dir)

        manifest = read_manifest(all_layers_dir)
        log.debug("Image %s successfully exported to directory %s", reference, all_layers_dir)
        log.debug("Manifest: %s", [entry.model_dump(by_alias=True) for entry in manifest])
        if len(manifest) != 1:
            message = (
                f"Manifest lists {len(manifest)} images. Only the last one would be used"
            )
            log.warning(message)
            warnings.append(message)

        layers = manifest[-1].layers
        if not layers:
            raise ManifestError("Manifest lists no layers", path=str(all_layers_dir / MANIFEST_FILE))

        for layer in layers:
            log.debug("Extracting %s to %s", layer, exploded_dir)
            with open(all_layers_dir / layer, "rb") as fh:
                extract_archive(fh, exploded_dir)

        last_layer_config = read_layer_config(layer_config_path(all_layers_dir, layers[-1]))

        result = ExportResult(
            inspect_data=inspect_data,
            manifest=manifest,
            all_layers_dir=all_layers_dir,
            all_layers_exploded_dir=exploded_dir,
            last_layer_config=last_layer_config,
        )
        result.pkg_path_list = get_pkg_path_list(result)
        return result

    def _stream_export(self, reference: str, dest: Path) -> None:
        response = self._gateway.stream(f"images/{reference}/get")
        if response is None:
            raise EngineUnavailableError(self._gateway.connection.options.base_url)
        with response:
            response.raw.decode_content = True
            try:
                extract_archive(response.raw, dest)
            except (urllib3.exceptions.HTTPError, requests.exceptions.RequestException) as e:
                raise ExportError(f"Export stream for {reference} broke off: {e}", path=str(dest)) from e

    @staticmethod
    def _failed(
        full_name: str,
        resolution: Any,
        errors: list[ErrorDetail],
        warnings: list[str],
    ) -> ExportOutcome:
        return ExportOutcome(
            reference=full_name,
            status=ResultStatus.ERROR,
            resolution=resolution,
            errors=errors,
            warnings=warnings,
        )
