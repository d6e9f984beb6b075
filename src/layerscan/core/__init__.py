"""Core image resolution, export and discovery."""

from layerscan.core.discovery import PACKAGE_MARKERS, get_dirs, get_pkg_path_list
from layerscan.core.exporter import ImageExporter, extract_archive, read_manifest
from layerscan.core.reference import normalize_reference, parse_image_name
from layerscan.core.resolver import ImageResolver

__all__ = [
    "PACKAGE_MARKERS",
    "get_dirs",
    "get_pkg_path_list",
    "ImageExporter",
    "extract_archive",
    "read_manifest",
    "normalize_reference",
    "parse_image_name",
    "ImageResolver",
]
