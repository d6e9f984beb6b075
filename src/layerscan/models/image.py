"""Image-related data models."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ImageIdentifier(BaseModel):
    """Structured form of an image reference such as ``registry:5000/repo:tag``."""

    model_config = {"frozen": True}

    registry: str = Field(default="", description="Registry host, possibly with port")
    repo: str = Field(default="", description="Repository left after stripping the other parts")
    tag: str = Field(default="", description="Image tag")
    digest: str = Field(default="", description="sha256 digest without the algorithm prefix")
    platform: str = Field(default="", description="Target platform")

    @property
    def has_version(self) -> bool:
        """Whether a tag or a digest pins the image version."""
        return bool(self.tag or self.digest)


class ManifestEntry(BaseModel):
    """One descriptor from the ``manifest.json`` of a ``docker save`` archive."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    config: str = Field(default="", alias="Config", description="Image config file path")
    repo_tags: list[str] | None = Field(default=None, alias="RepoTags", description="Tags in the archive")
    layers: list[str] = Field(default_factory=list, alias="Layers", description="Layer archive paths, base first")


class ExportResult(BaseModel):
    """An exported and exploded image on disk.

    The temporary directories belong to the caller; nothing in layerscan
    removes them.
    """

    inspect_data: dict[str, Any] = Field(default_factory=dict, description="Engine inspect response")
    manifest: list[ManifestEntry] = Field(default_factory=list, description="Parsed manifest.json")
    all_layers_dir: Path = Field(description="Root of the raw exported archive tree")
    all_layers_exploded_dir: Path = Field(description="Union of all layers extracted in order")
    last_layer_config: dict[str, Any] = Field(
        default_factory=dict, description="Config JSON of the terminal layer, empty if absent"
    )
    pkg_path_list: list[Path] = Field(default_factory=list, description="Candidate package directories")

    @property
    def layers(self) -> list[str]:
        """Layer paths of the authoritative (last) manifest entry."""
        if not self.manifest:
            return []
        return list(self.manifest[-1].layers)
