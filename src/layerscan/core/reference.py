"""Image reference parsing.

Handles the reference forms accepted by ``docker pull``::

    debian
    debian:jessie
    ubuntu@sha256:45b23dee08af5e43a7fea6c4cf9c25ccf269ee113168c19722f87876677c5cb2
    myregistry.local:5000/testing/test-image
"""

from __future__ import annotations

from urllib.parse import urlsplit

from layerscan.models.image import ImageIdentifier

DIGEST_SEPARATOR = "@sha256:"
DEFAULT_TAG = "latest"


def parse_image_name(full_name: str | None) -> ImageIdentifier:
    """Parse an image reference into registry, repo, tag and digest.

    Each step strips what it matched before the next one runs, so the
    order (registry, digest, tag) matters. Whatever is left is the repo.

    Args:
        full_name: Image reference, may be empty

    Returns:
        The parsed identifier; all fields are empty for an empty reference
    """
    if not full_name:
        return ImageIdentifier()

    name = full_name
    registry = ""
    digest = ""
    tag = ""

    if "/" in name and ("." in name or ":" in name):
        first = name.split("/")[0]
        if urlsplit(name).path != name or "." in first or ":" in first:
            registry = first
            name = name.replace(first + "/", "", 1)

    if DIGEST_SEPARATOR in name:
        digest = name.split(DIGEST_SEPARATOR)[-1]
        name = name.replace(DIGEST_SEPARATOR + digest, "", 1)

    if ":" in name:
        tag = name.split(":")[-1]
        name = name.replace(":" + tag, "", 1)

    return ImageIdentifier(registry=registry, repo=name, tag=tag, digest=digest)


def normalize_reference(full_name: str) -> str:
    """Pin an unversioned reference to the latest tag.

    A reference with neither a tag nor a digest gets ``:latest`` appended;
    anything else is returned unchanged.
    """
    if parse_image_name(full_name).has_version:
        return full_name
    return f"{full_name}:{DEFAULT_TAG}"
