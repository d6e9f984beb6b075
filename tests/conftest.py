"""Shared test fixtures for layerscan tests."""

import io
import json
import logging
import tarfile
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from layerscan.engine.base import EngineNotFoundError
from layerscan.engine.connection import ConnectionOptions
from layerscan.engine.gateway import RequestGateway
from layerscan.utils.config import set_config


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep the host's Docker settings and config files out of the tests."""
    for name in ("DOCKER_HOST", "DOCKER_CERT_PATH", "DOCKER_TLS_VERIFY", "SCAN_DEBUG_MODE",
                 "SHIFTLEFT_LOGGING_LEVEL", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    set_config(None)
    # configure_logging() detaches the package logger from the root logger
    package_logger = logging.getLogger("layerscan")
    package_logger.handlers = []
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
    yield
    set_config(None)


def _tar_bytes(files: dict[str, bytes | str]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as archive:
        for name, content in files.items():
            if isinstance(content, str):
                info = tarfile.TarInfo(name)
                info.type = tarfile.SYMTYPE
                info.linkname = content
                info.mode = 0o777
                archive.addfile(info)
                continue
            if name.endswith("/"):
                info = tarfile.TarInfo(name.rstrip("/"))
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                archive.addfile(info)
                continue
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o644
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture
def make_tar() -> Callable[[dict[str, bytes]], bytes]:
    """Build an uncompressed tar archive from a name -> content mapping.

    Names ending in "/" become directories; str values become symlinks
    pointing at that target.
    """
    return _tar_bytes


@pytest.fixture
def make_image_archive() -> Callable[..., bytes]:
    """Build a ``docker save`` style archive.

    Each layer is a name -> content mapping stored as ``layerN/layer.tar``.
    ``layer_configs`` maps a layer index to the JSON written next to it.
    ``manifest`` overrides the generated manifest; ``None`` for no manifest.
    """

    def build(
        layers: list[dict[str, bytes]],
        layer_configs: dict[int, dict[str, Any]] | None = None,
        manifest: Any = "default",
        extra_entries: int = 0,
    ) -> bytes:
        files: dict[str, bytes] = {}
        layer_paths = []
        for index, layer in enumerate(layers):
            layer_path = f"layer{index}/layer.tar"
            layer_paths.append(layer_path)
            files[layer_path] = _tar_bytes(layer)
        for index, config in (layer_configs or {}).items():
            files[f"layer{index}/json"] = json.dumps(config).encode()

        if manifest == "default":
            entries = [
                {"Config": f"other{i}.json", "RepoTags": [f"other:{i}"], "Layers": []}
                for i in range(extra_entries)
            ]
            entries.append({"Config": "config.json", "RepoTags": ["demo:latest"], "Layers": layer_paths})
            manifest = entries
        if manifest is not None:
            files["manifest.json"] = json.dumps(manifest).encode()
        return _tar_bytes(files)

    return build


class FakeRaw(io.BytesIO):
    """Stands in for the urllib3 response body."""

    decode_content = False


class FakeResponse:
    """Minimal streaming response with a readable ``raw`` body."""

    def __init__(self, body: bytes) -> None:
        self.raw = FakeRaw(body)
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@pytest.fixture
def fake_response() -> Callable[[bytes], FakeResponse]:
    return FakeResponse


@pytest.fixture
def inspect_data() -> dict[str, Any]:
    """Sample engine inspect answer."""
    return {
        "Id": "sha256:4f3c1a2b",
        "RepoTags": ["demo:latest"],
        "Os": "linux",
        "Architecture": "amd64",
        "Config": {"WorkingDir": "/srv/app", "Env": ["PATH=/usr/bin"]},
    }


@pytest.fixture
def fake_gateway() -> Callable[..., MagicMock]:
    """Build a gateway double that answers from a path -> answer mapping.

    Unknown paths raise EngineNotFoundError. Answers that are exceptions
    are raised. ``archive`` is served from ``stream`` for export paths.
    """

    def build(answers: dict[str, Any] | None = None, archive: bytes | None = None) -> MagicMock:
        answers = answers or {}
        gateway = MagicMock(spec=RequestGateway)
        gateway.connection.options = ConnectionOptions(base_url="unix:///var/run/docker.sock")

        def request(path: str, method: str = "GET") -> Any:
            key = f"{method} {path}"
            answer = answers[key] if key in answers else answers.get(path, EngineNotFoundError(path))
            if isinstance(answer, Exception):
                raise answer
            return answer

        def stream(path: str, method: str = "GET") -> Any:
            if archive is None:
                raise EngineNotFoundError(path)
            return FakeResponse(archive)

        gateway.request.side_effect = request
        gateway.stream.side_effect = stream
        return gateway

    return build
