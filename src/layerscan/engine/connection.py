"""Docker engine connection handling."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable

import requests
from docker import APIClient
from docker.constants import DEFAULT_DOCKER_API_VERSION
from docker.errors import DockerException
from docker.tls import TLSConfig
from pydantic import BaseModel, Field

from layerscan.utils.config import EngineConfig, get_config
from layerscan.utils.errors import ConfigurationError
from layerscan.utils.logging import get_logger

logger = get_logger(__name__)

UNIX_SOCKET_URL = "unix:///var/run/docker.sock"
NPIPE_URL = "npipe:////./pipe/docker_engine"

CERT_FILE = "cert.pem"
KEY_FILE = "key.pem"
CA_FILE = "ca.pem"


def default_base_url(platform: str | None = None) -> str:
    """Local engine socket for the current OS."""
    platform = platform or sys.platform
    return NPIPE_URL if platform.startswith("win") else UNIX_SOCKET_URL


class ConnectionOptions(BaseModel):
    """Where and how to reach the engine."""

    model_config = {"frozen": True}

    base_url: str = Field(description="Socket or host URL of the engine")
    client_cert: tuple[str, str] | None = Field(default=None, description="TLS client cert and key paths")
    ca_cert: str | None = Field(default=None, description="CA bundle used when verifying the engine")
    verify: bool = Field(default=False, description="Verify the engine certificate")
    api_version: str = Field(default=DEFAULT_DOCKER_API_VERSION, description="Engine API version")
    timeout: int | None = Field(default=None, description="Request timeout in seconds")

    @property
    def uses_tls(self) -> bool:
        return self.client_cert is not None

    @classmethod
    def from_config(cls, config: EngineConfig, platform: str | None = None) -> "ConnectionOptions":
        """Resolve connection options from the engine configuration.

        Without a host the local socket is used. With a host and a cert
        directory, ``cert.pem`` and ``key.pem`` from that directory become
        the TLS client identity. A host without a cert directory simply
        gets no TLS material.

        Raises:
            ConfigurationError: If a configured cert file cannot be read
        """
        api_version = config.api_version or DEFAULT_DOCKER_API_VERSION

        if not config.host:
            return cls(
                base_url=default_base_url(platform),
                api_version=api_version,
                timeout=config.timeout,
            )

        client_cert = None
        ca_cert = None
        if config.cert_path:
            cert_dir = Path(config.cert_path)
            cert = _readable_file(cert_dir / CERT_FILE)
            key = _readable_file(cert_dir / KEY_FILE)
            client_cert = (cert, key)
            if config.tls_verify:
                ca_cert = _readable_file(cert_dir / CA_FILE)

        return cls(
            base_url=config.host,
            client_cert=client_cert,
            ca_cert=ca_cert,
            verify=config.tls_verify and ca_cert is not None,
            api_version=api_version,
            timeout=config.timeout,
        )


def _readable_file(path: Path) -> str:
    if not path.is_file() or not os.access(path, os.R_OK):
        raise ConfigurationError(f"Unable to read TLS file: {path}", config_key="engine.cert_path")
    return str(path)


def _engine_not_running(exc: BaseException) -> bool:
    """Check an exception chain for a refused connection or a missing socket."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, (ConnectionRefusedError, FileNotFoundError)):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__

    text = str(exc).lower()
    return "connection refused" in text or "no such file or directory" in text


ClientFactory = Callable[[ConnectionOptions], Any]


def build_client(options: ConnectionOptions) -> APIClient:
    """Create a low-level Docker API client for the given options.

    No request is made here; the explicit API version keeps the client
    from probing the engine on construction.
    """
    tls: TLSConfig | bool = False
    if options.client_cert is not None:
        try:
            tls = TLSConfig(
                client_cert=options.client_cert,
                ca_cert=options.ca_cert,
                verify=options.verify,
            )
        except DockerException as e:
            raise ConfigurationError(f"Invalid TLS configuration: {e}", config_key="engine.cert_path")

    return APIClient(
        base_url=options.base_url,
        version=options.api_version,
        timeout=options.timeout,
        tls=tls,
    )


class EngineConnection:
    """A handle on one engine, owned by whoever constructs it.

    The engine is pinged on the first call to :meth:`get`. A successful
    ping keeps the client for the lifetime of the handle. A failed ping is
    not retried: the handle stays unset and :meth:`get` keeps returning
    None until :meth:`reset` is called.

    Example:
        connection = EngineConnection.from_config(load_config())
        client = connection.get()
        if client is None:
            ...  # engine unreachable
    """

    def __init__(
        self,
        options: ConnectionOptions | None = None,
        client_factory: ClientFactory = build_client,
    ) -> None:
        self._options = options or ConnectionOptions.from_config(get_config().engine)
        self._client_factory = client_factory
        self._client: Any = None
        self._attempted = False

    @classmethod
    def from_config(cls, config: Any) -> "EngineConnection":
        """Create a handle from a LayerScanConfig or an EngineConfig."""
        engine = getattr(config, "engine", config)
        return cls(ConnectionOptions.from_config(engine))

    @property
    def options(self) -> ConnectionOptions:
        return self._options

    @property
    def attempted(self) -> bool:
        return self._attempted

    @property
    def connected(self) -> bool:
        return self._client is not None

    def get(self) -> Any:
        """Return the engine client, pinging the engine on first use.

        Returns:
            The client, or None if the engine could not be reached
        """
        if self._client is None and not self._attempted:
            self._attempted = True
            self._client = self._connect()
        return self._client

    def reset(self) -> None:
        """Drop the client and allow a fresh connection attempt."""
        self.close()
        self._attempted = False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _connect(self) -> Any:
        # Configuration faults propagate from here
        client = self._client_factory(self._options)
        base_url = self._options.base_url

        try:
            alive = client.ping()
        except (DockerException, requests.exceptions.RequestException, OSError) as e:
            if _engine_not_running(e):
                logger.warning("Ensure docker service or Docker for Desktop is running (%s)", base_url)
            else:
                logger.error("Unable to reach the engine at %s: %s", base_url, e)
            client.close()
            return None

        if not alive:
            logger.error("Engine at %s did not answer the liveness probe", base_url)
            client.close()
            return None

        logger.debug("Connected to engine at %s (API %s)", base_url, self._options.api_version)
        return client

    def __enter__(self) -> "EngineConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"EngineConnection(base_url='{self._options.base_url}', connected={self.connected})"
