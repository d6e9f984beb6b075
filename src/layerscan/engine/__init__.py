"""Docker engine access."""

from layerscan.engine.base import (
    EngineError,
    EngineNotFoundError,
    EngineRequestError,
    EngineUnavailableError,
)
from layerscan.engine.connection import ConnectionOptions, EngineConnection, build_client
from layerscan.engine.gateway import RequestGateway

__all__ = [
    "EngineError",
    "EngineNotFoundError",
    "EngineRequestError",
    "EngineUnavailableError",
    "ConnectionOptions",
    "EngineConnection",
    "build_client",
    "RequestGateway",
]
