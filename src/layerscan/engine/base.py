"""Engine transport errors."""

from layerscan.utils.errors import LayerScanError


class EngineError(LayerScanError):
    """Base exception for engine operations."""

    def __init__(self, message: str, code: str = "ENGINE_ERROR", **details: object) -> None:
        super().__init__(message, code=code, details={k: v for k, v in details.items() if v is not None})


class EngineUnavailableError(EngineError):
    """No engine connection could be established."""

    def __init__(self, base_url: str | None = None) -> None:
        super().__init__(
            "Engine connection unavailable",
            code="CONNECTION_UNAVAILABLE",
            base_url=base_url,
        )


class EngineNotFoundError(EngineError):
    """The engine answered 404 for the requested object."""

    def __init__(self, path: str, explanation: str | None = None) -> None:
        message = f"Not found: {path}"
        if explanation:
            message = f"{message} ({explanation})"
        super().__init__(message, code="NOT_FOUND", path=path, status_code=404)
        self.path = path


class EngineRequestError(EngineError):
    """Any other failed request: non-2xx status, network fault or bad body."""

    def __init__(self, message: str, path: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, code="REQUEST_ERROR", path=path, status_code=status_code)
        self.path = path
        self.status_code = status_code
