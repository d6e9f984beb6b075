"""Single-request access to the engine API."""

from __future__ import annotations

from typing import Any

import requests

from layerscan.engine.base import EngineNotFoundError, EngineRequestError
from layerscan.engine.connection import EngineConnection
from layerscan.utils.logging import get_logger

logger = get_logger(__name__)


class RequestGateway:
    """Issues requests against an engine connection.

    ``GET`` bodies are decoded as JSON, every other verb returns text.
    Without a connection the gateway returns None instead of raising;
    transport failures and non-2xx answers are raised to the caller.

    Example:
        gateway = RequestGateway(EngineConnection())
        data = gateway.request("images/debian/json")
    """

    def __init__(self, connection: EngineConnection) -> None:
        self._connection = connection

    @property
    def connection(self) -> EngineConnection:
        return self._connection

    def request(self, path: str, method: str = "GET") -> Any:
        """Send one request and return the decoded body.

        Args:
            path: API path relative to the versioned root, e.g. ``images/debian/json``
            method: HTTP verb

        Returns:
            Parsed JSON for GET, text otherwise, or None without a connection

        Raises:
            EngineNotFoundError: On a 404 answer
            EngineRequestError: On any other failure
        """
        client = self._connection.get()
        if client is None:
            return None

        method = method.upper()
        response = self._send(client, path, method, stream=False)
        if method != "GET":
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise EngineRequestError(f"Invalid JSON from {path}: {e}", path=path) from e

    def stream(self, path: str, method: str = "GET") -> requests.Response | None:
        """Open a streaming response; the caller must close it.

        Returns:
            The response with an unread body, or None without a connection
        """
        client = self._connection.get()
        if client is None:
            return None
        return self._send(client, path, method.upper(), stream=True)

    def _send(self, client: Any, path: str, method: str, stream: bool) -> requests.Response:
        url = f"{client.base_url}/v{client.api_version}/{path.lstrip('/')}"
        logger.debug("%s %s", method, url)

        try:
            response = client.request(method, url, stream=stream, timeout=client.timeout)
        except requests.exceptions.RequestException as e:
            raise EngineRequestError(f"{method} {path} failed: {e}", path=path) from e

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            explanation = _explanation(response)
            response.close()
            if response.status_code == 404:
                raise EngineNotFoundError(path, explanation) from e
            raise EngineRequestError(
                f"{method} {path} returned {response.status_code}: {explanation or response.reason}",
                path=path,
                status_code=response.status_code,
            ) from e

        return response


def _explanation(response: requests.Response) -> str | None:
    """Pull the engine's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None
    if isinstance(body, dict):
        return body.get("message")
    return None
