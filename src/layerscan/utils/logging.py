"""Logging setup for the layerscan logger tree."""

import logging
import sys
from typing import IO, Any

from layerscan.utils.config import LoggingConfig

PACKAGE_LOGGER = "layerscan"

PLAIN_FORMAT = "%(levelname)s: %(message)s"
STRUCTURED_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _render_value(value: Any) -> str:
    text = str(value)
    if not text or any(c.isspace() for c in text) or "=" in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class ContextFormatter(logging.Formatter):
    """Formatter that renders the context attached by :class:`ContextAdapter`.

    Structured output appends ``key=value`` pairs; plain output prefixes
    the message with the image being worked on, if any.
    """

    def __init__(self, fmt: str | None = None, structured: bool = False) -> None:
        super().__init__(fmt or (STRUCTURED_FORMAT if structured else PLAIN_FORMAT))
        self.structured = structured

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None) or {}
        if not context:
            return message

        if self.structured:
            pairs = " ".join(f"{k}={_render_value(v)}" for k, v in sorted(context.items()))
            return f"{message} {pairs}"

        image = context.get("image")
        if image:
            level_prefix = f"{record.levelname}: "
            if message.startswith(level_prefix):
                return f"{level_prefix}[{image}] {message[len(level_prefix):]}"
            return f"[{image}] {message}"
        return message


def select_level(config: LoggingConfig, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the effective level from command-line flags and configuration.

    ``--verbose`` wins over ``--quiet``, and both win over the config file
    and the debug environment switches.
    """
    if verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return config.effective_level


def configure_logging(
    level: str = "INFO",
    structured: bool = False,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach a single stderr handler to the ``layerscan`` logger.

    Calling it again replaces the previous handler, so the CLI callback
    can run once per invocation.

    Args:
        level: Level name, case-insensitive
        structured: Timestamped output with ``key=value`` context
        stream: Destination, stderr by default

    Returns:
        The installed handler
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ContextFormatter(structured=structured))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    logger.handlers = [handler]
    logger.propagate = False
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the ``layerscan`` logger."""
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


class ContextAdapter(logging.LoggerAdapter):
    """Adds fixed context, such as the image reference, to every record."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger_with_context(name: str, **context: Any) -> ContextAdapter:
    """Get a logger that tags its records with the given context.

    Example:
        log = get_logger_with_context(__name__, image="debian:latest")
        log.info("Extracting layers")
    """
    return ContextAdapter(get_logger(name), context)
