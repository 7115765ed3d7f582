"""Logging for the engine: one ``content_agent`` logger tree, silent until the host configures it."""

import logging
import sys
from typing import Any, MutableMapping, Optional, TextIO, Tuple

ROOT_LOGGER_NAME = "content_agent"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_OWN_HANDLER = "_content_agent_stream"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the engine root logger or a logger below it.

    ``get_logger(__name__)`` inside the package resolves to the module's own logger;
    other names are nested under the root, e.g. ``get_logger("reactions")``.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class RunLogger(logging.LoggerAdapter):
    """Prefixes every record with the agent and trigger scope of one run."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['agent']}/{self.extra['scope']}] {msg}", kwargs


def run_logger(logger: logging.Logger, agent_id: str, scope: str) -> RunLogger:
    return RunLogger(logger, {"agent": agent_id, "scope": scope})


def setup_logging(
    level: int = logging.INFO,
    format_str: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Send engine logs to a stream (stdout by default).

    Meant for scripts such as the CLI example; a hosting application normally
    configures logging itself. Calling it again reconfigures the handler it added
    earlier instead of adding another one, whatever other handlers the host attached.

    Args:
        level: Level set on the engine root logger.
        format_str: Log format string.
        stream: Target stream. Used only when the handler is first created.

    Returns:
        The engine's stream handler.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handler = next((h for h in root.handlers if getattr(h, _OWN_HANDLER, False)), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stdout)
        setattr(handler, _OWN_HANDLER, True)
        root.addHandler(handler)

    handler.setFormatter(logging.Formatter(format_str))
    root.setLevel(level)
    return handler


if not any(isinstance(h, logging.NullHandler) for h in get_logger().handlers):
    get_logger().addHandler(logging.NullHandler())
