"""
Structured logging configuration for FORMA jobs.

Provides:
- FormaLogger: Structured logger with context binding
- get_logger: Get a logger for a specific component
- configure_logging: Configure logging output format

Operators log per-key events (a tile, a window, a pixel group) as
snake_case event names with keyword context, rendered by structlog.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional

import structlog


class FormaLogger:
    """
    Structured logger for FORMA operators.

    Example:
        log = FormaLogger("timeseries")
        log = log.bind(dataset="ndvi", tile="008006")

        log.info("reconstruct_started", chunks=24)
        log.warning("reconstruct_failed", kind="InconsistentChunkWidth")
    """

    def __init__(
        self,
        component: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the logger.

        Args:
            component: Component name (e.g., "engine", "windows")
            context: Initial context bindings
        """
        self._component = component
        self._context = context or {}
        self._logger = structlog.get_logger(f"forma.{component}")
        if self._context:
            self._logger = self._logger.bind(**self._context)

    @property
    def component(self) -> str:
        return self._component

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def bind(self, **kwargs: Any) -> "FormaLogger":
        """
        Create a new logger with additional context bindings.

        Args:
            **kwargs: Key-value pairs to bind to the logger

        Returns:
            New FormaLogger with bound context
        """
        return FormaLogger(self._component, {**self._context, **kwargs})

    def debug(self, event: str, **kwargs: Any) -> None:
        self._logger.debug(event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._logger.warning(event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._logger.error(event, **kwargs)

    def exception(self, event: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(event, **kwargs)


def get_logger(component: str) -> FormaLogger:
    """
    Get a logger for a specific component.

    Example:
        log = get_logger("engine")
        log.info("group_started", key=(8, 6))
    """
    return FormaLogger(component)


def configure_logging(
    level: str = "INFO",
    format: str = "json",
    output: str = "stderr",
) -> None:
    """
    Configure logging output.

    Args:
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
        format: Output format ("json" or "console")
        output: Output destination ("stderr", "stdout", or file path)

    Example:
        # JSON output for batch runs
        configure_logging(level="INFO", format="json")

        # Pretty console output for development
        configure_logging(level="DEBUG", format="console")
    """
    level_num = getattr(logging, level.upper(), logging.INFO)

    if output == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    elif output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(output)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger("forma")
    root_logger.setLevel(level_num)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if format == "json":
        processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
