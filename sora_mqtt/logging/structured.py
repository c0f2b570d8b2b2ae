"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

This module provides a structured logger that outputs JSON logs.

Design:
- JSON output (compatible with log aggregators)
- Thread-safe (uses standard logging module)
- Contextual metadata (component, mission_id, zone label, etc.)
- Type-safe events (LogEvent enum)

Example:
    >>> logger = StructuredLogger(component="composer")
    >>> logger.info(
    ...     event=LogEvent.ZONE_COMPOSED,
    ...     message="Composed contingency area",
    ...     metadata={'label': 'contingency', 'vertices': 36}
    ... )

Output:
    {
        "timestamp": "2025-10-24T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "composer",
        "event": "zone.composed",
        "message": "Composed contingency area",
        "metadata": {"label": "contingency", "vertices": 36}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .events import LogEvent

_default_level = logging.INFO


class StructuredLogger:
    """
    JSON structured logger.

    Wraps Python's logging module with structured metadata support.

    Attributes:
        component: Component name (e.g., "composer", "renderer")
        logger: Underlying Python logger instance

    Thread Safety:
        Thread-safe via Python's logging module.
    """

    def __init__(
        self,
        component: str,
        level: Optional[int] = None,
        logger_name: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component identifier (e.g., "composer")
            level: Logging level (default: set_default_level(), INFO)
            logger_name: Custom logger name (default: sora.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"sora.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level if level is not None else _default_level)

        # Configure JSON formatter if not already configured
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None
    ) -> None:
        """
        Internal log method with structured format.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
            exc_info: Exception for WARNING/ERROR logs
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        if metadata:
            log_entry['metadata'] = metadata

        if exc_info:
            log_entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        log_level = getattr(logging, level)
        self.logger.log(
            log_level,
            json.dumps(log_entry, default=str),
            exc_info=exc_info if level == 'ERROR' else None
        )

    def debug(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log DEBUG level message."""
        self._log('DEBUG', event, message, metadata)

    def info(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log INFO level message.

        Args:
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
        """
        self._log('INFO', event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None
    ) -> None:
        """
        Log WARNING level message.

        Args:
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
            exc_info: Exception that caused the warning (type and text only)

        Example:
            >>> logger.warning(
            ...     event=LogEvent.GEOMETRY_FALLBACK,
            ...     message="Polygon offset failed, returning hull",
            ...     exc_info=err,
            ... )
        """
        self._log('WARNING', event, message, metadata, exc_info)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None
    ) -> None:
        """
        Log ERROR level message.

        Args:
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
            exc_info: Exception instance for traceback
        """
        self._log('ERROR', event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        """Change logging level dynamically."""
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """
    Formatter used by StructuredLogger.

    The message is already a JSON document; pass it through.
    """

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: Optional[int] = None
) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Args:
        component: Component identifier
        level: Logging level (default: set_default_level(), INFO)

    Returns:
        Configured StructuredLogger instance

    Example:
        >>> logger = create_logger("composer", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)


def set_default_level(level: int) -> None:
    """
    Level of every sora.* logger, existing and created later.

    Example:
        >>> set_default_level(logging.WARNING)   # quiet CLI output
    """
    global _default_level
    _default_level = level
    for name, existing in logging.root.manager.loggerDict.items():
        if name.startswith("sora.") and isinstance(existing, logging.Logger):
            existing.setLevel(level)
