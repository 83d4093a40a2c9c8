"""Logging utilities for permcatalog.

This module provides:
- Logging configuration from PermissionConfig
- Safe preview utilities for catalog data in log lines
- Structured logging with role/session context
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import LogLevel, PermissionConfig


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a safe, length-bounded preview of a value for logging.

    This function:
    - Converts any value to a single-line string
    - Truncates to the specified limit
    - Normalizes whitespace

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated, single-line string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple, set, frozenset)):
        try:
            data = sorted(value) if isinstance(value, (set, frozenset)) else value
            s = json.dumps(data, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName", "role_id", "session_id",
    }
)


class PermissionLogFormatter(logging.Formatter):
    """Formatter that includes role/session context and optional JSON output.

    This formatter:
    - Extracts role_id and session_id from log records (if available)
    - Formats logs as JSON for structured logging, or as plain text
    - Includes safe previews of extra fields
    """

    def __init__(
        self,
        include_context: bool = True,
        json_format: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        """Initialize the formatter.

        Args:
            include_context: Whether to include role_id/session_id in logs
            json_format: Whether to output JSON (True) or plain text (False)
        """
        super().__init__(*args, **kwargs)
        self.include_context = include_context
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record."""
        role_id = getattr(record, "role_id", None)
        session_id = getattr(record, "session_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            if role_id is not None:
                log_data["role_id"] = role_id
            if session_id is not None:
                log_data["session_id"] = str(session_id)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_preview(value)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if self.include_context and role_id is not None:
            parts.append(f"role_id={role_id}")
        if self.include_context and session_id is not None:
            parts.append(f"session_id={session_id}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class PermissionLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds role_id and session_id to log records.

    Usage:
        logger = get_permission_logger(__name__, role_id=7)
        logger.info("Role permissions rebuilt")
    """

    def __init__(
        self,
        logger: logging.Logger,
        role_id: Optional[int | str] = None,
        session_id: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.role_id = role_id
        self.session_id = session_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Process log message and add editing-session context."""
        role_id = kwargs.pop("role_id", self.role_id)
        session_id = kwargs.pop("session_id", self.session_id)

        extra = kwargs.get("extra", {})
        if role_id is not None:
            extra["role_id"] = role_id
        if session_id is not None:
            extra["session_id"] = session_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[PermissionConfig] = None,
    json_format: Optional[bool] = None,
    logger_name: str = "",
) -> None:
    """Configure logging for an application using permcatalog.

    Args:
        config: PermissionConfig instance (if None, loads from environment)
        json_format: Force JSON output on/off (default: ``config.log_json``)
        logger_name: Logger to configure (default: root logger)
    """
    if config is None:
        from .config import load_config_from_env
        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)

    target = logging.getLogger(logger_name)
    target.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in target.handlers[:]:
        target.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        PermissionLogFormatter(
            include_context=True,
            json_format=config.log_json if json_format is None else json_format,
        )
    )
    target.addHandler(console_handler)


def get_permission_logger(
    name: str,
    role_id: Optional[int | str] = None,
    session_id: Optional[str] = None,
) -> PermissionLoggerAdapter:
    """Get a logger adapter bound to a role editing session.

    Args:
        name: Logger name (typically __name__)
        role_id: Optional role being edited
        session_id: Optional editing session identifier

    Returns:
        PermissionLoggerAdapter instance
    """
    logger = logging.getLogger(name)
    return PermissionLoggerAdapter(logger, role_id=role_id, session_id=session_id)


__all__ = [
    "safe_preview",
    "PermissionLogFormatter",
    "PermissionLoggerAdapter",
    "setup_logging",
    "get_permission_logger",
]
