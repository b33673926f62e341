import logging
import os
import re
import sys
from typing import Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FORMAT_WITH_ID = '%(asctime)s - %(name)s - %(levelname)s - [{correlation_id}] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class SensitiveDataFilter(logging.Filter):
    """Filter to mask credentials in log records."""

    PATTERNS = [
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(authorization["\']?\s*[:=]\s*["\']?)((?:basic|bearer)\s+)?([^"\'}\s,]+)', re.IGNORECASE), r'\1\2***MASKED***'),
        (re.compile(r'(basic\s+)([A-Za-z0-9+/=]{8,})', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(https?://[^:/\s@]+:)([^@\s]+)(@)', re.IGNORECASE), r'\1***MASKED***\3'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask sensitive data in the log message."""
        if isinstance(record.msg, str):
            record.msg = self._mask_value(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._mask_value(arg) for arg in record.args)

        return True

    def _mask_value(self, value):
        if isinstance(value, str):
            for pattern, replacement in self.PATTERNS:
                value = pattern.sub(replacement, value)
        return value


def _formatter(correlation_id: Optional[str]) -> logging.Formatter:
    if correlation_id:
        fmt = LOG_FORMAT_WITH_ID.format(correlation_id=correlation_id)
    else:
        fmt = LOG_FORMAT
    return logging.Formatter(fmt, datefmt=DATE_FORMAT)


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    correlation_id: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for the process.

    The handler is installed on the root logger so that every module logger
    obtained through ``get_logger(__name__)`` shares it.

    Args:
        component_name: Name of the component logger to return (e.g. 'streamload')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or WARNING
        correlation_id: Optional correlation ID to include in log format

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'WARNING')

    level = getattr(logging, log_level.upper(), logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)

    handler = next((h for h in root.handlers if _is_ours(h)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.addFilter(SensitiveDataFilter())
        root.addHandler(handler)

    handler.setLevel(level)
    handler.setFormatter(_formatter(correlation_id))

    return logging.getLogger(component_name)


def _is_ours(handler: logging.Handler) -> bool:
    return any(isinstance(f, SensitiveDataFilter) for f in handler.filters)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """
    Switch the installed handler format to include (or drop) a correlation ID.

    Args:
        correlation_id: Correlation ID to include, or None to remove it
    """
    for handler in logging.getLogger().handlers:
        if _is_ours(handler):
            handler.setFormatter(_formatter(correlation_id))
