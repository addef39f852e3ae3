"""
Logger utility for the SQS messaging client
Controlled by the SQS_MESSAGING_LOG environment variable:
- "true" or "info" → everything
- "warn" → warnings and errors
- "error" → errors only
- unset or anything else → disabled
"""

import os
import sys
import json
from datetime import datetime, timezone
from typing import Any, Optional, TextIO, Union

LEVELS = {"INFO": 10, "WARN": 20, "ERROR": 30}
_ENV_LEVELS = {"true": "INFO", "info": "INFO", "warn": "WARN", "error": "ERROR"}

_threshold: Optional[int] = None


def set_level(level: Optional[str]) -> None:
    """
    Set the minimum level that is printed

    Args:
        level: 'INFO', 'WARN', 'ERROR' (case insensitive), or None to disable logging
    """
    global _threshold
    if level is None:
        _threshold = None
        return
    name = level.upper()
    if name not in LEVELS:
        raise ValueError(f"Unknown log level: {level!r} (expected one of {list(LEVELS)})")
    _threshold = LEVELS[name]


def _level_from_environment() -> Optional[str]:
    return _ENV_LEVELS.get(os.environ.get("SQS_MESSAGING_LOG", "").strip().lower())


set_level(_level_from_environment())


def _get_timestamp() -> str:
    """Get formatted timestamp"""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _format_log(operation: str, details: Union[str, dict[str, Any]], level: str) -> str:
    """Format log message with timestamp, level and operation"""
    if isinstance(details, dict):
        details_str = json.dumps(details, default=str)
    else:
        details_str = str(details)
    return f"[{_get_timestamp()}] [{level}] [{operation}] {details_str}"


def _emit(level: str, operation: str, details: Union[str, dict[str, Any]], stream: TextIO) -> None:
    if _threshold is None or LEVELS[level] < _threshold:
        return
    print(_format_log(operation, details, level), file=stream)


def log(operation: str, details: Union[str, dict[str, Any]]) -> None:
    """Log an operation"""
    _emit("INFO", operation, details, sys.stdout)


def warn(operation: str, details: Union[str, dict[str, Any]]) -> None:
    """Log a warning"""
    _emit("WARN", operation, details, sys.stderr)


def error(operation: str, details: Union[str, dict[str, Any]]) -> None:
    """Log an error"""
    _emit("ERROR", operation, details, sys.stderr)


def is_enabled(level: str = "INFO") -> bool:
    """Check if messages of a level are printed"""
    return _threshold is not None and LEVELS[level.upper()] >= _threshold
