"""Utils module for the SQS messaging client"""

from .defaults import (
    CLIENT_DEFAULTS,
    TEMPLATE_DEFAULTS,
    RECEIVE_DEFAULTS,
)
from .logger import log, warn, error, is_enabled as is_log_enabled, set_level as set_log_level
from .validation import (
    is_fifo_queue,
    is_queue_url,
    validate_queue_name,
    validate_region,
    validate_url,
)

__all__ = [
    "CLIENT_DEFAULTS",
    "TEMPLATE_DEFAULTS",
    "RECEIVE_DEFAULTS",
    "log",
    "warn",
    "error",
    "is_log_enabled",
    "set_log_level",
    "is_fifo_queue",
    "is_queue_url",
    "validate_queue_name",
    "validate_region",
    "validate_url",
]
