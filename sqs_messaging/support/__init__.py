"""Message support: converters and header mapping"""

from .converter import (
    CompositeMessageConverter,
    JsonMessageConverter,
    MessageConverter,
    ObjectMessageConverter,
    SimpleMessageConverter,
    default_message_converter,
    resolve_message_converter,
)
from .message import create_message

__all__ = [
    "CompositeMessageConverter",
    "JsonMessageConverter",
    "MessageConverter",
    "ObjectMessageConverter",
    "SimpleMessageConverter",
    "create_message",
    "default_message_converter",
    "resolve_message_converter",
]
