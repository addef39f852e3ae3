"""
sqs-messaging - Amazon SQS messaging templates for asyncio
"""

from .context import MessagingContext
from .core import (
    QueueMessagingTemplate,
    ResourceIdResolver,
    StaticResourceIdResolver,
)
from .errors import (
    DestinationResolutionError,
    MessageChecksumError,
    MessageConversionError,
    MessageDeliveryError,
    MessagingError,
    SqsResponseError,
    SqsServiceError,
)
from .sqs import SqsClient
from .support import (
    CompositeMessageConverter,
    JsonMessageConverter,
    MessageConverter,
    ObjectMessageConverter,
    SimpleMessageConverter,
    create_message,
)
from .types import Message, SendResult
from .utils.defaults import CLIENT_DEFAULTS, TEMPLATE_DEFAULTS

__version__ = "0.1.0"

__all__ = [
    "MessagingContext",
    "QueueMessagingTemplate",
    "ResourceIdResolver",
    "StaticResourceIdResolver",
    "SqsClient",
    "MessageConverter",
    "SimpleMessageConverter",
    "JsonMessageConverter",
    "ObjectMessageConverter",
    "CompositeMessageConverter",
    "create_message",
    "Message",
    "SendResult",
    "MessagingError",
    "DestinationResolutionError",
    "MessageConversionError",
    "MessageDeliveryError",
    "MessageChecksumError",
    "SqsServiceError",
    "SqsResponseError",
    "CLIENT_DEFAULTS",
    "TEMPLATE_DEFAULTS",
]
