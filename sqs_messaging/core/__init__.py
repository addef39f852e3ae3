"""Core messaging module: template, channel and destination resolution"""

from .channel import QueueMessageChannel
from .destination import (
    CachingDestinationResolver,
    DestinationResolver,
    DynamicQueueUrlDestinationResolver,
    ResourceIdResolver,
    StaticResourceIdResolver,
)
from .template import QueueMessagingTemplate

__all__ = [
    "CachingDestinationResolver",
    "DestinationResolver",
    "DynamicQueueUrlDestinationResolver",
    "QueueMessageChannel",
    "QueueMessagingTemplate",
    "ResourceIdResolver",
    "StaticResourceIdResolver",
]
