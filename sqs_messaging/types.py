"""
Type definitions for the SQS messaging client
"""

from typing import Any, Callable, Dict, List, Optional, Union
from typing_extensions import TypedDict


class Message(TypedDict):
    """Message exchanged through a template: payload plus headers"""

    payload: Any
    headers: Dict[str, Any]


class MessageAttributeValue(TypedDict, total=False):
    """SQS message attribute as sent on the wire"""

    DataType: str
    StringValue: str
    BinaryValue: str  # base64 in the JSON protocol


class SqsMessage(TypedDict, total=False):
    """Raw message returned by ReceiveMessage"""

    MessageId: str
    ReceiptHandle: str
    MD5OfBody: str
    Body: str
    Attributes: Dict[str, str]
    MD5OfMessageAttributes: str
    MessageAttributes: Dict[str, MessageAttributeValue]


class SendResult(TypedDict, total=False):
    """SendMessage response"""

    MessageId: str
    MD5OfMessageBody: str
    MD5OfMessageAttributes: str
    SequenceNumber: str


class TemplateDefinition(TypedDict, total=False):
    """Named template definition registered with a MessagingContext"""

    default_destination: Optional[str]
    message_converter: Union[str, Any]
    receive_wait_seconds: int
    visibility_timeout: Optional[int]
    auto_create_queues: bool
    cache_destinations: bool


# Type aliases
MessagePostProcessor = Callable[[Message], Message]
QueueAttributes = Dict[str, str]
AttributeNames = List[str]
