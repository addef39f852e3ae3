"""
Queue messaging template - send and receive helper bound to a default destination
"""

from typing import Any, Dict, Optional, Type, Union

from ..errors import MessageConversionError
from ..sqs.client import SqsClient
from ..support.converter import MessageConverter, resolve_message_converter
from ..types import Message, MessagePostProcessor, SendResult
from ..utils import logger
from .channel import QueueMessageChannel
from .destination import (
    CachingDestinationResolver,
    DestinationResolver,
    DynamicQueueUrlDestinationResolver,
    ResourceIdResolver,
)


class QueueMessagingTemplate:
    """Send and receive messages on SQS queues, with payload conversion"""

    def __init__(
        self,
        sqs_client: SqsClient,
        resource_id_resolver: Optional[ResourceIdResolver] = None,
        message_converter: Union[str, MessageConverter, None] = None,
        *,
        auto_create_queues: bool = False,
        cache_destinations: bool = True,
        receive_wait_seconds: int = 0,
        visibility_timeout: Optional[int] = None,
    ):
        """
        Initialize template

        Args:
            sqs_client: SqsClient instance
            resource_id_resolver: Maps logical destination names to queue names
            message_converter: Converter instance or name ('json', 'simple', 'object');
                defaults to text-or-JSON
            auto_create_queues: Create missing queues on first use
            cache_destinations: Resolve each destination name only once
            receive_wait_seconds: Long polling wait used by receive()
            visibility_timeout: Visibility timeout used by receive()
        """
        self._sqs_client = sqs_client
        self._message_converter = resolve_message_converter(message_converter)
        self._receive_wait_seconds = receive_wait_seconds
        self._visibility_timeout = visibility_timeout
        self._default_destination_name: Optional[str] = None

        resolver: DestinationResolver = DynamicQueueUrlDestinationResolver(
            sqs_client, resource_id_resolver, auto_create=auto_create_queues
        )
        if cache_destinations:
            resolver = CachingDestinationResolver(resolver)
        self._destination_resolver = resolver

        logger.log(
            "QueueMessagingTemplate.constructor",
            {
                "message_converter": repr(self._message_converter),
                "auto_create_queues": auto_create_queues,
                "cache_destinations": cache_destinations,
            },
        )

    # ===========================
    # Configuration
    # ===========================

    @property
    def default_destination_name(self) -> Optional[str]:
        return self._default_destination_name

    @default_destination_name.setter
    def default_destination_name(self, name: Optional[str]) -> None:
        self._default_destination_name = name

    def set_default_destination_name(self, name: Optional[str]) -> "QueueMessagingTemplate":
        """Set the destination used when none is given"""
        self._default_destination_name = name
        return self

    @property
    def message_converter(self) -> MessageConverter:
        return self._message_converter

    @message_converter.setter
    def message_converter(self, converter: Union[str, MessageConverter]) -> None:
        self._message_converter = resolve_message_converter(converter)

    def set_message_converter(self, converter: Union[str, MessageConverter]) -> "QueueMessagingTemplate":
        """Replace the message converter"""
        self.message_converter = converter
        return self

    @property
    def destination_resolver(self) -> DestinationResolver:
        return self._destination_resolver

    @property
    def sqs_client(self) -> SqsClient:
        return self._sqs_client

    # ===========================
    # Send API
    # ===========================

    async def send(self, message: Message, destination: Optional[str] = None) -> SendResult:
        """
        Send a message as is

        Args:
            message: Message with a string payload
            destination: Queue name or URL (defaults to the default destination)

        Returns:
            SendMessage response
        """
        destination_name = self._required_destination(destination)
        logger.log("QueueMessagingTemplate.send", {"destination": destination_name})

        channel = await self._channel(destination_name)
        result = await channel.send(message)

        logger.log(
            "QueueMessagingTemplate.send",
            {"destination": destination_name, "message_id": result.get("MessageId")},
        )
        return result

    async def convert_and_send(
        self,
        payload: Any,
        destination: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
        post_processor: Optional[MessagePostProcessor] = None,
    ) -> SendResult:
        """
        Convert a payload with the message converter and send it

        Args:
            payload: Object to send
            destination: Queue name or URL (defaults to the default destination)
            headers: Extra headers (sent as message attributes)
            post_processor: Callable applied to the message before sending

        Returns:
            SendMessage response
        """
        destination_name = self._required_destination(destination)

        message = self._message_converter.to_message(payload, headers)
        if message is None:
            content_type = (headers or {}).get("contentType")
            logger.error(
                "QueueMessagingTemplate.convert_and_send",
                {"destination": destination_name, "payload_type": type(payload).__name__},
            )
            raise MessageConversionError(
                f"Unable to convert payload with type='{type(payload).__name__}', "
                f"contentType='{content_type}', converter=[{self._message_converter!r}]"
            )

        if post_processor is not None:
            message = post_processor(message)

        return await self.send(message, destination_name)

    # ===========================
    # Receive API
    # ===========================

    async def receive(self, destination: Optional[str] = None) -> Optional[Message]:
        """
        Receive one message and delete it from the queue

        Args:
            destination: Queue name or URL (defaults to the default destination)

        Returns:
            Message, or None when no message is available
        """
        destination_name = self._required_destination(destination)
        logger.log("QueueMessagingTemplate.receive", {"destination": destination_name})

        channel = await self._channel(destination_name)
        return await channel.receive(self._receive_wait_seconds, self._visibility_timeout)

    async def receive_and_convert(
        self, target_class: Optional[Type[Any]] = None, destination: Optional[str] = None
    ) -> Any:
        """
        Receive one message and convert its payload

        Args:
            target_class: Expected payload type (None accepts the converter's natural type)
            destination: Queue name or URL (defaults to the default destination)

        Returns:
            Converted payload, or None when no message is available
        """
        message = await self.receive(destination)
        if message is None:
            return None

        value = self._message_converter.from_message(message, target_class)
        if value is None:
            type_name = target_class.__name__ if target_class is not None else "object"
            logger.error(
                "QueueMessagingTemplate.receive_and_convert",
                {"destination": destination or self._default_destination_name, "target": type_name},
            )
            raise MessageConversionError(
                f"Unable to convert payload [{message['payload']!r}] to type [{type_name}] "
                f"using converter [{self._message_converter!r}]"
            )
        return value

    # ===========================
    # Helpers
    # ===========================

    def _required_destination(self, destination: Optional[str]) -> str:
        name = destination or self._default_destination_name
        if not name:
            raise ValueError("No 'destination' given and no 'default_destination_name' configured")
        return name

    async def _channel(self, destination_name: str) -> QueueMessageChannel:
        queue_url = await self._destination_resolver.resolve_destination(destination_name)
        return QueueMessageChannel(self._sqs_client, queue_url, destination_name)
