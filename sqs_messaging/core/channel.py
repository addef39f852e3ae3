"""
Queue message channel - send and receive messages on one queue
"""

from typing import Optional

from ..errors import MessageDeliveryError, SqsServiceError
from ..sqs.client import SqsClient
from ..support.message import (
    RECEIPT_HANDLE_HEADER,
    from_sqs_message,
    send_fields,
    to_message_attributes,
)
from ..types import Message, SendResult
from ..utils import logger


class QueueMessageChannel:
    """Message channel bound to one queue URL"""

    def __init__(self, sqs_client: SqsClient, queue_url: str, destination: Optional[str] = None) -> None:
        """
        Initialize channel

        Args:
            sqs_client: SqsClient instance
            queue_url: Resolved queue URL
            destination: Destination name the URL was resolved from
        """
        self._sqs_client = sqs_client
        self._queue_url = queue_url
        self._destination = destination or queue_url

    @property
    def queue_url(self) -> str:
        return self._queue_url

    async def send(self, message: Message) -> SendResult:
        """
        Send a message

        Args:
            message: Message whose payload is the message body

        Returns:
            SendMessage response
        """
        payload = message["payload"]
        if not isinstance(payload, str):
            raise MessageDeliveryError(
                f"Message payload must be a string, got {type(payload).__name__}; "
                "use convert_and_send to convert payloads"
            )

        headers = message.get("headers") or {}
        delay_seconds, group_id, deduplication_id = send_fields(headers)

        try:
            return await self._sqs_client.send_message(
                self._queue_url,
                payload,
                message_attributes=to_message_attributes(headers),
                delay_seconds=delay_seconds,
                message_group_id=group_id,
                message_deduplication_id=deduplication_id,
            )
        except SqsServiceError as error:
            logger.error(
                "QueueMessageChannel.send",
                {"queue_url": self._queue_url, "code": error.code, "error": str(error)},
            )
            raise MessageDeliveryError(
                f"Failed to send message to destination {self._destination!r}: {error}"
            ) from error

    async def receive(
        self, wait_time_seconds: int = 0, visibility_timeout: Optional[int] = None
    ) -> Optional[Message]:
        """
        Receive one message and delete it from the queue

        Args:
            wait_time_seconds: Long polling wait
            visibility_timeout: Override the queue visibility timeout

        Returns:
            Message, or None when the queue is empty
        """
        messages = await self._sqs_client.receive_message(
            self._queue_url,
            max_number_of_messages=1,
            wait_time_seconds=wait_time_seconds,
            visibility_timeout=visibility_timeout,
        )
        if not messages:
            logger.log("QueueMessageChannel.receive", {"queue_url": self._queue_url, "status": "no-messages"})
            return None

        message = from_sqs_message(messages[0], self._destination)
        await self._sqs_client.delete_message(self._queue_url, message["headers"][RECEIPT_HANDLE_HEADER])

        logger.log(
            "QueueMessageChannel.receive",
            {"queue_url": self._queue_url, "message_id": message["headers"].get("MessageId")},
        )
        return message
