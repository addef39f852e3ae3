"""
Asynchronous Amazon SQS client - the operations used by the messaging template
"""

import hashlib
from typing import Any, Dict, List, Optional

from ..errors import MessageChecksumError
from ..http.http_client import HttpClient
from ..types import MessageAttributeValue, QueueAttributes, SendResult, SqsMessage
from ..utils import logger
from ..utils.defaults import RECEIVE_DEFAULTS


def md5_of_body(body: str) -> str:
    """MD5 hex digest SQS reports for a message body"""
    return hashlib.md5(body.encode("utf-8")).hexdigest()


class SqsClient:
    """Asynchronous Amazon SQS client"""

    def __init__(self, http_client: HttpClient, *, verify_checksums: bool = True) -> None:
        self._http_client = http_client
        self._verify_checksums = verify_checksums

    @property
    def http_client(self) -> HttpClient:
        return self._http_client

    # ===========================
    # Queue API
    # ===========================

    async def get_queue_url(self, queue_name: str, owner_account_id: Optional[str] = None) -> str:
        """
        Look up the URL of an existing queue

        Args:
            queue_name: Physical queue name
            owner_account_id: Account that owns the queue (cross-account access)

        Returns:
            Queue URL
        """
        body: Dict[str, Any] = {"QueueName": queue_name}
        if owner_account_id:
            body["QueueOwnerAWSAccountId"] = owner_account_id

        logger.log("SqsClient.get_queue_url", {"queue_name": queue_name})
        result = await self._http_client.post_json("GetQueueUrl", body)
        return result["QueueUrl"]

    async def create_queue(
        self, queue_name: str, attributes: Optional[QueueAttributes] = None
    ) -> str:
        """
        Create a queue (idempotent for identical attributes)

        Args:
            queue_name: Physical queue name
            attributes: Queue attributes (e.g. {'FifoQueue': 'true'})

        Returns:
            Queue URL
        """
        body: Dict[str, Any] = {"QueueName": queue_name}
        if attributes:
            body["Attributes"] = attributes

        logger.log("SqsClient.create_queue", {"queue_name": queue_name, "attributes": attributes or {}})
        result = await self._http_client.post_json("CreateQueue", body)
        return result["QueueUrl"]

    async def get_queue_attributes(
        self, queue_url: str, attribute_names: Optional[List[str]] = None
    ) -> QueueAttributes:
        """Get queue attributes"""
        logger.log("SqsClient.get_queue_attributes", {"queue_url": queue_url})
        result = await self._http_client.post_json(
            "GetQueueAttributes",
            {"QueueUrl": queue_url, "AttributeNames": attribute_names or ["All"]},
        )
        return result.get("Attributes", {})

    async def purge_queue(self, queue_url: str) -> None:
        """Delete all messages in a queue"""
        logger.log("SqsClient.purge_queue", {"queue_url": queue_url})
        await self._http_client.post_json("PurgeQueue", {"QueueUrl": queue_url})

    # ===========================
    # Message API
    # ===========================

    async def send_message(
        self,
        queue_url: str,
        message_body: str,
        *,
        message_attributes: Optional[Dict[str, MessageAttributeValue]] = None,
        delay_seconds: Optional[int] = None,
        message_group_id: Optional[str] = None,
        message_deduplication_id: Optional[str] = None,
    ) -> SendResult:
        """
        Send a message

        Args:
            queue_url: Queue URL
            message_body: Message body
            message_attributes: Message attributes in wire format
            delay_seconds: Per-message delay
            message_group_id: FIFO message group
            message_deduplication_id: FIFO deduplication id

        Returns:
            SendMessage response
        """
        body: Dict[str, Any] = {"QueueUrl": queue_url, "MessageBody": message_body}
        if message_attributes:
            body["MessageAttributes"] = message_attributes
        if delay_seconds is not None:
            body["DelaySeconds"] = delay_seconds
        if message_group_id:
            body["MessageGroupId"] = message_group_id
        if message_deduplication_id:
            body["MessageDeduplicationId"] = message_deduplication_id

        logger.log(
            "SqsClient.send_message",
            {
                "queue_url": queue_url,
                "attributes": len(message_attributes or {}),
                "delay_seconds": delay_seconds,
                "fifo": message_group_id is not None,
            },
        )
        result: SendResult = await self._http_client.post_json("SendMessage", body)

        if self._verify_checksums and result.get("MD5OfMessageBody"):
            expected = md5_of_body(message_body)
            if result["MD5OfMessageBody"] != expected:
                logger.error(
                    "SqsClient.send_message",
                    {"queue_url": queue_url, "error": "checksum mismatch", "message_id": result.get("MessageId")},
                )
                raise MessageChecksumError(
                    f"MD5 returned by SQS ({result['MD5OfMessageBody']}) does not match "
                    f"the calculated MD5 of the message body ({expected})"
                )

        logger.log("SqsClient.send_message", {"queue_url": queue_url, "message_id": result.get("MessageId")})
        return result

    async def receive_message(
        self,
        queue_url: str,
        *,
        max_number_of_messages: int = RECEIVE_DEFAULTS["max_number_of_messages"],
        wait_time_seconds: int = 0,
        visibility_timeout: Optional[int] = None,
        attribute_names: Optional[List[str]] = None,
        message_attribute_names: Optional[List[str]] = None,
    ) -> List[SqsMessage]:
        """
        Receive messages

        Args:
            queue_url: Queue URL
            max_number_of_messages: 1-10 messages
            wait_time_seconds: Long polling wait (0-20 seconds)
            visibility_timeout: Override the queue visibility timeout
            attribute_names: System attributes to return
            message_attribute_names: Message attributes to return

        Returns:
            Received messages (empty list when none are available)
        """
        body: Dict[str, Any] = {
            "QueueUrl": queue_url,
            "MaxNumberOfMessages": max_number_of_messages,
            "WaitTimeSeconds": wait_time_seconds,
            "AttributeNames": attribute_names or RECEIVE_DEFAULTS["attribute_names"],
            "MessageAttributeNames": message_attribute_names or RECEIVE_DEFAULTS["message_attribute_names"],
        }
        if visibility_timeout is not None:
            body["VisibilityTimeout"] = visibility_timeout

        logger.log(
            "SqsClient.receive_message",
            {"queue_url": queue_url, "max": max_number_of_messages, "wait": wait_time_seconds},
        )

        # The long poll comes on top of the regular timeout
        request_timeout = None
        if wait_time_seconds:
            request_timeout = self._http_client.timeout_millis + wait_time_seconds * 1000
        result = await self._http_client.post_json("ReceiveMessage", body, request_timeout)

        messages: List[SqsMessage] = [msg for msg in result.get("Messages") or [] if msg]
        if self._verify_checksums:
            for msg in messages:
                if msg.get("MD5OfBody") and msg["MD5OfBody"] != md5_of_body(msg.get("Body", "")):
                    logger.error(
                        "SqsClient.receive_message",
                        {"queue_url": queue_url, "error": "checksum mismatch", "message_id": msg.get("MessageId")},
                    )
                    raise MessageChecksumError(
                        f"MD5 returned by SQS for message {msg.get('MessageId')} does not match its body"
                    )

        logger.log("SqsClient.receive_message", {"queue_url": queue_url, "count": len(messages)})
        return messages

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        """Delete a received message"""
        logger.log("SqsClient.delete_message", {"queue_url": queue_url})
        await self._http_client.post_json(
            "DeleteMessage", {"QueueUrl": queue_url, "ReceiptHandle": receipt_handle}
        )

    async def change_message_visibility(
        self, queue_url: str, receipt_handle: str, visibility_timeout: int
    ) -> None:
        """Change the visibility timeout of a received message"""
        logger.log(
            "SqsClient.change_message_visibility",
            {"queue_url": queue_url, "visibility_timeout": visibility_timeout},
        )
        await self._http_client.post_json(
            "ChangeMessageVisibility",
            {
                "QueueUrl": queue_url,
                "ReceiptHandle": receipt_handle,
                "VisibilityTimeout": visibility_timeout,
            },
        )

    # ===========================
    # Lifecycle
    # ===========================

    async def close(self) -> None:
        """Close the underlying connection pool"""
        logger.log("SqsClient.close", "Closing")
        await self._http_client.close()
