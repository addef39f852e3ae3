"""
Exceptions raised by the SQS messaging client
"""

from typing import Optional

import httpx


class MessagingError(Exception):
    """Base class for messaging failures"""


class DestinationResolutionError(MessagingError):
    """A destination name could not be resolved to a queue URL"""


class MessageConversionError(MessagingError):
    """A payload could not be converted to or from a message"""


class MessageDeliveryError(MessagingError):
    """A message could not be sent to its destination"""


class MessageChecksumError(MessagingError):
    """The MD5 digest returned by SQS does not match the message body"""


class SqsServiceError(httpx.HTTPStatusError, MessagingError):
    """Error response returned by the SQS service"""

    # Codes SQS uses for a missing queue (JSON and query protocol flavours)
    QUEUE_DOES_NOT_EXIST = ("QueueDoesNotExist", "AWS.SimpleQueueService.NonExistentQueue")

    # 4xx codes that are safe to retry
    THROTTLING_CODES = (
        "ThrottlingException",
        "RequestThrottled",
        "RequestThrottledException",
        "TooManyRequestsException",
        "ServiceUnavailable",
    )

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str],
        request: httpx.Request,
        response: httpx.Response,
    ):
        super().__init__(message, request=request, response=response)
        self.code = code
        self.status_code = response.status_code

    @property
    def is_queue_missing(self) -> bool:
        return self.code in self.QUEUE_DOES_NOT_EXIST

    @property
    def is_retryable(self) -> bool:
        return self.status_code >= 500 or self.code in self.THROTTLING_CODES


class SqsResponseError(MessagingError):
    """A successful SQS response whose body could not be read"""
