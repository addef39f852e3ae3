"""
Pytest configuration and fixtures for sqs-messaging tests

Unit tests talk to FakeSqs, an in-memory implementation of the SQS JSON
protocol mounted through httpx.MockTransport.
"""

import hashlib
import json
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from sqs_messaging import MessagingContext
from sqs_messaging.http import HttpClient
from sqs_messaging.sqs import SqsClient


# Test configuration
TEST_CONFIG = {
    "endpoint_url": "http://sqs.test:9324",
    "region": "us-east-1",
    "account_id": "000000000000",
    "access_key_id": "AKIDEXAMPLE",
    "secret_access_key": "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
}

# The two templates of the reference configuration
QUEUE_TEMPLATE_DEFINITIONS = {
    "default_queue_messaging_template": {
        "default_destination": "JsonQueue",
    },
    "queue_messaging_template_with_custom_converter": {
        "default_destination": "StreamQueue",
        "message_converter": "object",
    },
}


def _md5(body: str) -> str:
    return hashlib.md5(body.encode("utf-8")).hexdigest()


class FakeSqs:
    """In-memory SQS speaking the JSON protocol"""

    def __init__(self, endpoint_url: str = TEST_CONFIG["endpoint_url"]) -> None:
        self.endpoint_url = endpoint_url
        self.queues: Dict[str, Dict[str, Any]] = {}
        self.requests: List[Tuple[str, Dict[str, Any], httpx.Request]] = []
        self.failures: List[Tuple[int, Dict[str, Any]]] = []
        self.response_hooks: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {}

    # ===========================
    # Test helpers
    # ===========================

    def queue_url(self, name: str) -> str:
        return f"{self.endpoint_url}/{TEST_CONFIG['account_id']}/{name}"

    def add_queue(self, name: str, attributes: Optional[Dict[str, str]] = None) -> str:
        url = self.queue_url(name)
        self.queues.setdefault(
            url, {"name": name, "attributes": dict(attributes or {}), "messages": [], "inflight": {}}
        )
        return url

    def fail_next(self, status: int, error_type: str, message: str = "injected failure") -> None:
        """Queue an error response for the next request"""
        self.failures.append((status, {"__type": f"com.amazonaws.sqs#{error_type}", "message": message}))

    def operations(self) -> List[str]:
        return [operation for operation, _, _ in self.requests]

    def last_request(self, operation: str) -> Dict[str, Any]:
        for name, body, _ in reversed(self.requests):
            if name == operation:
                return body
        raise AssertionError(f"No {operation} request was made")

    def messages(self, name: str) -> List[Dict[str, Any]]:
        return self.queues[self.queue_url(name)]["messages"]

    # ===========================
    # Transport handler
    # ===========================

    def handler(self, request: httpx.Request) -> httpx.Response:
        operation = request.headers["x-amz-target"].split(".", 1)[1]
        body = json.loads(request.content or b"{}")
        self.requests.append((operation, body, request))

        if self.failures:
            status, payload = self.failures.pop(0)
            return httpx.Response(status, json=payload)

        method = getattr(self, f"_op_{operation}", None)
        if method is None:
            return self._error(400, "InvalidAction", f"Unknown operation {operation}")

        result = method(body)
        if isinstance(result, httpx.Response):
            return result
        hook = self.response_hooks.get(operation)
        if hook:
            result = hook(result)
        return httpx.Response(200, json=result)

    @staticmethod
    def _error(status: int, error_type: str, message: str) -> httpx.Response:
        return httpx.Response(status, json={"__type": f"com.amazonaws.sqs#{error_type}", "message": message})

    def _queue(self, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.queues.get(body.get("QueueUrl", ""))

    def _missing_queue(self) -> httpx.Response:
        return self._error(400, "QueueDoesNotExist", "The specified queue does not exist.")

    # ===========================
    # Operations
    # ===========================

    def _op_CreateQueue(self, body: Dict[str, Any]) -> Any:
        return {"QueueUrl": self.add_queue(body["QueueName"], body.get("Attributes"))}

    def _op_GetQueueUrl(self, body: Dict[str, Any]) -> Any:
        url = self.queue_url(body["QueueName"])
        if url not in self.queues:
            return self._missing_queue()
        return {"QueueUrl": url}

    def _op_GetQueueAttributes(self, body: Dict[str, Any]) -> Any:
        queue = self._queue(body)
        if queue is None:
            return self._missing_queue()
        return {
            "Attributes": {
                **queue["attributes"],
                "ApproximateNumberOfMessages": str(len(queue["messages"])),
                "ApproximateNumberOfMessagesNotVisible": str(len(queue["inflight"])),
            }
        }

    def _op_PurgeQueue(self, body: Dict[str, Any]) -> Any:
        queue = self._queue(body)
        if queue is None:
            return self._missing_queue()
        queue["messages"].clear()
        queue["inflight"].clear()
        return {}

    def _op_SendMessage(self, body: Dict[str, Any]) -> Any:
        queue = self._queue(body)
        if queue is None:
            return self._missing_queue()

        message_id = str(uuid.uuid4())
        attributes = {
            "SenderId": "AIDAEXAMPLE",
            "SentTimestamp": str(int(time.time() * 1000)),
            "ApproximateReceiveCount": "0",
        }
        if body.get("MessageGroupId"):
            attributes["MessageGroupId"] = body["MessageGroupId"]
        if body.get("MessageDeduplicationId"):
            attributes["MessageDeduplicationId"] = body["MessageDeduplicationId"]

        queue["messages"].append(
            {
                "MessageId": message_id,
                "Body": body["MessageBody"],
                "MD5OfBody": _md5(body["MessageBody"]),
                "Attributes": attributes,
                "MessageAttributes": body.get("MessageAttributes") or {},
                "VisibleAt": time.monotonic() + body.get("DelaySeconds", 0),
            }
        )

        result = {"MessageId": message_id, "MD5OfMessageBody": _md5(body["MessageBody"])}
        if queue["name"].endswith(".fifo"):
            result["SequenceNumber"] = str(len(self.requests))
        return result

    def _op_ReceiveMessage(self, body: Dict[str, Any]) -> Any:
        queue = self._queue(body)
        if queue is None:
            return self._missing_queue()

        now = time.monotonic()
        received = []
        for stored in list(queue["messages"]):
            if len(received) >= body.get("MaxNumberOfMessages", 1):
                break
            if stored["VisibleAt"] > now:
                continue
            queue["messages"].remove(stored)

            receipt_handle = str(uuid.uuid4())
            queue["inflight"][receipt_handle] = stored
            stored["Attributes"]["ApproximateReceiveCount"] = str(
                int(stored["Attributes"]["ApproximateReceiveCount"]) + 1
            )
            stored["Attributes"].setdefault("ApproximateFirstReceiveTimestamp", str(int(time.time() * 1000)))

            message = {k: v for k, v in stored.items() if k != "VisibleAt"}
            message["ReceiptHandle"] = receipt_handle
            if not message["MessageAttributes"]:
                del message["MessageAttributes"]
            received.append(message)

        return {"Messages": received} if received else {}

    def _op_DeleteMessage(self, body: Dict[str, Any]) -> Any:
        queue = self._queue(body)
        if queue is None:
            return self._missing_queue()
        if queue["inflight"].pop(body["ReceiptHandle"], None) is None:
            return self._error(400, "ReceiptHandleIsInvalid", "The input receipt handle is invalid.")
        return {}

    def _op_ChangeMessageVisibility(self, body: Dict[str, Any]) -> Any:
        queue = self._queue(body)
        if queue is None:
            return self._missing_queue()
        stored = queue["inflight"].get(body["ReceiptHandle"])
        if stored is None:
            return self._error(400, "ReceiptHandleIsInvalid", "The input receipt handle is invalid.")
        if body["VisibilityTimeout"] == 0:
            del queue["inflight"][body["ReceiptHandle"]]
            stored["VisibleAt"] = time.monotonic()
            queue["messages"].insert(0, stored)
        return {}


@pytest.fixture
def fake_sqs():
    """In-memory SQS with the queues of the reference configuration"""
    sqs = FakeSqs()
    sqs.add_queue("JsonQueue")
    sqs.add_queue("StreamQueue")
    return sqs


@pytest.fixture
def transport(fake_sqs):
    return httpx.MockTransport(fake_sqs.handler)


@pytest.fixture
async def sqs_client(transport):
    """SqsClient wired to the fake"""
    client = SqsClient(
        HttpClient(
            endpoint_url=TEST_CONFIG["endpoint_url"],
            retry_attempts=3,
            retry_delay_millis=1,
            transport=transport,
        )
    )
    yield client
    await client.close()


@pytest.fixture
async def context(transport):
    """MessagingContext with the two reference templates"""
    ctx = MessagingContext(
        endpoint_url=TEST_CONFIG["endpoint_url"],
        region=TEST_CONFIG["region"],
        access_key_id=TEST_CONFIG["access_key_id"],
        secret_access_key=TEST_CONFIG["secret_access_key"],
        retry_delay_millis=1,
        templates=QUEUE_TEMPLATE_DEFINITIONS,
        transport=transport,
    )
    yield ctx
    await ctx.close()


@pytest.fixture
def default_template(context):
    return context.template("default_queue_messaging_template")


@pytest.fixture
def object_template(context):
    return context.template("queue_messaging_template_with_custom_converter")
