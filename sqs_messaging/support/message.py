"""
Message construction and the mapping between message headers and SQS attributes
"""

import base64
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from ..types import Message, MessageAttributeValue, SqsMessage
from ..utils import logger
from ..utils.uuid_gen import generate_uuid

# Headers every message carries
ID_HEADER = "id"
TIMESTAMP_HEADER = "timestamp"
CONTENT_TYPE_HEADER = "contentType"

# Headers mapped to SendMessage fields instead of message attributes
DELAY_HEADER = "delay"
GROUP_ID_HEADER = "message-group-id"
DEDUPLICATION_ID_HEADER = "message-deduplication-id"

# Headers added to received messages
MESSAGE_ID_HEADER = "MessageId"
RECEIPT_HANDLE_HEADER = "ReceiptHandle"
LOOKUP_DESTINATION_HEADER = "lookupDestination"

SEND_FIELD_HEADERS = (DELAY_HEADER, GROUP_ID_HEADER, DEDUPLICATION_ID_HEADER)

# System attributes returned as numbers
NUMERIC_SYSTEM_ATTRIBUTES = (
    "ApproximateReceiveCount",
    "ApproximateFirstReceiveTimestamp",
    "SentTimestamp",
)

STRING_DATA_TYPE = "String"
NUMBER_DATA_TYPE = "Number"
BINARY_DATA_TYPE = "Binary"

_NUMBER_TYPES = {"int": int, "float": float, "Decimal": Decimal}


def create_message(payload: Any, headers: Optional[Dict[str, Any]] = None) -> Message:
    """
    Create a message, stamping id and timestamp headers when missing

    Args:
        payload: Message payload
        headers: Optional headers

    Returns:
        Message
    """
    message_headers = dict(headers or {})
    message_headers.setdefault(ID_HEADER, generate_uuid())
    message_headers.setdefault(TIMESTAMP_HEADER, int(time.time() * 1000))
    return {"payload": payload, "headers": message_headers}


def to_message_attributes(headers: Dict[str, Any]) -> Dict[str, MessageAttributeValue]:
    """Convert message headers to SQS message attributes"""
    attributes: Dict[str, MessageAttributeValue] = {}

    for name, value in headers.items():
        if name in SEND_FIELD_HEADERS:
            continue

        if isinstance(value, str):
            attributes[name] = {"DataType": STRING_DATA_TYPE, "StringValue": value}
        elif isinstance(value, bool) or value is None:
            logger.warn(
                "to_message_attributes",
                {"header": name, "type": type(value).__name__, "error": "not supported by SQS, skipped"},
            )
        elif isinstance(value, (float, Decimal)) and not Decimal(value).is_finite():
            logger.warn(
                "to_message_attributes",
                {"header": name, "value": str(value), "error": "not a finite number, skipped"},
            )
        elif isinstance(value, (int, float, Decimal)):
            attributes[name] = {
                "DataType": f"{NUMBER_DATA_TYPE}.{type(value).__name__}",
                "StringValue": str(value),
            }
        elif isinstance(value, (bytes, bytearray)):
            attributes[name] = {
                "DataType": BINARY_DATA_TYPE,
                "BinaryValue": base64.b64encode(bytes(value)).decode("ascii"),
            }
        else:
            logger.warn(
                "to_message_attributes",
                {"header": name, "type": type(value).__name__, "error": "not supported by SQS, skipped"},
            )

    return attributes


def send_fields(headers: Dict[str, Any]) -> Tuple[Optional[int], Optional[str], Optional[str]]:
    """Extract delay, group id and deduplication id from headers"""
    delay = headers.get(DELAY_HEADER)
    group_id = headers.get(GROUP_ID_HEADER)
    deduplication_id = headers.get(DEDUPLICATION_ID_HEADER)
    return (
        int(delay) if delay is not None else None,
        str(group_id) if group_id is not None else None,
        str(deduplication_id) if deduplication_id is not None else None,
    )


def _parse_number(data_type: str, value: str) -> Any:
    """Parse a Number attribute, honouring a Number.<type> suffix"""
    _, _, custom_type = data_type.partition(".")
    number_type = _NUMBER_TYPES.get(custom_type)
    if number_type is not None:
        return number_type(value)
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return Decimal(value)
    except InvalidOperation:
        return value


def from_message_attribute(value: MessageAttributeValue) -> Any:
    """Convert one SQS message attribute back to a Python value"""
    data_type = value.get("DataType", STRING_DATA_TYPE)

    if data_type.startswith(NUMBER_DATA_TYPE):
        return _parse_number(data_type, value.get("StringValue", ""))
    if data_type.startswith(BINARY_DATA_TYPE):
        return base64.b64decode(value.get("BinaryValue", ""))
    return value.get("StringValue")


def from_sqs_message(sqs_message: SqsMessage, destination: Optional[str] = None) -> Message:
    """
    Map a received SQS message to a Message

    Headers contain the message id, receipt handle, the destination name used
    for the lookup, all system attributes and all message attributes.
    """
    headers: Dict[str, Any] = {
        MESSAGE_ID_HEADER: sqs_message.get("MessageId"),
        RECEIPT_HANDLE_HEADER: sqs_message.get("ReceiptHandle"),
    }
    if destination:
        headers[LOOKUP_DESTINATION_HEADER] = destination

    for name, value in (sqs_message.get("Attributes") or {}).items():
        headers[name] = int(value) if name in NUMERIC_SYSTEM_ATTRIBUTES else value

    for name, attribute in (sqs_message.get("MessageAttributes") or {}).items():
        headers[name] = from_message_attribute(attribute)

    return {"payload": sqs_message.get("Body", ""), "headers": headers}
