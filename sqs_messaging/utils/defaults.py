"""
Default configuration values for the SQS messaging client
Following the convention:
- Properties with "_millis" suffix → milliseconds
- Properties with "_seconds" suffix → seconds
"""

from typing import Any, Dict

CLIENT_DEFAULTS: Dict[str, Any] = {
    "endpoint_url": None,  # Derived from region when not set
    "region": "us-east-1",  # AWS region used for the endpoint and signing
    "access_key_id": None,  # Requests are sent unsigned without credentials
    "secret_access_key": None,
    "session_token": None,  # Temporary credentials only
    "timeout_millis": 30000,  # 30 seconds
    "retry_attempts": 3,  # 3 retry attempts
    "retry_delay_millis": 1000,  # 1 second initial delay (exponential backoff)
}

TEMPLATE_DEFAULTS: Dict[str, Any] = {
    "default_destination": None,  # No default queue
    "message_converter": "json",  # 'json', 'simple', 'object' or a converter instance
    "receive_wait_seconds": 0,  # No long polling
    "visibility_timeout": None,  # Queue default
    "auto_create_queues": False,  # Fail when the queue does not exist
    "cache_destinations": True,  # Resolve each queue URL once
}

RECEIVE_DEFAULTS: Dict[str, Any] = {
    "max_number_of_messages": 1,  # Templates receive one message at a time
    "attribute_names": ["All"],  # All system attributes
    "message_attribute_names": ["All"],  # All message attributes
}

# SQS protocol constants
SQS_SERVICE_NAME = "sqs"
SQS_JSON_CONTENT_TYPE = "application/x-amz-json-1.0"
SQS_TARGET_PREFIX = "AmazonSQS"
