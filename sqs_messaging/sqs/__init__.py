"""SQS module for the messaging client"""

from .client import SqsClient, md5_of_body

__all__ = ["SqsClient", "md5_of_body"]
