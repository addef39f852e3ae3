"""
UUID generation utilities
"""

import uuid


def generate_uuid() -> str:
    """Generate UUIDv4 used for message id headers"""
    return str(uuid.uuid4())
