"""
Validation utilities
"""

import re

QUEUE_NAME_REGEX = re.compile(r"^[A-Za-z0-9_-]{1,80}$")
REGION_REGEX = re.compile(r"^[a-z0-9-]+$")
FIFO_SUFFIX = ".fifo"


def is_queue_url(value: str) -> bool:
    """Check if a destination is already a queue URL"""
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def is_fifo_queue(name: str) -> bool:
    """Check if a queue name or URL points to a FIFO queue"""
    return isinstance(name, str) and name.endswith(FIFO_SUFFIX)


def validate_queue_name(name: str) -> str:
    """Validate and normalize queue name"""
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Queue name must be a non-empty string")
    name = name.strip()

    # The .fifo suffix counts towards the 80 character limit
    base = name[: -len(FIFO_SUFFIX)] if is_fifo_queue(name) else name
    if not QUEUE_NAME_REGEX.match(base) or len(name) > 80:
        raise ValueError(
            f"Invalid queue name: {name!r} (1-80 alphanumeric, hyphen or underscore characters)"
        )
    return name


def validate_url(url: str) -> str:
    """Validate URL"""
    if not is_queue_url(url):
        raise ValueError(f"Invalid URL: {url}")
    return url


def validate_region(region: str) -> str:
    """Validate AWS region name"""
    if not isinstance(region, str) or not REGION_REGEX.match(region):
        raise ValueError(f"Invalid region: {region}")
    return region
