"""
Destination resolution - map destination names to queue URLs
"""

from typing import Dict, Mapping, Optional

from ..errors import DestinationResolutionError, SqsServiceError
from ..sqs.client import SqsClient
from ..utils import logger
from ..utils.validation import is_fifo_queue, is_queue_url, validate_queue_name


class ResourceIdResolver:
    """Resolves logical resource ids to physical ones; the base resolver is the identity"""

    def resolve_to_physical_resource_id(self, logical_resource_id: str) -> str:
        return logical_resource_id


class StaticResourceIdResolver(ResourceIdResolver):
    """Resolves logical ids through a fixed mapping, falling back to the logical id"""

    def __init__(self, resource_ids: Optional[Mapping[str, str]] = None) -> None:
        self._resource_ids: Dict[str, str] = dict(resource_ids or {})

    def resolve_to_physical_resource_id(self, logical_resource_id: str) -> str:
        return self._resource_ids.get(logical_resource_id, logical_resource_id)


class DestinationResolver:
    """Resolves a destination name to a queue URL"""

    async def resolve_destination(self, name: str) -> str:
        raise NotImplementedError


class DynamicQueueUrlDestinationResolver(DestinationResolver):
    """Resolves queue names (or logical ids) to URLs by asking SQS"""

    def __init__(
        self,
        sqs_client: SqsClient,
        resource_id_resolver: Optional[ResourceIdResolver] = None,
        *,
        auto_create: bool = False,
    ) -> None:
        """
        Initialize resolver

        Args:
            sqs_client: SqsClient used for GetQueueUrl / CreateQueue
            resource_id_resolver: Maps logical names to physical queue names
            auto_create: Create missing queues instead of failing
        """
        self._sqs_client = sqs_client
        self._resource_id_resolver = resource_id_resolver
        self._auto_create = auto_create

    async def resolve_destination(self, name: str) -> str:
        """
        Resolve a destination

        Args:
            name: Queue URL, physical queue name or logical resource id

        Returns:
            Queue URL
        """
        queue_name = name
        if self._resource_id_resolver is not None:
            queue_name = self._resource_id_resolver.resolve_to_physical_resource_id(name)

        # Physical ids of queues can already be queue URLs
        if is_queue_url(queue_name):
            return queue_name

        try:
            queue_name = validate_queue_name(queue_name)
        except ValueError as error:
            raise DestinationResolutionError(str(error)) from error

        logger.log(
            "DynamicQueueUrlDestinationResolver.resolve",
            {"destination": name, "queue_name": queue_name, "auto_create": self._auto_create},
        )

        try:
            if self._auto_create:
                attributes = {"FifoQueue": "true"} if is_fifo_queue(queue_name) else None
                return await self._sqs_client.create_queue(queue_name, attributes)
            return await self._sqs_client.get_queue_url(queue_name)
        except SqsServiceError as error:
            logger.error(
                "DynamicQueueUrlDestinationResolver.resolve",
                {"destination": name, "queue_name": queue_name, "code": error.code},
            )
            if error.is_queue_missing:
                raise DestinationResolutionError("The queue does not exist.") from error
            raise DestinationResolutionError(
                f"Error while resolving destination {name!r}: {error}"
            ) from error


class CachingDestinationResolver(DestinationResolver):
    """Caches the results of another resolver"""

    def __init__(self, delegate: DestinationResolver) -> None:
        self._delegate = delegate
        self._cache: Dict[str, str] = {}

    async def resolve_destination(self, name: str) -> str:
        queue_url = self._cache.get(name)
        if queue_url is None:
            queue_url = await self._delegate.resolve_destination(name)
            self._cache[name] = queue_url
        return queue_url

    def clear(self) -> None:
        """Forget all cached resolutions"""
        self._cache.clear()
