"""
Messaging context - shared SQS client plus named, lazily built templates
"""

import os
from typing import Any, Dict, List, Mapping, Optional

import httpx
from botocore.credentials import Credentials

from .core.destination import ResourceIdResolver, StaticResourceIdResolver
from .core.template import QueueMessagingTemplate
from .http.http_client import HttpClient
from .sqs.client import SqsClient
from .types import TemplateDefinition
from .utils import logger
from .utils.defaults import CLIENT_DEFAULTS, TEMPLATE_DEFAULTS
from .utils.validation import validate_region, validate_url

# Environment variables consulted when a setting is not given explicitly
ENVIRONMENT_KEYS: Dict[str, List[str]] = {
    "endpoint_url": ["AWS_ENDPOINT_URL_SQS", "AWS_ENDPOINT_URL"],
    "region": ["AWS_REGION", "AWS_DEFAULT_REGION"],
    "access_key_id": ["AWS_ACCESS_KEY_ID"],
    "secret_access_key": ["AWS_SECRET_ACCESS_KEY"],
    "session_token": ["AWS_SESSION_TOKEN"],
}


class MessagingContext:
    """Owns the shared SQS client and resource id resolver, and builds named templates"""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        templates: Optional[Mapping[str, TemplateDefinition]] = None,
        resource_ids: Optional[Mapping[str, str]] = None,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
        timeout_millis: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_delay_millis: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize messaging context

        Args:
            config: Config dict (keys of CLIENT_DEFAULTS)
            templates: Template definitions by name
            resource_ids: Logical to physical queue name mapping
            endpoint_url: SQS endpoint (derived from region when omitted)
            region: AWS region
            access_key_id: AWS access key id
            secret_access_key: AWS secret access key
            session_token: AWS session token
            timeout_millis: Request timeout in milliseconds
            retry_attempts: Number of attempts per request
            retry_delay_millis: Initial retry delay (exponential backoff)
            transport: Optional httpx transport (used by tests)
        """
        logger.log(
            "MessagingContext.constructor",
            {
                "config": sorted((config or {}).keys()),
                "templates": sorted((templates or {}).keys()),
            },
        )

        # Normalize config
        self._config = self._normalize_config(
            config,
            endpoint_url=endpoint_url,
            region=region,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
            timeout_millis=timeout_millis,
            retry_attempts=retry_attempts,
            retry_delay_millis=retry_delay_millis,
        )

        # Shared collaborators of every template
        self._sqs_client = SqsClient(self._create_http_client(transport))
        self._resource_id_resolver: ResourceIdResolver = StaticResourceIdResolver(resource_ids)

        # Template definitions and lazily created instances
        self._definitions: Dict[str, TemplateDefinition] = {}
        self._templates: Dict[str, QueueMessagingTemplate] = {}
        for name, definition in (templates or {}).items():
            self.register_template(name, definition)

        logger.log(
            "MessagingContext.constructor",
            {"status": "initialized", "endpoint_url": self._config["endpoint_url"]},
        )

    def _normalize_config(
        self,
        config: Optional[Dict[str, Any]],
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Normalize configuration: defaults < environment < config dict < keyword arguments"""
        normalized = {**CLIENT_DEFAULTS}

        for key, names in ENVIRONMENT_KEYS.items():
            for env_name in names:
                if os.environ.get(env_name):
                    normalized[key] = os.environ[env_name]
                    break

        if isinstance(config, dict):
            unknown = set(config) - set(CLIENT_DEFAULTS)
            if unknown:
                raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
            normalized.update({k: v for k, v in config.items() if v is not None})

        # Override with keyword arguments
        for key, value in kwargs.items():
            if value is not None:
                normalized[key] = value

        normalized["region"] = validate_region(normalized["region"])
        if normalized["endpoint_url"]:
            normalized["endpoint_url"] = validate_url(normalized["endpoint_url"])
        else:
            normalized["endpoint_url"] = f"https://sqs.{normalized['region']}.amazonaws.com"

        return normalized

    def _create_http_client(self, transport: Optional[httpx.AsyncBaseTransport]) -> HttpClient:
        """Create HTTP client, signing requests when credentials are available"""
        credentials: Optional[Credentials] = None
        if self._config["access_key_id"] and self._config["secret_access_key"]:
            credentials = Credentials(
                self._config["access_key_id"],
                self._config["secret_access_key"],
                self._config["session_token"],
            )
        else:
            logger.warn("MessagingContext.constructor", "No AWS credentials configured, requests are unsigned")

        return HttpClient(
            endpoint_url=self._config["endpoint_url"],
            credentials=credentials,
            region=self._config["region"],
            timeout_millis=self._config["timeout_millis"],
            retry_attempts=self._config["retry_attempts"],
            retry_delay_millis=self._config["retry_delay_millis"],
            transport=transport,
        )

    # ===========================
    # Shared collaborators
    # ===========================

    @property
    def config(self) -> Dict[str, Any]:
        return dict(self._config)

    @property
    def sqs_client(self) -> SqsClient:
        return self._sqs_client

    @property
    def resource_id_resolver(self) -> ResourceIdResolver:
        return self._resource_id_resolver

    # ===========================
    # Templates
    # ===========================

    def register_template(self, name: str, definition: TemplateDefinition) -> None:
        """
        Register a template definition

        Args:
            name: Template name
            definition: Keys of TEMPLATE_DEFAULTS
        """
        if name in self._templates:
            raise ValueError(f"Template {name!r} has already been created")

        unknown = set(definition) - set(TEMPLATE_DEFAULTS)
        if unknown:
            raise ValueError(f"Unknown template definition keys for {name!r}: {sorted(unknown)}")

        self._definitions[name] = {**TEMPLATE_DEFAULTS, **definition}
        logger.log("MessagingContext.register_template", {"name": name, "definition": self._definitions[name]})

    def template_names(self) -> List[str]:
        """Names of all registered templates"""
        return list(self._definitions)

    def template(self, name: str) -> QueueMessagingTemplate:
        """
        Get a template by name

        Args:
            name: Template name

        Returns:
            QueueMessagingTemplate instance (created on first access, singleton)
        """
        template = self._templates.get(name)
        if template is not None:
            return template

        if name not in self._definitions:
            raise KeyError(f"No template definition named {name!r}")

        template = self._create_template(self._definitions[name])
        self._templates[name] = template
        logger.log("MessagingContext.template", {"name": name, "status": "created"})
        return template

    def templates(self) -> Dict[str, QueueMessagingTemplate]:
        """All templates by name, creating any that do not exist yet"""
        return {name: self.template(name) for name in self._definitions}

    def _create_template(self, definition: TemplateDefinition) -> QueueMessagingTemplate:
        template = QueueMessagingTemplate(
            self._sqs_client,
            self._resource_id_resolver,
            definition["message_converter"],
            auto_create_queues=definition["auto_create_queues"],
            cache_destinations=definition["cache_destinations"],
            receive_wait_seconds=definition["receive_wait_seconds"],
            visibility_timeout=definition["visibility_timeout"],
        )
        template.default_destination_name = definition["default_destination"]
        return template

    # ===========================
    # Shutdown
    # ===========================

    async def close(self) -> None:
        """Close the shared SQS client"""
        logger.log("MessagingContext.close", "Starting shutdown")
        await self._sqs_client.close()
        logger.log("MessagingContext.close", "Context closed successfully")

    # ===========================
    # Context Manager Support
    # ===========================

    async def __aenter__(self) -> "MessagingContext":
        """Support async context manager"""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Cleanup on context exit"""
        await self.close()
