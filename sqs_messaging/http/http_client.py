"""
HTTP client for the SQS JSON protocol with retry and SigV4 request signing
"""

import asyncio
import json
from typing import Any, Dict, Optional

import httpx
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from ..errors import SqsResponseError, SqsServiceError
from ..utils import logger
from ..utils.defaults import SQS_JSON_CONTENT_TYPE, SQS_SERVICE_NAME, SQS_TARGET_PREFIX


class HttpClient:
    """HTTP client for the SQS JSON protocol with retry and request signing"""

    def __init__(
        self,
        *,
        endpoint_url: str,
        credentials: Optional[Credentials] = None,
        region: str = "us-east-1",
        timeout_millis: int = 30000,
        retry_attempts: int = 3,
        retry_delay_millis: int = 1000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client

        Args:
            endpoint_url: SQS endpoint (e.g. https://sqs.us-east-1.amazonaws.com)
            credentials: botocore Credentials; requests are sent unsigned when None
            region: Region used in the request signature
            timeout_millis: Request timeout in milliseconds
            retry_attempts: Number of attempts per request
            retry_delay_millis: Initial retry delay (exponential backoff)
            transport: Optional httpx transport (used by tests)
        """
        self._endpoint_url = endpoint_url.rstrip("/") + "/"
        # Host exactly as httpx sends it (default ports dropped)
        self._host = httpx.URL(self._endpoint_url).netloc.decode("ascii")
        self._auth = SigV4Auth(credentials, SQS_SERVICE_NAME, region) if credentials else None
        self._timeout_millis = timeout_millis
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay_millis = retry_delay_millis

        # Create httpx.AsyncClient (persistent connection pool)
        client_kwargs: Dict[str, Any] = {
            "timeout": httpx.Timeout(timeout_millis / 1000.0),
            "limits": httpx.Limits(max_keepalive_connections=10, max_connections=100),
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

        logger.log(
            "HttpClient.constructor",
            {
                "endpoint_url": self._endpoint_url,
                "timeout_millis": timeout_millis,
                "retry_attempts": self._retry_attempts,
                "signed": self._auth is not None,
            },
        )

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    @property
    def timeout_millis(self) -> int:
        return self._timeout_millis

    async def post_json(
        self,
        operation: str,
        body: Dict[str, Any],
        request_timeout_millis: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Invoke an SQS operation

        Args:
            operation: Operation name (e.g. 'SendMessage')
            body: Request document
            request_timeout_millis: Override timeout (long polling)

        Returns:
            Response document (empty dict for empty responses)
        """
        return await self._request_with_retry(operation, body, request_timeout_millis)

    def _build_headers(self, operation: str, content: bytes) -> Dict[str, str]:
        """Build protocol headers, signed when credentials are configured"""
        headers = {
            "host": self._host,
            "content-type": SQS_JSON_CONTENT_TYPE,
            "x-amz-target": f"{SQS_TARGET_PREFIX}.{operation}",
        }
        if self._auth is None:
            return headers

        request = AWSRequest(method="POST", url=self._endpoint_url, data=content, headers=headers)
        self._auth.add_auth(request)
        return dict(request.headers.items())

    async def _execute_request(
        self,
        operation: str,
        body: Dict[str, Any],
        request_timeout_millis: Optional[int],
    ) -> Dict[str, Any]:
        """Execute single HTTP request"""
        effective_timeout = request_timeout_millis or self._timeout_millis
        logger.log(
            "HttpClient.request",
            {"operation": operation, "url": self._endpoint_url, "timeout": effective_timeout},
        )

        content = json.dumps(body).encode("utf-8")

        try:
            response = await self._client.post(
                self._endpoint_url,
                content=content,
                headers=self._build_headers(operation, content),
                timeout=httpx.Timeout(effective_timeout / 1000.0),
            )

            logger.log("HttpClient.response", {"operation": operation, "status": response.status_code})

            if not response.is_success:
                raise self._service_error(operation, response)

            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError as error:
                raise SqsResponseError(
                    f"{operation} returned HTTP {response.status_code} with a body that is not JSON"
                ) from error

        except httpx.TimeoutException:
            logger.error(
                "HttpClient.request",
                {"operation": operation, "error": "timeout", "timeout": effective_timeout},
            )
            raise
        except Exception as e:
            logger.error("HttpClient.request", {"operation": operation, "error": str(e)})
            raise

    @staticmethod
    def _service_error(operation: str, response: httpx.Response) -> SqsServiceError:
        """Map an error response to SqsServiceError"""
        code: Optional[str] = None
        error_msg = f"HTTP {response.status_code}: {response.reason_phrase}"
        try:
            if response.content:
                body_data = response.json()
                error_type = body_data.get("__type") or body_data.get("code")
                if error_type:
                    code = error_type.split("#")[-1]
                error_msg = body_data.get("message") or body_data.get("Message") or error_msg
        except ValueError:
            pass

        # Query-compatible error code (e.g. AWS.SimpleQueueService.NonExistentQueue;Sender)
        query_error = response.headers.get("x-amzn-query-error")
        if not code and query_error:
            code = query_error.split(";")[0]

        logger.error(
            "HttpClient.request",
            {"operation": operation, "status": response.status_code, "code": code, "error": error_msg},
        )
        return SqsServiceError(
            f"{operation} failed: {error_msg}",
            code=code,
            request=response.request,
            response=response,
        )

    async def _request_with_retry(
        self,
        operation: str,
        body: Dict[str, Any],
        request_timeout_millis: Optional[int],
    ) -> Dict[str, Any]:
        """Execute request with retry logic"""
        last_error: Optional[Exception] = None

        for attempt in range(self._retry_attempts):
            try:
                return await self._execute_request(operation, body, request_timeout_millis)
            except SqsServiceError as error:
                last_error = error
                # Don't retry on client errors (4xx) other than throttling
                if not error.is_retryable:
                    raise
            except httpx.TransportError as error:
                last_error = error

            # Wait before retry (except on last attempt)
            if attempt < self._retry_attempts - 1:
                delay = (self._retry_delay_millis / 1000.0) * (2**attempt)
                logger.warn(
                    "HttpClient.retry",
                    {
                        "operation": operation,
                        "attempt": attempt + 1,
                        "delay": delay,
                        "error": str(last_error),
                    },
                )
                await asyncio.sleep(delay)

        logger.error(
            "HttpClient.retry",
            {"operation": operation, "error": "Max retries exceeded", "attempts": self._retry_attempts},
        )
        if last_error:
            raise last_error
        raise Exception("Max retries exceeded")

    async def close(self) -> None:
        """Close HTTP client and connection pool"""
        await self._client.aclose()
