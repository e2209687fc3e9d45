"""
Face API Base Client - single connection point for all face service calls.

All repositories share one httpx.AsyncClient carrying the caller identity
and subscription key headers. No retries happen at this layer.
"""

from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

import httpx

from faceenroll.core.config import Settings
from faceenroll.core.exceptions import ServiceError
from faceenroll.core.logging import get_logger

logger = get_logger(__name__)

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"

T = TypeVar("T")


def parse_service_error(response: httpx.Response) -> Tuple[Optional[str], str]:
    """
    Extract (code, message) from an `{"error": {"code", "message"}}` body.
    Falls back to the raw text when the body is not JSON.
    """
    try:
        body = response.json()
    except ValueError:
        return None, response.text or f"HTTP {response.status_code}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("code"), error.get("message") or ""
    return None, response.text


class FaceApiBase:
    """
    Base face service client.
    Provides the shared HTTP connection for all repositories.
    """

    def __init__(
        self,
        base_url: str,
        subscription_key: str,
        user_agent: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not base_url or not subscription_key:
            raise ValueError("Face API endpoint and subscription key must be set")

        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "User-Agent": user_agent,
                "Accept": "application/json",
                SUBSCRIPTION_KEY_HEADER: subscription_key,
            },
            timeout=timeout,
            transport=transport,
        )
        logger.info(f"FaceApiBase initialized for {base_url}")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "FaceApiBase":
        return cls(
            base_url=settings.face_api_base_url,
            subscription_key=settings.faceapi_key,
            user_agent=settings.user_agent,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the underlying httpx client."""
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        content: Optional[bytes] = None
    ) -> httpx.Response:
        """
        Send one request to the face service.

        Args:
            method: HTTP method
            path: Path relative to the face API root
            operation: Operation name used in logs and errors
            params: Query parameters
            json: JSON body
            content: Raw body, sent as application/octet-stream

        Returns:
            The response, whatever its status

        Raises:
            ServiceError: the service could not be reached
        """
        headers = {}
        if content is not None:
            headers["Content-Type"] = "application/octet-stream"

        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(f"[FaceApi] {operation} transport failure: {e}")
            raise ServiceError(f"{operation} failed: {e}", operation=operation) from e

        logger.debug(f"[FaceApi] {method} {path} -> {response.status_code}")
        return response

    def parse_json(
        self,
        response: httpx.Response,
        operation: str,
        parse: Optional[Callable[[Any], T]] = None
    ) -> T:
        """
        Decode a success body, optionally through `parse`.

        Raises:
            ServiceError: the body is not JSON or does not have the expected shape
        """
        try:
            body = response.json()
            return parse(body) if parse is not None else body
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # pydantic ValidationError is a ValueError
            logger.warning(f"[FaceApi] {operation} returned an unreadable body: {type(e).__name__}: {e}")
            raise ServiceError(
                f"{operation} returned an unreadable body",
                status_code=response.status_code,
                operation=operation,
            ) from e

    def log_failure(self, response: httpx.Response, operation: str) -> Tuple[Optional[str], str]:
        """Log an unexpected response and return its (code, message)."""
        service_code, message = parse_service_error(response)
        logger.warning(
            f"[FaceApi] {operation} failed: HTTP {response.status_code} {service_code or ''} {message}".strip()
        )
        return service_code, message

    def error_for(self, response: httpx.Response, operation: str) -> ServiceError:
        """Build a ServiceError describing an unexpected response."""
        service_code, message = self.log_failure(response, operation)
        return ServiceError(
            f"{operation} failed with HTTP {response.status_code}: {message}",
            status_code=response.status_code,
            operation=operation,
            service_code=service_code,
        )

    async def aclose(self):
        await self._client.aclose()
