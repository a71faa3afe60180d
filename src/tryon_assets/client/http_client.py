"""
HTTP client for the generation service.

Communicates with the service using httpx AsyncClient. Supports:
- Multipart submission of images/video for the four generation kinds
- Task status polling
- Provider status and connectivity checks
- Connection pooling and bearer-token authentication

The client performs a single request per call. Retrying is left to the
RetryPolicy wrapping each call site.
"""

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from tryon_assets.client.base_client import BaseGenerationClient
from tryon_assets.exceptions import (
    ServiceRequestError,
    TransportError,
    TransportTimeoutError,
    error_from_status,
)
from tryon_assets.models.enums import GenerationKind
from tryon_assets.models.task_models import (
    GenerationPayload,
    ServiceStatus,
    TaskStatusResponse,
)

logger = structlog.get_logger(__name__)


# kind -> (endpoint, multipart field name)
SUBMIT_ENDPOINTS: dict[GenerationKind, tuple[str, str]] = {
    GenerationKind.BODY_FROM_IMAGES: ("/ai/generate-body-model", "images"),
    GenerationKind.BODY_FROM_VIDEO: ("/ai/generate-body-gaussian", "video"),
    GenerationKind.CLOTHING_FROM_IMAGE: ("/ai/generate-clothing-model", "image"),
    GenerationKind.CLOTHING_FROM_VIDEO: ("/ai/generate-clothing-gaussian", "video"),
}


class HttpGenerationClient(BaseGenerationClient):
    """
    Generation service client using httpx for async HTTP communication.

    API Endpoints:
    - POST /ai/generate-body-model, /ai/generate-body-gaussian,
      /ai/generate-clothing-model, /ai/generate-clothing-gaussian: submit
    - GET /ai/tasks/{id}: task status
    - GET /ai/service-status: provider health
    - GET /ai/test: connectivity check
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5001/api",
        timeout: float = 60.0,
        api_token: Optional[str] = None,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        """
        Initialize HTTP generation client.

        Args:
            base_url: Generation service URL
            timeout: Request timeout in seconds
            api_token: Bearer token sent with every request
            connection_limits: httpx connection pool limits (default: 10 max connections)
            transport: Custom httpx transport (tests use httpx.MockTransport)
            **kwargs: Additional config
        """
        super().__init__(base_url, timeout, **kwargs)

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0,
            )

        self.api_token = api_token
        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

    def set_token(self, token: Optional[str]) -> None:
        """Replace the bearer token (e.g. after the user signs in again)."""
        self.api_token = token
        if self._client is not None:
            self._client.headers.pop("Authorization", None)
            if token:
                self._client.headers["Authorization"] = f"Bearer {token}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.api_token:
                headers["Authorization"] = f"Bearer {self.api_token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request and translate failures into the error taxonomy."""
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"path": path, "timeout": self.timeout},
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"Network error: {e}",
                details={"path": path, "error_type": type(e).__name__},
            ) from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Generation service HTTP error",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise error_from_status(response.status_code, message, {"path": path})

        return response

    async def submit_job(self, kind: GenerationKind, payload: GenerationPayload) -> str:
        """
        Submit a generation job as multipart form data.

        Response (any of):
            {"success": true, "task": {"id": "...", "status": "pending"}}
            {"taskId": "..."}
            {"id": "..."}
        """
        endpoint, field_name = SUBMIT_ENDPOINTS[kind]
        files = [
            (field_name, (upload.filename, upload.content, upload.content_type))
            for upload in payload.files
        ]

        logger.info(
            "Submitting generation job",
            kind=kind.value,
            endpoint=endpoint,
            files=len(files),
            payload_bytes=sum(len(u.content) for u in payload.files),
        )

        response = await self._request("POST", endpoint, files=files, data=payload.form_fields())
        data = _json(response)

        task = data.get("task") if isinstance(data.get("task"), dict) else {}
        task_id = task.get("id") or data.get("taskId") or data.get("id")
        if not task_id:
            raise ServiceRequestError(
                "Submission response did not contain a task id",
                details={"keys": sorted(data.keys())},
            )

        logger.info("Generation job accepted", kind=kind.value, task_id=task_id)
        return str(task_id)

    async def get_job_status(self, task_id: str) -> TaskStatusResponse:
        """
        GET /ai/tasks/{id}.

        Response:
        {
            "id": "task_123",
            "status": "processing",
            "progress": 55,
            "result": {"downloadUrl": "...", "mirrorUrls": [...], "vertexCount": 12000, ...}
        }
        """
        response = await self._request("GET", f"/ai/tasks/{task_id}")
        data = _json(response)
        body = data["task"] if isinstance(data.get("task"), dict) else data

        try:
            return TaskStatusResponse.model_validate(body)
        except ValidationError as e:
            raise ServiceRequestError(
                "Malformed task status response",
                details={"task_id": task_id, "errors": e.errors(include_url=False)},
            ) from e

    async def get_service_status(self) -> list[ServiceStatus]:
        response = await self._request("GET", "/ai/service-status")
        data = _json(response)
        try:
            return [ServiceStatus.model_validate(s) for s in data.get("services", [])]
        except ValidationError as e:
            raise ServiceRequestError(
                "Malformed service status response",
                details={"errors": e.errors(include_url=False)},
            ) from e

    async def health_check(self) -> bool:
        """
        Check connectivity via GET /ai/test.

        Returns True if the service answers and reports the AI backend available.
        """
        try:
            response = await self._request("GET", "/ai/test")
            data = _json(response)
            available = bool(data.get("aiServiceAvailable", data.get("success", True)))
            logger.debug("Generation service health check", available=available)
            return available
        except Exception as e:
            logger.warning("Generation service health check failed", error=str(e))
            return False

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed generation client connection")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise ServiceRequestError(
            "Invalid JSON response from generation service",
            details={"status": response.status_code, "parse_error": str(e)},
        ) from e
    if not isinstance(data, dict):
        raise ServiceRequestError(
            "Unexpected response shape from generation service",
            details={"type": type(data).__name__},
        )
    return data


def _error_message(response: httpx.Response) -> str:
    """Pull the service's error text out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or f"HTTP {response.status_code}")
    return f"HTTP {response.status_code}"
