"""
Abstract base client for the remote generation service.

Defines the interface the orchestrator depends on. This abstraction keeps
the orchestrator independent of the transport and lets tests substitute an
in-memory fake.
"""

from abc import ABC, abstractmethod

import structlog

from tryon_assets.models.enums import GenerationKind
from tryon_assets.models.task_models import (
    GenerationPayload,
    ServiceStatus,
    TaskStatusResponse,
)

logger = structlog.get_logger(__name__)


class BaseGenerationClient(ABC):
    """
    Abstract base class for generation service clients.

    Responsibilities:
    - Send submit/status requests to the generation service
    - Parse responses into standardized models
    - Translate transport failures into the package error taxonomy

    Does NOT handle:
    - Retries (that's RetryPolicy's job)
    - Polling cadence (that's GenerationTaskOrchestrator's job)
    """

    def __init__(self, base_url: str, timeout: float = 60.0, **kwargs):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the generation service (e.g. http://localhost:5001/api)
            timeout: Request timeout in seconds
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized generation client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
        )

    @abstractmethod
    async def submit_job(self, kind: GenerationKind, payload: GenerationPayload) -> str:
        """
        Submit a generation job.

        Args:
            kind: What to generate
            payload: Media files and options

        Returns:
            Task id assigned by the service

        Raises:
            TransportError: Network/timeout/5xx errors (retryable)
            AuthorizationError: 401/403
            CapabilityError: Media type not supported by the service
            ServiceRequestError: Other 4xx or unparseable response
        """
        pass

    @abstractmethod
    async def get_job_status(self, task_id: str) -> TaskStatusResponse:
        """
        Fetch the current status of a job.

        Raises:
            TransportError: Network/timeout/5xx errors (retryable)
            AuthorizationError: 401/403
            AssetNotFoundError: Unknown task id
            ServiceRequestError: Unparseable response
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the generation service is reachable.

        Returns:
            True if healthy, False otherwise

        Note:
            This should NOT raise exceptions - return False on error.
        """
        pass

    async def get_service_status(self) -> list[ServiceStatus]:
        """Per-provider health as reported by the service. Empty if unsupported."""
        return []

    async def close(self):
        """
        Close client connections and cleanup resources.

        Default implementation does nothing.
        """
        logger.debug("Closing generation client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
