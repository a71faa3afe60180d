"""
Asset service facade.

Wires settings, the generation client, the task orchestrator, the asset
loader and telemetry into the single object a UI layer talks to.

Usage:
    async with create_service() as service:
        task = await service.submit_generation(GenerationKind.BODY_FROM_IMAGES, payload)
        task = await service.wait_for_task(task)
        asset = await service.resolve_task_asset(task)
"""

from typing import Optional

import structlog

from tryon_assets.client.base_client import BaseGenerationClient
from tryon_assets.client.http_client import HttpGenerationClient
from tryon_assets.config import Settings, settings as default_settings
from tryon_assets.exceptions import CapabilityError, SubmissionError
from tryon_assets.loader.asset_loader import ResilientAssetLoader, build_candidate_chain
from tryon_assets.loader.renderer import AssetRenderer, HeadlessRenderer
from tryon_assets.logging_config import configure_logging
from tryon_assets.models.asset_models import AssetCandidate, LoadedAsset
from tryon_assets.models.enums import GenerationKind, PlaceholderVariant, TaskStatus
from tryon_assets.models.task_models import GenerationPayload, GenerationTask, ServiceStatus
from tryon_assets.tasks.orchestrator import GenerationTaskOrchestrator, TaskCallback
from tryon_assets.telemetry.sinks import TelemetrySink, create_telemetry_sink

logger = structlog.get_logger(__name__)


class AssetService:
    """
    Entry point for generation and asset display.

    Attributes:
        client: Generation service client
        orchestrator: Task submission and polling
        loader: Candidate chain resolution
        renderer: Capability checks before submission and during loading
        telemetry: Shared sink
    """

    def __init__(
        self,
        client: BaseGenerationClient,
        orchestrator: GenerationTaskOrchestrator,
        loader: ResilientAssetLoader,
        renderer: AssetRenderer,
        telemetry: Optional[TelemetrySink] = None,
    ):
        self.client = client
        self.orchestrator = orchestrator
        self.loader = loader
        self.renderer = renderer
        self.telemetry = telemetry

    # === Generation ===

    async def submit_generation(
        self,
        kind: GenerationKind,
        payload: GenerationPayload,
        on_update: TaskCallback | None = None,
    ) -> GenerationTask:
        """
        Submit a generation job.

        Raises:
            SubmissionError: kind CAPABILITY if this device cannot display the
                result (nothing is sent), otherwise the submission failure
        """
        if not self.renderer.is_available():
            cause = CapabilityError("Graphics context unavailable on this device")
            logger.warning("Refusing generation without graphics capability", kind=kind.value)
            raise SubmissionError(
                "This device cannot display 3D models",
                cause=cause,
                details={"kind": kind.value},
            )
        return await self.orchestrator.submit(kind, payload, on_update=on_update)

    def on_task_update(self, task: GenerationTask, callback: TaskCallback) -> None:
        self.orchestrator.on_task_update(task, callback)

    def discard_task(self, task: GenerationTask) -> None:
        self.orchestrator.discard(task)

    async def wait_for_task(self, task: GenerationTask) -> GenerationTask:
        return await self.orchestrator.wait(task)

    # === Assets ===

    async def resolve_asset(self, candidates: list[AssetCandidate]) -> LoadedAsset:
        return await self.loader.resolve(candidates)

    async def resolve_task_asset(self, task: GenerationTask) -> LoadedAsset:
        """
        Resolve the asset of a task.

        A task without a result (failed or still running) resolves to the
        placeholder matching its kind.
        """
        variant = PlaceholderVariant.AVATAR if task.kind.is_body else PlaceholderVariant.GARMENT
        if task.status != TaskStatus.COMPLETED or task.result is None:
            return await self.loader.resolve([AssetCandidate.procedural(variant)])
        return await self.loader.resolve(build_candidate_chain(task.result, variant))

    # === Service health ===

    async def health_check(self) -> bool:
        return await self.client.health_check()

    async def get_service_status(self) -> list[ServiceStatus]:
        return await self.client.get_service_status()

    # === Lifecycle ===

    async def close(self) -> None:
        await self.orchestrator.close()
        await self.loader.close()
        await self.client.close()
        logger.info("Asset service closed")

    async def __aenter__(self) -> "AssetService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_service(
    settings: Settings | None = None,
    client: BaseGenerationClient | None = None,
    renderer: AssetRenderer | None = None,
    telemetry: TelemetrySink | None = None,
) -> AssetService:
    """
    Build the default service stack from settings.

    Args:
        settings: Defaults to the module-level settings
        client: Override the HTTP client (tests pass a mock)
        renderer: Override the headless renderer
        telemetry: Override the sink built from settings

    Configures logging first unless CONFIGURE_LOGGING is off (an embedding
    application that owns logging turns it off).
    """
    settings = settings or default_settings
    if settings.CONFIGURE_LOGGING:
        configure_logging(settings)

    telemetry = telemetry if telemetry is not None else create_telemetry_sink(settings)
    renderer = renderer or HeadlessRenderer()
    client = client or HttpGenerationClient(
        base_url=settings.GENERATION_SERVICE_URL,
        timeout=settings.HTTP_TIMEOUT,
        api_token=settings.GENERATION_API_TOKEN,
    )

    service = AssetService(
        client=client,
        orchestrator=GenerationTaskOrchestrator.from_settings(client, settings, telemetry),
        loader=ResilientAssetLoader.from_settings(settings, telemetry, renderer=renderer),
        renderer=renderer,
        telemetry=telemetry,
    )
    logger.info(
        "Asset service created",
        service_url=settings.GENERATION_SERVICE_URL,
        environment=settings.ENVIRONMENT,
        version=settings.APP_VERSION,
    )
    return service
