"""
Unit tests for the AssetService facade.
"""

from unittest.mock import MagicMock, patch

import pytest

from tryon_assets.exceptions import SubmissionError
from tryon_assets.loader import HeadlessRenderer
from tryon_assets.models.enums import ErrorKind, GenerationKind, PlaceholderVariant, TaskStatus
from tryon_assets.models.task_models import GenerationTask, TaskError, TaskStatusResponse
from tryon_assets.service import AssetService, create_service
from tryon_assets.telemetry.sinks import InMemoryTelemetrySink


@pytest.fixture
def service(test_settings, mock_generation_client, mock_fetcher, telemetry_sink) -> AssetService:
    svc = create_service(test_settings, client=mock_generation_client, telemetry=telemetry_sink)
    svc.loader.fetcher = mock_fetcher
    return svc


@pytest.mark.asyncio
async def test_end_to_end_generation_and_load(service, mock_generation_client, mock_fetcher, sample_payload, sample_bundle, glb_bytes):
    """Test submit -> poll to completion -> resolve the primary asset."""
    mock_generation_client.get_job_status.side_effect = [
        TaskStatusResponse(status=TaskStatus.PROCESSING, progress=40),
        TaskStatusResponse(status=TaskStatus.COMPLETED, progress=100, result=sample_bundle),
    ]
    mock_fetcher.fetch.return_value = glb_bytes
    updates = []

    task = await service.submit_generation(GenerationKind.BODY_FROM_IMAGES, sample_payload, on_update=updates.append)
    task = await service.wait_for_task(task)
    asset = await service.resolve_task_asset(task)

    assert task.status == TaskStatus.COMPLETED
    assert [u.progress for u in updates] == [40, 100]
    assert asset.reference == sample_bundle.primary_url
    assert not asset.is_placeholder
    await service.close()


@pytest.mark.asyncio
async def test_submit_rejected_without_graphics(test_settings, mock_generation_client, sample_payload):
    """Test no request is sent when the device cannot display the result."""
    svc = create_service(
        test_settings,
        client=mock_generation_client,
        renderer=HeadlessRenderer(graphics_available=False),
        telemetry=InMemoryTelemetrySink(),
    )

    with pytest.raises(SubmissionError) as exc_info:
        await svc.submit_generation(GenerationKind.BODY_FROM_IMAGES, sample_payload)

    assert exc_info.value.kind == ErrorKind.CAPABILITY
    mock_generation_client.submit_job.assert_not_awaited()
    await svc.close()


@pytest.mark.asyncio
async def test_failed_task_resolves_to_matching_placeholder(service, mock_fetcher):
    task = GenerationTask(
        id="t1",
        kind=GenerationKind.CLOTHING_FROM_IMAGE,
        status=TaskStatus.FAILED,
        error=TaskError(message="AI could not segment the garment"),
    )

    asset = await service.resolve_task_asset(task)

    assert asset.is_placeholder
    assert asset.reference == f"procedural:{PlaceholderVariant.GARMENT.value}"
    mock_fetcher.fetch.assert_not_awaited()
    await service.close()


@pytest.mark.asyncio
async def test_health_and_status_delegate(service, mock_generation_client):
    assert await service.health_check() is True
    assert await service.get_service_status() == []
    mock_generation_client.health_check.assert_awaited_once()
    await service.close()


@pytest.mark.asyncio
async def test_discard_and_update_delegate(service, mock_generation_client, sample_payload):
    mock_generation_client.get_job_status.return_value = TaskStatusResponse(status=TaskStatus.PROCESSING, progress=1)
    task = await service.submit_generation(GenerationKind.BODY_FROM_VIDEO, sample_payload)

    service.on_task_update(task, MagicMock())
    service.discard_task(task)

    assert service.orchestrator.active_tasks() == []
    await service.close()


@pytest.mark.asyncio
async def test_context_manager_closes_everything(test_settings, mock_generation_client, mock_fetcher):
    async with create_service(test_settings, client=mock_generation_client, telemetry=InMemoryTelemetrySink()) as svc:
        svc.loader.fetcher = mock_fetcher

    mock_generation_client.close.assert_awaited_once()
    mock_fetcher.close.assert_awaited_once()


def test_create_service_configures_logging_when_enabled(test_settings, mock_generation_client):
    with patch("tryon_assets.service.configure_logging") as configure:
        create_service(test_settings, client=mock_generation_client, telemetry=InMemoryTelemetrySink())
        configure.assert_not_called()

        test_settings.CONFIGURE_LOGGING = True
        create_service(test_settings, client=mock_generation_client, telemetry=InMemoryTelemetrySink())
        configure.assert_called_once_with(test_settings)
