"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from tryon_assets.client.base_client import BaseGenerationClient
from tryon_assets.loader.fetcher import AssetFetcher
from tryon_assets.telemetry.sinks import InMemoryTelemetrySink


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays (seconds)."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    """Injectable sleep that returns immediately."""
    return SleepRecorder()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def telemetry_sink() -> InMemoryTelemetrySink:
    """In-memory sink to assert on recorded events."""
    return InMemoryTelemetrySink()


@pytest.fixture
def mock_generation_client():
    """Mock BaseGenerationClient for orchestrator tests."""
    mock = MagicMock(spec=BaseGenerationClient)
    mock.submit_job = AsyncMock(return_value="task_123")
    mock.get_job_status = AsyncMock()
    mock.health_check = AsyncMock(return_value=True)
    mock.get_service_status = AsyncMock(return_value=[])
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def mock_fetcher():
    """Mock AssetFetcher; configure fetch.side_effect per test."""
    mock = MagicMock(spec=AssetFetcher)
    mock.fetch = AsyncMock()
    mock.close = AsyncMock()
    return mock
