"""Integration test fixtures (service checks and prerequisites).

Provides fixtures for checking if external services are available.
Integration tests are skipped if required services are not running.
"""

import httpx
import pytest
import pytest_asyncio

from tryon_assets.config import settings


@pytest.fixture(scope="session")
def check_generation_service():
    """Check if the generation service answers at GENERATION_SERVICE_URL.

    Skips tests if the service is not reachable.
    """
    url = f"{settings.GENERATION_SERVICE_URL.rstrip('/')}/ai/test"
    try:
        response = httpx.get(url, timeout=5)
        if response.status_code != 200:
            pytest.skip("Generation service not available (non-200 status)")
    except Exception as e:
        pytest.skip(f"Generation service not available: {e}")


@pytest_asyncio.fixture
async def real_generation_client(check_generation_service):
    """Real HttpGenerationClient instance for integration tests.

    Requires the generation service to be running (checked by check_generation_service fixture).
    """
    from tryon_assets.client.http_client import HttpGenerationClient

    client = HttpGenerationClient(
        base_url=settings.GENERATION_SERVICE_URL,
        timeout=settings.HTTP_TIMEOUT,
        api_token=settings.GENERATION_API_TOKEN,
    )
    yield client
    await client.close()
