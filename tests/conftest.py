"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest
from typing import Any, Dict

from tryon_assets.config import Settings
from tryon_assets.loader.validation import build_glb
from tryon_assets.models.task_models import AssetBundle, GenerationPayload, UploadFile


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.POLL_INTERVAL_SECONDS = 0.0
    """
    return Settings(
        # === Application ===
        APP_NAME="Try-On Asset Layer (Test)",
        APP_VERSION="0.1.0",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        CONFIGURE_LOGGING=False,  # Leave pytest's log capture alone

        # === Generation Service ===
        GENERATION_SERVICE_URL="http://localhost:5001/api",
        GENERATION_API_TOKEN=None,
        HTTP_TIMEOUT=5.0,

        # === Retry & Backoff ===
        SUBMIT_MAX_ATTEMPTS=3,
        POLL_MAX_ATTEMPTS=3,
        ASSET_FETCH_MAX_ATTEMPTS=3,
        RETRY_BASE_DELAY_MS=1000,
        RETRY_MAX_DELAY_MS=30000,

        # === Task Polling ===
        POLL_INTERVAL_SECONDS=0.0,  # No waiting between polls in tests
        POLL_MAX_WAIT_SECONDS=600.0,
        SUPERSEDE_SAME_KIND=True,

        # === Asset Loading ===
        ASSET_CACHE_ENABLED=True,

        # === Telemetry ===
        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
        TELEMETRY_LOG_EVENTS=False,
    )


@pytest.fixture
def glb_document() -> Dict[str, Any]:
    """Minimal glTF document with one mesh, one node and one material."""
    return {
        "asset": {"version": "2.0", "generator": "tryon-test"},
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0}],
        "meshes": [{"primitives": [{"attributes": {"POSITION": 0}}]}],
        "materials": [{"name": "fabric"}],
    }


@pytest.fixture
def glb_bytes(glb_document: Dict[str, Any]) -> bytes:
    """Valid GLB payload built from glb_document."""
    return build_glb(glb_document, binary=b"\x00" * 36)


@pytest.fixture
def sample_bundle() -> AssetBundle:
    """AssetBundle as returned by a completed body generation."""
    return AssetBundle.model_validate(
        {
            "id": "model_001",
            "downloadUrl": "https://cdn.example.com/models/body_001.glb",
            "mirrorUrls": [
                "https://mirror-1.example.com/models/body_001.glb",
                "https://mirror-2.example.com/models/body_001.glb",
            ],
            "vertexCount": 12000,
            "faceCount": 24000,
            "previewUrl": "https://cdn.example.com/previews/body_001.png",
        }
    )


@pytest.fixture
def sample_payload() -> GenerationPayload:
    """Two photos for a body-from-images request."""
    return GenerationPayload(
        files=[
            UploadFile(filename="front.jpg", content=b"\xff\xd8front", content_type="image/jpeg"),
            UploadFile(filename="side.jpg", content=b"\xff\xd8side", content_type="image/jpeg"),
        ],
        options={"height": 175, "highQuality": True},
    )
