"""
Renderer capability seam.

The loader hands a validated payload to an AssetRenderer and treats a
CapabilityError as "try the next candidate". Real rendering lives in the
UI layer; HeadlessRenderer only checks that the payload is renderable.
"""

from typing import Optional, Protocol, runtime_checkable

import structlog

from tryon_assets.exceptions import AssetValidationError, CapabilityError
from tryon_assets.loader.placeholder import build_placeholder
from tryon_assets.loader.validation import validate_payload
from tryon_assets.models.asset_models import AssetCandidate, LoadedAsset
from tryon_assets.models.enums import AssetFormat

logger = structlog.get_logger(__name__)


@runtime_checkable
class AssetRenderer(Protocol):
    """Renders one candidate's payload."""

    def is_available(self) -> bool:
        """Whether the device has a usable graphics context."""
        ...

    def render(self, candidate: AssetCandidate, payload: Optional[bytes], index: int) -> LoadedAsset:
        """
        Raises:
            CapabilityError: The device cannot display this asset
            AssetValidationError: The payload cannot be parsed
        """
        ...


class HeadlessRenderer:
    """
    Renderer without a display.

    Validates payloads and builds placeholders. `graphics_available=False`
    simulates a device without WebGL-class support: every mesh is refused with
    CapabilityError while procedural placeholders still render.
    """

    def __init__(
        self,
        graphics_available: bool = True,
        supported_formats: tuple[AssetFormat, ...] = (AssetFormat.GLB, AssetFormat.PROCEDURAL),
    ):
        self.graphics_available = graphics_available
        self.supported_formats = supported_formats

    def is_available(self) -> bool:
        return self.graphics_available

    def render(self, candidate: AssetCandidate, payload: Optional[bytes], index: int) -> LoadedAsset:
        if candidate.is_procedural:
            return LoadedAsset(
                reference=candidate.label,
                format=AssetFormat.PROCEDURAL,
                candidate_index=index,
                is_placeholder=True,
                primitives=build_placeholder(candidate.placeholder),
            )

        if not self.graphics_available:
            raise CapabilityError(
                "Graphics context unavailable on this device",
                details={"reference": candidate.reference},
            )
        if candidate.format not in self.supported_formats:
            raise CapabilityError(
                f"Renderer does not support {candidate.format.value}",
                details={"reference": candidate.reference},
            )
        if payload is None:
            raise AssetValidationError("No payload to render", details={"reference": candidate.reference})

        summary = validate_payload(payload, candidate.format)
        logger.debug("Rendered asset", reference=candidate.reference, meshes=summary.mesh_count if summary else 0)
        return LoadedAsset(
            reference=candidate.reference,
            format=candidate.format,
            candidate_index=index,
            summary=summary,
            payload=payload,
        )
