"""
Asset candidate and loaded-asset models used by the resilient loader.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from tryon_assets.models.enums import AssetFormat, ErrorKind, PlaceholderVariant


class AssetCandidate(BaseModel):
    """
    One entry in an ordered fallback chain for a 3D asset.

    PROCEDURAL candidates carry no reference and always succeed; they close
    every chain. `attempted` is set once a load has been tried, `failed`
    records whether that try ended in an error.
    """

    reference: Optional[str] = None
    format: AssetFormat = AssetFormat.GLB
    placeholder: PlaceholderVariant = PlaceholderVariant.AVATAR
    attempted: bool = False
    failed: bool = False
    last_error_kind: Optional[ErrorKind] = None

    @model_validator(mode="after")
    def _check_reference(self) -> "AssetCandidate":
        if self.format != AssetFormat.PROCEDURAL and not self.reference:
            raise ValueError(f"{self.format.value} candidate requires a reference")
        return self

    @classmethod
    def glb(cls, reference: str) -> "AssetCandidate":
        return cls(reference=reference, format=AssetFormat.GLB)

    @classmethod
    def procedural(cls, variant: PlaceholderVariant = PlaceholderVariant.AVATAR) -> "AssetCandidate":
        return cls(format=AssetFormat.PROCEDURAL, placeholder=variant)

    @property
    def is_procedural(self) -> bool:
        return self.format == AssetFormat.PROCEDURAL

    @property
    def label(self) -> str:
        """Reference for logs and telemetry (procedural entries have none)."""
        return self.reference or f"procedural:{self.placeholder.value}"


class CandidateFailure(BaseModel):
    """Why one candidate was skipped during a resolution pass."""

    candidate_index: int = Field(..., ge=0)
    reference: str
    error_kind: ErrorKind
    message: str


class MeshSummary(BaseModel):
    """What the GLB JSON chunk declares (counts only, no geometry)."""

    byte_length: int = Field(..., ge=0)
    mesh_count: int = Field(default=0, ge=0)
    node_count: int = Field(default=0, ge=0)
    material_count: int = Field(default=0, ge=0)
    generator: Optional[str] = None


class PlaceholderPrimitive(BaseModel):
    """One primitive of the procedural placeholder."""

    name: str
    shape: Literal["sphere", "box", "plane"]
    position: tuple[float, float, float]
    size: tuple[float, float, float]
    color: str


class LoadedAsset(BaseModel):
    """
    A displayable asset produced by the loader.

    `is_placeholder` marks the lower-fidelity procedural fallback so the UI
    can offer a manual reload instead of an error.
    """

    reference: str
    format: AssetFormat
    candidate_index: int = Field(..., ge=0)
    is_placeholder: bool = False
    from_cache: bool = False
    summary: Optional[MeshSummary] = None
    primitives: list[PlaceholderPrimitive] = Field(default_factory=list)
    failures: list[CandidateFailure] = Field(default_factory=list)
    payload: Optional[bytes] = Field(default=None, repr=False, exclude=True)
