"""
Pydantic data models for the Try-On Asset Layer.

Includes:
- Enums (GenerationKind, TaskStatus, AssetFormat, ErrorKind, ...)
- Task models (GenerationPayload, AssetBundle, GenerationTask, TaskStatusResponse)
- Asset models (AssetCandidate, LoadedAsset, CandidateFailure)
"""

from tryon_assets.models.enums import (
    AssetFormat,
    ErrorKind,
    GenerationKind,
    PlaceholderVariant,
    RetryDecision,
    TaskStatus,
)
from tryon_assets.models.task_models import (
    AssetBundle,
    GenerationPayload,
    GenerationTask,
    ServiceStatus,
    TaskError,
    TaskStatusResponse,
    UploadFile,
)
from tryon_assets.models.asset_models import (
    AssetCandidate,
    CandidateFailure,
    LoadedAsset,
    MeshSummary,
    PlaceholderPrimitive,
)

__all__ = [
    # Enums
    "AssetFormat",
    "ErrorKind",
    "GenerationKind",
    "PlaceholderVariant",
    "RetryDecision",
    "TaskStatus",
    # Task models
    "AssetBundle",
    "GenerationPayload",
    "GenerationTask",
    "ServiceStatus",
    "TaskError",
    "TaskStatusResponse",
    "UploadFile",
    # Asset models
    "AssetCandidate",
    "CandidateFailure",
    "LoadedAsset",
    "MeshSummary",
    "PlaceholderPrimitive",
]
