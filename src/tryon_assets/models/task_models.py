"""
Generation task data models.

These models describe what is submitted to the remote generation service,
what it answers on status polls, and the client-side GenerationTask that the
orchestrator keeps up to date. Field aliases follow the service's camelCase
JSON so responses can be validated directly.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tryon_assets.models.enums import ErrorKind, GenerationKind, TaskStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadFile(BaseModel):
    """A single media file attached to a generation request."""

    filename: str
    content: bytes = Field(..., repr=False)
    content_type: str = "application/octet-stream"


class GenerationPayload(BaseModel):
    """
    Media and options for one generation request.

    The schema of `options` is owned by the generation service; values are
    sent as multipart form fields.
    """

    files: list[UploadFile] = Field(..., min_length=1)
    options: dict[str, str | int | float | bool] = Field(default_factory=dict)

    def form_fields(self) -> dict[str, str]:
        """Render options as multipart form values (booleans as 'true'/'false')."""
        fields: dict[str, str] = {}
        for key, value in self.options.items():
            fields[key] = str(value).lower() if isinstance(value, bool) else str(value)
        return fields


class AssetBundle(BaseModel):
    """
    Result of a completed generation task.

    Holds the primary asset URL plus optional mirrors and mesh metadata.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    asset_id: Optional[str] = Field(default=None, alias="id")
    primary_url: str = Field(..., alias="downloadUrl", min_length=1)
    mirror_urls: list[str] = Field(default_factory=list, alias="mirrorUrls")
    vertex_count: int = Field(default=0, alias="vertexCount", ge=0)
    face_count: int = Field(default=0, alias="faceCount", ge=0)
    preview_url: Optional[str] = Field(default=None, alias="previewUrl")
    category: Optional[str] = None
    measurements: Optional[dict[str, Any]] = None
    materials: list[dict[str, Any]] = Field(default_factory=list)

    def references(self) -> list[str]:
        """Primary URL followed by mirrors, in order, without duplicates."""
        seen: set[str] = set()
        ordered: list[str] = []
        for url in [self.primary_url, *self.mirror_urls]:
            if url and url not in seen:
                seen.add(url)
                ordered.append(url)
        return ordered


class TaskError(BaseModel):
    """Failure recorded on a task that reached FAILED."""

    message: str
    kind: ErrorKind = ErrorKind.REMOTE_JOB


class GenerationTask(BaseModel):
    """
    One outstanding or completed remote generation job.

    Created by a successful submission and mutated only by the orchestrator's
    poll loop. `result` is set only when COMPLETED, `error` only when FAILED.
    """

    id: str = Field(..., min_length=1)
    kind: GenerationKind
    status: TaskStatus = TaskStatus.QUEUED
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    result: Optional[AssetBundle] = None
    error: Optional[TaskError] = None
    polls: int = Field(default=0, ge=0, description="Status requests that returned a response")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _check_outcome_fields(self) -> "GenerationTask":
        if self.result is not None and self.status != TaskStatus.COMPLETED:
            raise ValueError("result is only allowed on a COMPLETED task")
        if self.error is not None and self.status != TaskStatus.FAILED:
            raise ValueError("error is only allowed on a FAILED task")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class TaskStatusResponse(BaseModel):
    """
    Parsed answer of GET /ai/tasks/{id}.

    The service reports 'pending' for queued jobs; it is normalized to QUEUED.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    task_id: Optional[str] = Field(default=None, alias="id")
    status: TaskStatus
    progress: Optional[int] = None
    result: Optional[AssetBundle] = None
    error: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "pending":
                return TaskStatus.QUEUED
        return value

    @field_validator("progress", mode="before")
    @classmethod
    def _clamp_progress(cls, value: Any) -> Any:
        if value is None:
            return None
        return max(0, min(100, int(value)))


class ServiceStatus(BaseModel):
    """Health of one generation provider, as reported by GET /ai/service-status."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    provider: str
    status: Literal["online", "offline", "degraded"]
    response_time_ms: float = Field(default=0.0, alias="responseTime")
    error_rate: float = Field(default=0.0, alias="errorRate")
    last_check: Optional[datetime] = Field(default=None, alias="lastCheck")
    capabilities: list[str] = Field(default_factory=list)
