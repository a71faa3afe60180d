"""
Enumerations for the Try-On Asset Layer data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class GenerationKind(str, Enum):
    """
    Kind of remote generation job.

    Body kinds produce an avatar mesh, clothing kinds a garment mesh.
    """

    BODY_FROM_IMAGES = "body_from_images"
    BODY_FROM_VIDEO = "body_from_video"
    CLOTHING_FROM_IMAGE = "clothing_from_image"
    CLOTHING_FROM_VIDEO = "clothing_from_video"

    @property
    def is_body(self) -> bool:
        return self in (GenerationKind.BODY_FROM_IMAGES, GenerationKind.BODY_FROM_VIDEO)


class TaskStatus(str, Enum):
    """
    Lifecycle of a generation task.

    QUEUED and PROCESSING are non-terminal and handled identically by the
    poll loop; COMPLETED and FAILED are terminal.
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class AssetFormat(str, Enum):
    """Payload format of an asset candidate."""

    GLB = "glb"
    PROCEDURAL = "procedural"


class PlaceholderVariant(str, Enum):
    """Shape family produced by the procedural placeholder."""

    AVATAR = "avatar"
    GARMENT = "garment"


class ErrorKind(str, Enum):
    """
    Machine-checkable error classification shared by every component.

    TRANSPORT is the only retryable kind; everything else is terminal.
    """

    TRANSPORT = "transport"
    AUTHORIZATION = "authorization"
    CAPABILITY = "capability"
    REMOTE_JOB = "remote_job"
    INVALID_ASSET = "invalid_asset"
    NOT_FOUND = "not_found"
    REQUEST = "request"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class RetryDecision(str, Enum):
    """Outcome of classifying an error for the retry policy."""

    RETRYABLE = "retryable"
    TERMINAL = "terminal"
