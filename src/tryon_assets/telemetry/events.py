"""
Telemetry event model.

One event is recorded per retry attempt, per task lifecycle step and per
candidate transition. Events are observational only: nothing reads them back
to make a control-flow decision.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tryon_assets.models.enums import ErrorKind

# Component names used by the package itself
COMPONENT_SUBMIT = "generation.submit"
COMPONENT_POLL = "generation.poll"
COMPONENT_FETCH = "asset.fetch"
COMPONENT_ORCHESTRATOR = "orchestrator"
COMPONENT_LOADER = "loader"


class TelemetryEvent(BaseModel):
    """An immutable telemetry record."""

    model_config = ConfigDict(frozen=True)

    component: str
    outcome: str
    attempt: int = Field(default=1, ge=0)
    error_kind: Optional[ErrorKind] = None
    duration_ms: float = Field(default=0.0, ge=0.0)
    reference: Optional[str] = None
    task_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
