"""Progress channel status snapshots and events."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ImportPhase(str, Enum):
    """Lifecycle of a single import run."""

    IDLE = "idle"
    VALIDATING = "validating"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class ImportStatus(BaseModel):
    """Most recent status of the current (or last) import run."""

    status: ImportPhase = ImportPhase.IDLE
    message: str = ""
    progress: int = Field(0, ge=0, le=100)


class ProgressEvent(BaseModel):
    """A single notification delivered to the channel subscriber."""

    event: Literal["status", "complete", "error", "close"]
    data: dict[str, Any] = Field(default_factory=dict)
