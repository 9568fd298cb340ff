"""Import result models."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ImportFailure(BaseModel):
    """A non-fatal per-record or per-field failure.

    Collected during a run instead of raised, so one bad record does not
    lose the rest of the batch.

    Attributes:
        error: Human-readable message
        data: Snapshot of the offending data
        details: Optional structured detail (``path``, ``cause``, ...)
        warning: True for advisory entries (``existingAction="warn"``)
    """

    error: str
    data: Any = None
    details: dict[str, Any] | None = None
    warning: bool = False


class ImportValidationError(BaseModel):
    """A structural problem in the interchange document."""

    error: str
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def at(
        cls, message: str, path: list[str] | None = None, entry: Any = None
    ) -> "ImportValidationError":
        """Build an error located at ``path`` (joined with dots)."""
        return cls(
            error=message,
            data={"entry": entry, "path": ".".join(path) if path else None},
        )


class ImportResult(BaseModel):
    """Outcome of a completed (synchronous or background) import run."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    failures: list[ImportFailure] = Field(default_factory=list)
    errors: list[ImportValidationError] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors and not any(not f.warning for f in self.failures)


class ImportStarted(BaseModel):
    """Acknowledgement that a background import has begun."""

    status: Literal["started"] = "started"
