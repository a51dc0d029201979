from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.specs.common.enums import JobStatus


class JobDocument(BaseModel):
    """Queue document for "generate web memory for post X", keyed by postId."""

    model_config = ConfigDict(frozen=True, extra="ignore", use_enum_values=True, validate_default=True)

    id: str
    postId: str
    status: JobStatus = JobStatus.PENDING
    attempts: int = Field(default=0, ge=0)
    lastErrorMessage: Optional[str] = None
    lastErrorAt: Optional[str] = None
    createdAt: str
    processedAt: Optional[str] = None
    leaseExpiresAt: Optional[str] = None
    outcome: Optional[str] = None
    # Optimistic-concurrency token from the store; never written back as data
    etag: Optional[str] = Field(default=None, exclude=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED.value, JobStatus.FAILED.value)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


__all__ = [
    "JobDocument",
]
