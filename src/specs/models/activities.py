from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class JobRunResult(BaseModel):
    """Summary of one worker invocation, logged and returned to callers."""

    postId: Optional[str] = None
    status: Optional[str] = None
    outcome: Optional[str] = None
    attempts: int = 0
    queryCount: int = 0
    resultCount: int = 0
    error: Optional[str] = None


class CleanupResult(BaseModel):
    cutoff: str
    found: int = Field(default=0, ge=0)
    deleted: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)


__all__ = [
    "JobRunResult",
    "CleanupResult",
]
