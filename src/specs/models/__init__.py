from __future__ import annotations

from typing import Dict, Type

from pydantic import BaseModel

from .activities import CleanupResult, JobRunResult
from .domain import MemorySource, PostInput, ScrapedResult, WebMemory, WebMemoryDocument
from .persistence import JobDocument


# Registry mapping output schema filenames to models for generation
SCHEMA_MODELS: Dict[str, Type[BaseModel]] = {
    "post.input.schema.json": PostInput,
    "scraped.result.schema.json": ScrapedResult,
    "memory.source.schema.json": MemorySource,
    "web.memory.schema.json": WebMemory,
    "web.memory.document.schema.json": WebMemoryDocument,
    "job.document.schema.json": JobDocument,
    "job.run.result.schema.json": JobRunResult,
    "cleanup.result.schema.json": CleanupResult,
}

__all__ = [
    "PostInput",
    "ScrapedResult",
    "MemorySource",
    "WebMemory",
    "WebMemoryDocument",
    "JobDocument",
    "JobRunResult",
    "CleanupResult",
    "SCHEMA_MODELS",
]
