from typing import List, Optional, Protocol

from src.specs.models.domain import WebMemoryDocument
from src.specs.models.persistence import JobDocument
from src.shared.logging_utils import info as log_info
from .state_common import selected_backend


class JobStore(Protocol):
    def get(self, post_id: str) -> Optional[JobDocument]: ...

    def insert(self, job: JobDocument) -> bool: ...

    def next_claimable(self, now_iso: str) -> Optional[JobDocument]: ...

    def replace(self, job: JobDocument) -> bool: ...


class MemoryStore(Protocol):
    def get(self, post_id: str) -> Optional[dict]: ...

    def put(self, doc: WebMemoryDocument) -> None: ...

    def list_expired(self, cutoff_iso: str, limit: int) -> List[dict]: ...

    def delete(self, post_id: str) -> None: ...


class PostStore(Protocol):
    def get(self, post_id: str) -> Optional[dict]: ...


def _log_backend(kind: str, backend: str) -> None:
    log_info(None, "state:backend_selected", store=kind, backend=backend)


def get_job_store() -> JobStore:
    backend = selected_backend()
    _log_backend("jobs", backend)
    if backend == "cosmos":
        from .state_cosmos import CosmosJobStore
        return CosmosJobStore()
    from .state_file import FileJobStore
    return FileJobStore()


def get_memory_store() -> MemoryStore:
    backend = selected_backend()
    _log_backend("memory", backend)
    if backend == "cosmos":
        from .state_cosmos import CosmosMemoryStore
        return CosmosMemoryStore()
    from .state_file import FileMemoryStore
    return FileMemoryStore()


def get_post_store() -> PostStore:
    backend = selected_backend()
    _log_backend("posts", backend)
    if backend == "cosmos":
        from .state_cosmos import CosmosPostStore
        return CosmosPostStore()
    from .state_file import FilePostStore
    return FilePostStore()
