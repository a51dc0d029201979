import json
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.specs.common.enums import JobStatus
from src.specs.models.domain import WebMemoryDocument
from src.specs.models.persistence import JobDocument
from .state_common import state_dir

_LOCK = threading.RLock()


class _JsonContainer:
    """One JSON file per container holding ``{id: document}``.

    Every write stamps a fresh ``_etag`` so callers can do the same
    optimistic-concurrency check they would against Cosmos.
    """

    def __init__(self, name: str, base_dir: Optional[Path] = None) -> None:
        self._dir = base_dir or state_dir()
        self._file = self._dir / f"{name}.json"

    def read_all(self) -> Dict[str, dict]:
        if not self._file.exists():
            return {}
        try:
            return json.loads(self._file.read_text())
        except Exception:
            return {}

    def write_all(self, data: Dict[str, dict]) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        self._file.write_text(json.dumps(data))

    def get(self, item_id: str) -> Optional[dict]:
        return self.read_all().get(item_id)

    def put(self, item: Dict[str, Any], *, if_absent: bool = False, if_match: Optional[str] = None) -> bool:
        with _LOCK:
            data = self.read_all()
            current = data.get(item["id"])
            if if_absent and current is not None:
                return False
            if if_match is not None and (current is None or current.get("_etag") != if_match):
                return False
            stored = dict(item)
            stored["_etag"] = uuid.uuid4().hex
            data[item["id"]] = stored
            self.write_all(data)
            return True

    def delete(self, item_id: str) -> None:
        with _LOCK:
            data = self.read_all()
            if data.pop(item_id, None) is not None:
                self.write_all(data)


def _job_from_item(item: dict) -> JobDocument:
    return JobDocument(**item, etag=item.get("_etag"))


class FileJobStore:
    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._container = _JsonContainer("webMemoryJobs", base_dir)

    def get(self, post_id: str) -> Optional[JobDocument]:
        item = self._container.get(post_id)
        return _job_from_item(item) if item else None

    def insert(self, job: JobDocument) -> bool:
        return self._container.put(job.to_document(), if_absent=True)

    def next_claimable(self, now_iso: str) -> Optional[JobDocument]:
        pending = [
            item
            for item in self._container.read_all().values()
            if item.get("status") == JobStatus.PENDING.value
            and (not item.get("leaseExpiresAt") or item["leaseExpiresAt"] < now_iso)
        ]
        if not pending:
            return None
        oldest = min(pending, key=lambda item: item.get("createdAt") or "")
        return _job_from_item(oldest)

    def replace(self, job: JobDocument) -> bool:
        return self._container.put(job.to_document(), if_match=job.etag or "")


class FileMemoryStore:
    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._container = _JsonContainer("postWebMemory", base_dir)

    def get(self, post_id: str) -> Optional[dict]:
        return self._container.get(post_id)

    def put(self, doc: WebMemoryDocument) -> None:
        self._container.put(doc.model_dump(mode="json"))

    def list_expired(self, cutoff_iso: str, limit: int) -> List[dict]:
        expired = [
            item
            for item in self._container.read_all().values()
            if (item.get("createdAt") or "") < cutoff_iso
        ]
        expired.sort(key=lambda item: item.get("createdAt") or "")
        return expired[:limit]

    def delete(self, post_id: str) -> None:
        self._container.delete(post_id)


class FilePostStore:
    """Read-only view of locally seeded posts (``posts.json``)."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._container = _JsonContainer("posts", base_dir)

    def get(self, post_id: str) -> Optional[dict]:
        return self._container.get(post_id)
