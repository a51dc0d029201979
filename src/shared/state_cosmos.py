from typing import List, Optional

from src.shared.config import MEMORY_JOBS_CONTAINER, POSTS_CONTAINER, WEB_MEMORY_CONTAINER
from src.shared.cosmos_client import CosmosDBClient, get_cosmos_client
from src.specs.common.enums import JobStatus
from src.specs.models.domain import WebMemoryDocument
from src.specs.models.persistence import JobDocument


def _job_from_item(item: dict) -> JobDocument:
    return JobDocument(**item, etag=item.get("_etag"))


class CosmosJobStore:
    """Jobs keyed and partitioned by postId."""

    def __init__(self, client: Optional[CosmosDBClient] = None) -> None:
        self._client = client or get_cosmos_client()

    def get(self, post_id: str) -> Optional[JobDocument]:
        item = self._client.read_item(MEMORY_JOBS_CONTAINER, post_id, post_id)
        return _job_from_item(item) if item else None

    def insert(self, job: JobDocument) -> bool:
        return self._client.create_item(MEMORY_JOBS_CONTAINER, job.to_document())

    def next_claimable(self, now_iso: str) -> Optional[JobDocument]:
        query = (
            "SELECT TOP 1 * FROM c WHERE c.status = @pending "
            "AND (NOT IS_DEFINED(c.leaseExpiresAt) OR IS_NULL(c.leaseExpiresAt) OR c.leaseExpiresAt < @now) "
            "ORDER BY c.createdAt ASC"
        )
        items = self._client.query_items(
            MEMORY_JOBS_CONTAINER,
            query,
            [
                {"name": "@pending", "value": JobStatus.PENDING.value},
                {"name": "@now", "value": now_iso},
            ],
        )
        return _job_from_item(items[0]) if items else None

    def replace(self, job: JobDocument) -> bool:
        return self._client.replace_item_if_match(MEMORY_JOBS_CONTAINER, job.to_document(), job.etag)


class CosmosMemoryStore:
    """WebMemory documents, one per post (``id == postId``)."""

    def __init__(self, client: Optional[CosmosDBClient] = None) -> None:
        self._client = client or get_cosmos_client()

    def get(self, post_id: str) -> Optional[dict]:
        return self._client.read_item(WEB_MEMORY_CONTAINER, post_id, post_id)

    def put(self, doc: WebMemoryDocument) -> None:
        self._client.upsert_item(WEB_MEMORY_CONTAINER, doc.model_dump(mode="json", exclude_none=True))

    def list_expired(self, cutoff_iso: str, limit: int) -> List[dict]:
        query = (
            "SELECT TOP @limit c.id, c.postId, c.createdAt FROM c "
            "WHERE c.createdAt < @cutoff ORDER BY c.createdAt ASC"
        )
        return self._client.query_items(
            WEB_MEMORY_CONTAINER,
            query,
            [
                {"name": "@limit", "value": limit},
                {"name": "@cutoff", "value": cutoff_iso},
            ],
        )

    def delete(self, post_id: str) -> None:
        self._client.delete_item(WEB_MEMORY_CONTAINER, post_id, post_id)


class CosmosPostStore:
    def __init__(self, client: Optional[CosmosDBClient] = None) -> None:
        self._client = client or get_cosmos_client()

    def get(self, post_id: str) -> Optional[dict]:
        items = self._client.query_items(
            POSTS_CONTAINER,
            "SELECT * FROM c WHERE c.id = @id",
            [{"name": "@id", "value": post_id}],
        )
        return items[0] if items else None
