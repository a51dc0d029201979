from datetime import datetime, timedelta
from typing import Optional

from src.shared.config import CLEANUP_BATCH_SIZE, ttl_days as configured_ttl_days
from src.shared.logging_utils import info as log_info, warning as log_warning
from src.shared.state import MemoryStore, get_memory_store
from src.specs.common.datetime_utils import format_iso_datetime, utc_now
from src.specs.models.activities import CleanupResult


def sweep_expired_memories(
    store: Optional[MemoryStore] = None,
    *,
    ttl_days: Optional[int] = None,
    now: Optional[datetime] = None,
    batch_size: int = CLEANUP_BATCH_SIZE,
) -> CleanupResult:
    """Delete up to ``batch_size`` web memories created before ``now - ttl``."""
    store = store or get_memory_store()
    days = ttl_days or configured_ttl_days()
    cutoff = format_iso_datetime((now or utc_now()) - timedelta(days=days))

    expired = store.list_expired(cutoff, batch_size)
    result = CleanupResult(cutoff=cutoff, found=len(expired))
    for item in expired:
        post_id = item.get("postId") or item.get("id")
        try:
            store.delete(post_id)
            result.deleted += 1
        except Exception as exc:
            result.failed += 1
            log_warning(post_id, "cleanup:delete_failed", error=str(exc))

    log_info(
        None,
        "cleanup:completed",
        cutoff=cutoff,
        ttlDays=days,
        found=result.found,
        deleted=result.deleted,
        failed=result.failed,
    )
    return result
