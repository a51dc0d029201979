from datetime import datetime, timedelta, timezone

from src.specs.common.datetime_utils import format_iso_datetime
from src.specs.models.domain import WebMemory
from src.workflows.cleanup import sweep_expired_memories
from src.workflows.post_web_memory import build_memory_document

NOW = datetime(2024, 6, 30, 3, 30, tzinfo=timezone.utc)


def _store_memory(store, post_id: str, age_days: int) -> None:
    memory = WebMemory(summary="s", consensus="c", generatedAtIso=format_iso_datetime(NOW))
    store.put(
        build_memory_document(
            post_id,
            memory,
            query_count=1,
            result_count=1,
            now=NOW - timedelta(days=age_days),
            ttl_days=30,
        )
    )


def test_sweep_deletes_only_memories_past_ttl(memory_store):
    _store_memory(memory_store, "old", 31)
    _store_memory(memory_store, "fresh", 29)

    result = sweep_expired_memories(memory_store, ttl_days=30, now=NOW)

    assert (result.found, result.deleted, result.failed) == (1, 1, 0)
    assert result.cutoff == format_iso_datetime(NOW - timedelta(days=30))
    assert memory_store.get("old") is None
    assert memory_store.get("fresh") is not None


def test_sweep_respects_batch_size(memory_store):
    for i in range(5):
        _store_memory(memory_store, f"old{i}", 40 + i)

    result = sweep_expired_memories(memory_store, ttl_days=30, now=NOW, batch_size=2)

    assert result.deleted == 2
    # Oldest first
    assert memory_store.get("old4") is None and memory_store.get("old3") is None
    assert memory_store.get("old0") is not None


def test_sweep_uses_configured_ttl(memory_store, monkeypatch):
    monkeypatch.setenv("POST_WEB_MEMORY_TTL_DAYS", "7")
    _store_memory(memory_store, "week_old", 8)

    assert sweep_expired_memories(memory_store, now=NOW).deleted == 1


def test_sweep_counts_failed_deletes_and_continues(memory_store, monkeypatch):
    _store_memory(memory_store, "a", 35)
    _store_memory(memory_store, "b", 36)
    real_delete = memory_store.delete

    def flaky_delete(post_id):
        if post_id == "b":
            raise RuntimeError("service unavailable")
        real_delete(post_id)

    monkeypatch.setattr(memory_store, "delete", flaky_delete)

    result = sweep_expired_memories(memory_store, ttl_days=30, now=NOW)

    assert (result.found, result.deleted, result.failed) == (2, 1, 1)
    assert memory_store.get("a") is None
    assert memory_store.get("b") is not None


def test_sweep_with_nothing_expired(memory_store):
    result = sweep_expired_memories(memory_store, ttl_days=30, now=NOW)

    assert (result.found, result.deleted, result.failed) == (0, 0, 0)
