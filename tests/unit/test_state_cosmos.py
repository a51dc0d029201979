from unittest.mock import MagicMock

from azure.core import MatchConditions
from azure.cosmos import exceptions

from src.shared.config import MEMORY_JOBS_CONTAINER, WEB_MEMORY_CONTAINER
from src.shared.cosmos_client import CosmosDBClient
from src.shared.state_cosmos import CosmosJobStore, CosmosMemoryStore


def _client_with(container: MagicMock) -> CosmosDBClient:
    client = CosmosDBClient.__new__(CosmosDBClient)
    client._containers = {}
    client.database = MagicMock()
    client.database.get_container_client.return_value = container
    return client


def test_job_round_trip_carries_etag():
    container = MagicMock()
    container.read_item.return_value = {
        "id": "p1",
        "postId": "p1",
        "status": "pending",
        "attempts": 1,
        "createdAt": "2024-05-01T12:00:00.000000Z",
        "_etag": '"0000-abc"',
        "_ts": 1714564800,
    }
    store = CosmosJobStore(_client_with(container))

    job = store.get("p1")

    assert job.etag == '"0000-abc"'
    assert "etag" not in job.to_document()
    container.read_item.assert_called_once_with(item="p1", partition_key="p1")


def test_replace_is_conditional_on_etag():
    container = MagicMock()
    container.read_item.return_value = {"id": "p1", "postId": "p1", "createdAt": "x", "_etag": "e1"}
    store = CosmosJobStore(_client_with(container))

    assert store.replace(store.get("p1")) is True

    kwargs = container.replace_item.call_args.kwargs
    assert kwargs["etag"] == "e1"
    assert kwargs["match_condition"] == MatchConditions.IfNotModified


def test_replace_reports_lost_race():
    container = MagicMock()
    container.read_item.return_value = {"id": "p1", "postId": "p1", "createdAt": "x", "_etag": "stale"}
    container.replace_item.side_effect = exceptions.CosmosAccessConditionFailedError(status_code=412, message="etag")
    store = CosmosJobStore(_client_with(container))

    assert store.replace(store.get("p1")) is False


def test_insert_is_idempotent():
    container = MagicMock()
    container.create_item.side_effect = [None, exceptions.CosmosResourceExistsError(status_code=409, message="exists")]
    store = CosmosJobStore(_client_with(container))
    job = MagicMock()
    job.to_document.return_value = {"id": "p1", "postId": "p1"}

    assert store.insert(job) is True
    assert store.insert(job) is False


def test_missing_memory_reads_as_none():
    container = MagicMock()
    container.read_item.side_effect = exceptions.CosmosResourceNotFoundError(status_code=404, message="missing")

    assert CosmosMemoryStore(_client_with(container)).get("p1") is None


def test_list_expired_queries_oldest_first():
    container = MagicMock()
    container.query_items.return_value = iter([{"id": "a", "postId": "a", "createdAt": "2024-01-01"}])
    client = _client_with(container)

    expired = CosmosMemoryStore(client).list_expired("2024-02-01T00:00:00.000000Z", 50)

    assert [item["id"] for item in expired] == ["a"]
    kwargs = container.query_items.call_args.kwargs
    assert "ORDER BY c.createdAt ASC" in kwargs["query"]
    assert {"name": "@limit", "value": 50} in kwargs["parameters"]
    assert kwargs["enable_cross_partition_query"] is True


def test_containers_resolve_from_app_settings(monkeypatch):
    monkeypatch.setenv(WEB_MEMORY_CONTAINER, "memories-dev")
    container = MagicMock()
    client = _client_with(container)

    client.get_container(WEB_MEMORY_CONTAINER)
    client.get_container(MEMORY_JOBS_CONTAINER)

    names = [call.args[0] for call in client.database.get_container_client.call_args_list]
    assert names == ["memories-dev", "webMemoryJobs"]
