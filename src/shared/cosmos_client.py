# Cosmos DB access for jobs, web memories and posts

import os
import logging
import backoff
from functools import lru_cache
from typing import Optional, List, Dict, Any
from azure.core import MatchConditions
from azure.cosmos import CosmosClient, exceptions
from azure.cosmos.container import ContainerProxy
from src.shared.config import container_name as resolve_container_name
from src.specs.common.errors import ConfigurationError


class RetryableCosmosError(Exception):
    """Throttling (429) or service-unavailable (503) response worth another try"""


_RETRYABLE_STATUS = (429, 503)
_MAX_RETRIES = 3
_OPERATION_TIMEOUT = 10.0

# Shared retry policy for every data-plane call below
_retry_transient = backoff.on_exception(
    backoff.expo,
    RetryableCosmosError,
    max_tries=_MAX_RETRIES,
    max_time=_OPERATION_TIMEOUT,
)


class CosmosDBClient:
    """Thin wrapper over one Cosmos database.

    Containers are addressed by the app setting that names them (see
    ``src.shared.config``), so every environment can rename containers without
    code changes. Not-found and precondition failures are returned as plain
    values; transient failures are retried; anything else propagates.
    """

    def __init__(self):
        connection_string = os.environ.get("COSMOS_DB_CONNECTION_STRING")
        database_name = os.environ.get("COSMOS_DB_NAME")
        if not connection_string or not database_name:
            raise ConfigurationError(
                "Missing Cosmos DB connection string or database name",
                details={"settings": ["COSMOS_DB_CONNECTION_STRING", "COSMOS_DB_NAME"]},
            )

        self.client = CosmosClient.from_connection_string(connection_string, retry_total=_MAX_RETRIES)
        self.database = self.client.get_database_client(database_name)
        self._containers: Dict[str, ContainerProxy] = {}

    def get_container(self, container_env: str) -> ContainerProxy:
        name = resolve_container_name(container_env)
        container = self._containers.get(name)
        if container is None:
            container = self.database.get_container_client(name)
            self._containers[name] = container
        return container

    @staticmethod
    def _raise_if_retryable(exc: exceptions.CosmosHttpResponseError, action: str) -> None:
        if exc.status_code in _RETRYABLE_STATUS:
            logging.warning(f"Cosmos {action} got {exc.status_code}; retrying")
            raise RetryableCosmosError(f"{action}: {exc}") from exc

    @_retry_transient
    def read_item(self, container_env: str, item_id: str, partition_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Point read; None when the item does not exist."""
        container = self.get_container(container_env)
        try:
            return container.read_item(item=item_id, partition_key=partition_key or item_id)
        except exceptions.CosmosResourceNotFoundError:
            return None
        except exceptions.CosmosHttpResponseError as e:
            self._raise_if_retryable(e, f"read '{item_id}'")
            raise

    @_retry_transient
    def create_item(self, container_env: str, item: Dict[str, Any]) -> bool:
        """Insert-if-absent. False means an item with this id already exists."""
        container = self.get_container(container_env)
        try:
            container.create_item(body=item)
        except exceptions.CosmosResourceExistsError:
            return False
        except exceptions.CosmosHttpResponseError as e:
            self._raise_if_retryable(e, f"create '{item.get('id')}'")
            raise
        return True

    @_retry_transient
    def replace_item_if_match(self, container_env: str, item: Dict[str, Any], etag: Optional[str]) -> bool:
        """Replace guarded by ``etag``. False means someone else wrote first."""
        container = self.get_container(container_env)
        conditions: Dict[str, Any] = {}
        if etag:
            conditions = {"etag": etag, "match_condition": MatchConditions.IfNotModified}
        try:
            container.replace_item(item=item["id"], body=item, **conditions)
        except exceptions.CosmosAccessConditionFailedError:
            return False
        except exceptions.CosmosHttpResponseError as e:
            self._raise_if_retryable(e, f"replace '{item.get('id')}'")
            raise
        return True

    @_retry_transient
    def upsert_item(self, container_env: str, item: Dict[str, Any]) -> Dict[str, Any]:
        container = self.get_container(container_env)
        try:
            return container.upsert_item(body=item)
        except exceptions.CosmosHttpResponseError as e:
            self._raise_if_retryable(e, f"upsert '{item.get('id')}'")
            raise

    @_retry_transient
    def query_items(
        self,
        container_env: str,
        query: str,
        parameters: Optional[List[Dict[str, Any]]] = None,
    ) -> List[Dict[str, Any]]:
        """Run a parameterized (``@name``) query across all partitions."""
        container = self.get_container(container_env)
        try:
            return list(
                container.query_items(
                    query=query,
                    parameters=parameters or [],
                    enable_cross_partition_query=True,
                )
            )
        except exceptions.CosmosHttpResponseError as e:
            self._raise_if_retryable(e, "query")
            raise

    @_retry_transient
    def delete_item(self, container_env: str, item_id: str, partition_key: Optional[str] = None) -> None:
        """Delete by id; an already-missing item counts as deleted."""
        container = self.get_container(container_env)
        try:
            container.delete_item(item=item_id, partition_key=partition_key or item_id)
        except exceptions.CosmosResourceNotFoundError:
            logging.info(f"Item '{item_id}' already gone from {container_env}")
        except exceptions.CosmosHttpResponseError as e:
            self._raise_if_retryable(e, f"delete '{item_id}'")
            raise


@lru_cache(maxsize=1)
def get_cosmos_client() -> CosmosDBClient:
    return CosmosDBClient()
