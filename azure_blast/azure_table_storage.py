"""
Azure Table Storage helper.
Wraps TableServiceClient / TableClient with configuration guards.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.data.tables import TableClient, TableServiceClient

from .exceptions import NotConfiguredError

ServiceClientFactory = Callable[[str], TableServiceClient]
TableClientFactory = Callable[[str, str], TableClient]


class AzureTableStorage:
    """Table listing plus entity upsert, lookup, query and delete on one active table."""

    def __init__(self, service_factory: Optional[ServiceClientFactory] = None,
                 table_factory: Optional[TableClientFactory] = None):
        self.logger = logging.getLogger(__name__)
        self._service_factory = service_factory or TableServiceClient.from_connection_string
        self._table_factory = table_factory or (
            lambda conn_str, table_name: TableClient.from_connection_string(conn_str, table_name=table_name)
        )

        self.connection_string: Optional[str] = None
        self.table_name: Optional[str] = None
        self._service_client: Optional[TableServiceClient] = None
        self._table_client: Optional[TableClient] = None

    def initialize(self, connection_string: str, table_name: Optional[str] = None) -> None:
        """
        Creates the service client and optionally selects a table.

        Args:
            connection_string: Storage account connection string
            table_name: Optional table to make active right away

        Raises:
            ValueError: If connection_string is empty
        """
        if not connection_string or not connection_string.strip():
            raise ValueError("Table Storage connection string cannot be None or empty")

        self.connection_string = connection_string
        self._service_client = self._service_factory(connection_string)
        self.logger.info("Table Storage service client initialized")

        if table_name is not None:
            self.set_table(table_name)

    def list_tables(self) -> List[str]:
        service_client = self._ensure_service_client_configured()
        return [table.name for table in service_client.list_tables()]

    def set_table(self, table_name: str) -> None:
        """Makes table_name the target of all entity operations."""
        self._ensure_service_client_configured()
        if not table_name or not table_name.strip():
            raise ValueError("Table name cannot be None or empty")

        self.table_name = table_name
        self._table_client = self._table_factory(self.connection_string, table_name)
        self.logger.info(f"Active table set to '{table_name}'")

    def upsert_entity(self, entity: Mapping[str, Any]) -> None:
        table_client = self._ensure_configured()
        table_client.upsert_entity(entity)
        self.logger.debug(f"Upserted entity {entity.get('PartitionKey')}/{entity.get('RowKey')}")

    def delete_entity(self, partition_key: str, row_key: str) -> None:
        table_client = self._ensure_configured()
        table_client.delete_entity(partition_key=partition_key, row_key=row_key)
        self.logger.debug(f"Deleted entity {partition_key}/{row_key}")

    def get_entity(self, partition_key: str, row_key: str) -> Optional[Dict[str, Any]]:
        """
        Looks up one entity.

        Returns:
            The entity, or None when it does not exist
        """
        table_client = self._ensure_configured()
        try:
            return table_client.get_entity(partition_key=partition_key, row_key=row_key)
        except ResourceNotFoundError:
            self.logger.debug(f"Entity {partition_key}/{row_key} not found in '{self.table_name}'")
            return None

    def query_entities(self, query_filter: str,
                       parameters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Runs an OData filter (with optional @name parameters) against the active table."""
        table_client = self._ensure_configured()
        if parameters:
            return list(table_client.query_entities(query_filter, parameters=dict(parameters)))
        return list(table_client.query_entities(query_filter))

    def check_entities_exist(self, row_keys: List[str]) -> List[str]:
        """
        Returns the subset of row_keys that exist in the active table, in input order.
        Issues one query per key.
        """
        self._ensure_configured()

        found = []
        for row_key in row_keys:
            if self.query_entities("RowKey eq @row_key", {"row_key": row_key}):
                found.append(row_key)

        self.logger.debug(f"{len(found)}/{len(row_keys)} row keys exist in '{self.table_name}'")
        return found

    def _ensure_configured(self) -> TableClient:
        if not self.connection_string or not self.table_name or self._table_client is None:
            raise NotConfiguredError(
                "AzureTableStorage is not configured. Call initialize() and set_table() before performing any operations."
            )
        return self._table_client

    def _ensure_service_client_configured(self) -> TableServiceClient:
        if not self.connection_string or self._service_client is None:
            raise NotConfiguredError(
                "AzureTableStorage is not configured. Call initialize() before performing any operations."
            )
        return self._service_client
