"""
SQL Server access through SQLAlchemy.
Executes parameterized statements and loads table / foreign key metadata for a schema.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote_plus

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine

from .exceptions import NotConfiguredError
from .models import Entity, Relationship

EngineFactory = Callable[[str], Engine]


class MssqlDatabase:
    """
    Runs SQL against one database.

    Statements use SQLAlchemy bind parameters, for example
    execute_insert("INSERT INTO T (Name) VALUES (:name)", {"name": "Alpha"}).
    """

    ODBC_URL_PREFIX = "mssql+pyodbc:///?odbc_connect="

    def __init__(self, engine_factory: Optional[EngineFactory] = None):
        self.logger = logging.getLogger(__name__)
        self._engine_factory = engine_factory or create_engine
        self._engine: Optional[Engine] = None

    def setup(self, connection_string: str) -> None:
        """
        Creates the engine.

        Args:
            connection_string: SQLAlchemy URL, or an ODBC connection string for SQL Server

        Raises:
            ValueError: If connection_string is empty
        """
        if not connection_string or not connection_string.strip():
            raise ValueError("Connection string cannot be None or empty")

        self._engine = self._engine_factory(self._to_url(connection_string.strip()))
        self.logger.info(f"Database engine created for dialect '{self._engine.dialect.name}'")

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def execute_non_query(self, query: str, parameters: Optional[Mapping[str, Any]] = None) -> int:
        """Executes a statement and returns the affected row count."""
        engine = self._ensure_configured()
        with engine.begin() as connection:
            result = connection.execute(text(query), dict(parameters or {}))
            self.logger.debug(f"Statement affected {result.rowcount} rows")
            return result.rowcount

    def execute_insert(self, query: str, parameters: Mapping[str, Any]) -> int:
        return self.execute_non_query(query, parameters)

    def execute_update(self, query: str, parameters: Mapping[str, Any]) -> int:
        return self.execute_non_query(query, parameters)

    def execute_scalar(self, query: str, parameters: Optional[Mapping[str, Any]] = None) -> Any:
        """Returns the first column of the first row, or None."""
        engine = self._ensure_configured()
        with engine.begin() as connection:
            return connection.execute(text(query), dict(parameters or {})).scalar()

    def execute_query(self, query: str, parameters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Returns every row as a column-name to value dict."""
        engine = self._ensure_configured()
        with engine.begin() as connection:
            result = connection.execute(text(query), dict(parameters or {}))
            return [dict(row._mapping) for row in result]

    def load_entities(self, schema: str, query_overwrite: Optional[str] = None,
                      cleaning_token: Optional[str] = None) -> List[Entity]:
        """
        Loads the tables of a schema with their columns.

        Args:
            schema: Database schema (e.g. "dbo")
            query_overwrite: Custom query returning (table_name, column_name, data_type) rows,
                bound with :schema
            cleaning_token: Text removed from table names

        Returns:
            One Entity per table, columns in database order
        """
        engine = self._ensure_configured()

        if query_overwrite:
            entities: Dict[str, Entity] = {}
            for table_name, column_name, data_type in self._fetch_rows(query_overwrite, schema):
                name = _clean(table_name, cleaning_token)
                entity = entities.setdefault(name, Entity(name=name))
                entity.attributes[column_name] = data_type
            return list(entities.values())

        inspector = inspect(engine)
        entities_list = []
        for table_name in inspector.get_table_names(schema=schema):
            columns = inspector.get_columns(table_name, schema=schema)
            entities_list.append(Entity(
                name=_clean(table_name, cleaning_token),
                attributes={column["name"]: str(column["type"]) for column in columns}
            ))

        self.logger.debug(f"Loaded {len(entities_list)} entities from schema '{schema}'")
        return entities_list

    def load_relationships(self, schema: str, query_overwrite: Optional[str] = None,
                           cleaning_token: Optional[str] = None) -> List[Relationship]:
        """
        Loads foreign keys between tables of a schema.

        Args:
            schema: Database schema
            query_overwrite: Custom query returning (name, from_entity, from_attribute,
                to_entity, to_attribute) rows, bound with :schema
            cleaning_token: Text removed from entity names
        """
        engine = self._ensure_configured()

        if query_overwrite:
            return [
                Relationship(
                    name=name,
                    from_entity=_clean(from_entity, cleaning_token),
                    from_attribute=from_attribute,
                    to_entity=_clean(to_entity, cleaning_token),
                    to_attribute=to_attribute
                )
                for name, from_entity, from_attribute, to_entity, to_attribute
                in self._fetch_rows(query_overwrite, schema)
            ]

        inspector = inspect(engine)
        relationships = []
        for table_name in inspector.get_table_names(schema=schema):
            for foreign_key in inspector.get_foreign_keys(table_name, schema=schema):
                pairs = zip(foreign_key["constrained_columns"], foreign_key["referred_columns"])
                for from_attribute, to_attribute in pairs:
                    relationships.append(Relationship(
                        name=foreign_key.get("name") or f"FK_{table_name}_{from_attribute}",
                        from_entity=_clean(table_name, cleaning_token),
                        from_attribute=from_attribute,
                        to_entity=_clean(foreign_key["referred_table"], cleaning_token),
                        to_attribute=to_attribute
                    ))
        return relationships

    def _fetch_rows(self, query: str, schema: str) -> List[tuple]:
        with self._ensure_configured().begin() as connection:
            return [tuple(row) for row in connection.execute(text(query), {"schema": schema})]

    def _ensure_configured(self) -> Engine:
        if self._engine is None:
            raise NotConfiguredError("MssqlDatabase is not configured. Call setup() before executing queries.")
        return self._engine

    def _to_url(self, connection_string: str) -> str:
        if "://" in connection_string:
            return connection_string
        return self.ODBC_URL_PREFIX + quote_plus(connection_string)


def _clean(name: str, cleaning_token: Optional[str]) -> str:
    if cleaning_token:
        return name.replace(cleaning_token, "")
    return name
