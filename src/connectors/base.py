"""
Connector capability set.

One subclass per supported backend declares the excluded system schemas, the
metadata SQL, the probe query dialect and the enumeration strategy. The
discovery engine never branches on backend type; it only calls these hooks.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from sqlalchemy.engine import Connection
from sqlalchemy.exc import ArgumentError, DBAPIError
from sqlglot import exp

from src.connectors.statement import Statement
from src.discovery.models import EnumerationStrategy, TableKind

logger = logging.getLogger(__name__)

# Least-locking first
TRANSACTION_LEVELS: Tuple[str, ...] = (
    "READ UNCOMMITTED",
    "READ COMMITTED",
    "REPEATABLE READ",
    "SERIALIZABLE",
)

Query = Tuple[str, Dict[str, Any]]


class DatabaseConnector(ABC):
    """Abstract base class for database connectors."""

    EXCLUDED_SCHEMAS: FrozenSet[str] = frozenset()
    ENUMERATION_STRATEGY: EnumerationStrategy = EnumerationStrategy.SCHEMA_FIRST
    TRANSACTION_LEVELS: Tuple[str, ...] = TRANSACTION_LEVELS

    # Native table_type value (upper-cased) -> kind
    TABLE_TYPES: Dict[str, TableKind] = {
        "TABLE": TableKind.TABLE,
        "BASE TABLE": TableKind.TABLE,
        "VIEW": TableKind.VIEW,
        "FOREIGN": TableKind.FOREIGN_TABLE,
        "FOREIGN TABLE": TableKind.FOREIGN_TABLE,
        "MATERIALIZED VIEW": TableKind.MATERIALIZED_VIEW,
        "EXTERNAL TABLE": TableKind.EXTERNAL_TABLE,
    }

    # Request server-side cursors for metadata listings
    supports_streaming: bool = False

    # Drain each listing with fetchall() before yielding rows, for drivers that
    # allow only one pending result set per connection
    buffer_metadata: bool = False

    # Run each probe inside a SAVEPOINT so a failure doesn't abort the transaction
    probe_in_savepoint: bool = False

    def __init__(
        self,
        excluded_schemas: Iterable[str] = (),
        enumeration_strategy: Optional[EnumerationStrategy] = None,
    ):
        self._extra_excluded_schemas = frozenset(excluded_schemas)
        self.enumeration_strategy = enumeration_strategy or self.ENUMERATION_STRATEGY

    @abstractmethod
    def get_dialect(self) -> str:
        """Return sqlglot dialect name."""
        pass

    @abstractmethod
    def schemas_query(self) -> Query:
        """Return SQL listing schema names, one per row."""
        pass

    @abstractmethod
    def tables_query(
        self,
        schema_pattern: Optional[str],
        name_pattern: str,
        catalog: Optional[str] = None,
    ) -> Query:
        """
        Return SQL listing tables and views.

        Rows are (table_schema, table_name, table_type, remarks). A None
        schema_pattern must not narrow the listing at all.
        """
        pass

    def excluded_schemas(self) -> FrozenSet[str]:
        return self.EXCLUDED_SCHEMAS | self._extra_excluded_schemas

    def escape_entity_name_for_metadata(self, name: Optional[str]) -> Optional[str]:
        """Escape LIKE wildcards so a schema name matches only itself."""
        if name is None:
            return None
        return name.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

    def table_kind(self, raw_type: Optional[str]) -> Optional[TableKind]:
        if not raw_type:
            return None
        return self.TABLE_TYPES.get(raw_type.strip().upper())

    def metadata_execution_options(self) -> Dict[str, Any]:
        return {"stream_results": True} if self.supports_streaming else {}

    def simple_select_probe_query(self, schema: Optional[str], table: str) -> Query:
        """
        Cheapest statement that fails without SELECT privilege:
        SELECT 1 AS _ FROM schema.table WHERE 1 <> 1 LIMIT 0
        """
        query = (
            exp.select(exp.alias_(exp.Literal.number(1), "_"))
            .from_(exp.table_(table, db=schema, quoted=True))
            .where(exp.condition("1 <> 1"))
            .limit(0)
        )
        return query.sql(dialect=self.get_dialect() or None), {}

    def prepare_statement(
        self,
        connection: Connection,
        sql: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Statement:
        return Statement(connection, sql, params, savepoint=self.probe_in_savepoint)

    def set_best_transaction_level(self, connection: Connection) -> Optional[str]:
        """
        Switch the connection to the least-locking isolation level it accepts.

        Must run before the connection begins a transaction. Returns the level
        applied, or None when the dialect rejected all of them.
        """
        for level in self.TRANSACTION_LEVELS:
            try:
                connection.execution_options(isolation_level=level)
            except (ArgumentError, DBAPIError) as e:
                logger.debug(f"Isolation level {level} rejected: {e}")
                continue
            logger.debug(f"Using isolation level {level}")
            return level
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(strategy={self.enumeration_strategy.value})"


class InformationSchemaConnector(DatabaseConnector):
    """
    Generic connector reading the ANSI information_schema views.

    Backends that keep remarks elsewhere override the SQL fragments below.
    """

    SCHEMAS_SQL = "SELECT schema_name FROM information_schema.schemata ORDER BY schema_name"

    TABLES_SQL = (
        "SELECT table_schema, table_name, table_type, NULL AS remarks "
        "FROM information_schema.tables "
        "WHERE table_name LIKE :name_pattern ESCAPE '\\'"
    )
    SCHEMA_CLAUSE = "table_schema LIKE :schema_pattern ESCAPE '\\'"
    CATALOG_CLAUSE = "table_catalog = :catalog"
    ORDER_BY = "ORDER BY table_schema, table_name"

    def get_dialect(self) -> str:
        return ""

    def schemas_query(self) -> Query:
        return self.SCHEMAS_SQL, {}

    def tables_query(
        self,
        schema_pattern: Optional[str],
        name_pattern: str,
        catalog: Optional[str] = None,
    ) -> Query:
        clauses = [self.TABLES_SQL]
        params: Dict[str, Any] = {"name_pattern": name_pattern}

        if schema_pattern is not None:
            clauses.append(f"AND {self.SCHEMA_CLAUSE}")
            params["schema_pattern"] = schema_pattern

        if catalog is not None:
            clauses.append(f"AND {self.CATALOG_CLAUSE}")
            params["catalog"] = catalog

        clauses.append(self.ORDER_BY)
        return " ".join(clauses), params
