from typing import Any, Dict, Optional

from sqlglot import exp

from .base import DatabaseConnector, Query
from src.discovery.models import EnumerationStrategy


class SQLiteConnector(DatabaseConnector):
    """
    SQLite connector implementation.

    Without a schema, tables are listed from the main database's sqlite_master
    with a NULL schema and filtered client-side. A schema (main, temp or an
    attached database) lists that database's own sqlite_master and reports
    the schema name.
    """

    ENUMERATION_STRATEGY = EnumerationStrategy.SCAN_THEN_FILTER

    # SQLite only understands these two
    TRANSACTION_LEVELS = ("READ UNCOMMITTED", "SERIALIZABLE")

    TABLES_SQL = (
        "SELECT {schema} AS table_schema, name AS table_name, "
        "upper(type) AS table_type, NULL AS remarks "
        "FROM {source} "
        "WHERE type IN ('table', 'view') "
        "AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\' "
        "AND name LIKE :name_pattern ESCAPE '\\' "
        "ORDER BY name"
    )

    def get_dialect(self) -> str:
        return "sqlite"

    def schemas_query(self) -> Query:
        return "SELECT name FROM pragma_database_list ORDER BY seq", {}

    def escape_entity_name_for_metadata(self, name: Optional[str]) -> Optional[str]:
        # Schema names qualify sqlite_master as identifiers, never as LIKE patterns
        return name

    def tables_query(
        self,
        schema_pattern: Optional[str],
        name_pattern: str,
        catalog: Optional[str] = None,
    ) -> Query:
        # A file holds one catalog, so catalog cannot narrow the listing
        params: Dict[str, Any] = {"name_pattern": name_pattern}

        if schema_pattern is None:
            return self.TABLES_SQL.format(schema="NULL", source="sqlite_master"), params

        source = exp.to_identifier(schema_pattern, quoted=True).sql(dialect="sqlite")
        params["schema"] = schema_pattern
        return self.TABLES_SQL.format(schema=":schema", source=f"{source}.sqlite_master"), params
