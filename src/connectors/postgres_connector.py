from .base import InformationSchemaConnector


class PostgresConnector(InformationSchemaConnector):
    """PostgreSQL connector implementation."""

    EXCLUDED_SCHEMAS = frozenset({"information_schema", "pg_catalog", "pg_toast"})

    SCHEMAS_SQL = "SELECT nspname FROM pg_catalog.pg_namespace ORDER BY nspname"

    # information_schema.tables hides materialized views and carries no
    # comments, so read pg_class directly
    TABLES_SQL = (
        "SELECT n.nspname AS table_schema, c.relname AS table_name, "
        "CASE c.relkind "
        "WHEN 'r' THEN 'TABLE' "
        "WHEN 'p' THEN 'TABLE' "
        "WHEN 'v' THEN 'VIEW' "
        "WHEN 'm' THEN 'MATERIALIZED VIEW' "
        "WHEN 'f' THEN 'FOREIGN TABLE' "
        "END AS table_type, "
        "obj_description(c.oid, 'pg_class') AS remarks "
        "FROM pg_catalog.pg_class c "
        "JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace "
        "WHERE c.relkind IN ('r', 'p', 'v', 'm', 'f') "
        "AND c.relname LIKE :name_pattern ESCAPE '\\'"
    )
    SCHEMA_CLAUSE = "n.nspname LIKE :schema_pattern ESCAPE '\\'"
    CATALOG_CLAUSE = "current_database() = :catalog"
    ORDER_BY = "ORDER BY n.nspname, c.relname"

    supports_streaming = True

    # Any error aborts the whole transaction until rollback
    probe_in_savepoint = True

    def get_dialect(self) -> str:
        return "postgres"
