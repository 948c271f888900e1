from .base import InformationSchemaConnector


class MySQLConnector(InformationSchemaConnector):
    """MySQL / MariaDB connector implementation. Schemas are databases."""

    EXCLUDED_SCHEMAS = frozenset({"information_schema", "mysql", "performance_schema", "sys"})

    # Backslash is already the LIKE escape character, and '\' would be an
    # unterminated literal here. table_comment is the literal 'VIEW' for views.
    TABLES_SQL = (
        "SELECT table_schema, table_name, table_type, "
        "CASE WHEN table_type = 'VIEW' THEN NULL ELSE table_comment END AS remarks "
        "FROM information_schema.tables "
        "WHERE table_name LIKE :name_pattern"
    )
    SCHEMA_CLAUSE = "table_schema LIKE :schema_pattern"
    # table_catalog is always 'def'; the database name is the schema
    CATALOG_CLAUSE = "table_schema = :catalog"

    def get_dialect(self) -> str:
        return "mysql"
