from typing import Optional

from .base import InformationSchemaConnector


class MSSQLConnector(InformationSchemaConnector):
    """SQL Server connector implementation."""

    EXCLUDED_SCHEMAS = frozenset({
        "sys",
        "INFORMATION_SCHEMA",
        "guest",
        "db_owner",
        "db_accessadmin",
        "db_securityadmin",
        "db_ddladmin",
        "db_backupoperator",
        "db_datareader",
        "db_datawriter",
        "db_denydatareader",
        "db_denydatawriter",
    })

    # pyodbc reads rows lazily and, without MARS, a pending result set keeps the
    # connection busy for the next listing or probe
    buffer_metadata = True

    SCHEMAS_SQL = "SELECT name FROM sys.schemas ORDER BY name"

    # Table descriptions live in the MS_Description extended property
    TABLES_SQL = (
        "SELECT t.TABLE_SCHEMA AS table_schema, t.TABLE_NAME AS table_name, "
        "t.TABLE_TYPE AS table_type, "
        "CAST(ep.value AS NVARCHAR(4000)) AS remarks "
        "FROM INFORMATION_SCHEMA.TABLES t "
        "LEFT JOIN sys.extended_properties ep "
        "ON ep.major_id = OBJECT_ID(QUOTENAME(t.TABLE_SCHEMA) + '.' + QUOTENAME(t.TABLE_NAME)) "
        "AND ep.minor_id = 0 AND ep.class = 1 AND ep.name = 'MS_Description' "
        "WHERE t.TABLE_NAME LIKE :name_pattern ESCAPE '\\'"
    )
    SCHEMA_CLAUSE = "t.TABLE_SCHEMA LIKE :schema_pattern ESCAPE '\\'"
    CATALOG_CLAUSE = "t.TABLE_CATALOG = :catalog"
    ORDER_BY = "ORDER BY t.TABLE_SCHEMA, t.TABLE_NAME"

    def get_dialect(self) -> str:
        return "tsql"

    def escape_entity_name_for_metadata(self, name: Optional[str]) -> Optional[str]:
        # T-SQL LIKE also treats [ as the start of a character range
        escaped = super().escape_entity_name_for_metadata(name)
        if escaped is None:
            return None
        return escaped.replace("[", "\\[")
