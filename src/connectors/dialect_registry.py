from typing import Dict, Type

from sqlalchemy.engine import make_url

from .base import DatabaseConnector
from .mssql_connector import MSSQLConnector
from .mysql_connector import MySQLConnector
from .postgres_connector import PostgresConnector
from .sqlite_connector import SQLiteConnector


class DialectRegistry:
    """Registry for database connectors."""

    _connectors: Dict[str, Type[DatabaseConnector]] = {
        'mssql': MSSQLConnector,
        'postgresql': PostgresConnector,
        'postgres': PostgresConnector,
        'mysql': MySQLConnector,
        'mariadb': MySQLConnector,
        'sqlite': SQLiteConnector,
    }

    @classmethod
    def get_connector(cls, connection_string: str, **kwargs) -> DatabaseConnector:
        """Factory method to create appropriate connector."""
        dialect = make_url(connection_string).get_backend_name()

        connector_class = cls._connectors.get(dialect)
        if not connector_class:
            raise ValueError(f"Unsupported database dialect: {dialect}")

        return connector_class(**kwargs)

    @classmethod
    def register(cls, dialect: str, connector_class: Type[DatabaseConnector]):
        """Register a new connector (Open/Closed principle)."""
        cls._connectors[dialect] = connector_class
