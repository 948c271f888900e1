"""
Streaming access to a database's schema and table listings.

Both listings are generators over an open cursor: rows are read as they are
consumed and the cursor is closed when the generator finishes, fails or is
closed early by its consumer. Connectors with buffer_metadata set have each
listing read in full on first use instead.
"""

import logging
from contextlib import closing
from typing import AbstractSet, Any, Dict, Iterator, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Row
from sqlalchemy.exc import SQLAlchemyError

from src.connectors.base import DatabaseConnector
from src.discovery.errors import MetadataReadError
from src.discovery.models import DEFAULT_TABLE_KINDS, TableCandidate, TableKind

logger = logging.getLogger(__name__)


class MetadataSource:
    """Schema and table listings for one connection."""

    def __init__(
        self,
        connector: DatabaseConnector,
        connection: Connection,
        catalog: Optional[str] = None,
    ):
        self.connector = connector
        self.connection = connection
        self.catalog = catalog

    def _stream(self, sql: str, params: Dict[str, Any], stage: str) -> Iterator[Row]:
        try:
            result = self.connection.execute(
                text(sql),
                params,
                execution_options=self.connector.metadata_execution_options(),
            )
        except SQLAlchemyError as e:
            raise MetadataReadError(f"Failed to list {stage}: {e}", stage=stage) from e

        with closing(result):
            try:
                rows = result.fetchall() if self.connector.buffer_metadata else result
                for row in rows:
                    yield row
            except SQLAlchemyError as e:
                raise MetadataReadError(f"Failed reading {stage}: {e}", stage=stage) from e

    def schemas(self) -> Iterator[Optional[str]]:
        sql, params = self.connector.schemas_query()
        with closing(self._stream(sql, params, "schemas")) as rows:
            for row in rows:
                yield row[0]

    def tables(
        self,
        schema: Optional[str] = None,
        name_pattern: str = "%",
        kinds: AbstractSet[TableKind] = DEFAULT_TABLE_KINDS,
    ) -> Iterator[TableCandidate]:
        """
        Stream tables of the requested kinds.

        schema is a plain schema name, escaped here before it is used as a
        pattern; None lists tables in every schema.
        """
        schema_pattern = self.connector.escape_entity_name_for_metadata(schema)
        sql, params = self.connector.tables_query(schema_pattern, name_pattern, self.catalog)

        if schema is not None:
            logger.debug(f"Listing tables in schema {schema}")

        with closing(self._stream(sql, params, "tables")) as rows:
            for table_schema, table_name, table_type, remarks in rows:
                if self.connector.table_kind(table_type) not in kinds:
                    continue
                yield TableCandidate(name=table_name, schema=table_schema, remarks=remarks)
