"""
Table enumeration strategies.

Both yield TableCandidates that already passed the SELECT probe, and both are
generators end to end: stopping early stops metadata reads and probes.
"""

import logging
from contextlib import closing
from typing import AbstractSet, Callable, Dict, Iterator, Optional

from sqlalchemy.engine import Connection

from src.connectors.base import DatabaseConnector
from src.discovery.metadata import MetadataSource
from src.discovery.models import (
    DEFAULT_TABLE_KINDS,
    EnumerationStrategy,
    TableCandidate,
    TableKind,
)
from src.discovery.probe import have_select_privilege
from src.discovery.schema_filter import syncable_schemas

logger = logging.getLogger(__name__)


def fast_active_tables(
    connector: DatabaseConnector,
    connection: Connection,
    metadata: MetadataSource,
    kinds: AbstractSet[TableKind] = DEFAULT_TABLE_KINDS,
) -> Iterator[TableCandidate]:
    """
    Default, fast implementation best suited for databases with lots of system
    tables (like Oracle). Fetch the list of schemas, then the tables of each one
    not in excluded_schemas().

    Much faster than post_filtered_active_tables() when most tables live in
    excluded schemas, since those schemas are never listed at all.
    """
    with closing(metadata.schemas()) as schemas:
        for schema in syncable_schemas(schemas, connector.excluded_schemas()):
            with closing(metadata.tables(schema, "%", kinds)) as tables:
                for table in tables:
                    if have_select_privilege(connector, connection, table.schema, table.name):
                        yield table


def post_filtered_active_tables(
    connector: DatabaseConnector,
    connection: Connection,
    metadata: MetadataSource,
    kinds: AbstractSet[TableKind] = DEFAULT_TABLE_KINDS,
) -> Iterator[TableCandidate]:
    """
    Alternative implementation best suited for databases with little or no
    support for schemas. Fetch *all* tables, then drop the ones whose schema is
    in excluded_schemas() before probing.
    """
    excluded = connector.excluded_schemas()
    with closing(metadata.tables(None, "%", kinds)) as tables:
        for table in tables:
            if table.schema in excluded:
                continue
            if have_select_privilege(connector, connection, table.schema, table.name):
                yield table


STRATEGIES: Dict[EnumerationStrategy, Callable[..., Iterator[TableCandidate]]] = {
    EnumerationStrategy.SCHEMA_FIRST: fast_active_tables,
    EnumerationStrategy.SCAN_THEN_FILTER: post_filtered_active_tables,
}


def active_tables(
    connector: DatabaseConnector,
    connection: Connection,
    catalog: Optional[str] = None,
    kinds: AbstractSet[TableKind] = DEFAULT_TABLE_KINDS,
) -> Iterator[TableCandidate]:
    """Readable tables, enumerated the way the connector prefers."""
    strategy = STRATEGIES[connector.enumeration_strategy]
    logger.debug(f"Enumerating tables with {strategy.__name__} for {connector!r}")
    metadata = MetadataSource(connector, connection, catalog)
    return strategy(connector, connection, metadata, kinds)
