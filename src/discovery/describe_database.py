"""
describe_database: inventory of the tables a connection can actually read.

Acquire a pooled connection, lower its isolation level if possible, enumerate
readable tables with the connector's strategy, normalize and deduplicate them.
The connection is returned to the pool however the scan ends.
"""

import logging
import time
from contextlib import closing
from typing import AbstractSet, Dict, Optional, Tuple, Union

from sqlalchemy.engine import Connection

from src.connectors.base import DatabaseConnector
from src.connectors.pool import ConnectionPool, get_default_pool
from src.discovery.models import (
    DEFAULT_TABLE_KINDS,
    DatabaseInventory,
    DatabaseRef,
    InventoryTable,
    TableKind,
)
from src.discovery.strategies import active_tables

logger = logging.getLogger(__name__)


def _set_best_transaction_level(connector: DatabaseConnector, connection: Connection) -> None:
    # Isolation tuning never aborts a scan
    try:
        connector.set_best_transaction_level(connection)
    except Exception as e:
        logger.debug(f"Could not tune transaction isolation, keeping default: {e}")


def describe_database(
    connector: DatabaseConnector,
    database: Union[DatabaseRef, str],
    pool: Optional[ConnectionPool] = None,
    kinds: AbstractSet[TableKind] = DEFAULT_TABLE_KINDS,
) -> DatabaseInventory:
    """
    Describe the readable tables of a database.

    Args:
        connector: Capability set for the database's backend
        database: DatabaseRef or SQLAlchemy URL
        pool: Connection pool; the process-wide pool when omitted
        kinds: Table kinds to list

    Returns:
        DatabaseInventory of tables that passed the SELECT probe

    Raises:
        ConnectionAcquisitionError: No connection could be obtained
        MetadataReadError: A schema or table listing failed mid-scan
    """
    database = DatabaseRef.coerce(database)
    pool = pool or get_default_pool()

    logger.info(f"Describing database {database}")
    start = time.time()

    tables: Dict[Tuple[Optional[str], str], InventoryTable] = {}

    with pool.get_connection(database) as connection:
        _set_best_transaction_level(connector, connection)

        with closing(active_tables(connector, connection, database.catalog, kinds)) as candidates:
            for candidate in candidates:
                table = InventoryTable.from_candidate(candidate)
                # The same table can surface through more than one listing
                tables.setdefault(table.key, table)

    inventory = DatabaseInventory(tables=frozenset(tables.values()))

    logger.info(
        f"Described database {database}: {len(inventory)} readable tables "
        f"in {len(inventory.schemas())} schemas ({time.time() - start:.1f}s)"
    )
    return inventory
