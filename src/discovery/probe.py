import logging
from typing import Optional

from sqlalchemy.engine import Connection

from src.connectors.base import DatabaseConnector

logger = logging.getLogger(__name__)


def execute_select_probe_query(
    connector: DatabaseConnector,
    connection: Connection,
    sql: str,
    params: dict,
) -> None:
    """
    Execute the probe statement. Only whether execution completes matters,
    never the rows, and this runs once per table on every sync.
    """
    with connector.prepare_statement(connection, sql, params) as statement:
        statement.execute()


def have_select_privilege(
    connector: DatabaseConnector,
    connection: Connection,
    schema: Optional[str],
    table_name: str,
) -> bool:
    """
    True when a trivial SELECT against the table executes.

    Any failure counts as "no access": permission errors are not reported
    uniformly across backends, so no attempt is made to tell them apart from
    other errors.
    """
    sql, params = connector.simple_select_probe_query(schema, table_name)
    try:
        execute_select_probe_query(connector, connection, sql, params)
    except Exception as e:
        logger.debug(f"Skipping {schema}.{table_name}, probe failed: {e}")
        return False
    return True
