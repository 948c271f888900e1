import unittest
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

from src.connectors.postgres_connector import PostgresConnector
from src.connectors.sqlite_connector import SQLiteConnector
from src.discovery.describe_database import describe_database
from src.discovery.errors import ConnectionAcquisitionError, MetadataReadError
from src.discovery.models import (
    DatabaseInventory,
    DatabaseRef,
    InventoryTable,
    TableCandidate,
)
from tests.fakes import FakeMetadata, accessible


class FakePool:
    """Pool double counting acquisitions and releases."""

    def __init__(self, connection=None, error=None):
        self.connection = connection if connection is not None else MagicMock()
        self.error = error
        self.requested = []
        self.released = 0

    @contextmanager
    def get_connection(self, database):
        self.requested.append(database)
        if self.error:
            raise self.error
        try:
            yield self.connection
        finally:
            self.released += 1


PUBLIC_TABLES = [
    TableCandidate(name="users", schema="public", remarks=""),
    TableCandidate(name="orders", schema="public", remarks="order data"),
]


def postgres_metadata(tables=PUBLIC_TABLES):
    return FakeMetadata(
        schemas=["public", "pg_catalog"],
        tables={
            "public": list(tables),
            "pg_catalog": [TableCandidate(name="pg_class", schema="pg_catalog")],
        },
    )


class TestDescribeDatabase(unittest.TestCase):
    """Orchestration: acquire, tune, enumerate, normalize, deduplicate."""

    def setUp(self):
        self.connector = PostgresConnector()
        self.pool = FakePool()
        self.database = DatabaseRef(url="postgresql://reader@db/shop")

    def describe(self, metadata, denied=()):
        with patch('src.discovery.strategies.MetadataSource', return_value=metadata), \
                patch('src.discovery.strategies.have_select_privilege', side_effect=accessible(denied)):
            return describe_database(self.connector, self.database, pool=self.pool)

    def test_all_tables_readable(self):
        inventory = self.describe(postgres_metadata())

        self.assertEqual(inventory.tables, frozenset({
            InventoryTable(name="users", schema="public", description=None),
            InventoryTable(name="orders", schema="public", description="order data"),
        }))

    def test_unreadable_table_missing(self):
        inventory = self.describe(postgres_metadata(), denied={"orders"})

        self.assertEqual(inventory.tables, frozenset({
            InventoryTable(name="users", schema="public", description=None),
        }))

    def test_excluded_schema_never_surfaces(self):
        inventory = self.describe(postgres_metadata())
        self.assertNotIn("pg_catalog", inventory.schemas())

    def test_duplicates_collapse(self):
        duplicated = PUBLIC_TABLES + [
            TableCandidate(name="users", schema="public", remarks="seen again"),
            TableCandidate(name="users", schema="sales", remarks=None),
        ]
        inventory = self.describe(postgres_metadata(duplicated))

        self.assertEqual(len(inventory), 3)
        self.assertIsNone(inventory.get("public", "users").description)
        self.assertIsNotNone(inventory.get("sales", "users"))
        keys = [table.key for table in inventory]
        self.assertEqual(len(keys), len(set(keys)))

    def test_idempotent(self):
        first = self.describe(postgres_metadata())
        second = self.describe(postgres_metadata())
        self.assertEqual(first, second)

    def test_connection_released_on_success(self):
        self.describe(postgres_metadata())

        self.assertEqual(self.pool.requested, [self.database])
        self.assertEqual(self.pool.released, 1)

    def test_isolation_tuned_before_enumeration(self):
        calls = []
        self.pool.connection.execution_options.side_effect = \
            lambda **kw: calls.append(kw) or self.pool.connection

        self.describe(postgres_metadata())

        self.assertEqual(calls[0], {"isolation_level": "READ UNCOMMITTED"})

    def test_tuning_failure_ignored(self):
        with patch.object(self.connector, 'set_best_transaction_level', side_effect=RuntimeError("nope")):
            inventory = self.describe(postgres_metadata())

        self.assertEqual(len(inventory), 2)

    def test_metadata_failure_aborts_and_releases(self):
        metadata = MagicMock()
        metadata.schemas.side_effect = MetadataReadError("listing failed", stage="schemas")

        with self.assertRaises(MetadataReadError):
            self.describe(metadata)

        self.assertEqual(self.pool.released, 1)

    def test_connection_failure_propagates(self):
        self.pool = FakePool(error=ConnectionAcquisitionError("refused", database="shop"))

        with patch('src.discovery.strategies.MetadataSource') as mock_source:
            with self.assertRaises(ConnectionAcquisitionError) as ctx:
                describe_database(self.connector, self.database, pool=self.pool)

        mock_source.assert_not_called()
        self.assertEqual(ctx.exception.stage, "connect")
        self.assertIsInstance(ctx.exception, ConnectionError)

    def test_url_string_and_catalog(self):
        with patch('src.discovery.strategies.MetadataSource', return_value=postgres_metadata()) as mock_source, \
                patch('src.discovery.strategies.have_select_privilege', side_effect=accessible()):
            describe_database(self.connector, "postgresql://reader@db/shop", pool=self.pool)
            describe_database(
                self.connector,
                DatabaseRef(url="postgresql://reader@db/shop", catalog="shop"),
                pool=self.pool,
            )

        self.assertEqual(self.pool.requested[0], DatabaseRef(url="postgresql://reader@db/shop"))
        self.assertEqual(mock_source.call_args_list[0].args[2], None)
        self.assertEqual(mock_source.call_args_list[1].args[2], "shop")


class TestScanThenFilterScenario(unittest.TestCase):

    def test_only_non_excluded_table_probed(self):
        connector = SQLiteConnector(excluded_schemas=["internal"])
        metadata = FakeMetadata(
            schemas=[],
            tables={
                "internal": [TableCandidate(name="t1", schema="internal")],
                "public": [TableCandidate(name="t2", schema="public")],
            },
        )

        with patch('src.discovery.strategies.MetadataSource', return_value=metadata), \
                patch('src.discovery.strategies.have_select_privilege', side_effect=accessible()) as mock_probe:
            inventory = describe_database(connector, "sqlite:///ignored.db", pool=FakePool())

        self.assertEqual([call.args[3] for call in mock_probe.call_args_list], ["t2"])
        self.assertEqual(inventory, DatabaseInventory(frozenset({InventoryTable(name="t2", schema="public")})))


if __name__ == '__main__':
    unittest.main()
