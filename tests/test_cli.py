import io
import json
import logging
import os
import sqlite3
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

os.environ.setdefault('SKIP_SETTINGS_INIT', 'true')

import config.settings  # noqa: E402
import main  # noqa: E402
import src.connectors.pool as pool_module  # noqa: E402
from config.settings import (  # noqa: E402
    DatabaseConfig,
    DiscoveryConfig,
    LoggingConfig,
    PathConfig,
    Settings,
)
from src.connectors.mssql_connector import MSSQLConnector  # noqa: E402
from src.discovery.errors import MetadataReadError  # noqa: E402
from src.discovery.models import (  # noqa: E402
    DatabaseInventory,
    DatabaseRef,
    EnumerationStrategy,
    InventoryTable,
    TableKind,
)
from src.utils.logging_config import setup_logging  # noqa: E402


def make_settings(log_dir, **discovery):
    return Settings(
        database=DatabaseConfig(connection_string='mssql+pyodbc://reader@dsn', catalog='Sales'),
        paths=PathConfig(log_dir=Path(log_dir)),
        discovery=DiscoveryConfig(schema_exclusions=['staging'], **discovery),
        logging=LoggingConfig(level='INFO'),
    )


INVENTORY = DatabaseInventory(frozenset({
    InventoryTable("Orders", "dbo", "Customer orders"),
    InventoryTable("Customers", "dbo"),
}))


class TestDescribeCommand(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.settings = make_settings(self.tmpdir.name, table_kinds=['TABLE'])

    def tearDown(self):
        self.tmpdir.cleanup()

    def run_main(self, *argv):
        out = io.StringIO()
        with patch('sys.argv', ['main.py', *argv]), \
                patch('main.get_settings', return_value=self.settings), \
                patch('main.setup_logging'), \
                redirect_stdout(out):
            code = main.main()
        return code, out.getvalue()

    @patch('main.describe_database', return_value=INVENTORY)
    def test_json_output(self, mock_describe):
        code, output = self.run_main('describe', '--json')

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output)["tables"], [
            {"name": "Customers", "schema": "dbo", "description": None},
            {"name": "Orders", "schema": "dbo", "description": "Customer orders"},
        ])

    @patch('main.describe_database', return_value=INVENTORY)
    def test_connector_built_from_settings(self, mock_describe):
        self.run_main('describe', '--json', '--strategy', 'scan_then_filter')

        connector, database = mock_describe.call_args.args
        self.assertIsInstance(connector, MSSQLConnector)
        self.assertIn('staging', connector.excluded_schemas())
        self.assertEqual(connector.enumeration_strategy, EnumerationStrategy.SCAN_THEN_FILTER)
        self.assertEqual(database, DatabaseRef(url='mssql+pyodbc://reader@dsn', catalog='Sales'))
        self.assertEqual(mock_describe.call_args.kwargs['kinds'], frozenset({TableKind.TABLE}))

    @patch('main.describe_database', side_effect=MetadataReadError("listing failed", stage="tables"))
    def test_discovery_failure(self, mock_describe):
        with self.assertLogs('main', level='ERROR'):
            code, _ = self.run_main('describe')

        self.assertEqual(code, 1)

    def test_no_command(self):
        code, _ = self.run_main()
        self.assertEqual(code, 1)

    def test_config_json(self):
        code, output = self.run_main('config', '--json')

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output)['discovery']['schema_exclusions'], ['staging'])


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level

    def tearDown(self):
        for handler in self.root.handlers:
            handler.close()
        self.root.handlers[:] = self.saved_handlers
        self.root.setLevel(self.saved_level)
        self.tmpdir.cleanup()

    def test_console_and_file_handlers(self):
        root = setup_logging(make_settings(self.tmpdir.name))

        self.assertEqual(len(root.handlers), 2)
        logging.getLogger('src.discovery').info("scan finished")
        for handler in root.handlers:
            handler.flush()

        log_file = Path(self.tmpdir.name) / 'discovery.log'
        self.assertIn("scan finished", log_file.read_text(encoding='utf-8'))
        self.assertEqual(logging.getLogger('sqlalchemy').level, logging.WARNING)
        self.assertEqual(logging.getLogger('sqlglot').level, logging.ERROR)
        self.assertEqual([h.level for h in root.handlers], [logging.INFO, logging.DEBUG])


class TestDescribeUrlOnly(unittest.TestCase):
    """describe --url without DATABASE_CONNECTION_STRING in the environment."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmpdir.name, 'shop.db')
        conn = sqlite3.connect(self.db_path)
        conn.executescript("CREATE TABLE users (id INTEGER PRIMARY KEY);")
        conn.commit()
        conn.close()

    def tearDown(self):
        self.tmpdir.cleanup()

    @patch('main.setup_logging')
    def test_url_flag_is_enough(self, mock_setup_logging):
        env = {'LOG_DIR': self.tmpdir.name, 'SKIP_SETTINGS_INIT': 'true'}
        argv = ['main.py', 'describe', '--url', f'sqlite:///{self.db_path}', '--json']
        out = io.StringIO()

        with patch.dict(os.environ, env, clear=True), \
                patch.object(config.settings, '_settings', None), \
                patch.object(pool_module, '_default_pool', None), \
                patch('sys.argv', argv), \
                redirect_stdout(out):
            code = main.main()
            pool_module._default_pool.dispose()

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out.getvalue()), {
            "tables": [{"name": "users", "schema": None, "description": None}],
        })
        self.assertEqual(mock_setup_logging.call_args.args[0].database.connection_string, '')


if __name__ == '__main__':
    unittest.main()
