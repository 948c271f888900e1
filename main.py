#!/usr/bin/env python3
"""
Database Table Discovery
Main CLI Entry Point

Commands:
    python main.py describe               # List readable tables and views
    python main.py describe --json        # Same, as JSON
    python main.py config                 # Show configuration
"""
import argparse
import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from config.settings import get_settings
from src.connectors.dialect_registry import DialectRegistry
from src.discovery.describe_database import describe_database
from src.discovery.errors import DiscoveryError
from src.discovery.models import DatabaseRef, EnumerationStrategy, TableKind
from src.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def cmd_describe(args):
    """
    Describe the database: every table and view the configured credentials
    can SELECT from, with its schema and description
    """
    settings = get_settings(require_database=not args.url)
    console = Console()

    url = args.url or settings.database.connection_string
    catalog = args.catalog or settings.database.catalog
    strategy = args.strategy or settings.discovery.strategy

    connector = DialectRegistry.get_connector(
        url,
        excluded_schemas=settings.discovery.schema_exclusions,
        enumeration_strategy=EnumerationStrategy(strategy) if strategy else None,
    )
    kinds = frozenset(TableKind(kind) for kind in settings.discovery.table_kinds)

    try:
        inventory = describe_database(connector, DatabaseRef(url=url, catalog=catalog), kinds=kinds)
    except DiscoveryError as e:
        logger.error(f"Discovery failed: {e}", exc_info=True)
        console.print(f"\n[red]❌ Discovery failed:[/red] {e}")
        return 1

    if args.json:
        print(json.dumps(inventory.to_dict(), indent=2, ensure_ascii=False))
        return 0

    table = Table(title=f"Readable tables ({len(inventory)})")
    table.add_column("Schema", style="cyan")
    table.add_column("Table", style="bold")
    table.add_column("Description")

    for entry in inventory.to_dict()["tables"]:
        table.add_row(entry["schema"] or "-", entry["name"], entry["description"] or "")

    console.print(table)
    return 0


def cmd_config(args):
    """Show current configuration"""
    settings = get_settings()

    if args.json:
        print(json.dumps({
            'database': {
                'connection_string': settings.database.connection_string[:50] + '...',
                'catalog': settings.database.catalog,
                'pool_pre_ping': settings.database.pool_pre_ping,
                'pool_recycle': settings.database.pool_recycle,
            },
            'discovery': {
                'strategy': settings.discovery.strategy or None,
                'schema_exclusions': settings.discovery.schema_exclusions,
                'table_kinds': settings.discovery.table_kinds,
            },
            'paths': {
                'log_dir': str(settings.paths.log_dir),
            },
            'logging': {
                'level': settings.logging.level,
            },
        }, indent=2))
    else:
        print(settings.summary())

    return 0


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description='Database Table Discovery',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # ============================================================================
    # DESCRIBE COMMAND
    # ============================================================================
    describe_parser = subparsers.add_parser(
        'describe',
        help='List the tables and views the connection can read'
    )
    describe_parser.add_argument(
        '--url',
        help='SQLAlchemy URL (overrides DATABASE_CONNECTION_STRING)'
    )
    describe_parser.add_argument(
        '--catalog',
        help='Only list tables of this catalog/database (overrides DATABASE_CATALOG)'
    )
    describe_parser.add_argument(
        '--strategy',
        choices=[s.value for s in EnumerationStrategy],
        help='Override the connector enumeration strategy'
    )
    describe_parser.add_argument(
        '--json',
        action='store_true',
        help='Output the inventory as JSON'
    )
    describe_parser.set_defaults(func=cmd_describe)

    # ============================================================================
    # CONFIG COMMAND
    # ============================================================================
    config_parser = subparsers.add_parser(
        'config',
        help='Show current configuration'
    )
    config_parser.add_argument(
        '--json',
        action='store_true',
        help='Output configuration as JSON'
    )
    config_parser.set_defaults(func=cmd_config)

    # Parse arguments
    args = parser.parse_args()

    # Check if command was provided
    if not args.command:
        parser.print_help()
        return 1

    # Run command
    try:
        # describe --url works without DATABASE_CONNECTION_STRING
        setup_logging(get_settings(require_database=not getattr(args, 'url', None)))
        return args.func(args)
    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"\n❌ Command failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
