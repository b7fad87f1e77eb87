"""
Command-line interface for the data model provisioning system.

Examples:
    datamodel-db create tables --model pedsnet --version 2.2.0 --database-url postgresql://... --schema dcc
    datamodel-db drop indexes --model pedsnet-core --version 2.2.0 --dry-run
    datamodel-db load data/manifest.csv --model pedsnet --version 2.2.0 --jobs 8
    datamodel-db database-name 2.2.0
"""

import argparse
import logging
import sys
from typing import Optional

from .config.config_manager import get_config_manager
from .config.processing_defaults import ProcessingDefaults
from .data_model_database import DataModelDatabase
from .exceptions import BulkLoadError, DataModelError
from .manifest import load_manifest
from .utils import database_name


OPERANDS = ("tables", "indexes", "constraints")


def _setup_logging(log_level: str) -> None:
    # Leave the root logger alone if the embedding application configured it.
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def _add_model_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--model", required=True, help="Data model, e.g. pedsnet, pedsnet-core, pedsnet-vocab, i2b2")
    parser.add_argument("--version", required=True, dest="model_version", help="Model version, X.Y or X.Y.Z")
    parser.add_argument("--database-url", help="PostgreSQL URL (default: DATAMODEL_DB_URL)")
    parser.add_argument("--schema", help="Schema or comma-separated search path (default: DATAMODEL_DB_SCHEMA)")
    parser.add_argument("--service-url", help="Data models service base URL (default: DATAMODEL_DB_SERVICE_URL)")
    filters = parser.add_mutually_exclusive_group()
    filters.add_argument("--include", dest="include_tables", help="Regexp of table names to include")
    filters.add_argument("--exclude", dest="exclude_tables", help="Regexp of table names to exclude")
    parser.add_argument("--log-level", default=ProcessingDefaults.LOG_LEVEL,
                        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], help="Logging level")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="datamodel-db",
        description="Create or drop data model tables, indexes and constraints, and bulk-load data files",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    for operator in ("create", "drop"):
        sub = commands.add_parser(operator, help=f"{operator.capitalize()} tables, indexes or constraints")
        sub.add_argument("operand", choices=OPERANDS)
        sub.add_argument("--dry-run", action="store_true", help="Print the SQL instead of executing it")
        _add_model_arguments(sub)

    load = commands.add_parser("load", help="Bulk-load CSV files listed in a manifest")
    load.add_argument("manifest", help="Manifest file (.csv with table,filename columns, .json or .yaml)")
    load.add_argument("--data-dir", help="Directory containing the data files (default: manifest directory)")
    load.add_argument("--jobs", type=int, help="Parallel load workers (default: DATAMODEL_DB_LOAD_JOBS or 4)")
    _add_model_arguments(load)

    name = commands.add_parser("database-name", help="Print the conventional database name for a version")
    name.add_argument("model_version", help="Model version, X.Y or X.Y.Z")

    return parser


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI application.

    Args:
        args: Optional command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parsed = build_parser().parse_args(sys.argv[1:] if args is None else args)

    if parsed.command == "database-name":
        try:
            print(database_name(parsed.model_version))
        except DataModelError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        return 0

    _setup_logging(parsed.log_level)
    logger = logging.getLogger(__name__)
    if logger.isEnabledFor(logging.DEBUG):
        ProcessingDefaults.log_summary(logger)

    try:
        config_manager = get_config_manager()
        model_config = config_manager.build_model_config(
            model=parsed.model,
            model_version=parsed.model_version,
            database_url=parsed.database_url,
            schema=parsed.schema,
            service_url=parsed.service_url,
            include_tables=parsed.include_tables,
            exclude_tables=parsed.exclude_tables,
        )
        processing = config_manager.processing_params
        database_config = config_manager.database_config

        if parsed.command == "load":
            if parsed.jobs is not None and parsed.jobs <= 0:
                logger.error(f"--jobs must be a positive integer, not {parsed.jobs}")
                return 2
            tasks = load_manifest(parsed.manifest, parsed.data_dir)
            database = DataModelDatabase.open(
                model_config,
                odbc_driver=database_config.odbc_driver,
                connection_timeout=database_config.connection_timeout,
                load_jobs=parsed.jobs or processing.load_jobs,
                queue_capacity=processing.queue_capacity,
                copy_tool=processing.copy_tool,
            )
            results = database.load(tasks)
            logger.info(f"Loaded {len(results)} tables")
            return 0

        database = DataModelDatabase.open(
            model_config,
            dry_run=parsed.dry_run,
            odbc_driver=database_config.odbc_driver,
            connection_timeout=database_config.connection_timeout,
        )
        operation = getattr(database, f"{parsed.command}_{parsed.operand}")
        count = operation()
        if not parsed.dry_run:
            logger.info(f"{parsed.command} {parsed.operand}: {count} statements committed")
        return 0

    except BulkLoadError as e:
        logger.error(str(e))
        return 1
    except DataModelError as e:
        logger.error(f"{parsed.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
