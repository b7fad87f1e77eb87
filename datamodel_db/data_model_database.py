"""
Data Model Database - Public Operations

Entry point used by the CLI. A DataModelDatabase binds one ModelConfig to a
schema source, a DDL executor and the bulk-load machinery, and exposes:

- create_tables / create_indexes / create_constraints
- drop_tables / drop_indexes / drop_constraints
- load(tasks)

Each DDL operation is one sequential pipeline run: fetch the SQL, classify and
filter it, then execute it atomically (or print it in dry-run mode). DDL
operations must not run concurrently against the same schema.
"""

import logging
from typing import List, Optional, Sequence, TextIO

from .config.config_manager import odbc_connection_string
from .config.processing_defaults import ProcessingDefaults
from .database.bulk_copy import require_copy_tool
from .database.connection import ping
from .database.ddl_executor import TransactionalExecutor
from .database.table_loader import TableLoader
from .interfaces import SchemaSourceInterface
from .models import DDLOperand, DDLOperationKey, DDLOperator, LoadResult, LoadTask, MappedEntityPattern, ModelConfig
from .processing.bulk_load_scheduler import BulkLoadScheduler
from .schema.patterns import patterns_for
from .schema.schema_service import SchemaServiceClient
from .schema.statement_classifier import InclusionFilter, select_statements


class DataModelDatabase:
    """A data model schema within one PostgreSQL database."""

    def __init__(self, model_config: ModelConfig, schema_source: Optional[SchemaSourceInterface] = None,
                 dry_run: bool = False, output: Optional[TextIO] = None,
                 odbc_driver: str = ProcessingDefaults.ODBC_DRIVER,
                 connection_timeout: int = ProcessingDefaults.CONNECTION_TIMEOUT,
                 load_jobs: int = ProcessingDefaults.WORKERS,
                 queue_capacity: int = ProcessingDefaults.QUEUE_CAPACITY,
                 copy_tool: str = ProcessingDefaults.COPY_TOOL):
        """
        Initialize without touching the network or the database; see open().

        Args:
            model_config: Validated model configuration
            schema_source: DDL source (defaults to a SchemaServiceClient for model_config.service_url)
            dry_run: Print DDL instead of executing it
            output: Dry-run output stream (defaults to stdout)
            odbc_driver: ODBC driver name for pyodbc connections
            connection_timeout: Login timeout in seconds
            load_jobs: Bulk-load worker count
            queue_capacity: Bulk-load task queue capacity
            copy_tool: psql binary name or path
        """
        self.logger = logging.getLogger(__name__)
        self.model_config = model_config
        self.driver_name = model_config.driver_name
        self.schema_source = schema_source or SchemaServiceClient(model_config.service_url)
        self.dry_run = dry_run
        self.connection_string = odbc_connection_string(model_config.database_url, odbc_driver, connection_timeout)
        self.connection_timeout = connection_timeout
        self.load_jobs = load_jobs
        self.queue_capacity = queue_capacity
        self.copy_tool = copy_tool
        self.inclusion_filter = InclusionFilter(model_config.include_pattern, model_config.exclude_pattern)
        self.executor = TransactionalExecutor(
            self.connection_string,
            self.driver_name,
            schema=model_config.schema,
            dry_run=dry_run,
            output=output,
            timeout=connection_timeout,
        )

    @classmethod
    def open(cls, model_config: ModelConfig, **kwargs) -> 'DataModelDatabase':
        """
        Construct, validate the model/version with the schema source and,
        unless in dry-run mode, check that the database answers.

        Raises:
            ConfigurationError: Unknown model/version or unsupported database
            SchemaServiceError: Schema source unreachable
            DatabaseConnectionError: Database unreachable
        """
        database = cls(model_config, **kwargs)
        database.schema_source.check_model_and_version(model_config.model, model_config.model_version)
        if not database.dry_run:
            ping(database.connection_string, database.connection_timeout)
        database.logger.info(
            f"Opened {model_config.model} {model_config.model_version} "
            f"(schema: {model_config.schema or 'default search_path'})"
        )
        return database

    def statements_for(self, key: DDLOperationKey) -> List[str]:
        """
        Fetch, classify and filter the SQL for one operation.

        Raises:
            ConfigurationError: Unsupported driver
            SchemaServiceError: SQL could not be fetched
            ClassificationError: SQL had an unexpected shape
        """
        pattern_kind = patterns_for(self.driver_name, key)
        model, version = self.model_config.model, self.model_config.model_version
        sql_text = self.schema_source.fetch_ddl(model, version, key)
        create_sql_text = None
        if isinstance(pattern_kind, MappedEntityPattern):
            create_sql_text = self.schema_source.fetch_ddl(model, version, key.create_counterpart)
        return select_statements(sql_text, pattern_kind, self.inclusion_filter, create_sql_text)

    def _operate(self, operator: DDLOperator, operand: DDLOperand) -> int:
        key = DDLOperationKey(operator, operand)
        statements = self.statements_for(key)
        return self.executor.execute(statements, operation=str(key))

    def create_tables(self) -> int:
        """Create the data model tables."""
        return self._operate(DDLOperator.CREATE, DDLOperand.TABLES)

    def create_indexes(self) -> int:
        """Add indexes to the data model tables."""
        return self._operate(DDLOperator.CREATE, DDLOperand.INDEXES)

    def create_constraints(self) -> int:
        """Add integrity constraints; the tables and indexes they reference must exist."""
        return self._operate(DDLOperator.CREATE, DDLOperand.CONSTRAINTS)

    def drop_tables(self) -> int:
        """Drop the data model tables. Constraints and indexes should already be dropped."""
        return self._operate(DDLOperator.DROP, DDLOperand.TABLES)

    def drop_indexes(self) -> int:
        """Drop indexes. For best performance, drop constraints first."""
        return self._operate(DDLOperator.DROP, DDLOperand.INDEXES)

    def drop_constraints(self) -> int:
        """Drop integrity constraints; do this before dropping indexes and tables."""
        return self._operate(DDLOperator.DROP, DDLOperand.CONSTRAINTS)

    def load(self, tasks: Sequence[LoadTask]) -> List[LoadResult]:
        """
        Load CSV files into their tables in parallel and verify every load.

        Raises:
            ConfigurationError: The copy tool is not on PATH (checked before any work)
            BulkLoadError: One or more tables failed; every failure is named
        """
        copy_tool = require_copy_tool(self.copy_tool)
        loader = TableLoader(self.model_config, self.connection_string, copy_tool, self.connection_timeout)
        scheduler = BulkLoadScheduler(loader, num_workers=self.load_jobs, queue_capacity=self.queue_capacity)
        return scheduler.run(tasks)
