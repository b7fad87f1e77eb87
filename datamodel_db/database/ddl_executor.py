"""
Transactional DDL Executor - Atomic Schema Changes

Final stage of the DDL pipeline. Receives the ordered, filtered statement list
and executes it as a single transaction on one pyodbc connection:

- Schema scoping: with a configured schema, `SET LOCAL search_path` is issued
  first, so it lasts only as long as the transaction
- Ordering: statements run strictly in the order given
- Atomicity: the first failing statement rolls back everything; no partial
  schema change persists
- Dry run: no connection is opened; every statement is written once to an
  output stream, in execution order, as `<sql>;`. The search path is emitted
  as a session-level `SET search_path` so the output runs as a psql script
"""

import logging
import sys
from contextlib import contextmanager
from typing import List, Optional, TextIO

import pyodbc

from .connection import get_connection
from ..exceptions import ConfigurationError, DDLExecutionError


class TransactionalExecutor:
    """Executes DDL statement lists atomically, or prints them in dry-run mode."""

    def __init__(self, connection_string: Optional[str], driver_name: str, schema: str = "",
                 dry_run: bool = False, output: Optional[TextIO] = None, timeout: int = 30):
        """
        Initialize the executor.

        Args:
            connection_string: ODBC connection string (unused in dry-run mode)
            driver_name: Driver derived from the database URL, e.g. "postgres"
            schema: Optional search path applied to each transaction
            dry_run: Emit statements to `output` instead of executing them
            output: Stream for dry-run output (defaults to stdout)
            timeout: Login timeout in seconds
        """
        self.logger = logging.getLogger(__name__)
        self.connection_string = connection_string
        self.driver_name = driver_name
        self.schema = schema
        self.dry_run = dry_run
        self.output = output
        self.timeout = timeout

    def _search_path_statement(self, local: bool = True) -> Optional[str]:
        if not self.schema:
            return None
        if self.driver_name != "postgres":
            raise ConfigurationError("Schemas are currently supported only for PostgreSQL")
        scope = "SET LOCAL" if local else "SET"
        return f"{scope} search_path TO {self.schema}"

    @contextmanager
    def transaction(self, connection: pyodbc.Connection):
        """
        Context manager for explicit transaction management.

        Commits when the block completes and rolls back when it raises. The
        transaction is released exactly once on every path.

        Yields:
            pyodbc.Cursor: Cursor inside the transaction
        """
        cursor = connection.cursor()
        try:
            yield cursor
        except BaseException as e:
            try:
                connection.rollback()
                self.logger.error(f"Transaction rolled back due to error: {str(e)[:200]}")
            except pyodbc.Error as rollback_error:
                self.logger.critical(f"ROLLBACK FAILED - schema may be in an inconsistent state: {rollback_error}")
            raise
        else:
            try:
                connection.commit()
            except pyodbc.Error as e:
                raise DDLExecutionError(f"Error committing transaction: {e}")
            self.logger.debug("Transaction committed")
        finally:
            try:
                cursor.close()
            except pyodbc.Error:
                pass

    def execute(self, statements: List[str], operation: str = "DDL") -> int:
        """
        Execute statements in order within a single transaction.

        Args:
            statements: Ordered statement texts, without terminating semicolons
            operation: Operation name for log and error messages, e.g. "create tables"

        Returns:
            Number of data model statements executed (or emitted)

        Raises:
            ConfigurationError: If a schema is configured for a non-PostgreSQL driver
            DatabaseConnectionError: If the database cannot be reached
            DDLExecutionError: If any statement fails; nothing is committed
        """
        search_path = self._search_path_statement(local=not self.dry_run)

        if self.dry_run:
            out = self.output or sys.stdout
            if search_path:
                out.write(f"{search_path};\n")
            for stmt in statements:
                out.write(f"{stmt};\n")
            return len(statements)

        self.logger.info(f"Executing {len(statements)} statements for {operation}")
        with get_connection(self.connection_string, autocommit=False, timeout=self.timeout) as conn:
            with self.transaction(conn) as cursor:
                if search_path:
                    self._execute_one(cursor, search_path, operation)
                for stmt in statements:
                    self._execute_one(cursor, stmt, operation)
        self.logger.info(f"Committed {len(statements)} statements for {operation}")
        return len(statements)

    def _execute_one(self, cursor, statement: str, operation: str) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"SQL: {statement}")
        try:
            cursor.execute(statement)
        except pyodbc.Error as e:
            raise DDLExecutionError(
                f"Error executing SQL for {operation}: `{statement}`: {e}",
                statement=statement,
            )
