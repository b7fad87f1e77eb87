"""
Table Loader - Load, Verify and Maintain One Table

Unit of work of the bulk-load scheduler. Each call opens its own database
connections and its own copy subprocess, so loaders share no mutable state.

Per table:
1. Read the CSV header for the column list
2. Copy the file with psql (stderr captured, non-zero exit is a failure)
3. Compare destination rows with source lines minus the header; exact match required
4. VACUUM FREEZE ANALYZE the table; failure here is logged only
"""

import logging
import time

import pyodbc

from .bulk_copy import run_copy
from .connection import get_connection
from .load_verifier import column_names_from_csv_file, rows_in_file, rows_in_table, verify_row_count
from ..config.processing_defaults import ProcessingDefaults
from ..exceptions import DataModelError, LoadError
from ..interfaces import TableLoaderInterface
from ..models import LoadResult, LoadTask, ModelConfig


class TableLoader(TableLoaderInterface):
    """Loads one LoadTask into its table and verifies the result."""

    def __init__(self, model_config: ModelConfig, connection_string: str,
                 copy_tool: str = ProcessingDefaults.COPY_TOOL, timeout: int = ProcessingDefaults.CONNECTION_TIMEOUT):
        """
        Args:
            model_config: Target database and schema
            connection_string: ODBC connection string for counting and maintenance
            copy_tool: Name or path of the psql binary
            timeout: Login timeout in seconds
        """
        self.logger = logging.getLogger(__name__)
        self.model_config = model_config
        self.connection_string = connection_string
        self.copy_tool = copy_tool
        self.timeout = timeout

    def load(self, task: LoadTask) -> LoadResult:
        """
        Load, verify and maintain one table.

        Returns:
            LoadResult with both counts filled in

        Raises:
            LoadError: On any copy or verification failure
            DatabaseConnectionError: If the database cannot be reached for verification
        """
        start = time.time()
        qualified_table = self.model_config.qualified_table_name(task.table)
        self.logger.info(f"Loading {qualified_table} from {task.file_path} (search_path: {self.model_config.schema})")

        columns = column_names_from_csv_file(task.file_path)
        run_copy(self.copy_tool, self.model_config.database_url, qualified_table, columns, task.file_path)

        try:
            actual_rows = rows_in_table(self.connection_string, qualified_table, self.timeout)
        except DataModelError as e:
            raise LoadError(
                f"Load for {qualified_table} nominally worked, but counting the number of rows failed: {e}",
                table=task.table,
            )
        try:
            expected_rows = rows_in_file(task.file_path) - 1
        except OSError as e:
            raise LoadError(
                f"Load for {qualified_table} nominally worked, but counting the number of lines "
                f"in the csv file failed: {e}",
                table=task.table,
            )

        verify_row_count(qualified_table, expected_rows, actual_rows)
        self.logger.info(f"Loaded {actual_rows} rows into {qualified_table}")

        self.vacuum(qualified_table)

        return LoadResult(
            table=task.table,
            rows_expected=expected_rows,
            rows_actual=actual_rows,
            seconds=time.time() - start,
        )

    def vacuum(self, qualified_table: str) -> bool:
        """
        Run VACUUM FREEZE ANALYZE on a freshly loaded table.

        Best effort: failures are logged and reported as False, never raised.
        """
        if self.model_config.driver_name != "postgres":
            return False
        self.logger.info(f"Vacuuming {qualified_table}")
        sql = f"VACUUM FREEZE ANALYZE {qualified_table}"
        try:
            with get_connection(self.connection_string, autocommit=True, timeout=self.timeout) as conn:
                conn.cursor().execute(sql)
        except (pyodbc.Error, DataModelError) as e:
            self.logger.warning(f"Error executing `{sql}`: {e}")
            return False
        return True
