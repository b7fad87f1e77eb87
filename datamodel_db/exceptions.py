"""
Custom exceptions for the data model schema provisioning system.

This module defines specific exception types for the different error conditions
that can occur while fetching, classifying and executing DDL, and while
bulk-loading data files.
"""

from typing import List, Optional


class DataModelError(Exception):
    """Base exception for all data model provisioning errors."""

    def __init__(self, message: str, table: str = None):
        """
        Initialize data model error.

        Args:
            message: Error description
            table: Optional name of the table (or entity) the error concerns
        """
        super().__init__(message)
        self.table = table


class ConfigurationError(DataModelError):
    """Exception raised when configuration is invalid or missing."""
    pass


class DatabaseConnectionError(DataModelError):
    """Exception raised when database connection fails."""
    pass


class SchemaServiceError(DataModelError):
    """Exception raised when the data models service cannot be reached or returns an error."""

    def __init__(self, message: str, url: str = None, status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ClassificationError(DataModelError):
    """Exception raised when DDL text does not have the shape the extraction patterns expect."""

    def __init__(self, message: str, statement: str = None, table: str = None):
        super().__init__(message, table)
        self.statement = statement


class DDLExecutionError(DataModelError):
    """Exception raised when a DDL statement fails; the enclosing transaction is rolled back."""

    def __init__(self, message: str, statement: str = None):
        """
        Initialize DDL execution error.

        Args:
            message: Error description
            statement: Text of the statement that failed
        """
        super().__init__(message)
        self.statement = statement


class LoadError(DataModelError):
    """Exception raised when loading a single table fails."""
    pass


class CopyCommandError(LoadError):
    """Exception raised when the bulk-copy subprocess exits with a non-zero status."""

    def __init__(self, message: str, table: str = None, returncode: int = None, stderr: str = None):
        super().__init__(message, table)
        self.returncode = returncode
        self.stderr = stderr


class RowCountMismatchError(LoadError):
    """Exception raised when the loaded row count differs from the data lines in the source file."""

    def __init__(self, message: str, table: str = None, expected: int = None, actual: int = None):
        """
        Initialize row count mismatch error.

        Args:
            message: Error description
            table: Table that was loaded
            expected: Data lines in the source file (header excluded)
            actual: Rows counted in the destination table
        """
        super().__init__(message, table)
        self.expected = expected
        self.actual = actual


class BulkLoadError(DataModelError):
    """Aggregate of every per-table failure of one load run."""

    def __init__(self, message: str, results: Optional[List] = None):
        super().__init__(message)
        self.results = results or []

    @property
    def failed_tables(self) -> List[str]:
        return [r.table for r in self.results if r.error]
