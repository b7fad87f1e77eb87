"""
Abstract interfaces for the data model provisioning system.

This module defines the contracts the schema source and the per-table loader
implement, so the DDL pipeline and the load scheduler can be driven by test
doubles.
"""

from abc import ABC, abstractmethod

from .models import DDLOperationKey, LoadResult, LoadTask


class SchemaSourceInterface(ABC):
    """Abstract interface for sources of data model DDL."""

    @abstractmethod
    def fetch_ddl(self, model: str, version: str, key: DDLOperationKey) -> str:
        """
        Fetch the raw, `;`-delimited SQL for one DDL operation.

        Raises:
            SchemaServiceError: If the SQL cannot be retrieved
        """
        pass

    @abstractmethod
    def check_model_and_version(self, model: str, version: str) -> None:
        """
        Raises:
            ConfigurationError: If the model/version pair is unknown
        """
        pass


class TableLoaderInterface(ABC):
    """Abstract interface for loading one table."""

    @abstractmethod
    def load(self, task: LoadTask) -> LoadResult:
        """
        Load and verify one table.

        Raises:
            LoadError: If the load or its verification fails
        """
        pass
