"""
Data Model Database Provisioning

Creates and drops the tables, indexes and constraints of a versioned clinical
data model from DDL generated by the data models service, and bulk-loads CSV
data files into the resulting schema with exact row-count verification.
"""

__version__ = "1.0.0"

from .models import (
    ModelConfig,
    DDLOperationKey,
    DDLOperator,
    DDLOperand,
    DirectTablePattern,
    MappedEntityPattern,
    ClassifiedStatement,
    LoadTask,
    LoadResult
)

from .exceptions import (
    DataModelError,
    ConfigurationError,
    DatabaseConnectionError,
    SchemaServiceError,
    ClassificationError,
    DDLExecutionError,
    LoadError,
    CopyCommandError,
    RowCountMismatchError,
    BulkLoadError
)

from .data_model_database import DataModelDatabase

__all__ = [
    # Core models
    "ModelConfig",
    "DDLOperationKey",
    "DDLOperator",
    "DDLOperand",
    "DirectTablePattern",
    "MappedEntityPattern",
    "ClassifiedStatement",
    "LoadTask",
    "LoadResult",

    # Public operations
    "DataModelDatabase",

    # Exceptions
    "DataModelError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "SchemaServiceError",
    "ClassificationError",
    "DDLExecutionError",
    "LoadError",
    "CopyCommandError",
    "RowCountMismatchError",
    "BulkLoadError"
]
