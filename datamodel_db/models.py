"""
Core data models for the data model schema provisioning system.

This module defines the primary data structures used throughout the system
for model configuration, DDL operations, statement classification and
bulk loading.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Pattern, Union
from urllib.parse import urlparse

from .exceptions import ConfigurationError
from .utils import resolve_model_alias, version_to_shorthand


LIFECYCLE_TABLE_MARKER = "version_history"

DEFAULT_SERVICE_URL = "https://data-models-sqlalchemy.research.chop.edu/"

SQL_DIALECT = "postgresql"


class DDLOperator(Enum):
    """DDL operators; the value is the path segment used by the data models service."""
    CREATE = "ddl"
    DROP = "drop"


class DDLOperand(Enum):
    """Kinds of schema objects the service can generate DDL for."""
    TABLES = "tables"
    INDEXES = "indexes"
    CONSTRAINTS = "constraints"


@dataclass(frozen=True)
class DDLOperationKey:
    """
    Identifies one DDL operation.

    Attributes:
        operator: create or drop
        operand: tables, indexes or constraints
    """
    operator: DDLOperator
    operand: DDLOperand

    @property
    def create_counterpart(self) -> 'DDLOperationKey':
        """The create operation for the same operand."""
        return DDLOperationKey(DDLOperator.CREATE, self.operand)

    def __str__(self) -> str:
        verb = "create" if self.operator is DDLOperator.CREATE else "drop"
        return f"{verb} {self.operand.value}"


@dataclass(frozen=True)
class DirectTablePattern:
    """
    Table name captured directly from the statement.

    Attributes:
        table: Regexp with one capture group for the table name, e.g. r"CREATE TABLE.* (\\w+) \\("
    """
    table: str


@dataclass(frozen=True)
class MappedEntityPattern:
    """
    Table name looked up through the entity (index/constraint) name.

    Used where the drop statement does not mention the owning table.

    Attributes:
        table_create: Capture of the table name in the *create* SQL, e.g. r" ON (\\w+) \\("
        entity_create: Capture of the entity name in the *create* SQL, e.g. r"CREATE INDEX (\\w+) ON"
        entity_drop: Capture of the entity name in the *drop* SQL, e.g. r"DROP INDEX (\\w+)"
    """
    table_create: str
    entity_create: str
    entity_drop: str


TablePatternKind = Union[DirectTablePattern, MappedEntityPattern]


@dataclass
class ClassifiedStatement:
    """
    A single SQL statement after classification.

    Attributes:
        text: Trimmed statement text, without the terminating semicolon
        is_lifecycle: True if the statement concerns the version history table
        table: Resolved owning table, or None if no pattern matched
    """
    text: str
    is_lifecycle: bool = False
    table: Optional[str] = None


EntityTableMap = Dict[str, str]


@dataclass(frozen=True)
class LoadTask:
    """One table to load from one source file."""
    table: str
    file_path: str


@dataclass
class LoadResult:
    """Outcome of loading one table."""
    table: str
    rows_expected: Optional[int] = None
    rows_actual: Optional[int] = None
    error: Optional[str] = None
    seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None


def driver_name_from_url(database_url: str) -> str:
    """
    Return the driver name derived from the scheme of a database URL.

    Raises:
        ConfigurationError: If the URL is unparseable or the scheme is not supported
    """
    try:
        scheme = urlparse(database_url).scheme
    except ValueError as e:
        raise ConfigurationError(f"Invalid URL '{database_url}': {e}")
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    raise ConfigurationError(f"Unsupported database scheme '{scheme}'")


def _compile_table_pattern(pattern: Optional[str], name: str) -> Optional[Pattern]:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid {name} regexp string '{pattern}': {e}")


@dataclass
class ModelConfig:
    """
    Configuration of one data model / version / target database combination.

    Constructed once and read-only afterwards. Model aliases are resolved and
    the include/exclude patterns compiled in __post_init__.

    Attributes:
        model: Data model name, e.g. "pedsnet", or one of the aliases
            "pedsnet-core" / "pedsnet-vocab"
        model_version: X.Y or X.Y.Z
        database_url: PostgreSQL URL, e.g. postgresql://user:pw@host:5432/db
        schema: Optional search path; may be a comma-separated list of schemas
        service_url: Base URL of the data models service
        include_tables: Optional regexp; only matching tables are processed
        exclude_tables: Optional regexp; matching tables are skipped
    """
    model: str
    model_version: str
    database_url: str
    schema: str = ""
    service_url: str = DEFAULT_SERVICE_URL
    include_tables: Optional[str] = None
    exclude_tables: Optional[str] = None
    include_pattern: Optional[Pattern] = field(init=False, default=None, repr=False)
    exclude_pattern: Optional[Pattern] = field(init=False, default=None, repr=False)

    def __post_init__(self):
        if not self.model:
            raise ConfigurationError("model cannot be empty")
        version_to_shorthand(self.model_version)
        if not self.service_url:
            self.service_url = DEFAULT_SERVICE_URL

        if self.include_tables and self.exclude_tables:
            raise ConfigurationError(
                "Include and exclude table patterns are mutually exclusive; "
                f"got include '{self.include_tables}' and exclude '{self.exclude_tables}'"
            )

        self.model, self.include_tables, self.exclude_tables = resolve_model_alias(
            self.model, self.model_version, self.include_tables, self.exclude_tables
        )
        self.include_pattern = _compile_table_pattern(self.include_tables, "include tables")
        self.exclude_pattern = _compile_table_pattern(self.exclude_tables, "exclude tables")

    @property
    def driver_name(self) -> str:
        return driver_name_from_url(self.database_url)

    @property
    def primary_schema(self) -> str:
        """First schema of the search path, or "" when no schema is configured."""
        return self.schema.split(",")[0].strip() if self.schema else ""

    def qualified_table_name(self, table: str) -> str:
        schema = self.primary_schema
        return f"{schema}.{table}" if schema else table
