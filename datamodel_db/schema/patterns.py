"""
PostgreSQL table-name extraction patterns for each DDL operation.

Index and constraint drops do not name their table, so those operations use
a MappedEntityPattern resolved through the matching create statements.
"""

from typing import Dict

from ..exceptions import ConfigurationError
from ..models import (DDLOperand, DDLOperationKey, DDLOperator, DirectTablePattern,
                      MappedEntityPattern, TablePatternKind)


POSTGRES_PATTERNS: Dict[DDLOperationKey, TablePatternKind] = {
    DDLOperationKey(DDLOperator.CREATE, DDLOperand.TABLES): DirectTablePattern(r"CREATE TABLE.* (\w+) \("),
    DDLOperationKey(DDLOperator.CREATE, DDLOperand.INDEXES): DirectTablePattern(r"ON (\w+) \("),
    DDLOperationKey(DDLOperator.CREATE, DDLOperand.CONSTRAINTS): DirectTablePattern(r"ALTER TABLE (\w+)"),
    DDLOperationKey(DDLOperator.DROP, DDLOperand.TABLES): DirectTablePattern(r"DROP TABLE.* (\w+)"),
    DDLOperationKey(DDLOperator.DROP, DDLOperand.INDEXES): MappedEntityPattern(
        table_create=r" ON (\w+) \(",
        entity_create=r"CREATE (?:UNIQUE )?INDEX (\w+) ON",
        entity_drop=r"DROP INDEX (\w+)",
    ),
    DDLOperationKey(DDLOperator.DROP, DDLOperand.CONSTRAINTS): MappedEntityPattern(
        table_create=r"ALTER TABLE (\w+) ADD CONSTRAINT",
        entity_create=r"ADD CONSTRAINT (\w+)",
        entity_drop=r"DROP CONSTRAINT (\w+)",
    ),
}


def patterns_for(driver_name: str, key: DDLOperationKey) -> TablePatternKind:
    """
    Return the extraction pattern for an operation on a database driver.

    Raises:
        ConfigurationError: If the driver is not supported
    """
    if driver_name != "postgres":
        raise ConfigurationError(f"Unsupported database driver: {driver_name}")
    return POSTGRES_PATTERNS[key]
