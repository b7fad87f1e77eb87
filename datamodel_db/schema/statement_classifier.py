"""
DDL Statement Classification - From Raw Service Text to an Executable Statement List

The data models service returns one undifferentiated blob of SQL per operation.
This module turns it into the ordered subset of statements to execute:

1. split_statements(): split on ';', trim, drop empty pieces
2. build_entity_table_map(): for index/constraint drops, map entity name to
   owning table by classifying the *create* SQL of the same operand
3. StatementClassifier: flag lifecycle (version history) statements and
   resolve each remaining statement's table name
4. InclusionFilter: apply the include or exclude table pattern

Statements are never reordered. The service emits them in dependency order
(e.g. constraints after the tables they reference) and that order is kept.
A statement that matches no pattern is dropped without error.
"""

import logging
import re
from typing import List, Optional, Pattern

from ..exceptions import ClassificationError, ConfigurationError
from ..models import (LIFECYCLE_TABLE_MARKER, ClassifiedStatement, DirectTablePattern,
                      EntityTableMap, MappedEntityPattern, TablePatternKind)


logger = logging.getLogger(__name__)


def split_statements(sql_text: str) -> List[str]:
    """Split multi-statement SQL text into trimmed, non-empty statements."""
    return [stmt.strip() for stmt in sql_text.split(";") if stmt.strip()]


def is_lifecycle_statement(statement: str) -> bool:
    """True if the statement concerns the version history bookkeeping table."""
    return LIFECYCLE_TABLE_MARKER in statement


def build_entity_table_map(create_statements: List[str], pattern: MappedEntityPattern) -> EntityTableMap:
    """
    Build the index/constraint name -> table name map from create statements.

    Args:
        create_statements: Split statements of the create operation for the operand
        pattern: Mapped pattern whose table_create / entity_create captures are used

    Returns:
        Mapping of entity name to owning table

    Raises:
        ClassificationError: If a statement matches table_create but not entity_create
    """
    table_create = re.compile(pattern.table_create)
    entity_create = re.compile(pattern.entity_create)
    entity_table_map: EntityTableMap = {}

    for stmt in create_statements:
        if is_lifecycle_statement(stmt):
            continue
        table_match = table_create.search(stmt)
        if table_match is None:
            continue
        entity_match = entity_create.search(stmt)
        if entity_match is None:
            raise ClassificationError(
                f"Entity pattern `{pattern.entity_create}` does not match `{stmt}` "
                f"although table pattern `{pattern.table_create}` does",
                statement=stmt,
                table=table_match.group(1),
            )
        entity_table_map[entity_match.group(1)] = table_match.group(1)

    logger.debug(f"Mapped {len(entity_table_map)} entities to tables")
    return entity_table_map


class StatementClassifier:
    """Resolves the owning table of each statement, dispatching on the pattern kind."""

    def __init__(self, pattern_kind: TablePatternKind, entity_table_map: Optional[EntityTableMap] = None):
        """
        Args:
            pattern_kind: DirectTablePattern or MappedEntityPattern
            entity_table_map: Required for MappedEntityPattern, ignored otherwise
        """
        self.pattern_kind = pattern_kind
        self.entity_table_map = entity_table_map
        if isinstance(pattern_kind, DirectTablePattern):
            self._pattern = re.compile(pattern_kind.table)
        elif isinstance(pattern_kind, MappedEntityPattern):
            if entity_table_map is None:
                raise ValueError("MappedEntityPattern requires an entity table map")
            self._pattern = re.compile(pattern_kind.entity_drop)
        else:
            raise TypeError(f"Unknown pattern kind: {type(pattern_kind).__name__}")

    def classify(self, statement: str) -> ClassifiedStatement:
        """
        Classify one trimmed statement.

        Raises:
            ClassificationError: If an entity name is extracted but has no mapped table
        """
        if is_lifecycle_statement(statement):
            return ClassifiedStatement(text=statement, is_lifecycle=True)

        match = self._pattern.search(statement)
        if match is None:
            return ClassifiedStatement(text=statement)

        name = match.group(1)
        if isinstance(self.pattern_kind, MappedEntityPattern):
            try:
                table = self.entity_table_map[name]
            except KeyError:
                raise ClassificationError(
                    f"Failed to look up table name for entity `{name}` in SQL `{statement}`",
                    statement=statement,
                    table=name,
                )
        else:
            table = name
        return ClassifiedStatement(text=statement, table=table)


class InclusionFilter:
    """Include-or-exclude filter on resolved table names."""

    def __init__(self, include_pattern: Optional[Pattern] = None, exclude_pattern: Optional[Pattern] = None):
        if include_pattern is not None and exclude_pattern is not None:
            raise ConfigurationError("Include and exclude table patterns are mutually exclusive")
        self.include_pattern = include_pattern
        self.exclude_pattern = exclude_pattern

    def keep(self, classified: ClassifiedStatement) -> bool:
        if classified.is_lifecycle:
            return True
        if classified.table is None:
            return False
        if self.include_pattern is not None:
            return self.include_pattern.search(classified.table) is not None
        if self.exclude_pattern is not None:
            return self.exclude_pattern.search(classified.table) is None
        return True


def select_statements(sql_text: str, pattern_kind: TablePatternKind, inclusion_filter: InclusionFilter,
                      create_sql_text: Optional[str] = None) -> List[str]:
    """
    Produce the ordered, filtered statements to execute for one DDL operation.

    Args:
        sql_text: Raw SQL of the target operation
        pattern_kind: Extraction pattern for the target operation
        inclusion_filter: Table filter to apply
        create_sql_text: Raw SQL of the create operation for the same operand;
            required when pattern_kind is a MappedEntityPattern

    Returns:
        Statement texts in their original order

    Raises:
        ClassificationError: On an unexpected shape of the service SQL
    """
    entity_table_map = None
    if isinstance(pattern_kind, MappedEntityPattern):
        if create_sql_text is None:
            raise ValueError("create_sql_text is required for a MappedEntityPattern")
        entity_table_map = build_entity_table_map(split_statements(create_sql_text), pattern_kind)

    classifier = StatementClassifier(pattern_kind, entity_table_map)
    selected = []
    skipped = 0
    for stmt in split_statements(sql_text):
        classified = classifier.classify(stmt)
        if inclusion_filter.keep(classified):
            selected.append(classified.text)
        else:
            skipped += 1

    logger.debug(f"Selected {len(selected)} statements, skipped {skipped}")
    return selected
