"""
Schema module: retrieval and classification of data model DDL.
"""

from .schema_service import SchemaServiceClient
from .statement_classifier import (InclusionFilter, StatementClassifier, build_entity_table_map,
                                   select_statements, split_statements)

__all__ = [
    'SchemaServiceClient',
    'InclusionFilter',
    'StatementClassifier',
    'build_entity_table_map',
    'select_statements',
    'split_statements'
]
