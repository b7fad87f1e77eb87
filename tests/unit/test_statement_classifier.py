"""
Tests for splitting, classifying and filtering data model DDL.

Covers every operation's extraction pattern against service-shaped SQL,
the entity-to-table lookup used by index and constraint drops, lifecycle
statement handling and the include/exclude filter.
"""

import re

import pytest

from datamodel_db.exceptions import ClassificationError, ConfigurationError
from datamodel_db.models import (ClassifiedStatement, DDLOperand, DDLOperationKey, DDLOperator,
                                 DirectTablePattern, MappedEntityPattern)
from datamodel_db.schema.patterns import POSTGRES_PATTERNS, patterns_for
from datamodel_db.schema.statement_classifier import (InclusionFilter, StatementClassifier,
                                                      build_entity_table_map, is_lifecycle_statement,
                                                      select_statements, split_statements)
from tests.ddl_samples import (CREATE_CONSTRAINTS_SQL, CREATE_INDEXES_SQL, CREATE_TABLES_SQL,
                            DROP_CONSTRAINTS_SQL, DROP_INDEXES_SQL, DROP_TABLES_SQL)


CREATE_TABLES = DDLOperationKey(DDLOperator.CREATE, DDLOperand.TABLES)
DROP_TABLES = DDLOperationKey(DDLOperator.DROP, DDLOperand.TABLES)
CREATE_INDEXES = DDLOperationKey(DDLOperator.CREATE, DDLOperand.INDEXES)
DROP_INDEXES = DDLOperationKey(DDLOperator.DROP, DDLOperand.INDEXES)
CREATE_CONSTRAINTS = DDLOperationKey(DDLOperator.CREATE, DDLOperand.CONSTRAINTS)
DROP_CONSTRAINTS = DDLOperationKey(DDLOperator.DROP, DDLOperand.CONSTRAINTS)


def _tables(statements, pattern_kind, entity_table_map=None):
    classifier = StatementClassifier(pattern_kind, entity_table_map)
    return [classifier.classify(stmt).table for stmt in statements]


class TestSplitStatements:

    def test_splits_trims_and_drops_empty_pieces(self):
        assert split_statements("  A ;\n\n; B;\n  ") == ["A", "B"]

    def test_empty_text(self):
        assert split_statements("") == []
        assert split_statements(" ;\n; ") == []

    def test_keeps_order(self):
        statements = split_statements(CREATE_TABLES_SQL)
        assert len(statements) == 5
        assert statements[0].startswith("CREATE TABLE person")
        assert statements[-1].startswith("INSERT INTO version_history")
        assert not any(stmt.endswith(";") for stmt in statements)


class TestLifecycleStatements:

    def test_version_history_statements_are_lifecycle(self):
        assert is_lifecycle_statement("CREATE TABLE version_history (\n\toperation VARCHAR(100))")
        assert is_lifecycle_statement("INSERT INTO version_history (operation) VALUES ('x')")
        assert not is_lifecycle_statement("CREATE TABLE person (\n\tperson_id INTEGER)")

    def test_lifecycle_statements_are_not_matched_against_table_pattern(self):
        classifier = StatementClassifier(POSTGRES_PATTERNS[CREATE_TABLES])
        classified = classifier.classify("CREATE TABLE version_history (\n\toperation VARCHAR(100))")
        assert classified.is_lifecycle
        assert classified.table is None


class TestDirectPatterns:

    def test_create_tables(self):
        statements = split_statements(CREATE_TABLES_SQL)
        assert _tables(statements, POSTGRES_PATTERNS[CREATE_TABLES]) == [
            "person", "visit_occurrence", "concept", None, None
        ]

    def test_drop_tables(self):
        statements = split_statements(DROP_TABLES_SQL)
        assert _tables(statements, POSTGRES_PATTERNS[DROP_TABLES]) == [
            None, "concept", "visit_occurrence", "person"
        ]

    def test_create_indexes(self):
        statements = split_statements(CREATE_INDEXES_SQL)
        assert _tables(statements, POSTGRES_PATTERNS[CREATE_INDEXES]) == [
            "person", "visit_occurrence", "concept", None
        ]

    def test_create_constraints(self):
        statements = split_statements(CREATE_CONSTRAINTS_SQL)
        assert _tables(statements, POSTGRES_PATTERNS[CREATE_CONSTRAINTS]) == [
            "visit_occurrence", "person", None
        ]

    def test_unmatched_statement_has_no_table(self):
        classifier = StatementClassifier(DirectTablePattern(r"CREATE TABLE.* (\w+) \("))
        assert classifier.classify("COMMENT ON COLUMN person.person_id IS 'id'") == ClassifiedStatement(
            text="COMMENT ON COLUMN person.person_id IS 'id'"
        )


class TestMappedPatterns:

    def test_index_entity_table_map(self):
        entity_table_map = build_entity_table_map(
            split_statements(CREATE_INDEXES_SQL), POSTGRES_PATTERNS[DROP_INDEXES]
        )
        assert entity_table_map == {
            "idx_person_year": "person",
            "idx_visit_person": "visit_occurrence",
            "idx_concept_name": "concept",
        }

    def test_constraint_entity_table_map(self):
        entity_table_map = build_entity_table_map(
            split_statements(CREATE_CONSTRAINTS_SQL), POSTGRES_PATTERNS[DROP_CONSTRAINTS]
        )
        assert entity_table_map == {
            "fpk_visit_person": "visit_occurrence",
            "fpk_person_concept": "person",
        }

    def test_drop_indexes_resolved_through_create_sql(self):
        pattern = POSTGRES_PATTERNS[DROP_INDEXES]
        entity_table_map = build_entity_table_map(split_statements(CREATE_INDEXES_SQL), pattern)
        assert _tables(split_statements(DROP_INDEXES_SQL), pattern, entity_table_map) == [
            None, "person", "visit_occurrence", "concept"
        ]

    def test_drop_constraints_resolved_through_create_sql(self):
        pattern = POSTGRES_PATTERNS[DROP_CONSTRAINTS]
        entity_table_map = build_entity_table_map(split_statements(CREATE_CONSTRAINTS_SQL), pattern)
        assert _tables(split_statements(DROP_CONSTRAINTS_SQL), pattern, entity_table_map) == [
            None, "person", "visit_occurrence"
        ]

    def test_table_match_without_entity_match_is_an_error(self):
        with pytest.raises(ClassificationError) as exc_info:
            build_entity_table_map(["CREATE INDEX ON person (year_of_birth)"], POSTGRES_PATTERNS[DROP_INDEXES])
        assert exc_info.value.table == "person"
        assert "CREATE INDEX ON person" in exc_info.value.statement

    def test_unmapped_entity_is_an_error(self):
        classifier = StatementClassifier(POSTGRES_PATTERNS[DROP_INDEXES], {"idx_person_year": "person"})
        with pytest.raises(ClassificationError) as exc_info:
            classifier.classify("DROP INDEX idx_unknown")
        assert "idx_unknown" in str(exc_info.value)

    def test_mapped_pattern_requires_a_map(self):
        with pytest.raises(ValueError):
            StatementClassifier(POSTGRES_PATTERNS[DROP_INDEXES])

    def test_select_statements_requires_create_sql_for_mapped_pattern(self):
        with pytest.raises(ValueError):
            select_statements(DROP_INDEXES_SQL, POSTGRES_PATTERNS[DROP_INDEXES], InclusionFilter())


class TestInclusionFilter:

    def test_lifecycle_always_kept(self):
        only_person = InclusionFilter(include_pattern=re.compile(r"^person$"))
        assert only_person.keep(ClassifiedStatement(text="INSERT INTO version_history", is_lifecycle=True))

    def test_unclassified_never_kept(self):
        assert not InclusionFilter().keep(ClassifiedStatement(text="COMMENT ON TABLE person IS 'x'"))

    def test_include(self):
        only_person = InclusionFilter(include_pattern=re.compile(r"^person$"))
        assert only_person.keep(ClassifiedStatement(text="x", table="person"))
        assert not only_person.keep(ClassifiedStatement(text="x", table="person_extra"))

    def test_exclude(self):
        no_concept = InclusionFilter(exclude_pattern=re.compile(r"^concept"))
        assert no_concept.keep(ClassifiedStatement(text="x", table="person"))
        assert not no_concept.keep(ClassifiedStatement(text="x", table="concept_ancestor"))

    def test_no_pattern_keeps_every_classified_statement(self):
        assert InclusionFilter().keep(ClassifiedStatement(text="x", table="person"))

    def test_both_patterns_rejected(self):
        with pytest.raises(ConfigurationError):
            InclusionFilter(re.compile("a"), re.compile("b"))


class TestSelectStatements:

    def test_no_filter_keeps_everything_in_order(self):
        selected = select_statements(CREATE_TABLES_SQL, POSTGRES_PATTERNS[CREATE_TABLES], InclusionFilter())
        assert selected == split_statements(CREATE_TABLES_SQL)

    def test_include_keeps_lifecycle_statements(self):
        selected = select_statements(
            CREATE_TABLES_SQL,
            POSTGRES_PATTERNS[CREATE_TABLES],
            InclusionFilter(include_pattern=re.compile(r"^person$")),
        )
        assert len(selected) == 3
        assert selected[0].startswith("CREATE TABLE person")
        assert selected[1].startswith("CREATE TABLE version_history")
        assert selected[2].startswith("INSERT INTO version_history")

    def test_include_then_exclude_partition_the_data_model_statements(self):
        pattern = POSTGRES_PATTERNS[CREATE_INDEXES]
        include = select_statements(CREATE_INDEXES_SQL, pattern, InclusionFilter(include_pattern=re.compile("^concept$")))
        exclude = select_statements(CREATE_INDEXES_SQL, pattern, InclusionFilter(exclude_pattern=re.compile("^concept$")))
        lifecycle = [s for s in split_statements(CREATE_INDEXES_SQL) if is_lifecycle_statement(s)]
        assert sorted(set(include) | set(exclude)) == sorted(split_statements(CREATE_INDEXES_SQL))
        assert set(include) & set(exclude) == set(lifecycle)

    def test_drop_indexes_filtered_by_owning_table(self):
        selected = select_statements(
            DROP_INDEXES_SQL,
            POSTGRES_PATTERNS[DROP_INDEXES],
            InclusionFilter(exclude_pattern=re.compile(r"^concept$")),
            create_sql_text=CREATE_INDEXES_SQL,
        )
        assert selected == [
            "INSERT INTO version_history (operation, model, model_version, dms_version, dmsa_version, datetime) "
            "VALUES ('drop indexes', 'pedsnet', '2.2.0', '1.0.0', '0.6.0', '2016-03-01T12:00:00')",
            "DROP INDEX idx_person_year",
            "DROP INDEX idx_visit_person",
        ]

    def test_empty_sql(self):
        assert select_statements("", POSTGRES_PATTERNS[CREATE_TABLES], InclusionFilter()) == []


class TestPatternsFor:

    def test_postgres_has_every_operation(self):
        for operator in DDLOperator:
            for operand in DDLOperand:
                assert patterns_for("postgres", DDLOperationKey(operator, operand)) is not None

    def test_drops_of_indexes_and_constraints_are_mapped(self):
        assert isinstance(patterns_for("postgres", DROP_INDEXES), MappedEntityPattern)
        assert isinstance(patterns_for("postgres", DROP_CONSTRAINTS), MappedEntityPattern)
        assert isinstance(patterns_for("postgres", DROP_TABLES), DirectTablePattern)

    def test_unsupported_driver(self):
        with pytest.raises(ConfigurationError, match="Unsupported database driver: mysql"):
            patterns_for("mysql", CREATE_TABLES)
