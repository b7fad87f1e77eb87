"""
Tests for ModelConfig validation, model aliases and version helpers.
"""

import logging

import pytest

from datamodel_db.exceptions import ConfigurationError
from datamodel_db.models import DDLOperand, DDLOperationKey, DDLOperator, LoadResult, ModelConfig, driver_name_from_url
from datamodel_db.utils import (PEDSNET_VOCAB_TABLES_PATTERN, database_name, join_url_path,
                                resolve_model_alias, version_to_shorthand)


URL = "postgresql://loader@db.example.org/pedsnet_dcc_v22"


class TestVersionShorthand:

    @pytest.mark.parametrize("version,expected", [("2.2", "22"), ("2.2.3", "22"), ("10.1.0", "101")])
    def test_valid(self, version, expected):
        assert version_to_shorthand(version) == expected

    @pytest.mark.parametrize("version", ["2", "2.2.3.4", "", "2..1", ".2"])
    def test_invalid(self, version):
        with pytest.raises(ConfigurationError):
            version_to_shorthand(version)

    def test_database_name(self):
        assert database_name("2.2.0") == "pedsnet_dcc_v22"
        assert database_name("1.7", prefix="i2b2_v") == "i2b2_v17"


class TestJoinUrlPath:

    def test_single_slash(self):
        assert join_url_path("http://host/", "/a/b/") == "http://host/a/b/"
        assert join_url_path("http://host", "a/") == "http://host/a/"


class TestModelAliases:

    def test_pedsnet_core_excludes_vocabulary(self):
        config = ModelConfig(model="pedsnet-core", model_version="2.2.0", database_url=URL)
        assert config.model == "pedsnet"
        assert config.exclude_tables == PEDSNET_VOCAB_TABLES_PATTERN
        assert config.include_tables is None
        assert config.exclude_pattern.search("concept_ancestor")
        assert not config.exclude_pattern.search("person")

    def test_pedsnet_vocab_includes_vocabulary(self):
        config = ModelConfig(model="pedsnet-vocab", model_version="2.2.0", database_url=URL)
        assert config.model == "pedsnet"
        assert config.include_tables == PEDSNET_VOCAB_TABLES_PATTERN
        assert config.include_pattern.search("concept")

    def test_user_pattern_wins_over_alias(self):
        config = ModelConfig(model="pedsnet-core", model_version="2.2.0", database_url=URL,
                             exclude_tables="^death$")
        assert config.model == "pedsnet"
        assert config.exclude_tables == "^death$"

    def test_other_series_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            resolve_model_alias("pedsnet-core", "2.3.0", None, None)
        assert "2.2" in caplog.text

    def test_non_alias_untouched(self):
        assert resolve_model_alias("i2b2", "1.7.0", None, "x") == ("i2b2", None, "x")


class TestModelConfig:

    def test_both_patterns_rejected(self):
        with pytest.raises(ConfigurationError, match="mutually exclusive"):
            ModelConfig(model="pedsnet", model_version="2.2.0", database_url=URL,
                        include_tables="^person$", exclude_tables="^concept$")

    def test_invalid_pattern(self):
        with pytest.raises(ConfigurationError, match="Invalid include tables regexp"):
            ModelConfig(model="pedsnet", model_version="2.2.0", database_url=URL, include_tables="(")

    def test_invalid_version(self):
        with pytest.raises(ConfigurationError):
            ModelConfig(model="pedsnet", model_version="2", database_url=URL)

    def test_empty_model(self):
        with pytest.raises(ConfigurationError):
            ModelConfig(model="", model_version="2.2.0", database_url=URL)

    def test_schema_qualification_uses_first_schema(self):
        config = ModelConfig(model="pedsnet", model_version="2.2.0", database_url=URL,
                             schema="dcc_pedsnet, vocabulary")
        assert config.primary_schema == "dcc_pedsnet"
        assert config.qualified_table_name("person") == "dcc_pedsnet.person"

    def test_no_schema(self):
        config = ModelConfig(model="pedsnet", model_version="2.2.0", database_url=URL)
        assert config.qualified_table_name("person") == "person"

    def test_driver_name(self):
        assert ModelConfig(model="pedsnet", model_version="2.2.0", database_url=URL).driver_name == "postgres"
        assert driver_name_from_url("postgres://localhost/x") == "postgres"
        with pytest.raises(ConfigurationError):
            driver_name_from_url("sqlite:///x.db")


class TestSmallTypes:

    def test_operation_key(self):
        drop_indexes = DDLOperationKey(DDLOperator.DROP, DDLOperand.INDEXES)
        assert str(drop_indexes) == "drop indexes"
        assert drop_indexes.create_counterpart == DDLOperationKey(DDLOperator.CREATE, DDLOperand.INDEXES)
        assert {drop_indexes: 1}[DDLOperationKey(DDLOperator.DROP, DDLOperand.INDEXES)] == 1

    def test_load_result_success(self):
        assert LoadResult(table="person", rows_expected=1, rows_actual=1).success
        assert not LoadResult(table="person", error="boom").success
