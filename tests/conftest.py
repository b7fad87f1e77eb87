"""Shared test fixtures."""

import pytest

from datamodel_db.config.config_manager import reset_config_manager
from tests.ddl_samples import SERVICE_SQL


@pytest.fixture
def service_sql():
    """DDL text per operation, as the data models service returns it."""
    return dict(SERVICE_SQL)


@pytest.fixture(autouse=True)
def fresh_config_manager():
    """Each test sees the environment as it is during that test."""
    reset_config_manager()
    yield
    reset_config_manager()
