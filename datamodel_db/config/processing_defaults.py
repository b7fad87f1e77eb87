"""
Centralized configuration defaults for schema provisioning and load operations.

These are operational settings shared by every model and version. Environment
variables and CLI arguments can override these defaults at runtime.
"""

import logging


class ProcessingDefaults:
    """
    Centralized operational configuration.

    All values are defaults that can be overridden:
    - datamodel-db load manifest.csv --jobs 8
    - DATAMODEL_DB_LOAD_JOBS=8 datamodel-db load manifest.csv
    """

    # Parallelization
    WORKERS = 4  # Number of bulk-load worker threads
    QUEUE_CAPACITY = 100  # Load tasks buffered ahead of the workers

    # Database connection (pyodbc / psqlODBC)
    ODBC_DRIVER = "PostgreSQL Unicode"
    CONNECTION_TIMEOUT = 30  # Connection timeout in seconds

    # External tools
    COPY_TOOL = "psql"

    # Logging
    LOG_LEVEL = "INFO"  # Default logging level (CRITICAL, ERROR, WARNING, INFO, DEBUG)

    @classmethod
    def to_dict(cls) -> dict:
        """Upper-case settings by name, e.g. {'WORKERS': 4, ...}."""
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if name.isupper() and not name.startswith('_')
        }

    @classmethod
    def log_summary(cls, logger: logging.Logger) -> None:
        """Log the provisioning and load defaults, one setting per line, at DEBUG."""
        settings = "\n".join(f"  {name} = {value}" for name, value in sorted(cls.to_dict().items()))
        logger.debug(f"datamodel-db defaults (override with DATAMODEL_DB_* or CLI flags):\n{settings}")
