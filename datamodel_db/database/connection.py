"""
Database connection helpers (pyodbc over the PostgreSQL ODBC driver).
"""

import logging
from contextlib import contextmanager

import pyodbc

from ..exceptions import DatabaseConnectionError


logger = logging.getLogger(__name__)


@contextmanager
def get_connection(connection_string: str, autocommit: bool = False, timeout: int = 30):
    """
    Context manager for database connections with automatic cleanup.

    Args:
        connection_string: ODBC connection string
        autocommit: Explicit transaction control when False (the default);
            statements that cannot run in a transaction block, such as VACUUM,
            need True
        timeout: Login timeout in seconds

    Yields:
        pyodbc.Connection: Active database connection

    Raises:
        DatabaseConnectionError: If the connection cannot be established
    """
    try:
        connection = pyodbc.connect(connection_string, autocommit=autocommit, timeout=timeout)
    except pyodbc.Error as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Failed to connect to database: {e}")

    connection.setdecoding(pyodbc.SQL_CHAR, encoding='utf-8')
    connection.setdecoding(pyodbc.SQL_WCHAR, encoding='utf-8')
    connection.setencoding(encoding='utf-8')
    try:
        yield connection
    finally:
        try:
            connection.close()
        except pyodbc.Error as e:
            logger.debug(f"Ignoring error while closing connection: {e}")


def ping(connection_string: str, timeout: int = 30) -> None:
    """
    Open a connection and run a trivial query.

    Raises:
        DatabaseConnectionError: If the database is unreachable
    """
    with get_connection(connection_string, autocommit=True, timeout=timeout) as conn:
        try:
            conn.cursor().execute("SELECT 1").fetchone()
        except pyodbc.Error as e:
            raise DatabaseConnectionError(f"Database did not answer a trivial query: {e}")
