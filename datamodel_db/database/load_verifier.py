"""
Load verification: physical data lines in the source file against rows in the table.

Line counting is only a valid row count while CSV fields do not contain
embedded newlines, which the data files are not allowed to have.
"""

import csv
import logging
from typing import List

import pyodbc

from .connection import get_connection
from ..exceptions import LoadError, RowCountMismatchError


logger = logging.getLogger(__name__)

_CHUNK_SIZE = 32 * 1024


def column_names_from_csv_file(file_path: str) -> List[str]:
    """
    Return the column headings from the first row of a CSV file.

    Raises:
        LoadError: If the file cannot be read or has no header row
    """
    try:
        with open(file_path, 'r', encoding='utf-8', newline='') as f:
            header = next(csv.reader(f), None)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise LoadError(f"Error reading first row of `{file_path}`: {e}")
    if not header:
        raise LoadError(f"Error reading first row of `{file_path}`: file is empty")
    return [name.strip() for name in header]


def count_lines(stream) -> int:
    """
    Count physical text lines in a binary stream.

    A final line without a terminating newline is still counted.
    """
    count = 0
    last_byte = b"\n"
    while True:
        chunk = stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        count += chunk.count(b"\n")
        last_byte = chunk[-1:]
    if last_byte != b"\n":
        logger.debug("Last line is not newline-terminated")
        count += 1
    return count


def rows_in_file(file_path: str) -> int:
    """Number of physical lines in a file, header included."""
    with open(file_path, 'rb') as f:
        return count_lines(f)


def rows_in_table(connection_string: str, qualified_table: str, timeout: int = 30) -> int:
    """
    Count the rows of a table.

    Raises:
        DatabaseConnectionError: If the database is unreachable
        LoadError: If the count query fails
    """
    with get_connection(connection_string, autocommit=True, timeout=timeout) as conn:
        try:
            row = conn.cursor().execute(f"SELECT COUNT(*) AS count FROM {qualified_table}").fetchone()
        except pyodbc.Error as e:
            raise LoadError(f"Can't get count of table `{qualified_table}`: {e}", table=qualified_table)
    return int(row[0])


def verify_row_count(table: str, expected_rows: int, actual_rows: int) -> None:
    """
    Raises:
        RowCountMismatchError: Unless the two counts are exactly equal
    """
    if actual_rows != expected_rows:
        raise RowCountMismatchError(
            f"Number of rows in {table} ({actual_rows}) does not equal the number of lines "
            f"({expected_rows}) in the input file",
            table=table,
            expected=expected_rows,
            actual=actual_rows,
        )
