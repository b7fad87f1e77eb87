"""
Bulk copy through the psql client.

The fastest way to stream a CSV file into PostgreSQL is psql's client-side
\\copy. The header row of each file gives the destination column order, and
FORCE_NULL on every column turns empty unquoted fields into NULL.
"""

import logging
import shutil
import subprocess
from typing import List

from ..exceptions import ConfigurationError, CopyCommandError


logger = logging.getLogger(__name__)


def require_copy_tool(tool: str = "psql") -> str:
    """
    Resolve the copy tool on PATH.

    Returns:
        Absolute path of the tool

    Raises:
        ConfigurationError: If the tool is not on PATH
    """
    path = shutil.which(tool)
    if path is None:
        raise ConfigurationError(f"`{tool}` binary must be in PATH")
    return path


def copy_statement(qualified_table: str, columns: List[str], file_path: str) -> str:
    """Build the psql \\copy meta-command for one table."""
    column_list = ", ".join(columns)
    quoted_path = file_path.replace("'", "''")
    return (
        f"\\copy {qualified_table}({column_list}) FROM '{quoted_path}' "
        f"(FORMAT csv, HEADER true, ENCODING 'utf-8', FORCE_NULL({column_list}))"
    )


def copy_command(tool: str, database_url: str, qualified_table: str, columns: List[str],
                 file_path: str) -> List[str]:
    """Argument vector for the copy subprocess."""
    return [tool, database_url, "-v", "ON_ERROR_STOP=1", "-c",
            copy_statement(qualified_table, columns, file_path)]


def run_copy(tool: str, database_url: str, qualified_table: str, columns: List[str], file_path: str) -> None:
    """
    Run the copy subprocess and wait for it.

    There is no timeout: an unresponsive psql blocks the calling worker.

    Raises:
        CopyCommandError: If the subprocess cannot start or exits non-zero;
            the captured stderr is attached
    """
    args = copy_command(tool, database_url, qualified_table, columns, file_path)
    logger.debug(f"Running {tool} for {qualified_table}: {args[-1]}")
    try:
        completed = subprocess.run(args, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
    except OSError as e:
        raise CopyCommandError(f"Error starting `{tool}` for {qualified_table}: {e}", table=qualified_table)

    if completed.returncode != 0:
        stderr = completed.stderr.decode('utf-8', errors='replace').strip()
        raise CopyCommandError(
            f"Error running `{tool}` for {qualified_table} (exit status {completed.returncode}): "
            f"{args[-1]} (STDERR: {stderr})",
            table=qualified_table,
            returncode=completed.returncode,
            stderr=stderr,
        )
