"""
Database module: DDL execution and per-table bulk loading.
"""

from .ddl_executor import TransactionalExecutor
from .table_loader import TableLoader

__all__ = ['TransactionalExecutor', 'TableLoader']
