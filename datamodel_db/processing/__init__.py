"""
Processing module: parallel bulk loading.
"""

from .bulk_load_scheduler import BulkLoadScheduler

__all__ = ['BulkLoadScheduler']
