"""
Monitoring module for load run metrics.
"""

from .load_monitor import LoadMonitor, LoadMetrics

__all__ = ['LoadMonitor', 'LoadMetrics']
