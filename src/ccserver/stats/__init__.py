"""
Usage statistics: the shared counter store and the periodic reporter.
"""

from .counters import Counters, CounterSet, StatsSnapshot, FIELD_NAMES
from .reporter import StatisticsReporter, format_report

__all__ = [
    "Counters",
    "CounterSet",
    "StatsSnapshot",
    "FIELD_NAMES",
    "StatisticsReporter",
    "format_report",
]
