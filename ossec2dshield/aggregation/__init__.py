"""
aggregation/__init__.py

Public API for the aggregation sub-package.
"""

from .aggregator import EPOCH_CUTOFF, EventAggregator, obfuscate_ip
from .models import EventKey, EventRecord, make_event_key

__all__ = [
    "EPOCH_CUTOFF",
    "EventAggregator",
    "EventKey",
    "EventRecord",
    "make_event_key",
    "obfuscate_ip",
]
