"""
report/__init__.py

Public API for the report sub-package.
"""

from .formatter import build_report, format_body, format_record, format_subject
from .mailer import RelaySender, resolve_relay

__all__ = [
    "RelaySender",
    "build_report",
    "format_body",
    "format_record",
    "format_subject",
    "resolve_relay",
]
