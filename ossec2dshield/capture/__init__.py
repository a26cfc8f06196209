"""
capture/__init__.py

Public API for the capture sub-package.
"""

from .filter import PortFilter, is_private_source
from .parser import is_candidate, parse_line

__all__ = ["PortFilter", "is_candidate", "is_private_source", "parse_line"]
