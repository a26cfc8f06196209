"""storage/__init__.py"""
from .state import StateStore, StateWriteError

__all__ = ["StateStore", "StateWriteError"]
