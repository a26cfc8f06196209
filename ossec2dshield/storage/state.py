"""
storage/state.py

Persistent cutoff timestamp shared between runs.

The state file holds a single line: the 14-digit timestamp key of the
newest event submitted by the previous run. Reading is forgiving (a
missing or garbled file means "start from the epoch"); writing is not,
because a run whose cutoff cannot be saved will resubmit the same events
next time.
"""

from __future__ import annotations

import logging
import os
import re

from ..aggregation.aggregator import EPOCH_CUTOFF

logger = logging.getLogger(__name__)

_CUTOFF_RE = re.compile(r"^\d{14}$")


class StateWriteError(OSError):
    """The cutoff could not be persisted."""


class StateStore:
    """
    Thin wrapper around the state file.

    Usage:
        store = StateStore("/var/ossec/logs/ossec2dshield.state")
        cutoff = store.load()
        # ... process the log ...
        store.save(new_cutoff)
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> str:
        """
        Return the stored cutoff, or EPOCH_CUTOFF if the file is missing,
        unreadable or does not hold a 14-digit key.
        """
        try:
            with open(self.path, encoding="ascii", errors="replace") as fh:
                value = fh.readline().strip()
        except OSError as exc:
            logger.warning(
                "State file %r not readable (%s), using default %s",
                self.path, exc, EPOCH_CUTOFF,
            )
            return EPOCH_CUTOFF

        if not _CUTOFF_RE.match(value):
            logger.warning(
                "State file %r holds no valid timestamp (%r), using default %s",
                self.path, value, EPOCH_CUTOFF,
            )
            return EPOCH_CUTOFF

        logger.debug("Last timestamp read: %s", value)
        return value

    def save(self, cutoff: str) -> None:
        """
        Overwrite the state file with ``cutoff``.

        Raises:
            ValueError: ``cutoff`` is not a 14-digit key.
            StateWriteError: the file cannot be written.
        """
        if not _CUTOFF_RE.match(cutoff):
            raise ValueError(f"Invalid cutoff timestamp: {cutoff!r}")

        try:
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="ascii") as fh:
                fh.write(cutoff + "\n")
        except OSError as exc:
            raise StateWriteError(exc.errno, exc.strerror, self.path) from exc
        logger.debug("Saved timestamp: %s", cutoff)
