"""
ossec2dshield/models.py

Shared dataclasses for every stage of the pipeline.
The parser produces FirewallEvent; the aggregator turns accepted events
into EventRecord rows (see aggregation/models.py) that the report layer
serialises.
"""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Stage 1: parser output
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FirewallEvent:
    """Parsed representation of a single DROP/BLOCK firewall log line."""

    year: int
    month: int
    """1–12, looked up from the English month abbreviation."""

    day: int
    hour: int
    minute: int
    second: int

    tz_offset: str
    """UTC offset of the reporting host, e.g. '+02:00'."""

    action: str
    """Action token from the log, e.g. 'DROP' or 'BLOCK'."""

    protocol: str
    """One of: 'TCP' | 'UDP' | '???'."""

    src_ip: str
    src_port: int
    dst_ip: str
    dst_port: int

    @property
    def timestamp(self) -> str:
        """Human-readable timestamp, e.g. '2011-07-12 11:55:17 +02:00'."""
        return (
            f"{self.year:4d}-{self.month:02d}-{self.day:02d} "
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d} {self.tz_offset}"
        )

    @property
    def timestamp_key(self) -> str:
        """Sortable 14-digit key, e.g. '20110712115517'."""
        return (
            f"{self.year:04d}{self.month:02d}{self.day:02d}"
            f"{self.hour:02d}{self.minute:02d}{self.second:02d}"
        )


# ---------------------------------------------------------------------------
# Stage 2: aggregation output (canonical classes live in aggregation/models.py)
# ---------------------------------------------------------------------------

# Re-exported so the report layer can import from ossec2dshield.models
# without knowing the sub-package layout.
from .aggregation.models import EventKey, EventRecord  # noqa: E402
