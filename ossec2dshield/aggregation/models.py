"""
aggregation/models.py

Data models for the aggregation layer.

EventKey     hashable 4-tuple + protocol used as dict key by EventAggregator
EventRecord  one deduplicated report row (count + latest timestamp)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from ..models import FirewallEvent


# ---------------------------------------------------------------------------
# EventKey: hashable dedup key
# ---------------------------------------------------------------------------

class EventKey(NamedTuple):
    """
    Identity of one recurring blocked connection within a run.

    Unlike a flow key this is NOT normalised: the attacker side is always
    src, so A→B and B→A are distinct events.
    """

    src_ip: str
    src_port: int
    dst_ip: str
    dst_port: int
    protocol: str

    def __repr__(self) -> str:
        return (
            f"{self.src_ip}:{self.src_port}"
            f"->{self.dst_ip}:{self.dst_port}"
            f"/{self.protocol}"
        )


def make_event_key(event: FirewallEvent, dst_ip: str | None = None) -> EventKey:
    """
    Build the EventKey for an event.

    ``dst_ip`` overrides the event's destination (used when the address
    has been obfuscated) so the key and the stored record always agree.
    """
    return EventKey(
        event.src_ip,
        event.src_port,
        dst_ip if dst_ip is not None else event.dst_ip,
        event.dst_port,
        event.protocol,
    )


# ---------------------------------------------------------------------------
# EventRecord: one DShield report row
# ---------------------------------------------------------------------------

@dataclass
class EventRecord:
    """
    Aggregated statistics for a single EventKey.

    Field order matches the DShield tab-delimited row.
    """

    timestamp: str
    """Human timestamp of the most recent occurrence (with UTC offset)."""

    user_id: str
    count: int
    src_ip: str
    src_port: int
    dst_ip: str
    """Possibly obfuscated destination address."""

    dst_port: int
    protocol: str

    timestamp_key: str = ""
    """14-digit key matching ``timestamp``; used to keep the newest one."""

    def fields(self) -> tuple:
        return (
            self.timestamp,
            self.user_id,
            self.count,
            self.src_ip,
            self.src_port,
            self.dst_ip,
            self.dst_port,
            self.protocol,
        )

    def __repr__(self) -> str:
        return (
            f"EventRecord({self.src_ip}:{self.src_port}"
            f"->{self.dst_ip}:{self.dst_port}/{self.protocol} "
            f"count={self.count} last={self.timestamp!r})"
        )
