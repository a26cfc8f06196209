"""
aggregation/aggregator.py

EventAggregator deduplicates accepted firewall events into report rows.

For each event handed to add():
  1. Discard it if its timestamp_key is <= the cutoff loaded from the
     state file (already submitted by a previous run; OSSEC keeps
     appending to the same firewall.log).
  2. Optionally obfuscate the destination (first octet → 10) BEFORE the
     key is built, so key and stored value always agree.
  3. New key   → new EventRecord(count=1), new_records += 1
     Known key → count += 1, timestamp refreshed to the newest one
  4. Advance latest_key (the next cutoff) for every accepted event,
     repeats included.

All state lives on the instance; a fresh aggregator is built per run.
Not thread-safe; the pipeline is single-threaded.
"""

from __future__ import annotations

import logging

from ..models import FirewallEvent
from .models import EventKey, EventRecord, make_event_key

logger = logging.getLogger(__name__)

EPOCH_CUTOFF = "19700101000000"

OBFUSCATED_OCTET = "10"


def obfuscate_ip(ip: str) -> str:
    """Replace the first octet of a dotted IPv4 address with 10."""
    _, sep, rest = ip.partition(".")
    if not sep:
        return ip
    return f"{OBFUSCATED_OCTET}.{rest}"


class EventAggregator:
    """
    Per-run aggregation state.

    Args:
        cutoff:    14-digit timestamp key of the newest event already
                   submitted; events at or before it are discarded.
        user_id:   DShield user ID stamped on every record.
        obfuscate: Rewrite destination addresses to 10.x.x.x.
    """

    def __init__(
        self,
        cutoff: str = EPOCH_CUTOFF,
        user_id: str = "",
        obfuscate: bool = False,
    ) -> None:
        self.cutoff = cutoff
        self.user_id = user_id
        self.obfuscate = obfuscate

        self.records: dict[EventKey, EventRecord] = {}
        self.new_records: int = 0
        """Distinct keys inserted this run; gates submission."""

        self.latest_key: str = cutoff
        """Newest timestamp_key accepted so far; becomes the next cutoff."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, event: FirewallEvent) -> bool:
        """
        Aggregate one event.

        Returns:
            True if the event was accepted, False if it was at or before
            the cutoff.
        """
        ts_key = event.timestamp_key
        if int(ts_key) <= int(self.cutoff):
            return False

        dst_ip = obfuscate_ip(event.dst_ip) if self.obfuscate else event.dst_ip
        key = make_event_key(event, dst_ip=dst_ip)

        record = self.records.get(key)
        if record is None:
            record = EventRecord(
                timestamp=event.timestamp,
                user_id=self.user_id,
                count=1,
                src_ip=event.src_ip,
                src_port=event.src_port,
                dst_ip=dst_ip,
                dst_port=event.dst_port,
                protocol=event.protocol,
                timestamp_key=ts_key,
            )
            self.records[key] = record
            self.new_records += 1
            logger.debug("New record: %r (total: %d)", key, len(self.records))
        else:
            record.count += 1
            if int(ts_key) >= int(record.timestamp_key):
                record.timestamp = event.timestamp
                record.timestamp_key = ts_key

        if int(ts_key) > int(self.latest_key):
            self.latest_key = ts_key
        return True

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records.values())
