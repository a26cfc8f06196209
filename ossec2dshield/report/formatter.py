"""
report/formatter.py

Renders aggregated EventRecords into the DShield submission format.

Body: one tab-delimited row per record, newline-terminated:

    <timestamp ±HH:MM>\t<userid>\t<count>\t<src ip>\t<src port>\t<dst ip>\t<dst port>\t<proto>

Envelope: minimal mail headers, a blank line, then the body:

    To: report@dshield.org
    Subject: FORMAT DSHIELD USERID <id> TZ <±HH:MM> OSSEC2dshield <version>

Rows are emitted in first-occurrence order (dict insertion order).
"""

from __future__ import annotations

from typing import Iterable

from ..config import DEFAULT_RECIPIENT, PRODUCT, VERSION
from ..models import EventRecord


def format_record(record: EventRecord) -> str:
    return "\t".join(str(f) for f in record.fields())


def format_body(records: Iterable[EventRecord]) -> str:
    return "".join(format_record(r) + "\n" for r in records)


def format_subject(user_id: str, tz_offset: str) -> str:
    return f"FORMAT DSHIELD USERID {user_id} TZ {tz_offset} {PRODUCT} {VERSION}"


def build_report(
    records: Iterable[EventRecord],
    user_id: str,
    tz_offset: str,
    recipient: str = DEFAULT_RECIPIENT,
) -> str:
    """
    Build the complete mail text handed to the relay.

    Args:
        records:   Aggregated records, in report order.
        user_id:   DShield user ID (goes into the Subject line).
        tz_offset: '±HH:MM' offset of the reporting host.
        recipient: Submission address for the To: header.
    """
    return (
        f"To: {recipient}\n"
        f"Subject: {format_subject(user_id, tz_offset)}\n"
        "\n"
        f"{format_body(records)}"
    )
