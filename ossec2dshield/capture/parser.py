"""
capture/parser.py

Converts a raw OSSEC firewall.log line into a typed FirewallEvent.

Example of a line OSSEC writes to firewall.log:

    2011 Jul 12 11:55:17 (agent) 12.34.56.78->/var/log/ufw.log DROP TCP 33.44.55.66:2686->12.34.56.78:135

Design principles:
  - Only DROP / BLOCK lines are candidates; everything else returns None
    without running the regex. Most lines in a busy log are not events.
  - Returns None (never raises) for malformed lines: unknown month
    abbreviation, IPs that are not four digit groups, truncated lines,
    a year that is not 4 digits or day/time fields wider than 2 digits
    (the timestamp key must stay 14 digits). The caller counts these and
    moves on.
  - Fields come from named regex groups, never from positional indices.

Protocol normalisation:
  tcp / TCP / Tcp   → 'TCP'
  udp / UDP / Udp   → 'UDP'
  anything else     → '???'
"""

from __future__ import annotations

import logging
import re

from ..models import FirewallEvent

logger = logging.getLogger(__name__)

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

UNKNOWN_PROTOCOL = "???"

_CANDIDATE_RE = re.compile(r"DROP|BLOCK")

_IPV4 = r"\d+\.\d+\.\d+\.\d+"

_LINE_RE = re.compile(
    r"^(?P<year>\d{4}) (?P<month>\w+) (?P<day>\d{1,2}) "
    r"(?P<hour>\d{1,2}):(?P<minute>\d{1,2}):(?P<second>\d{1,2}) "
    r".*->.* (?P<action>\w+) (?P<protocol>\w+) "
    rf"(?P<src_ip>{_IPV4}):(?P<src_port>\d+)->"
    rf"(?P<dst_ip>{_IPV4}):(?P<dst_port>\d+)"
)


def is_candidate(line: str) -> bool:
    """True if the line mentions a DROP or BLOCK action."""
    return _CANDIDATE_RE.search(line) is not None


def month_number(abbrev: str) -> int | None:
    """
    Map an English month abbreviation to 1–12 (case-sensitive).

    Returns None for anything not in MONTHS.
    """
    try:
        return MONTHS.index(abbrev) + 1
    except ValueError:
        return None


def normalize_protocol(token: str) -> str:
    upper = token.upper()
    if upper in ("TCP", "UDP"):
        return upper
    return UNKNOWN_PROTOCOL


def parse_line(line: str, tz_offset: str) -> FirewallEvent | None:
    """
    Parse one firewall log line into a FirewallEvent.

    Args:
        line:      Raw log line (trailing newline allowed).
        tz_offset: UTC offset of the host, '±HH:MM'; stamped on the event.

    Returns:
        FirewallEvent on success, None if the line is not a DROP/BLOCK
        event or does not match the expected layout.
    """
    line = line.rstrip("\r\n")
    if not is_candidate(line):
        return None

    m = _LINE_RE.match(line)
    if m is None:
        logger.debug("Unrecognised firewall line: %r", line)
        return None

    month = month_number(m.group("month"))
    if month is None:
        logger.debug("Unknown month %r in line: %r", m.group("month"), line)
        return None

    return FirewallEvent(
        year=int(m.group("year")),
        month=month,
        day=int(m.group("day")),
        hour=int(m.group("hour")),
        minute=int(m.group("minute")),
        second=int(m.group("second")),
        tz_offset=tz_offset,
        action=m.group("action"),
        protocol=normalize_protocol(m.group("protocol")),
        src_ip=m.group("src_ip"),
        src_port=int(m.group("src_port")),
        dst_ip=m.group("dst_ip"),
        dst_port=int(m.group("dst_port")),
    )
