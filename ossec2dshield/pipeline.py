"""
ossec2dshield/pipeline.py

One batch pass: firewall.log → parsed events → gates → aggregator →
DShield report → relay → state file.

    StateStore.load()            cutoff from the previous run
    parse_line()                 DROP/BLOCK lines only
    PortFilter.allows()          --ports
    is_private_source()          --norfc1918
    EventAggregator.add()        dedup + cutoff + obfuscation
    build_report() / sender      only when something new was aggregated
    StateStore.save()            only after a successful send, or in test mode

Single-threaded and synchronous; the only blocking points are reading
the log and the SMTP exchange.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .aggregation import EventAggregator
from .capture import PortFilter, is_candidate, is_private_source, parse_line
from .config import Settings
from .metrics import RunMetrics
from .report import build_report, format_record
from .storage import StateStore

logger = logging.getLogger(__name__)

Sender = Callable[[str], None]


@dataclass
class RunResult:
    """Outcome of one run_once() call."""

    aggregator: EventAggregator
    metrics: RunMetrics = field(default_factory=RunMetrics)
    previous_cutoff: str = ""
    saved_cutoff: str | None = None
    """Cutoff written to the state file, None if state was left alone."""

    report: str | None = None
    """Full mail text, None when nothing new was aggregated."""

    sent: bool = False

    @property
    def new_records(self) -> int:
        return self.aggregator.new_records


# ---------------------------------------------------------------------------
# Line processing
# ---------------------------------------------------------------------------

def process_lines(
    lines: Iterable[str],
    aggregator: EventAggregator,
    tz_offset: str,
    port_filter: PortFilter | None = None,
    drop_private: bool = False,
    metrics: RunMetrics | None = None,
) -> EventAggregator:
    """
    Feed every line through parser, gates and aggregator.

    Returns the same aggregator, for chaining.
    """
    metrics = metrics if metrics is not None else RunMetrics()
    port_filter = port_filter if port_filter is not None else PortFilter()

    for line in lines:
        metrics.lines_read.inc()
        if not is_candidate(line):
            continue
        metrics.lines_candidate.inc()

        event = parse_line(line, tz_offset)
        if event is None:
            metrics.lines_malformed.inc()
            continue

        if not port_filter.allows(event.dst_port):
            metrics.events_port_filtered.inc()
            continue

        if drop_private and is_private_source(event.src_ip):
            metrics.events_private_source.inc()
            continue

        if aggregator.add(event):
            metrics.events_aggregated.inc()
        else:
            metrics.events_already_seen.inc()

    return aggregator


def process_file(
    path: str,
    aggregator: EventAggregator,
    tz_offset: str,
    port_filter: PortFilter | None = None,
    drop_private: bool = False,
    metrics: RunMetrics | None = None,
) -> EventAggregator:
    """
    Read ``path`` start to end through process_lines().

    Raises:
        OSError: the log cannot be opened.
    """
    with open(path, encoding="ascii", errors="replace") as fh:
        return process_lines(
            fh,
            aggregator,
            tz_offset,
            port_filter=port_filter,
            drop_private=drop_private,
            metrics=metrics,
        )


# ---------------------------------------------------------------------------
# Full run
# ---------------------------------------------------------------------------

def run_once(
    settings: Settings,
    tz_offset: str,
    sender: Sender | None = None,
) -> RunResult:
    """
    Execute one complete run.

    Args:
        settings:  Validated settings.
        tz_offset: '±HH:MM' stamped on every event and the Subject line.
        sender:    Callable taking the report text; required unless
                   settings.TEST is set.

    Raises:
        OSError:               the firewall log is unreadable, the relay
                               failed, or the state file cannot be written.
        smtplib.SMTPException: the relay refused the report.
    """
    store = StateStore(settings.STATE_FILE)
    cutoff = store.load()

    aggregator = EventAggregator(
        cutoff=cutoff,
        user_id=settings.USERID,
        obfuscate=settings.OBFUSCATE,
    )
    result = RunResult(aggregator=aggregator, previous_cutoff=cutoff)

    process_file(
        settings.FW_LOG,
        aggregator,
        tz_offset,
        port_filter=settings.port_filter,
        drop_private=settings.NO_RFC1918,
        metrics=result.metrics,
    )
    logger.info("Log processed: %s", result.metrics.as_dict())

    if aggregator.new_records == 0:
        logger.info("No new events since %s, nothing to submit", cutoff)
        return result

    for record in aggregator:
        logger.debug("%s", format_record(record))

    result.report = build_report(
        aggregator,
        settings.USERID,
        tz_offset,
        recipient=settings.RECIPIENT,
    )

    if settings.TEST:
        logger.info("Test mode, report not sent")
    else:
        if sender is None:
            raise ValueError("run_once() needs a sender outside test mode")
        sender(result.report)
        result.sent = True

    store.save(aggregator.latest_key)
    result.saved_cutoff = aggregator.latest_key
    return result
