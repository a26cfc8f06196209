"""
tests/test_parser.py

Parametrized tests for capture/parser.py.
All tests use literal firewall.log lines, no files required.
"""

from __future__ import annotations

import pytest

from ossec2dshield.capture.parser import (
    UNKNOWN_PROTOCOL,
    is_candidate,
    month_number,
    normalize_protocol,
    parse_line,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

TZ = "+02:00"


def make_line(
    date="2011 Jul 12 11:55:17",
    agent="(agent) 12.34.56.78->/var/log/ufw.log",
    action="DROP",
    proto="TCP",
    src="33.44.55.66:2686",
    dst="12.34.56.78:135",
) -> str:
    return f"{date} {agent} {action} {proto} {src}->{dst}\n"


# ---------------------------------------------------------------------------
# is_candidate
# ---------------------------------------------------------------------------

class TestIsCandidate:

    @pytest.mark.parametrize("line", [
        make_line(action="DROP"),
        make_line(action="BLOCK"),
        "anything with DROP inside",
    ])
    def test_drop_and_block_are_candidates(self, line):
        assert is_candidate(line) is True

    @pytest.mark.parametrize("line", [
        make_line(action="ALLOW"),
        "2011 Jul 12 11:55:17 ossec: agent started",
        "",
    ])
    def test_other_lines_are_not(self, line):
        assert is_candidate(line) is False

    def test_match_is_case_sensitive(self):
        assert is_candidate(make_line(action="drop")) is False


# ---------------------------------------------------------------------------
# month_number / normalize_protocol
# ---------------------------------------------------------------------------

class TestMonthNumber:

    @pytest.mark.parametrize("abbrev,expected", [
        ("Jan", 1), ("Feb", 2), ("Jul", 7), ("Dec", 12),
    ])
    def test_known_months(self, abbrev, expected):
        assert month_number(abbrev) == expected

    @pytest.mark.parametrize("abbrev", ["jul", "JUL", "July", "Foo", ""])
    def test_unknown_months(self, abbrev):
        assert month_number(abbrev) is None


class TestNormalizeProtocol:

    @pytest.mark.parametrize("token,expected", [
        ("TCP", "TCP"),
        ("tcp", "TCP"),
        ("Tcp", "TCP"),
        ("UDP", "UDP"),
        ("udp", "UDP"),
        ("ICMP", UNKNOWN_PROTOCOL),
        ("47", UNKNOWN_PROTOCOL),
    ])
    def test_normalisation(self, token, expected):
        assert normalize_protocol(token) == expected


# ---------------------------------------------------------------------------
# parse_line: happy path
# ---------------------------------------------------------------------------

class TestParseLine:

    def test_reference_line(self):
        ev = parse_line(make_line(), TZ)
        assert ev is not None
        assert (ev.year, ev.month, ev.day) == (2011, 7, 12)
        assert (ev.hour, ev.minute, ev.second) == (11, 55, 17)
        assert ev.action == "DROP"
        assert ev.protocol == "TCP"
        assert ev.src_ip == "33.44.55.66"
        assert ev.src_port == 2686
        assert ev.dst_ip == "12.34.56.78"
        assert ev.dst_port == 135
        assert ev.tz_offset == TZ

    def test_timestamps(self):
        ev = parse_line(make_line(date="2011 Jan 3 04:05:06"), TZ)
        assert ev.timestamp == "2011-01-03 04:05:06 +02:00"
        assert ev.timestamp_key == "20110103040506"

    def test_block_action(self):
        ev = parse_line(make_line(action="BLOCK", proto="udp"), TZ)
        assert ev.action == "BLOCK"
        assert ev.protocol == "UDP"

    def test_unknown_protocol_becomes_marker(self):
        ev = parse_line(make_line(proto="ICMP"), TZ)
        assert ev is not None
        assert ev.protocol == "???"

    def test_hostname_agent(self):
        line = make_line(agent="webserver->/var/log/messages")
        ev = parse_line(line, TZ)
        assert ev is not None
        assert ev.src_ip == "33.44.55.66"

    def test_trailing_text_ignored(self):
        line = make_line().rstrip("\n") + " extra trailing text"
        assert parse_line(line, TZ) is not None

    def test_event_is_immutable(self):
        ev = parse_line(make_line(), TZ)
        with pytest.raises(AttributeError):
            ev.dst_ip = "1.1.1.1"


# ---------------------------------------------------------------------------
# parse_line: rejected lines
# ---------------------------------------------------------------------------

class TestParseLineRejects:

    def test_non_event_line(self):
        assert parse_line(make_line(action="ALLOW"), TZ) is None

    def test_unknown_month(self):
        assert parse_line(make_line(date="2011 Foo 12 11:55:17"), TZ) is None

    def test_lowercase_month(self):
        assert parse_line(make_line(date="2011 jul 12 11:55:17"), TZ) is None

    @pytest.mark.parametrize("src,dst", [
        ("33.44.55:2686", "12.34.56.78:135"),
        ("33.44.55.66:2686", "12.34.56:135"),
        ("33.44.55.x6:2686", "12.34.56.78:135"),
        ("[2001:db8::1]:2686", "12.34.56.78:135"),
    ])
    def test_malformed_ip(self, src, dst):
        assert parse_line(make_line(src=src, dst=dst), TZ) is None

    @pytest.mark.parametrize("date", [
        "2011 Jul 123 11:55:17",
        "2011 Jul 12 111:55:17",
        "2011 Jul 12 11:555:17",
        "2011 Jul 12 11:55:177",
        "11 Jul 12 11:55:17",
        "20111 Jul 12 11:55:17",
    ])
    def test_oversized_date_fields(self, date):
        assert parse_line(make_line(date=date), TZ) is None

    def test_single_digit_fields_pad_to_fourteen(self):
        event = parse_line(make_line(date="2011 Jul 2 1:05:7"), TZ)
        assert event is not None
        assert event.timestamp_key == "20110702010507"

    def test_missing_ports(self):
        assert parse_line(make_line(src="33.44.55.66", dst="12.34.56.78"), TZ) is None

    def test_truncated_line(self):
        assert parse_line("2011 Jul 12 11:55:17 DROP", TZ) is None

    def test_missing_arrow_in_agent(self):
        # Without any '->' before the action the layout does not match
        line = "2011 Jul 12 11:55:17 agent DROP TCP 1.2.3.4:1 2.3.4.5:2"
        assert parse_line(line, TZ) is None
