"""
tests/test_report.py

Tests for report/formatter.py and report/mailer.py.
The SMTP relay is replaced with unittest.mock; no network is required.
"""

from __future__ import annotations

import smtplib
import socket
from unittest.mock import MagicMock, patch

import pytest

from ossec2dshield.config import VERSION
from ossec2dshield.models import EventRecord
from ossec2dshield.report.formatter import (
    build_report,
    format_body,
    format_record,
    format_subject,
)
from ossec2dshield.report.mailer import RelaySender, resolve_relay


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def rec(
    src_ip="33.44.55.66",
    count=1,
    dst_ip="12.34.56.78",
    protocol="TCP",
) -> EventRecord:
    return EventRecord(
        timestamp="2011-07-12 11:55:17 +02:00",
        user_id="123456",
        count=count,
        src_ip=src_ip,
        src_port=2686,
        dst_ip=dst_ip,
        dst_port=135,
        protocol=protocol,
        timestamp_key="20110712115517",
    )


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

class TestFormatRecord:

    def test_field_order(self):
        assert format_record(rec(count=3)) == (
            "2011-07-12 11:55:17 +02:00\t123456\t3\t33.44.55.66\t2686"
            "\t12.34.56.78\t135\tTCP"
        )

    def test_eight_fields(self):
        assert len(format_record(rec()).split("\t")) == 8

    def test_unknown_protocol_marker(self):
        assert format_record(rec(protocol="???")).endswith("\t???")


class TestFormatBody:

    def test_one_line_per_record(self):
        body = format_body([rec(src_ip="1.1.1.1"), rec(src_ip="2.2.2.2")])
        lines = body.split("\n")
        assert lines[-1] == ""
        assert len(lines) == 3
        assert "\t1.1.1.1\t" in lines[0]
        assert "\t2.2.2.2\t" in lines[1]

    def test_empty(self):
        assert format_body([]) == ""


class TestSubject:

    def test_subject_format(self):
        assert format_subject("123456", "+02:00") == (
            f"FORMAT DSHIELD USERID 123456 TZ +02:00 OSSEC2dshield {VERSION}"
        )


class TestBuildReport:

    def test_envelope(self):
        report = build_report([rec()], "123456", "-05:00")
        head, body = report.split("\n\n", 1)
        assert head.split("\n") == [
            "To: report@dshield.org",
            f"Subject: FORMAT DSHIELD USERID 123456 TZ -05:00 OSSEC2dshield {VERSION}",
        ]
        assert body == format_record(rec()) + "\n"

    def test_custom_recipient(self):
        report = build_report([rec()], "1", "+00:00", recipient="test@example.org")
        assert report.startswith("To: test@example.org\n")


# ---------------------------------------------------------------------------
# Mailer
# ---------------------------------------------------------------------------

class TestResolveRelay:

    def test_resolves(self):
        with patch(
            "ossec2dshield.report.mailer.socket.gethostbyname",
            return_value="192.0.2.25",
        ):
            assert resolve_relay("mail.example.com") == "192.0.2.25"

    def test_unresolvable_raises_oserror(self):
        with patch(
            "ossec2dshield.report.mailer.socket.gethostbyname",
            side_effect=socket.gaierror("Name or service not known"),
        ):
            with pytest.raises(OSError):
                resolve_relay("nope.invalid")


class TestRelaySender:

    def test_send_uses_envelope(self):
        smtp = MagicMock()
        with patch("ossec2dshield.report.mailer.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            sender = RelaySender("192.0.2.25", from_addr="me@example.com", port=2525, timeout=5)
            sender.send("To: report@dshield.org\n\nbody\n")

        smtp_cls.assert_called_once_with("192.0.2.25", 2525, timeout=5)
        smtp.sendmail.assert_called_once_with(
            "me@example.com",
            ["report@dshield.org"],
            "To: report@dshield.org\n\nbody\n",
        )

    def test_callable(self):
        with patch("ossec2dshield.report.mailer.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value
            RelaySender("relay", from_addr="me@example.com")("msg")
        smtp.sendmail.assert_called_once()

    def test_refusal_propagates(self):
        with patch("ossec2dshield.report.mailer.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value
            smtp.sendmail.side_effect = smtplib.SMTPDataError(554, b"rejected")
            with pytest.raises(smtplib.SMTPException):
                RelaySender("relay", from_addr="me@example.com").send("msg")

    def test_connection_failure_propagates(self):
        with patch(
            "ossec2dshield.report.mailer.smtplib.SMTP",
            side_effect=ConnectionRefusedError(111, "Connection refused"),
        ):
            with pytest.raises(OSError):
                RelaySender("relay", from_addr="me@example.com").send("msg")
