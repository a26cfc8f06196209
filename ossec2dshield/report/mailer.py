"""
report/mailer.py

Hands a finished report to an SMTP relay.

The relay is a black box: connect, MAIL FROM, RCPT TO, DATA, QUIT.
No retry or spool: a failed send propagates to the caller, which must
NOT advance the stored cutoff.

Usage:
    ip = resolve_relay("mail.example.com")
    sender = RelaySender(ip, from_addr="me@example.com")
    sender.send(report_text)
"""

from __future__ import annotations

import logging
import smtplib
import socket

from ..config import DEFAULT_RECIPIENT

logger = logging.getLogger(__name__)

_SMTP_PORT = 25
_SMTP_TIMEOUT_SECONDS = 30.0


def resolve_relay(host: str) -> str:
    """
    Resolve the relay hostname to an IPv4 address.

    Raises:
        OSError: the name does not resolve (socket.gaierror).
    """
    ip = socket.gethostbyname(host)
    logger.debug("Relay %r resolved to %s", host, ip)
    return ip


class RelaySender:
    """
    Sends report text through a single SMTP relay.

    Args:
        host:      Relay hostname or IP.
        from_addr: Envelope sender (MAIL FROM).
        recipient: Envelope recipient (RCPT TO).
        port:      Relay SMTP port.
        timeout:   Socket timeout in seconds for the whole exchange.
    """

    def __init__(
        self,
        host: str,
        from_addr: str,
        recipient: str = DEFAULT_RECIPIENT,
        port: int = _SMTP_PORT,
        timeout: float = _SMTP_TIMEOUT_SECONDS,
    ) -> None:
        self.host = host
        self.from_addr = from_addr
        self.recipient = recipient
        self.port = port
        self.timeout = timeout

    def send(self, message: str) -> None:
        """
        Deliver ``message`` (headers + blank line + body) to the relay.

        Raises:
            smtplib.SMTPException: the relay refused the message.
            OSError:               connection-level failure.
        """
        logger.info("Sending report to %s via %s:%d", self.recipient, self.host, self.port)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.sendmail(self.from_addr, [self.recipient], message)
        logger.debug("Relay accepted %d bytes", len(message))

    def __call__(self, message: str) -> None:
        self.send(message)
