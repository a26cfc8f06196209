"""
capture/filter.py

Gates applied to every parsed event before it reaches the aggregator:

  - PortFilter          destination-port include/exclude list (--ports)
  - is_private_source   RFC1918 / loopback source rule (--norfc1918)

Port filter expression:
    A comma-separated list of tokens, each either a bare port ("445",
    include) or a '!'-prefixed port ("!25", exclude). Evaluation is
    left-to-right and order-dependent:

      - an include equal to the port admits immediately
      - an exclude NOT equal to the port tentatively admits and continues
      - an exclude equal to the port rejects immediately

    The final verdict, when nothing short-circuits, is the last tentative
    value (initially reject).

Usage:
    pf = PortFilter.parse("!25,!80,445")
    pf.allows(22)    # True
    pf.allows(25)    # False
"""

from __future__ import annotations

import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535

# Sources that cannot be usefully reported to a public aggregator.
# Matched on the dotted groups as written in the log, not on a parsed address.
LOOPBACK_SOURCE = (127, 0, 0, 1)


class PortRule(NamedTuple):
    port: int
    negated: bool

    def __str__(self) -> str:
        return f"!{self.port}" if self.negated else str(self.port)


class PortFilter:
    """
    Compiled destination-port filter.

    An empty filter admits every port. Build with PortFilter.parse() so the
    expression is validated once, before any log line is read.
    """

    def __init__(self, rules: tuple[PortRule, ...] = ()) -> None:
        self.rules = rules

    @classmethod
    def parse(cls, expression: str | None) -> PortFilter:
        """
        Compile a port filter expression.

        Raises:
            ValueError: a token is empty, non-numeric or outside 1–65535.
        """
        if expression is None or not expression.strip():
            return cls()

        rules: list[PortRule] = []
        for raw in expression.split(","):
            token = raw.strip()
            negated = token.startswith("!")
            value = token[1:].strip() if negated else token
            if not (value.isascii() and value.isdigit()):
                raise ValueError(f"Invalid port filter: {token!r}")
            port = int(value)
            if port < MIN_PORT or port > MAX_PORT:
                raise ValueError(f"Invalid port filter: {token!r}")
            rules.append(PortRule(port, negated))

        pf = cls(tuple(rules))
        logger.debug("Built port filter: %s", pf)
        return pf

    def allows(self, port: int) -> bool:
        if not self.rules:
            return True

        found = False
        for rule in self.rules:
            if not rule.negated:
                if port == rule.port:
                    return True
            elif port != rule.port:
                found = True
            else:
                return False
        return found

    def __bool__(self) -> bool:
        return bool(self.rules)

    def __str__(self) -> str:
        return ",".join(str(r) for r in self.rules)

    def __repr__(self) -> str:
        return f"PortFilter({str(self)!r})"


def is_private_source(ip: str) -> bool:
    """
    True if ``ip`` is loopback 127.0.0.1 or inside an RFC1918 range.

    Only the leading groups decide: '10.1.2.300' and '192.168.001.1' are
    private even though they are not valid addresses.
    """
    try:
        octets = tuple(int(part) for part in ip.split("."))
    except ValueError:
        return False
    if len(octets) != 4:
        return False

    first, second = octets[0], octets[1]
    return (
        octets == LOOPBACK_SOURCE
        or first == 10
        or (first == 172 and 16 <= second <= 31)
        or (first == 192 and second == 168)
    )
