"""
ossec2dshield/config.py

Application configuration via Pydantic Settings.
All values can be overridden with OSSEC2DSHIELD_* environment variables,
a .env file, or command-line flags (see main.py).

Quick start: create a .env file next to where the job runs:
    OSSEC2DSHIELD_USERID=123456789
    OSSEC2DSHIELD_FROM_ADDR=ossec@example.com
    OSSEC2DSHIELD_MTA=mail.example.com
    OSSEC2DSHIELD_PORTS=!25,!80,445
"""

from __future__ import annotations

import re
import time
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .capture.filter import PortFilter

PRODUCT = "OSSEC2dshield"
VERSION = "1.4"

DEFAULT_RECIPIENT = "report@dshield.org"

_EMAIL_RE = re.compile(r"^[\w.+-]+@([\w-]+\.)+[\w-]+$")
_TZ_RE = re.compile(r"^[+-]\d{2}:\d{2}$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OSSEC2DSHIELD_",
        case_sensitive=False,
        extra="ignore",
    )

    # DShield identity
    USERID: str = ""
    FROM_ADDR: str = ""
    RECIPIENT: str = DEFAULT_RECIPIENT

    # Mail relay
    MTA: str = ""
    MTA_PORT: int = 25
    SMTP_TIMEOUT: float = 30.0

    # Input / state
    FW_LOG: str = "/var/ossec/logs/firewall/firewall.log"
    STATE_FILE: str = "/var/ossec/logs/ossec2dshield.state"

    # Event selection
    PORTS: str = ""
    OBFUSCATE: bool = False
    NO_RFC1918: bool = False

    # Dry run: process and save state, never mail
    TEST: bool = False

    # '±HH:MM'; None means "ask the host"
    TZ_OFFSET: str | None = None

    # Logging
    LOG_FILE: str | None = None
    LOG_LEVEL: str = "INFO"

    @field_validator("USERID", "FROM_ADDR", "MTA", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("FROM_ADDR", "RECIPIENT")
    @classmethod
    def check_email(cls, v: str) -> str:
        if v and not _EMAIL_RE.match(v):
            raise ValueError(f"incorrect e-mail address: {v!r}")
        return v

    @field_validator("PORTS")
    @classmethod
    def check_ports(cls, v: str) -> str:
        # Raises ValueError on the first bad token
        PortFilter.parse(v)
        return v.strip()

    @field_validator("TZ_OFFSET")
    @classmethod
    def check_tz_offset(cls, v: str | None) -> str | None:
        if v is not None and not _TZ_RE.match(v):
            raise ValueError(f"timezone offset must look like +HH:MM, got {v!r}")
        return v

    @field_validator("MTA_PORT")
    @classmethod
    def check_mta_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"invalid SMTP port: {v}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"unknown log level: {v!r}")
        return v

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def port_filter(self) -> PortFilter:
        return PortFilter.parse(self.PORTS)

    def validate_for_run(self) -> None:
        """
        Check the values a real run cannot do without.

        Called by main() before any line is read; Settings() on its own
        accepts the empty defaults.

        Raises:
            ValueError: USERID, FROM_ADDR or MTA is missing.
        """
        if not self.USERID:
            raise ValueError("No DShield user ID provided")
        if not self.FROM_ADDR:
            raise ValueError("No e-mail or incorrect e-mail address provided")
        if not self.MTA:
            raise ValueError("No MTA provided")


def host_utc_offset() -> str:
    """
    Return the host's current UTC offset in DShield's '±HH:MM' form.

    Raises:
        RuntimeError: the platform does not report an offset.
    """
    raw = time.strftime("%z", time.localtime())
    if not re.match(r"^[+-]\d{4}$", raw):
        raise RuntimeError(f"Cannot get the host timezone (got {raw!r})")
    return f"{raw[:3]}:{raw[3:]}"


def resolve_tz_offset(settings: Settings) -> str:
    return settings.TZ_OFFSET or host_utc_offset()
