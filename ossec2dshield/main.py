from __future__ import annotations

import argparse
import logging
import smtplib
import sys
from typing import Any, NoReturn

from pydantic import ValidationError

from .config import PRODUCT, VERSION, Settings, resolve_tz_offset
from .pipeline import run_once
from .report import RelaySender, resolve_relay
from .storage import StateWriteError

logger = logging.getLogger("ossec2dshield.main")

_PACKAGE_LOGGER = "ossec2dshield"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ossec2dshield",
        description="Submit OSSEC firewall DROP/BLOCK events to dshield.org",
    )
    parser.add_argument("--file", dest="FW_LOG", help="OSSEC firewall.log")
    parser.add_argument("--userid", dest="USERID", help="dshield.org user ID")
    parser.add_argument("--statefile", dest="STATE_FILE",
                        help="file holding the last processed timestamp")
    parser.add_argument("--log", dest="LOG_FILE", help="append run results to this file")
    parser.add_argument("--ports", dest="PORTS",
                        help="destination port filter, e.g. !25,!80,445,53")
    parser.add_argument("--obfuscate", dest="OBFUSCATE", action="store_true", default=None,
                        help="obfuscate destination addresses (10.x.x.x)")
    parser.add_argument("--norfc1918", dest="NO_RFC1918", action="store_true", default=None,
                        help="skip RFC1918 and loopback source addresses")
    parser.add_argument("--test", dest="TEST", action="store_true", default=None,
                        help="test only, do not mail data to dshield.org")
    parser.add_argument("--from", dest="FROM_ADDR", help="your e-mail address (From:)")
    parser.add_argument("--mta", dest="MTA", help="mail relay used to reach dshield.org")
    parser.add_argument("--mta-port", dest="MTA_PORT", type=int)
    parser.add_argument("--tz", dest="TZ_OFFSET", help="override host UTC offset (+HH:MM)")
    parser.add_argument("--debug", action="store_true", help="log processing details")
    parser.add_argument(
        "--log-level", dest="LOG_LEVEL",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--version", action="version", version=f"{PRODUCT} {VERSION}")
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """CLI values that were actually given; everything else comes from env."""
    values = {k: v for k, v in vars(args).items() if k.isupper() and v is not None}
    if args.debug:
        values["LOG_LEVEL"] = "DEBUG"
    return values


def _attach_log_file(path: str) -> logging.Handler:
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "[%(asctime)s] %(message)s", datefmt="%Y/%m/%d %H:%M:%S",
    ))
    logging.getLogger(_PACKAGE_LOGGER).addHandler(handler)
    return handler


def _run(settings: Settings) -> int:
    try:
        settings.validate_for_run()
        tz_offset = resolve_tz_offset(settings)
        mta_ip = resolve_relay(settings.MTA)
    except (ValueError, RuntimeError) as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("No MTA or cannot resolve MTA %r: %s", settings.MTA, exc)
        return 1

    logger.debug("Host timezone: %s", tz_offset)
    logger.debug("Using DShield UserID: %s", settings.USERID)
    logger.debug("Using MTA: %s", mta_ip)
    if settings.PORTS:
        logger.debug("Ports filter: %s", settings.PORTS)
    if settings.OBFUSCATE:
        logger.debug("Target IP addresses will be obfuscated")
    if settings.NO_RFC1918:
        logger.debug("RFC1918 source IP addresses will be dropped")

    sender = RelaySender(
        mta_ip,
        from_addr=settings.FROM_ADDR,
        recipient=settings.RECIPIENT,
        port=settings.MTA_PORT,
        timeout=settings.SMTP_TIMEOUT,
    )

    try:
        result = run_once(settings, tz_offset, sender=sender)
    except StateWriteError as exc:
        logger.error(
            "Cannot save the current timestamp to %r: %s. "
            "The next run may submit the same events again",
            settings.STATE_FILE, exc.strerror,
        )
        return 1
    except ValueError as exc:
        # StateStore.save() refuses a cutoff that is not a 14-digit key
        logger.error(
            "Cannot save the current timestamp to %r: %s. "
            "The next run may submit the same events again",
            settings.STATE_FILE, exc,
        )
        return 1
    except smtplib.SMTPException as exc:
        logger.error("Submission to %s failed, state not saved: %s", settings.RECIPIENT, exc)
        return 1
    except OSError as exc:
        if exc.filename == settings.FW_LOG:
            logger.error("Cannot open/read firewall logs %r: %s", settings.FW_LOG, exc)
        else:
            logger.error("Submission to %s failed, state not saved: %s", settings.RECIPIENT, exc)
        return 1

    logger.info(
        "File processed. %d record(s) %s",
        result.new_records,
        "sent to dshield.org" if result.sent else "processed (not sent)",
    )
    return 0


def main(argv: list[str] | None = None) -> NoReturn:
    args = _parse_args(argv)
    try:
        settings = Settings(**_overrides(args))
    except ValidationError as exc:
        for err in exc.errors():
            field_name = ".".join(str(p) for p in err["loc"])
            print(f"ERROR: invalid {field_name}: {err['msg']}", file=sys.stderr)
        sys.exit(1)

    level = getattr(logging, settings.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger(_PACKAGE_LOGGER).setLevel(level)

    handler = None
    if settings.LOG_FILE:
        try:
            handler = _attach_log_file(settings.LOG_FILE)
        except OSError as exc:
            print(f"ERROR: Cannot write logfile {settings.LOG_FILE}: {exc}", file=sys.stderr)
            sys.exit(1)

    try:
        code = _run(settings)
    finally:
        if handler is not None:
            logging.getLogger(_PACKAGE_LOGGER).removeHandler(handler)
            handler.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
