"""Option validation and logging setup for the ecobee command-line client."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import voluptuous as vol
from voluptuous.humanize import humanize_error

from .const import (
    CREDENTIALS_ENV_VAR,
    CREDENTIALS_FILENAME,
    DAEMON_END_TIME_FORMAT,
    DEFAULT_INFO_AFTER_TIMEOUT,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
)


class OptionsError(Exception):
    """Exception raised when command-line options fail validation."""


def clock_time(value: Any) -> str:
    """Validate a 24-hour "HH:MM" time string."""
    try:
        datetime.strptime(str(value), DAEMON_END_TIME_FORMAT)
    except ValueError as err:
        error_msg = "expected a time in HH:MM 24-hour format"
        raise vol.Invalid(error_msg) from err
    return str(value)


def default_credentials_file() -> Path:
    """Return the credentials path from the environment or the working dir."""
    return Path(os.environ.get(CREDENTIALS_ENV_VAR, CREDENTIALS_FILENAME))


OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional("fan", default=None): vol.Any(None, str),
        vol.Optional("cool", default=None): vol.Any(None, str),
        vol.Optional("heat", default=None): vol.Any(None, str),
        vol.Optional("holdtype", default=None): vol.Any(None, str),
        vol.Optional("daemon", default=False): bool,
        vol.Optional("daemonendtime", default=None): vol.Any(None, clock_time),
        vol.Optional("daemonstartdelay", default=0): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
        vol.Optional("daemonmininterval", default=0): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
        vol.Optional("verbose", default=False): bool,
        vol.Optional("infobefore", default=False): bool,
        vol.Optional("infoafter", default=False): bool,
        vol.Optional("infoaftertimeout", default=DEFAULT_INFO_AFTER_TIMEOUT): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional("wait", default=False): bool,
        vol.Optional("hide", default=False): bool,
        vol.Optional("credentials", default=None): vol.Any(None, vol.Coerce(Path)),
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True)
class CliOptions:
    """Validated command-line options."""

    fan: str | None = None
    cool: str | None = None
    heat: str | None = None
    hold_type: str | None = None
    daemon: bool = False
    daemon_end_time: str | None = None
    daemon_start_delay: float = 0
    daemon_min_interval: timedelta = timedelta(0)
    verbose: bool = False
    info_before: bool = False
    info_after: bool = False
    info_after_timeout: int = DEFAULT_INFO_AFTER_TIMEOUT
    wait: bool = False
    hide_console: bool = False
    credentials_file: Path = Path(CREDENTIALS_FILENAME)


def load_options(raw: dict[str, Any]) -> CliOptions:
    """Validate parsed arguments and build CliOptions.

    Args:
        raw: Parsed arguments keyed by option name.

    Returns:
        CliOptions with coerced values.

    Raises:
        OptionsError: If an option value is invalid.

    """
    try:
        data = OPTIONS_SCHEMA(raw)
    except vol.Invalid as err:
        error_msg = f"Invalid option: {humanize_error(raw, err)}"
        raise OptionsError(error_msg) from err

    return CliOptions(
        fan=data["fan"],
        cool=data["cool"],
        heat=data["heat"],
        hold_type=data["holdtype"],
        daemon=data["daemon"],
        daemon_end_time=data["daemonendtime"],
        daemon_start_delay=data["daemonstartdelay"],
        daemon_min_interval=timedelta(minutes=data["daemonmininterval"]),
        verbose=data["verbose"],
        info_before=data["infobefore"],
        info_after=data["infoafter"],
        info_after_timeout=data["infoaftertimeout"],
        wait=data["wait"],
        hide_console=data["hide"],
        credentials_file=data["credentials"] or default_credentials_file(),
    )


def setup_logging(*, verbose: bool = False) -> None:
    """Configure timestamped console logging.

    Args:
        verbose: Log debug messages, including raw API payloads.

    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    library_level = logging.DEBUG if verbose else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(library_level)
