"""Command-line entry point for the ecobee client."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from . import api
from .auth import EcobeeAuthFlow
from .clock import SystemClock
from .config import CliOptions, OptionsError, load_options, setup_logging
from .console import hide_console_window, log_status, wait_for_key
from .const import CREDENTIALS_FILENAME, DEFAULT_INFO_AFTER_TIMEOUT
from .credentials import CredentialsFileError, CredentialStore
from .daemon import DaemonConfigError, DaemonLoop, resolve_end_time
from .hold import HoldValidationError, build_hold_params
from .poller import StatusPoller
from .temperature import TemperatureParseError, parse_absolute, quantize
from .thermostat import EcobeeThermostatClient

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .clock import Clock
    from .models import ThermostatSnapshot

_LOGGER = logging.getLogger(__name__)

FATAL_ERRORS = (
    CredentialsFileError,
    TemperatureParseError,
    HoldValidationError,
    DaemonConfigError,
    api.EcobeeApiClientError,
    httpx.HTTPError,
)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ecobee-cli",
        description="Read and adjust an ecobee thermostat.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this help and exit")
    parser.add_argument("-f", "--fan", help="Set desired fan mode: auto, off, on")
    parser.add_argument(
        "-c",
        "--cool",
        help="Set desired cool temperature, absolute or +/- relative "
        "(should be heat < cool temperature)",
    )
    parser.add_argument(
        "-h",
        "--heat",
        help="Set desired heat temperature, absolute or +/- relative "
        "(should be heat < cool temperature)",
    )
    parser.add_argument(
        "--holdtype",
        help="Set desired hold type: nextTransition/next, indefinite "
        "(omitted: thermostat default)",
    )
    parser.add_argument("--daemon", action="store_true", help="Run as daemon")
    parser.add_argument(
        "--daemonendtime", help="End time for daemon (format HH:mm 24-hour)"
    )
    parser.add_argument(
        "--daemonstartdelay", help="Seconds to wait before the first daemon check"
    )
    parser.add_argument(
        "--daemonmininterval",
        help="Minimum minutes between two holds set by the daemon",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print all messages"
    )
    parser.add_argument(
        "--infobefore",
        action="store_true",
        help="Print thermostat info before updating",
    )
    parser.add_argument(
        "--infoafter",
        action="store_true",
        help="Print thermostat info after updating",
    )
    parser.add_argument(
        "--infoaftertimeout",
        help="Timeout in seconds for printing thermostat info after updating "
        f"(default {DEFAULT_INFO_AFTER_TIMEOUT})",
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for key to be pressed before exiting",
    )
    parser.add_argument(
        "--hide",
        action="store_true",
        help="Hide console window (Windows only)",
    )
    parser.add_argument(
        "--credentials",
        help=f"Path of the credentials file (default ./{CREDENTIALS_FILENAME})",
    )
    return parser


async def _async_run_daemon(
    options: CliOptions,
    thermostat: EcobeeThermostatClient,
    clock: Clock,
    initial: ThermostatSnapshot,
) -> int:
    if options.heat is None or options.cool is None:
        _LOGGER.error(
            "Heat and cool temperatures must be specified when running as daemon"
        )
        return 1
    if initial.heat_cool_min_delta is None:
        _LOGGER.error("Heat cool min delta not set")
        return 1

    end_time = (
        resolve_end_time(options.daemon_end_time, clock.now())
        if options.daemon_end_time is not None
        else None
    )
    loop = DaemonLoop(
        thermostat,
        clock,
        quantize(parse_absolute(options.heat)),
        quantize(parse_absolute(options.cool)),
        initial.heat_cool_min_delta,
        end_time=end_time,
        start_delay=options.daemon_start_delay,
        min_interval=options.daemon_min_interval,
    )
    await loop.async_run()
    return 0


async def _async_execute(
    options: CliOptions,
    auth: EcobeeAuthFlow,
    thermostat: EcobeeThermostatClient,
    clock: Clock,
    prompt: Callable[[str], str],
) -> int:
    await auth.async_ensure_authorized()

    initial = await thermostat.async_get_snapshot()
    if options.info_before:
        log_status(initial)

    if options.daemon:
        return await _async_run_daemon(options, thermostat, clock, initial)

    hold_params = build_hold_params(
        initial,
        fan=options.fan,
        cool=options.cool,
        heat=options.heat,
        hold_type=options.hold_type,
    )

    if hold_params.is_empty():
        _LOGGER.info("No changes requested")
        if options.info_after:
            log_status(initial)
    else:
        await thermostat.async_set_hold(hold_params)
        if options.info_after:
            poller = StatusPoller(thermostat, clock)
            await poller.async_wait_for_change(initial, options.info_after_timeout)

    if options.wait:
        await asyncio.to_thread(wait_for_key, prompt)

    return 0


async def async_run(
    options: CliOptions,
    *,
    clock: Clock | None = None,
    session: httpx.AsyncClient | None = None,
    prompt: Callable[[str], str] = input,
) -> int:
    """Run the client with validated options.

    Args:
        options: Validated command-line options.
        clock: Clock to use; defaults to the system clock.
        session: HTTP client session; a retrying client is created if None.
        prompt: Blocking callable used to wait for the operator.

    Returns:
        Process exit code.

    """
    clock = clock or SystemClock()
    store = CredentialStore(options.credentials_file)

    if not store.path.exists():
        _LOGGER.error(
            "Credentials file not found. Please create %s with your api key "
            "on the first line.",
            store.path,
        )
        return 1

    async with session or api.create_session_client() as client:
        auth = EcobeeAuthFlow(client, store, clock, prompt)
        thermostat = EcobeeThermostatClient(client, auth)
        try:
            return await _async_execute(options, auth, thermostat, clock, prompt)
        except api.EcobeeApiAuthError as err:
            try:
                store.trim_to_api_key_only()
            except CredentialsFileError as trim_err:
                _LOGGER.error("Authorization failed (%s): %s", err, trim_err)
                return 1
            _LOGGER.error(
                "Authorization expired or was revoked (%s). Stored tokens have "
                "been removed; run again to authorize this application.",
                err,
            )
            return 1
        except api.EcobeeAuthorizationPendingError as err:
            _LOGGER.error(
                "The PIN has not been authorized yet (%s). Run again and "
                "authorize the PIN on the ecobee site before pressing enter.",
                err,
            )
            return 1
        except FATAL_ERRORS as err:
            _LOGGER.error("%s", err)
            return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run the client and return the exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as err:
        return 0 if err.code == 0 else 1

    raw = {key: value for key, value in vars(args).items() if value is not None}
    try:
        options = load_options(raw)
    except OptionsError as err:
        setup_logging()
        _LOGGER.error("%s", err)
        return 1

    setup_logging(verbose=options.verbose)

    if options.hide_console:
        hide_console_window()

    return asyncio.run(async_run(options))
