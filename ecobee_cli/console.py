"""Console helpers: status output, key wait and window hiding."""

from __future__ import annotations

import ctypes
import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from .models import ThermostatSnapshot

_LOGGER = logging.getLogger(__name__)

SW_HIDE = 0


def _display(value: object) -> str:
    return "" if value is None else str(value)


def format_status(snapshot: ThermostatSnapshot) -> list[str]:
    """Return the status block for a snapshot, one line per entry."""
    lines = [
        "Current Status:",
        f"  Temperature: {_display(snapshot.actual_temperature)}",
        f"  Humidity: {_display(snapshot.actual_humidity)}",
        f"  Mode: {_display(snapshot.hvac_mode)}",
        "  Desired Temperature Range: "
        f"{_display(snapshot.desired_heat)} - {_display(snapshot.desired_cool)}",
        f"  Desired Fan: {_display(snapshot.desired_fan_mode)}",
        f"  Equipment Status: {snapshot.equipment_status}",
        f"  Last Status Modified: {_display(snapshot.last_status_modified)}",
        f"  Last Modified: {_display(snapshot.last_modified)}",
    ]
    if snapshot.current_event_end is not None:
        lines.append(f"  Current Event: End Time: {snapshot.current_event_end}")
    return lines


def log_status(snapshot: ThermostatSnapshot) -> None:
    """Log the status block of a snapshot."""
    for line in format_status(snapshot):
        _LOGGER.info(line)


def wait_for_key(prompt: Callable[[str], str] = input) -> None:
    """Block until the operator presses enter."""
    prompt("Press any key to continue...")


def hide_console_window() -> bool:
    """Hide the console window on Windows.

    Returns:
        True if a window was hidden, False on other platforms or when the
        process has no console.

    """
    if sys.platform != "win32":
        _LOGGER.debug("Console hiding is only supported on Windows")
        return False

    handle = ctypes.windll.kernel32.GetConsoleWindow()
    if not handle:
        return False
    ctypes.windll.user32.ShowWindow(handle, SW_HIDE)
    return True
