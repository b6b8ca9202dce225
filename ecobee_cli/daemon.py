"""Daemon loop that keeps the temperature between two targets.

Once a minute the loop reads the thermostat. When the room drops to the
heat target (less the hysteresis) it holds the heat setpoint at the target;
when it rises to the cool target (plus the hysteresis) it holds the cool
setpoint at the target. A minimum interval between two holds keeps the
thermostat from being re-set on every tick.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING

import httpx

from . import api
from .const import DAEMON_END_TIME_FORMAT, DAEMON_HYSTERESIS, DAEMON_POLL_INTERVAL
from .models import HoldParams

if TYPE_CHECKING:
    from .clock import Clock
    from .thermostat import EcobeeThermostatClient

_LOGGER = logging.getLogger(__name__)


class DaemonConfigError(Exception):
    """Exception raised for daemon settings that cannot work."""


class TickResult(StrEnum):
    """What a single daemon tick did."""

    ENDED = "ended"
    SKIPPED = "skipped"
    HEAT_SET = "heat_set"
    COOL_SET = "cool_set"
    IDLE = "idle"
    ERROR = "error"


def resolve_end_time(value: str, now: datetime) -> datetime:
    """Resolve an "HH:MM" end time to the next matching wall-clock time.

    Args:
        value: End time in 24-hour "HH:MM" format.
        now: Current local time.

    Returns:
        Today's date at that time, or tomorrow's if it has already passed.

    Raises:
        DaemonConfigError: If value is not a valid "HH:MM" time.

    """
    try:
        parsed = datetime.strptime(value, DAEMON_END_TIME_FORMAT)
    except ValueError as err:
        error_msg = f"Invalid daemon end time {value!r}, expected HH:MM"
        raise DaemonConfigError(error_msg) from err

    end_time = now.replace(
        hour=parsed.hour, minute=parsed.minute, second=0, microsecond=0
    )
    if end_time < now:
        end_time += timedelta(days=1)
    return end_time


class DaemonLoop:
    """Periodically hold the heat or cool target when out of bounds."""

    def __init__(
        self,
        thermostat: EcobeeThermostatClient,
        clock: Clock,
        target_heat: Decimal,
        target_cool: Decimal,
        min_delta: Decimal,
        *,
        end_time: datetime | None = None,
        start_delay: float = 0,
        min_interval: timedelta = timedelta(0),
        hysteresis: Decimal = Decimal(DAEMON_HYSTERESIS),
        interval: float = DAEMON_POLL_INTERVAL,
    ) -> None:
        """Initialize the daemon loop.

        Raises:
            DaemonConfigError: If target_heat is not below target_cool.

        """
        if target_heat >= target_cool:
            error_msg = "Heat temperature must be less than cool temperature"
            raise DaemonConfigError(error_msg)

        self._thermostat = thermostat
        self._clock = clock
        self.target_heat = target_heat
        self.target_cool = target_cool
        self.min_delta = min_delta
        self.end_time = end_time
        self.start_delay = start_delay
        self.min_interval = min_interval
        self.hysteresis = hysteresis
        self.interval = interval
        self.last_set_time: datetime | None = None

    def _interval_elapsed(self, now: datetime) -> bool:
        if self.last_set_time is None:
            return True
        return now - self.last_set_time >= self.min_interval

    async def _async_hold(self, heat: Decimal, cool: Decimal, now: datetime) -> None:
        await self._thermostat.async_set_hold(
            HoldParams(heat_hold_temp=heat, cool_hold_temp=cool)
        )
        self.last_set_time = now

    async def async_tick(self) -> TickResult:
        """Run one iteration of the control loop.

        Returns:
            TickResult describing what happened.

        Raises:
            EcobeeApiAuthError: If the authorization expired.

        """
        now = self._clock.now()
        if self.end_time is not None and now > self.end_time:
            _LOGGER.info("Daemon ending")
            return TickResult.ENDED

        try:
            snapshot = await self._thermostat.async_get_snapshot()

            if snapshot.actual_temperature is None:
                _LOGGER.warning("Actual temperature not available")
                return TickResult.SKIPPED

            current = snapshot.actual_temperature
            _LOGGER.debug("Temperature: %s", current)

            if (
                current <= self.target_heat - self.hysteresis
                and snapshot.desired_heat != self.target_heat
                and self._interval_elapsed(now)
            ):
                _LOGGER.info("Setting hold to heat")
                await self._async_hold(
                    self.target_heat, self.target_heat + self.min_delta, now
                )
                return TickResult.HEAT_SET

            if (
                current >= self.target_cool + self.hysteresis
                and snapshot.desired_cool != self.target_cool
                and self._interval_elapsed(now)
            ):
                _LOGGER.info("Setting hold to cool")
                await self._async_hold(
                    self.target_cool - self.min_delta, self.target_cool, now
                )
                return TickResult.COOL_SET

        except api.EcobeeApiAuthError:
            raise
        except (api.EcobeeApiClientError, httpx.HTTPError) as err:
            _LOGGER.error("Error: %s", err)
            return TickResult.ERROR

        return TickResult.IDLE

    async def async_run(self) -> None:
        """Run ticks once per interval until the end time is reached.

        Raises:
            EcobeeApiAuthError: If the authorization expired.

        """
        _LOGGER.info(
            "Daemon keeping temperature between %s and %s",
            self.target_heat,
            self.target_cool,
        )
        if self.start_delay > 0:
            _LOGGER.debug("Waiting %s seconds before starting", self.start_delay)
            await self._clock.sleep(self.start_delay)

        while await self.async_tick() is not TickResult.ENDED:
            await self._clock.sleep(self.interval)
