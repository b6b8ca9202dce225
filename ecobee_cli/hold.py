"""Build and validate setHold parameters from requested changes.

The builder resolves relative temperatures against the thermostat's current
setpoints, keeps the heat and cool setpoints at least the minimum delta
apart and checks both against the ranges the thermostat accepts.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from .const import FAN_MODE_MAP, HOLD_TYPE_MAP
from .models import FanMode, HoldParams, HoldType
from .temperature import parse_relative, quantize

if TYPE_CHECKING:
    from .models import ThermostatSnapshot

_LOGGER = logging.getLogger(__name__)


class HoldValidationError(Exception):
    """Base exception for rejected hold requests."""


class MissingThermostatSettingError(HoldValidationError):
    """Exception raised when the thermostat does not report a needed value."""


class InvalidFanModeError(HoldValidationError):
    """Exception raised for an unknown fan mode."""


class InvalidHoldTypeError(HoldValidationError):
    """Exception raised for an unknown hold type."""


class DeltaTooSmallError(HoldValidationError):
    """Exception raised when heat and cool are closer than the minimum delta."""


class OutOfRangeError(HoldValidationError):
    """Exception raised when a setpoint lies outside the thermostat's range."""


def parse_fan_mode(value: str) -> FanMode:
    """Map a requested fan mode to the value sent to the API.

    Raises:
        InvalidFanModeError: If value is not auto, off or on.

    """
    try:
        return FanMode(FAN_MODE_MAP[value])
    except KeyError as err:
        error_msg = "Invalid fan mode"
        raise InvalidFanModeError(error_msg) from err


def parse_hold_type(value: str) -> HoldType:
    """Map a requested hold type to the value sent to the API.

    Raises:
        InvalidHoldTypeError: If value is not nextTransition, next or
            indefinite.

    """
    try:
        return HoldType(HOLD_TYPE_MAP[value])
    except KeyError as err:
        error_msg = "Invalid hold mode"
        raise InvalidHoldTypeError(error_msg) from err


def _require(value: Decimal | None, description: str) -> Decimal:
    if value is None:
        error_msg = f"{description} not set"
        raise MissingThermostatSettingError(error_msg)
    return value


def _check_range(
    value: Decimal,
    low: Decimal | None,
    high: Decimal | None,
    description: str,
) -> None:
    if (low is not None and value < low) or (high is not None and value > high):
        error_msg = f"{description} temperature out of range"
        raise OutOfRangeError(error_msg)


def build_hold_params(
    snapshot: ThermostatSnapshot,
    fan: str | None = None,
    cool: str | None = None,
    heat: str | None = None,
    hold_type: str | None = None,
) -> HoldParams:
    """Compute validated hold parameters for the requested changes.

    Args:
        snapshot: Current thermostat state.
        fan: Requested fan mode (auto, off or on).
        cool: Requested cool setpoint, absolute or "+"/"-" relative.
        heat: Requested heat setpoint, absolute or "+"/"-" relative.
        hold_type: Requested hold type; None leaves it to the vendor default.

    Returns:
        HoldParams ready to send.

    Raises:
        MissingThermostatSettingError: If the snapshot lacks a setpoint or
            the minimum delta.
        InvalidFanModeError: If fan is not recognized.
        InvalidHoldTypeError: If hold_type is not recognized.
        DeltaTooSmallError: If heat and cool are closer than the min delta.
        OutOfRangeError: If a setpoint is outside the thermostat's range.
        TemperatureParseError: If a temperature string is malformed.

    """
    current_cool = _require(snapshot.desired_cool, "Desired cool temperature")
    current_heat = _require(snapshot.desired_heat, "Desired heat temperature")
    min_delta = _require(snapshot.heat_cool_min_delta, "Heat cool min delta")

    hold_params = HoldParams()

    if fan is not None:
        hold_params.fan = parse_fan_mode(fan)

    if cool is not None:
        hold_params.cool_hold_temp = quantize(parse_relative(cool, current_cool))

    if heat is not None:
        hold_params.heat_hold_temp = quantize(parse_relative(heat, current_heat))

    if hold_type is not None:
        hold_params.hold_type = parse_hold_type(hold_type)

    new_cool = hold_params.cool_hold_temp
    new_heat = hold_params.heat_hold_temp

    if new_heat is not None and new_cool is not None:
        if new_cool - new_heat < min_delta:
            error_msg = (
                "Heat temperature must be less than cool temperature "
                f"by at least {min_delta} degrees"
            )
            raise DeltaTooSmallError(error_msg)
    elif new_cool is not None:
        hold_params.heat_hold_temp = quantize(
            new_cool - min_delta if new_cool - current_heat < min_delta else current_heat
        )
        _LOGGER.debug("Derived heat setpoint %s", hold_params.heat_hold_temp)
    elif new_heat is not None:
        hold_params.cool_hold_temp = quantize(
            new_heat + min_delta if current_cool - new_heat < min_delta else current_cool
        )
        _LOGGER.debug("Derived cool setpoint %s", hold_params.cool_hold_temp)

    if hold_params.cool_hold_temp is not None:
        _check_range(
            hold_params.cool_hold_temp,
            snapshot.cool_range_low,
            snapshot.cool_range_high,
            "Cool",
        )
    if hold_params.heat_hold_temp is not None:
        _check_range(
            hold_params.heat_hold_temp,
            snapshot.heat_range_low,
            snapshot.heat_range_high,
            "Heat",
        )

    return hold_params
