"""Data models for the ecobee command-line client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from .const import STATUS_OK
from .temperature import to_api


class FanMode(StrEnum):
    """Fan modes accepted by the setHold function."""

    AUTO = "auto"
    ON = "on"


class HoldType(StrEnum):
    """Hold end conditions accepted by the setHold function."""

    NEXT_TRANSITION = "nextTransition"
    INDEFINITE = "indefinite"


@dataclass
class StoredCredential:
    """Represents the api key and token pair persisted in the credentials file."""

    api_key: str
    token_expiration: datetime
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class EcobeePin:
    """Represents a PIN issued by the authorize endpoint.

    Attributes:
        ecobee_pin: Code the operator types into the ecobee portal.
        code: Authorization code exchanged for tokens afterwards.
        expires_in: Minutes before the PIN expires.
        interval: Minimum seconds between token requests.

    """

    ecobee_pin: str
    code: str
    expires_in: int
    interval: int


@dataclass(frozen=True)
class TokenGrant:
    """Represents a token endpoint response."""

    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class UpdateStatus:
    """Status block returned by a thermostat update."""

    code: int
    message: str

    @property
    def ok(self) -> bool:
        """Return True when the thermostat accepted the update."""
        return self.code == STATUS_OK


@dataclass(frozen=True, slots=True)
class ThermostatSnapshot:
    """Read-only projection of the thermostat state used for decisions.

    Temperatures are decimal degrees; None means the vendor did not report
    the value.
    """

    identifier: str | None
    name: str | None
    desired_heat: Decimal | None
    desired_cool: Decimal | None
    actual_temperature: Decimal | None
    actual_humidity: int | None
    desired_fan_mode: str | None
    hvac_mode: str | None
    heat_cool_min_delta: Decimal | None
    heat_range_low: Decimal | None
    heat_range_high: Decimal | None
    cool_range_low: Decimal | None
    cool_range_high: Decimal | None
    last_modified: datetime | None
    last_status_modified: datetime | None
    current_event_end: str | None
    equipment_status: str


@dataclass
class HoldParams:
    """Parameters of a setHold function, in decimal degrees.

    Each field is optional; unset fields are left out of the request so the
    vendor applies its own default.
    """

    fan: FanMode | None = None
    cool_hold_temp: Decimal | None = None
    heat_hold_temp: Decimal | None = None
    hold_type: HoldType | None = None

    def is_empty(self) -> bool:
        """Return True when no field has been set."""
        return (
            self.fan is None
            and self.cool_hold_temp is None
            and self.heat_hold_temp is None
            and self.hold_type is None
        )

    def to_api(self) -> dict[str, Any]:
        """Return the wire representation with temperatures in tenths."""
        params: dict[str, Any] = {}
        if self.hold_type is not None:
            params["holdType"] = str(self.hold_type)
        if self.fan is not None:
            params["fan"] = str(self.fan)
        if self.cool_hold_temp is not None:
            params["coolHoldTemp"] = to_api(self.cool_hold_temp)
        if self.heat_hold_temp is not None:
            params["heatHoldTemp"] = to_api(self.heat_hold_temp)
        return params
