"""Pytest configuration and fixtures for ecobee client tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from ecobee_cli.models import ThermostatSnapshot

START_TIME = datetime(2026, 10, 19, 12, 0, 0)


class FakeClock:
    """Clock whose sleep advances time instantly."""

    def __init__(self, start: datetime = START_TIME) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Fixture providing a fake clock starting at a fixed time."""
    return FakeClock()


@pytest.fixture
def make_snapshot() -> Callable[..., ThermostatSnapshot]:
    """Fixture providing a factory for thermostat snapshots.

    Defaults describe a thermostat holding 70.0-75.0 with a 0.5 min delta.
    Keyword arguments override individual fields.
    """

    def _make(**overrides: Any) -> ThermostatSnapshot:
        fields: dict[str, Any] = {
            "identifier": "311000000001",
            "name": "Living Room",
            "desired_heat": Decimal("70.0"),
            "desired_cool": Decimal("75.0"),
            "actual_temperature": Decimal("71.1"),
            "actual_humidity": 40,
            "desired_fan_mode": "auto",
            "hvac_mode": "auto",
            "heat_cool_min_delta": Decimal("0.5"),
            "heat_range_low": Decimal("45.0"),
            "heat_range_high": Decimal("79.0"),
            "cool_range_low": Decimal("65.0"),
            "cool_range_high": Decimal("90.0"),
            "last_modified": datetime(2026, 10, 19, 15, 0, 0),
            "last_status_modified": datetime(2026, 10, 19, 15, 0, 0),
            "current_event_end": None,
            "equipment_status": "",
        }
        fields.update(overrides)
        return ThermostatSnapshot(**fields)

    return _make


def build_thermostat_response(
    last_modified: str = "2026-10-19 15:00:00",
    actual_temperature: int | None = 711,
    desired_heat: int = 700,
    desired_cool: int = 750,
) -> dict[str, Any]:
    """Build a thermostat endpoint response body."""
    runtime: dict[str, Any] = {
        "actualHumidity": 40,
        "desiredHeat": desired_heat,
        "desiredCool": desired_cool,
        "desiredFanMode": "auto",
        "lastModified": last_modified,
        "lastStatusModified": "2026-10-19 14:58:00",
    }
    if actual_temperature is not None:
        runtime["actualTemperature"] = actual_temperature
    return {
        "page": {"page": 1, "totalPages": 1, "pageSize": 1, "total": 1},
        "thermostatList": [
            {
                "identifier": "311000000001",
                "name": "Living Room",
                "equipmentStatus": "fan,compCool1",
                "settings": {
                    "hvacMode": "auto",
                    "heatCoolMinDelta": 50,
                    "heatRangeLow": 450,
                    "heatRangeHigh": 790,
                    "coolRangeLow": 650,
                    "coolRangeHigh": 900,
                },
                "runtime": runtime,
                "events": [
                    {
                        "type": "hold",
                        "running": True,
                        "endDate": "2026-10-19",
                        "endTime": "18:00:00",
                    },
                ],
            },
        ],
        "status": {"code": 0, "message": ""},
    }


@pytest.fixture
def thermostat_response() -> Callable[..., dict[str, Any]]:
    """Fixture providing the thermostat response builder."""
    return build_thermostat_response


@pytest.fixture
def sample_thermostat_response() -> dict[str, Any]:
    """Fixture providing a sample thermostat API response."""
    return build_thermostat_response()


@pytest.fixture
def sample_pin_response() -> dict[str, Any]:
    """Fixture providing a sample authorize API response."""
    return {
        "ecobeePin": "bv29",
        "code": "uKHwBZYOIIgJ0dUPoCfyOdaF4DGbDBy3",
        "scope": "smartWrite",
        "expires_in": 9,
        "interval": 30,
    }


@pytest.fixture
def sample_token_response() -> dict[str, Any]:
    """Fixture providing a sample token API response."""
    return {
        "access_token": "new_access_token",
        "token_type": "Bearer",
        "expires_in": 3599,
        "refresh_token": "new_refresh_token",
        "scope": "smartWrite",
    }


@pytest.fixture
def sample_update_response() -> dict[str, Any]:
    """Fixture providing a sample successful update API response."""
    return {"status": {"code": 0, "message": ""}}


@pytest.fixture
def credentials_file(tmp_path: Path) -> Path:
    """Fixture providing a credentials file holding a valid token pair."""
    path = tmp_path / "ecobee_credentials.txt"
    path.write_text(
        "test_api_key\n"
        "10/19/26 01:00:00 PM\n"
        "stored_access_token\n"
        "stored_refresh_token\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def api_key_only_file(tmp_path: Path) -> Path:
    """Fixture providing a credentials file holding only the api key."""
    path = tmp_path / "ecobee_credentials.txt"
    path.write_text("test_api_key\n", encoding="utf-8")
    return path
