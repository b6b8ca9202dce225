"""Thermostat access bound to the current access token."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import api

if TYPE_CHECKING:
    import httpx

    from .auth import EcobeeAuthFlow
    from .models import HoldParams, ThermostatSnapshot, UpdateStatus

_LOGGER = logging.getLogger(__name__)


class EcobeeThermostatClient:
    """Read and update the registered thermostat.

    Every call asks the auth flow for a token first, so an expired access
    token is refreshed before the request goes out.
    """

    def __init__(self, session: httpx.AsyncClient, auth: EcobeeAuthFlow) -> None:
        self._session = session
        self._auth = auth

    async def async_get_snapshot(self) -> ThermostatSnapshot:
        """Fetch the current state of the thermostat."""
        access_token = await self._auth.async_get_access_token()
        return await api.async_get_thermostat(self._session, access_token)

    async def async_set_hold(self, hold_params: HoldParams) -> UpdateStatus:
        """Send a hold and return the status reported by the API."""
        access_token = await self._auth.async_get_access_token()
        status = await api.async_set_hold(self._session, access_token, hold_params)
        if not status.ok:
            _LOGGER.warning(
                "Thermostat rejected the update (%d): %s", status.code, status.message
            )
        return status
