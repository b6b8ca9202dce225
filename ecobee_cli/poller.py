"""Wait for the thermostat to acknowledge an update."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

import httpx

from . import api
from .console import log_status
from .const import STATUS_POLL_INTERVAL

if TYPE_CHECKING:
    from .clock import Clock
    from .models import ThermostatSnapshot
    from .thermostat import EcobeeThermostatClient

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResult:
    """Outcome of waiting for a thermostat change."""

    changed: bool
    timed_out: bool
    snapshot: ThermostatSnapshot | None


class StatusPoller:
    """Poll the thermostat until its lastModified timestamp moves."""

    def __init__(
        self,
        thermostat: EcobeeThermostatClient,
        clock: Clock,
        interval: float = STATUS_POLL_INTERVAL,
    ) -> None:
        self._thermostat = thermostat
        self._clock = clock
        self._interval = interval

    async def _async_fetch(self) -> ThermostatSnapshot | None:
        try:
            return await self._thermostat.async_get_snapshot()
        except api.EcobeeApiAuthError:
            raise
        except (api.EcobeeApiClientError, httpx.HTTPError) as err:
            _LOGGER.error("Error: %s", err)
            return None

    async def async_wait_for_change(
        self,
        baseline: ThermostatSnapshot,
        timeout: float,
    ) -> PollResult:
        """Wait until the thermostat reports a new lastModified timestamp.

        A snapshot is fetched right away and then once per interval. Whether
        the change arrives or the timeout passes first, one more interval is
        waited and a final snapshot is fetched and logged.

        Args:
            baseline: Snapshot taken before the update.
            timeout: Seconds to wait for the change.

        Returns:
            PollResult with the final snapshot.

        Raises:
            EcobeeApiAuthError: If the authorization expired while polling.

        """
        deadline = self._clock.now() + timedelta(seconds=timeout)
        changed = False
        timed_out = False

        snapshot = await self._async_fetch()
        while True:
            if snapshot is not None and snapshot.last_modified != baseline.last_modified:
                changed = True
                break
            if self._clock.now() > deadline:
                _LOGGER.warning("Timeout waiting for thermostat to update")
                timed_out = True
                break
            if snapshot is not None:
                log_status(snapshot)
            _LOGGER.info("Waiting for thermostat to update")
            await self._clock.sleep(self._interval)
            snapshot = await self._async_fetch()

        await self._clock.sleep(self._interval)
        final_snapshot = await self._async_fetch()
        if final_snapshot is not None:
            log_status(final_snapshot)
        else:
            final_snapshot = snapshot

        return PollResult(changed=changed, timed_out=timed_out, snapshot=final_snapshot)
