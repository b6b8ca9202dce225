"""Clock abstraction used by the polling loops and the auth flow."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Source of wall-clock time and delays."""

    def now(self) -> datetime:
        """Return the current local time."""

    async def sleep(self, seconds: float) -> None:
        """Suspend for the given number of seconds."""


class SystemClock:
    """Clock backed by the system time and asyncio."""

    def now(self) -> datetime:
        return datetime.now()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
