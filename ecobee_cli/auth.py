"""Authorization flow and token lifecycle for the ecobee API."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from . import api
from .models import StoredCredential, TokenGrant

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from .clock import Clock
    from .credentials import CredentialStore
    from .models import EcobeePin

_LOGGER = logging.getLogger(__name__)


class EcobeeAuthFlow:
    """Obtain, persist and refresh the ecobee access token.

    Authorization expiry is never retried here: an ``EcobeeApiAuthError``
    from the API always propagates so the caller can drop the stored tokens
    and ask the operator to authorize again.
    """

    def __init__(
        self,
        session: httpx.AsyncClient,
        store: CredentialStore,
        clock: Clock,
        prompt: Callable[[str], str] = input,
    ) -> None:
        """Initialize the auth flow.

        Args:
            session: HTTP client session.
            store: Credentials file store.
            clock: Clock used to check token expiration.
            prompt: Blocking callable used to wait for the operator.

        """
        self.session = session
        self.store = store
        self._clock = clock
        self._prompt = prompt

    async def async_ensure_authorized(self) -> None:
        """Make sure a token pair is stored, running the PIN flow if needed.

        Raises:
            EcobeeAuthorizationPendingError: If the operator confirmed before
                authorizing the PIN on the portal.
            EcobeeApiAuthError: If the api key or code is rejected.
            EcobeeApiClientError: If API request fails.

        """
        if self.store.has_token():
            _LOGGER.debug("Loading existing tokens")
            self.store.read_token()
            return

        _LOGGER.info("Getting new tokens")
        api_key = self.store.read_api_key()
        pin = await api.async_request_pin(self.session, api_key)
        await self._async_wait_for_operator(pin)
        grant = await api.async_request_tokens(self.session, api_key, pin.code)
        self._store_grant(api_key, grant)
        _LOGGER.info("Successfully authorized with ecobee")

    async def async_get_access_token(self) -> str:
        """Return a usable access token, refreshing it once it has expired.

        Raises:
            EcobeeApiAuthError: If no token is stored or the refresh token is
                rejected.
            EcobeeApiClientError: If the refresh request fails.

        """
        credential = self.store.read_token()
        if credential is None:
            error_msg = "No stored tokens, authorization is required"
            raise api.EcobeeApiAuthError(error_msg)

        if self._clock.now() < credential.token_expiration:
            return credential.access_token

        _LOGGER.debug("Access token expired, refreshing using refresh token")
        grant = await api.async_refresh_tokens(
            self.session,
            credential.api_key,
            credential.refresh_token,
        )
        self._store_grant(credential.api_key, grant)
        _LOGGER.debug("Successfully refreshed access token")
        return grant.access_token

    async def _async_wait_for_operator(self, pin: EcobeePin) -> None:
        _LOGGER.info("Pin: %s", pin.ecobee_pin)
        _LOGGER.info(
            "You have %d minutes to enter this on the Ecobee site and hit enter.",
            pin.expires_in,
        )
        await asyncio.to_thread(self._prompt, "")

    def _store_grant(self, api_key: str, grant: TokenGrant) -> None:
        self.store.write_token(
            StoredCredential(
                api_key=api_key,
                token_expiration=self._clock.now()
                + timedelta(seconds=grant.expires_in),
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
            )
        )
