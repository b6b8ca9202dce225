"""Tests for the ecobee authorization flow."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from ecobee_cli.api import EcobeeApiAuthError, EcobeeAuthorizationPendingError
from ecobee_cli.auth import EcobeeAuthFlow
from ecobee_cli.credentials import CredentialStore
from ecobee_cli.models import EcobeePin, StoredCredential, TokenGrant

SAMPLE_PIN = EcobeePin(ecobee_pin="bv29", code="auth_code", expires_in=9, interval=30)
SAMPLE_GRANT = TokenGrant(
    access_token="new_access_token",
    refresh_token="new_refresh_token",
    expires_in=3600,
)


@pytest.fixture
def mock_session() -> Mock:
    """Create a mock HTTP session."""
    return Mock(spec=httpx.AsyncClient)


@pytest.fixture
def mock_prompt() -> Mock:
    """Create a prompt that returns immediately."""
    return Mock(return_value="")


class TestAsyncEnsureAuthorized:
    """Tests for EcobeeAuthFlow.async_ensure_authorized."""

    @pytest.mark.asyncio
    async def test_uses_stored_token_without_requests(
        self,
        mock_session: Mock,
        mock_prompt: Mock,
        credentials_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that a stored token skips the PIN flow."""
        store = CredentialStore(credentials_file)
        flow = EcobeeAuthFlow(mock_session, store, fake_clock, mock_prompt)

        with patch("ecobee_cli.auth.api.async_request_pin") as mock_request_pin:
            await flow.async_ensure_authorized()

        mock_request_pin.assert_not_called()
        mock_prompt.assert_not_called()
        assert store.read_token() is not None

    @pytest.mark.asyncio
    async def test_runs_pin_flow_without_stored_token(
        self,
        mock_session: Mock,
        mock_prompt: Mock,
        api_key_only_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that the PIN flow requests a PIN, waits and stores tokens."""
        store = CredentialStore(api_key_only_file)
        flow = EcobeeAuthFlow(mock_session, store, fake_clock, mock_prompt)

        with (
            patch(
                "ecobee_cli.auth.api.async_request_pin",
                new=AsyncMock(return_value=SAMPLE_PIN),
            ) as mock_request_pin,
            patch(
                "ecobee_cli.auth.api.async_request_tokens",
                new=AsyncMock(return_value=SAMPLE_GRANT),
            ) as mock_request_tokens,
        ):
            await flow.async_ensure_authorized()

        mock_request_pin.assert_awaited_once_with(mock_session, "test_api_key")
        mock_prompt.assert_called_once()
        mock_request_tokens.assert_awaited_once_with(
            mock_session, "test_api_key", "auth_code"
        )
        assert CredentialStore(api_key_only_file).read_token() == StoredCredential(
            api_key="test_api_key",
            token_expiration=fake_clock.now() + timedelta(seconds=3600),
            access_token="new_access_token",
            refresh_token="new_refresh_token",
        )

    @pytest.mark.asyncio
    async def test_pending_authorization_leaves_file_untouched(
        self,
        mock_session: Mock,
        mock_prompt: Mock,
        api_key_only_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that an unauthorized PIN propagates and writes nothing."""
        store = CredentialStore(api_key_only_file)
        flow = EcobeeAuthFlow(mock_session, store, fake_clock, mock_prompt)

        with (
            patch(
                "ecobee_cli.auth.api.async_request_pin",
                new=AsyncMock(return_value=SAMPLE_PIN),
            ),
            patch(
                "ecobee_cli.auth.api.async_request_tokens",
                new=AsyncMock(side_effect=EcobeeAuthorizationPendingError("pending")),
            ),
            pytest.raises(EcobeeAuthorizationPendingError),
        ):
            await flow.async_ensure_authorized()

        assert api_key_only_file.read_text(encoding="utf-8") == "test_api_key\n"


class TestAsyncGetAccessToken:
    """Tests for EcobeeAuthFlow.async_get_access_token."""

    @pytest.mark.asyncio
    async def test_returns_stored_token_before_expiration(
        self,
        mock_session: Mock,
        credentials_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that an unexpired token is returned without a refresh."""
        flow = EcobeeAuthFlow(mock_session, CredentialStore(credentials_file), fake_clock)

        with patch("ecobee_cli.auth.api.async_refresh_tokens") as mock_refresh:
            token = await flow.async_get_access_token()

        assert token == "stored_access_token"
        mock_refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_refreshes_expired_token(
        self,
        mock_session: Mock,
        credentials_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that an expired token is refreshed and persisted."""
        fake_clock.current = datetime(2026, 10, 19, 13, 0, 0)
        flow = EcobeeAuthFlow(mock_session, CredentialStore(credentials_file), fake_clock)

        with patch(
            "ecobee_cli.auth.api.async_refresh_tokens",
            new=AsyncMock(return_value=SAMPLE_GRANT),
        ) as mock_refresh:
            token = await flow.async_get_access_token()

        assert token == "new_access_token"
        mock_refresh.assert_awaited_once_with(
            mock_session, "test_api_key", "stored_refresh_token"
        )
        assert credentials_file.read_text(encoding="utf-8") == (
            "test_api_key\n"
            "10/19/26 02:00:00 PM\n"
            "new_access_token\n"
            "new_refresh_token\n"
        )

    @pytest.mark.asyncio
    async def test_refreshed_token_is_reused(
        self,
        mock_session: Mock,
        credentials_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that a second call uses the refreshed token from memory."""
        fake_clock.current = datetime(2026, 10, 19, 13, 30, 0)
        flow = EcobeeAuthFlow(mock_session, CredentialStore(credentials_file), fake_clock)

        with patch(
            "ecobee_cli.auth.api.async_refresh_tokens",
            new=AsyncMock(return_value=SAMPLE_GRANT),
        ) as mock_refresh:
            await flow.async_get_access_token()
            token = await flow.async_get_access_token()

        assert token == "new_access_token"
        mock_refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejected_refresh_propagates(
        self,
        mock_session: Mock,
        credentials_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that a rejected refresh token raises EcobeeApiAuthError."""
        fake_clock.current = datetime(2026, 10, 20, 0, 0, 0)
        flow = EcobeeAuthFlow(mock_session, CredentialStore(credentials_file), fake_clock)

        with (
            patch(
                "ecobee_cli.auth.api.async_refresh_tokens",
                new=AsyncMock(side_effect=EcobeeApiAuthError("invalid_grant")),
            ),
            pytest.raises(EcobeeApiAuthError, match="invalid_grant"),
        ):
            await flow.async_get_access_token()

    @pytest.mark.asyncio
    async def test_raises_without_stored_token(
        self,
        mock_session: Mock,
        api_key_only_file: Path,
        fake_clock: Any,
    ) -> None:
        """Test that asking for a token before authorization raises."""
        flow = EcobeeAuthFlow(mock_session, CredentialStore(api_key_only_file), fake_clock)

        with pytest.raises(EcobeeApiAuthError, match="authorization is required"):
            await flow.async_get_access_token()
