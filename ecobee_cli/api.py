"""API client for the ecobee cloud service.

This module provides functions to interact with the ecobee API,
including PIN authorization, token refresh, thermostat reads and
setHold updates.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx
from httpx_retries import Retry, RetryTransport

from .const import (
    API_SCOPE,
    AUTH_STATUS_CODES,
    AUTHORIZE_URL,
    GRANT_TYPE_PIN,
    GRANT_TYPE_REFRESH,
    LAST_MODIFIED_FORMAT,
    OAUTH_AUTH_ERRORS,
    OAUTH_ERROR_PENDING,
    REQUEST_TIMEOUT,
    STATUS_OK,
    THERMOSTAT_INCLUDES,
    THERMOSTAT_URL,
    TOKEN_URL,
    USER_AGENT,
)
from .models import EcobeePin, HoldParams, ThermostatSnapshot, TokenGrant, UpdateStatus
from .temperature import from_api

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401


class EcobeeApiClientError(Exception):
    """Base exception for ecobee API client errors."""


class EcobeeApiAuthError(EcobeeApiClientError):
    """Exception raised when the authorization is invalid or expired."""


class EcobeeAuthorizationPendingError(EcobeeApiClientError):
    """Exception raised when the PIN has not been authorized yet."""


def create_headers(access_token: str | None = None) -> dict[str, str]:
    """Create HTTP headers for ecobee API requests.

    Args:
        access_token: Optional access token to send as a bearer token.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {
        "content-type": "application/json;charset=UTF-8",
        "accept": "application/json",
        "user-agent": USER_AGENT,
    }
    if access_token:
        headers["authorization"] = f"Bearer {access_token}"
    return headers


def is_http_error(status: int) -> bool:
    """Check if HTTP status code indicates an error.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 400 or higher, False otherwise.

    """
    return status >= HTTP_BAD_REQUEST


def is_auth_error(status: int) -> bool:
    """Check if HTTP status code indicates authentication error.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 401, False otherwise.

    """
    return status == HTTP_UNAUTHORIZED


def get_status_code(data: dict[str, Any]) -> int:
    """Return the ecobee status code of a response, 0 when absent.

    Raises:
        EcobeeApiClientError: If the status block is malformed.

    """
    try:
        return int(data.get("status", {}).get("code", STATUS_OK))
    except (AttributeError, TypeError, ValueError) as err:
        error_msg = f"Malformed status in response: {data.get('status')!r}"
        raise EcobeeApiClientError(error_msg) from err


def is_api_error(data: dict[str, Any]) -> bool:
    """Check if API response indicates an error.

    Args:
        data: API response data dictionary.

    Returns:
        True if status.code is not 0, False otherwise.

    """
    return get_status_code(data) != STATUS_OK


def is_auth_api_error(data: dict[str, Any]) -> bool:
    """Check if API response indicates an authentication error.

    Args:
        data: API response data dictionary.

    Returns:
        True if status.code is 1, 14 or 16, False otherwise.

    """
    return get_status_code(data) in AUTH_STATUS_CODES


def _parse_json(response: httpx.Response) -> dict[str, Any] | None:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def validate_response(response: httpx.Response) -> dict[str, Any]:
    """Validate a thermostat API response and return parsed JSON data.

    ecobee reports expired tokens as HTTP 500 with a status body, so the
    body is inspected before the HTTP status code.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON data from response.

    Raises:
        EcobeeApiAuthError: If authentication error is detected.
        EcobeeApiClientError: If API error is detected.

    """
    data = _parse_json(response)
    if data is not None:
        _validate_api_status(data)
    _validate_http_status(response)
    if data is None:
        error_msg = "Response is not a JSON object"
        raise EcobeeApiClientError(error_msg)
    return data


def validate_update_response(response: httpx.Response) -> dict[str, Any]:
    """Validate a thermostat update response.

    Unlike :func:`validate_response`, a non-zero status that is not an
    authentication problem is returned to the caller instead of raised.

    Raises:
        EcobeeApiAuthError: If authentication error is detected.
        EcobeeApiClientError: If the response carries no status block.

    """
    data = _parse_json(response)
    if data is not None and is_auth_api_error(data):
        raise EcobeeApiAuthError(data["status"].get("message", "Authentication error"))
    if data is None or "status" not in data:
        _validate_http_status(response)
        error_msg = "Update response carries no status"
        raise EcobeeApiClientError(error_msg)
    return data


def validate_token_response(response: httpx.Response) -> dict[str, Any]:
    """Validate an OAuth endpoint response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON data from response.

    Raises:
        EcobeeAuthorizationPendingError: If the PIN is not authorized yet.
        EcobeeApiAuthError: If the grant or client is rejected.
        EcobeeApiClientError: If any other error is detected.

    """
    data = _parse_json(response)
    if data is not None and "error" in data:
        error = data["error"]
        error_message = data.get("error_description") or error
        if error == OAUTH_ERROR_PENDING:
            raise EcobeeAuthorizationPendingError(error_message)
        if error in OAUTH_AUTH_ERRORS:
            raise EcobeeApiAuthError(error_message)
        raise EcobeeApiClientError(error_message)
    _validate_http_status(response)
    if data is None:
        error_msg = "Response is not a JSON object"
        raise EcobeeApiClientError(error_msg)
    return data


def _validate_http_status(response: httpx.Response) -> None:
    if not is_http_error(response.status_code):
        return

    if is_auth_error(response.status_code):
        auth_error = "Authentication error"
        raise EcobeeApiAuthError(auth_error)

    client_error = f"Request failed: {response.status_code}"
    raise EcobeeApiClientError(client_error)


def _validate_api_status(data: dict[str, Any]) -> None:
    if not is_api_error(data):
        return

    error_message = data["status"].get("message") or "Unknown API error"

    if is_auth_api_error(data):
        raise EcobeeApiAuthError(error_message)

    raise EcobeeApiClientError(error_message)


def extract_pin(data: dict[str, Any]) -> EcobeePin:
    """Extract the PIN details from an authorize response.

    Args:
        data: API response data dictionary.

    Returns:
        EcobeePin object.

    """
    try:
        return EcobeePin(
            ecobee_pin=data["ecobeePin"],
            code=data["code"],
            expires_in=int(data.get("expires_in", 0)),
            interval=int(data.get("interval", 0)),
        )
    except KeyError as err:
        error_msg = f"Authorize response is missing {err}"
        raise EcobeeApiClientError(error_msg) from err


def extract_token_grant(data: dict[str, Any]) -> TokenGrant:
    """Extract the token pair from a token endpoint response.

    Args:
        data: API response data dictionary.

    Returns:
        TokenGrant object.

    """
    try:
        return TokenGrant(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data.get("expires_in", 0)),
        )
    except KeyError as err:
        error_msg = f"Token response is missing {err}"
        raise EcobeeApiClientError(error_msg) from err


def _degrees(value: int | None) -> Decimal | None:
    return from_api(int(value)) if value is not None else None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, LAST_MODIFIED_FORMAT)
    except ValueError as err:
        error_msg = f"Malformed timestamp in thermostat response: {value!r}"
        raise EcobeeApiClientError(error_msg) from err


def _extract_event_end(events: list[dict[str, Any]]) -> str | None:
    if not events:
        return None
    current_event = events[0]
    end = " ".join(
        part
        for part in (current_event.get("endDate"), current_event.get("endTime"))
        if part
    )
    return end or None


def extract_snapshot(data: dict[str, Any]) -> ThermostatSnapshot:
    """Extract the first registered thermostat from a thermostat response.

    Args:
        data: API response data dictionary.

    Returns:
        ThermostatSnapshot with temperatures in decimal degrees.

    Raises:
        EcobeeApiClientError: If no thermostat is listed or the thermostat
            entry is malformed.

    """
    thermostats = data.get("thermostatList") or []
    if not thermostats:
        error_msg = "No registered thermostats in response"
        raise EcobeeApiClientError(error_msg)

    try:
        return _build_snapshot(thermostats[0])
    except (KeyError, TypeError, ValueError, AttributeError) as err:
        error_msg = f"Malformed thermostat response: {err}"
        raise EcobeeApiClientError(error_msg) from err


def _build_snapshot(thermostat: dict[str, Any]) -> ThermostatSnapshot:
    runtime = thermostat.get("runtime", {})
    settings = thermostat.get("settings", {})

    return ThermostatSnapshot(
        identifier=thermostat.get("identifier"),
        name=thermostat.get("name"),
        desired_heat=_degrees(runtime.get("desiredHeat")),
        desired_cool=_degrees(runtime.get("desiredCool")),
        actual_temperature=_degrees(runtime.get("actualTemperature")),
        actual_humidity=runtime.get("actualHumidity"),
        desired_fan_mode=runtime.get("desiredFanMode"),
        hvac_mode=settings.get("hvacMode"),
        heat_cool_min_delta=_degrees(settings.get("heatCoolMinDelta")),
        heat_range_low=_degrees(settings.get("heatRangeLow")),
        heat_range_high=_degrees(settings.get("heatRangeHigh")),
        cool_range_low=_degrees(settings.get("coolRangeLow")),
        cool_range_high=_degrees(settings.get("coolRangeHigh")),
        last_modified=_parse_timestamp(runtime.get("lastModified")),
        last_status_modified=_parse_timestamp(runtime.get("lastStatusModified")),
        current_event_end=_extract_event_end(thermostat.get("events", [])),
        equipment_status=thermostat.get("equipmentStatus", ""),
    )


def extract_update_status(data: dict[str, Any]) -> UpdateStatus:
    """Extract the status block from an update response.

    Raises:
        EcobeeApiClientError: If the status block is malformed.

    """
    try:
        status = data.get("status", {})
        return UpdateStatus(
            code=int(status.get("code", STATUS_OK)),
            message=status.get("message", ""),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as err:
        error_msg = f"Malformed status in response: {data.get('status')!r}"
        raise EcobeeApiClientError(error_msg) from err


def build_selection(*, include_all: bool = False) -> dict[str, Any]:
    """Build a selection matching every registered thermostat.

    Args:
        include_all: Add every include flag used for status reads.

    Returns:
        Selection object for the thermostat endpoint.

    """
    selection: dict[str, Any] = {
        "selectionType": "registered",
        "selectionMatch": "",
    }
    if include_all:
        selection.update({flag: True for flag in THERMOSTAT_INCLUDES})
    return selection


def create_session_client() -> httpx.AsyncClient:
    """Create HTTP client with retry logic for the ecobee API.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    retry = Retry(total=3, backoff_factor=0.5)
    return httpx.AsyncClient(
        timeout=REQUEST_TIMEOUT,
        transport=RetryTransport(transport=httpx.AsyncHTTPTransport(), retry=retry),
    )


async def async_request_pin(session: httpx.AsyncClient, api_key: str) -> EcobeePin:
    """Request a PIN for the device authorization flow.

    Args:
        session: HTTP client session.
        api_key: Application api key.

    Returns:
        EcobeePin to show to the operator.

    Raises:
        EcobeeApiAuthError: If the api key is rejected.
        EcobeeApiClientError: If API request fails.

    """
    params = {
        "response_type": GRANT_TYPE_PIN,
        "client_id": api_key,
        "scope": API_SCOPE,
    }

    _LOGGER.debug("Requesting authorization PIN from ecobee API")
    response = await session.get(AUTHORIZE_URL, headers=create_headers(), params=params)
    data = validate_token_response(response)
    return extract_pin(data)


async def async_request_tokens(
    session: httpx.AsyncClient,
    api_key: str,
    code: str,
) -> TokenGrant:
    """Exchange an authorized PIN code for an access and refresh token.

    Args:
        session: HTTP client session.
        api_key: Application api key.
        code: Authorization code returned with the PIN.

    Returns:
        TokenGrant with the new token pair.

    Raises:
        EcobeeAuthorizationPendingError: If the PIN is not authorized yet.
        EcobeeApiAuthError: If the code is rejected.
        EcobeeApiClientError: If API request fails.

    """
    params = {"grant_type": GRANT_TYPE_PIN, "code": code, "client_id": api_key}

    _LOGGER.debug("Exchanging authorization code for tokens")
    response = await session.post(TOKEN_URL, headers=create_headers(), params=params)
    data = validate_token_response(response)
    _LOGGER.debug("Successfully obtained tokens from ecobee API")
    return extract_token_grant(data)


async def async_refresh_tokens(
    session: httpx.AsyncClient,
    api_key: str,
    refresh_token: str,
) -> TokenGrant:
    """Obtain a new token pair using the refresh token.

    Args:
        session: HTTP client session.
        api_key: Application api key.
        refresh_token: Current refresh token.

    Returns:
        TokenGrant with the new token pair.

    Raises:
        EcobeeApiAuthError: If the refresh token is rejected.
        EcobeeApiClientError: If API request fails.

    """
    params = {
        "grant_type": GRANT_TYPE_REFRESH,
        "refresh_token": refresh_token,
        "client_id": api_key,
    }

    _LOGGER.debug("Refreshing tokens with ecobee API")
    response = await session.post(TOKEN_URL, headers=create_headers(), params=params)
    data = validate_token_response(response)
    _LOGGER.debug("Successfully refreshed tokens with ecobee API")
    return extract_token_grant(data)


async def async_get_thermostat(
    session: httpx.AsyncClient,
    access_token: str,
) -> ThermostatSnapshot:
    """Fetch the state of the first registered thermostat.

    Args:
        session: HTTP client session.
        access_token: Current access token.

    Returns:
        ThermostatSnapshot of the thermostat.

    Raises:
        EcobeeApiAuthError: If authentication fails.
        EcobeeApiClientError: If API request fails.

    """
    body = {"selection": build_selection(include_all=True)}
    params = {"format": "json", "body": json.dumps(body)}

    response = await session.get(
        THERMOSTAT_URL,
        headers=create_headers(access_token),
        params=params,
    )
    data = validate_response(response)
    _LOGGER.debug("Thermostat response: %s", json.dumps(data))
    return extract_snapshot(data)


async def async_set_hold(
    session: httpx.AsyncClient,
    access_token: str,
    hold_params: HoldParams,
) -> UpdateStatus:
    """Send a setHold function to every registered thermostat.

    Args:
        session: HTTP client session.
        access_token: Current access token.
        hold_params: Validated hold parameters.

    Returns:
        UpdateStatus reported by the API.

    Raises:
        EcobeeApiAuthError: If authentication fails.
        EcobeeApiClientError: If the response carries no status.

    """
    payload = {
        "selection": build_selection(),
        "functions": [{"type": "setHold", "params": hold_params.to_api()}],
    }

    _LOGGER.info("Update request: %s", json.dumps(payload))
    response = await session.post(
        THERMOSTAT_URL,
        headers=create_headers(access_token),
        params={"format": "json"},
        json=payload,
    )
    data = validate_update_response(response)
    _LOGGER.info("Update response: %s", json.dumps(data))
    return extract_update_status(data)
