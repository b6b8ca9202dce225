"""Constants for the ecobee command-line client.

This module contains the constants used throughout the client, including
API endpoints, polling cadences and the credentials file layout.
"""

BASE_URL = "https://api.ecobee.com"
THERMOSTAT_URL = f"{BASE_URL}/1/thermostat"
AUTHORIZE_URL = f"{BASE_URL}/authorize"
TOKEN_URL = f"{BASE_URL}/token"

API_SCOPE = "smartWrite"
USER_AGENT = "ecobee-cli/1.0"
REQUEST_TIMEOUT = 10.0

GRANT_TYPE_PIN = "ecobeePin"
GRANT_TYPE_REFRESH = "refresh_token"

# ecobee "status.code" values that mean the authorization is gone
STATUS_OK = 0
STATUS_AUTH_FAILED = 1
STATUS_TOKEN_EXPIRED = 14
STATUS_TOKEN_DEAUTHORIZED = 16
AUTH_STATUS_CODES = (
    STATUS_AUTH_FAILED,
    STATUS_TOKEN_EXPIRED,
    STATUS_TOKEN_DEAUTHORIZED,
)

OAUTH_ERROR_PENDING = "authorization_pending"
OAUTH_AUTH_ERRORS = ("invalid_grant", "invalid_client", "unauthorized_client")

# Include flags sent with every thermostat read
THERMOSTAT_INCLUDES = (
    "includeSettings",
    "includeSensors",
    "includeEquipmentStatus",
    "includeWeather",
    "includeDevice",
    "includeEvents",
    "includeProgram",
    "includeRuntime",
    "includeEnergy",
    "includeElectricity",
    "includeExtendedRuntime",
    "includeNotificationSettings",
    "includeAlerts",
)

CREDENTIALS_FILENAME = "ecobee_credentials.txt"
CREDENTIALS_ENV_VAR = "ECOBEE_CREDENTIALS_FILE"
TOKEN_EXPIRATION_FORMAT = "%m/%d/%y %I:%M:%S %p"
TOKEN_LINE_COUNT = 4

LAST_MODIFIED_FORMAT = "%Y-%m-%d %H:%M:%S"

STATUS_POLL_INTERVAL = 1.0  # seconds
DEFAULT_INFO_AFTER_TIMEOUT = 10 * 60  # seconds

DAEMON_POLL_INTERVAL = 60.0  # seconds
DAEMON_HYSTERESIS = "0.5"  # degrees
DAEMON_END_TIME_FORMAT = "%H:%M"

FAN_MODE_MAP = {
    "auto": "auto",
    "off": "auto",
    "on": "on",
}
HOLD_TYPE_MAP = {
    "nextTransition": "nextTransition",
    "next": "nextTransition",
    "indefinite": "indefinite",
}

LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
