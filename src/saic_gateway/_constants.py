"""Internal constants shared across the library."""

BASE_URL = "https://tap-eu.soimt.com"
USER_AGENT = "okhttp/3.14.9"

#: ``result`` value of a decoded message telling that uid/token must be renewed.
SESSION_EXPIRED_RESULT_CODE = 2

# ------------------------------------------------------------------
# Protocol endpoints and application identifiers
# ------------------------------------------------------------------

OTA_V21_PATH = "/TAP.Web/ota.mpv21"
OTA_V30_PATH = "/TAP.Web/ota.mpv30"

VEHICLE_STATUS_APPLICATION_ID = "511"
VEHICLE_STATUS_PROTOCOL_VERSION = 25857
VEHICLE_STATUS_MESSAGE_ID = 1
#: ``vehStatusReqType`` asking for the full status record.
VEHICLE_STATUS_REQUEST_TYPE = 2

CHARGE_STATUS_APPLICATION_ID = "516"
CHARGE_STATUS_PROTOCOL_VERSION = 768
CHARGE_STATUS_MESSAGE_ID = 5

REMOTE_COMMAND_APPLICATION_ID = "510"
REMOTE_COMMAND_PROTOCOL_VERSION = 25857
REMOTE_COMMAND_MESSAGE_ID = 1

RESERVED_LENGTH = 16
_RESERVED_OFFSET = 1_111_111_111_111_111_111


def reserved_bytes(now_ms: int) -> bytes:
    """Time-varying ``reserved`` header field sent with every request."""
    return str(now_ms + _RESERVED_OFFSET).encode("ascii")[:RESERVED_LENGTH]


# ------------------------------------------------------------------
# Decoded payload scaling and sentinels
# ------------------------------------------------------------------

#: Temperatures at or below this value mean "unknown".
TEMPERATURE_SENTINEL = -128
#: Raw tyre pressure unit is 4/100 bar.
TYRE_PRESSURE_FACTOR = 4 / 100
BMS_CURRENT_FACTOR = 0.05
BMS_CURRENT_OFFSET = -1000.0
BMS_VOLTAGE_FACTOR = 0.25

# ------------------------------------------------------------------
# Refresh defaults (seconds)
# ------------------------------------------------------------------

DEFAULT_REFRESH_PERIOD_ACTIVE = 30
DEFAULT_REFRESH_PERIOD_INACTIVE = 86400
DEFAULT_REFRESH_PERIOD_AFTER_SHUTDOWN = 600
