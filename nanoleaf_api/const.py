"""Constants for the Nanoleaf local API client."""
from datetime import timedelta

# API endpoints
API_PORT = 16021
API_BASE = "/api/v1/"
API_ROOT = "/"
API_STATE = "/state"
API_EFFECTS = "/effects"

# Placeholder used instead of the auth token in logs and traces
TOKEN_PLACEHOLDER = "<tok>"

# Default umbrella timeout for a call made without a context
TIMEOUT = 10.0  # seconds

# Retry configuration
#
# GET and PUT requests to a controller on the LAN are usually very quick,
# but they regularly fail, so attempts get strict timeouts and are retried
# aggressively with a growing timeout.
BASE_TIMEOUT = 0.1  # seconds
BACKOFF_MULTIPLIER = 1.5
MAX_TIMEOUT = 5.0  # seconds

# Request headers
HEADERS = {
    "User-Agent": "nanoleaf-api/1.0",
    "Content-Type": "application/json",
    "Connection": "close",
}

# JSON keys
KEY_ON = "on"
KEY_VALUE = "value"
KEY_BRIGHTNESS = "brightness"
KEY_DURATION = "duration"
KEY_HUE = "hue"
KEY_SATURATION = "sat"
KEY_SELECT = "select"

# State keys
KEY_NAME = "name"
KEY_SERIAL = "serialNo"
KEY_FIRMWARE_VERSION = "firmwareVersion"
KEY_EFFECTS = "effects"
KEY_EFFECTS_LIST = "effectsList"

# Error stages
STAGE_ENCODING = "encoding JSON body"
STAGE_PREPARING = "preparing HTTP request"
STAGE_MAKING = "making HTTP request"
STAGE_READING = "reading HTTP response body"
STAGE_DECODING = "decoding JSON response"

# Durations below one second encode as zero and are left out of the body
DURATION_UNIT = timedelta(seconds=1)

# Maximum number of response characters kept on decode errors
MAX_RESPONSE_DATA = 500
