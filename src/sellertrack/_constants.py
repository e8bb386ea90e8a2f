"""Internal constants shared across the library."""

WS_BASE_URL = "ws://localhost:8002/api/v1/users"
API_BASE_URL = "http://localhost:8080/api"
REPORT_BASE_URL = "http://localhost:8004/api/v1/reports"

TRACKING_PATH = "/tracking/ws/track/{seller_id}/{shopkeeper_id}"

# ------------------------------------------------------------------
# Session budgets (seconds unless noted)
# ------------------------------------------------------------------

HEARTBEAT_INTERVAL = 45.0
MAX_RECONNECT_ATTEMPTS = 5
RECONNECT_BASE_DELAY = 1.0
RECONNECT_MAX_DELAY = 30.0
HTTP_TIMEOUT = 10.0

DEFAULT_CITY = "Bogotá"
PLACE_SEARCH_LIMIT = 5

#: Shown once automatic reconnection has given up.
RELOAD_MESSAGE = "Could not connect to the tracking server. Please reload the page."
