"""Internal constants shared across the library."""

USER_AGENT = "wifiwatch/0 (+aiohttp)"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

#: Value the platform reports when connected but the network name is hidden
#: (typically missing location permission).
UNKNOWN_SSID = "<unknown ssid>"

DEFAULT_SETTLE_DELAY: float = 3.0
DEFAULT_REQUEST_TIMEOUT: float = 10.0
DEFAULT_SHUTDOWN_GRACE: float = 5.0
DEFAULT_POLL_INTERVAL: float = 2.0
