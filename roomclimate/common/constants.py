"""Application constants."""

USER_AGENT = "room-climate-charts/0.1 (+hourly sensor charts)"
COMMANDS = (
    "update",
    "resolve-station",
    "check-freshness",
    "show-config",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JMA_TIMEZONE = "Asia/Tokyo"
STATION_CACHE_KEY_PREFIX = "station:"
TEMPERATURE_COLUMN_KEYWORDS = ("温度", "temperature")
HUMIDITY_COLUMN_KEYWORDS = ("湿度", "humidity")
STORE_HEADERS = ["timestamp", "station_id", "temperature"]
JSON_LOG_FIELDS = (
    "timestamp",
    "level",
    "run_id",
    "stage",
    "source",
    "station",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "fetched",
    "error_code",
    "message",
)
