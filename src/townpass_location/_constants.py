"""Internal constants shared across the library."""

from datetime import timedelta

#: Trailing window of samples kept in the history cache.  The application
#: layer reads the same key with the same window; change both or neither.
RETENTION_WINDOW = timedelta(minutes=2)

#: ``YYYY-MM-DDTHH:mm:ss.sssZ`` (UTC, millisecond precision).
TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$"

# ------------------------------------------------------------------
# Preferences
# ------------------------------------------------------------------

PREFERENCES_NAME = "FlutterSharedPreferences"
HISTORY_KEY = "flutter.location_history_cache"

# ------------------------------------------------------------------
# Channel names
# ------------------------------------------------------------------

LOCATION_METHOD_CHANNEL = "townpass/location_service"
LOCATION_EVENT_CHANNEL = "townpass/location_stream"

# ------------------------------------------------------------------
# Default location request profile
# ------------------------------------------------------------------

DEFAULT_UPDATE_INTERVAL_S = 10.0
DEFAULT_MIN_UPDATE_INTERVAL_S = 5.0
DEFAULT_MIN_UPDATE_DISTANCE_M = 0.0

EARTH_RADIUS_M = 6_371_008.8
