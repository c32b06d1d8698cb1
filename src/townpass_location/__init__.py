"""townpass_location - Background location tracking with a rolling history."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("townpass-location")
except PackageNotFoundError:
    __version__ = "0+local"
from townpass_location._constants import RETENTION_WINDOW
from townpass_location.bridge import ChannelBridge, EventSink, LocationEventStream, MethodCall, StreamError
from townpass_location.config import MqttSettings, TownpassConfig
from townpass_location.exceptions import (
    TownpassConfigError,
    TownpassError,
    TownpassMethodNotImplementedError,
    TownpassPermissionError,
    TownpassProviderError,
    TownpassStorageError,
)
from townpass_location.history import LocationHistoryCache
from townpass_location.models import (
    LocationFix,
    LocationRequest,
    LocationResult,
    LocationSample,
    PermissionState,
    Priority,
    format_timestamp,
    parse_timestamp,
)
from townpass_location.service import LocationTrackingService
from townpass_location.storage import FilePreferences, KeyValueStore, MemoryPreferences
from townpass_location.tracker import LocationTracker

__all__ = [
    "__version__",
    "RETENTION_WINDOW",
    "ChannelBridge",
    "EventSink",
    "FilePreferences",
    "KeyValueStore",
    "LocationEventStream",
    "LocationFix",
    "LocationHistoryCache",
    "LocationRequest",
    "LocationResult",
    "LocationSample",
    "LocationTracker",
    "LocationTrackingService",
    "MemoryPreferences",
    "MethodCall",
    "MqttSettings",
    "PermissionState",
    "Priority",
    "StreamError",
    "TownpassConfig",
    "TownpassConfigError",
    "TownpassError",
    "TownpassMethodNotImplementedError",
    "TownpassPermissionError",
    "TownpassProviderError",
    "TownpassStorageError",
    "format_timestamp",
    "parse_timestamp",
]
