"""Data models for location samples, fixes and requests."""

from townpass_location.models.location import LocationFix, LocationRequest, LocationResult, Priority
from townpass_location.models.permissions import PermissionState
from townpass_location.models.sample import LocationSample, format_timestamp, parse_timestamp

__all__ = [
    "LocationFix",
    "LocationRequest",
    "LocationResult",
    "LocationSample",
    "PermissionState",
    "Priority",
    "format_timestamp",
    "parse_timestamp",
]
