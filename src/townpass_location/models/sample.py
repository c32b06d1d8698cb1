"""Location sample model and the fixed capture timestamp format."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import field_validator

from townpass_location._constants import TIMESTAMP_PATTERN
from townpass_location.models._base import TownpassBaseModel

_TIMESTAMP_RE = re.compile(TIMESTAMP_PATTERN)


def format_timestamp(value: datetime) -> str:
    """Render *value* as ``YYYY-MM-DDTHH:mm:ss.sssZ`` in UTC.

    Naive datetimes are taken to be UTC.  Sub-millisecond precision is
    truncated, never rounded, so formatting a parsed value is lossless.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    utc = value.astimezone(UTC)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def parse_timestamp(value: object) -> datetime | None:
    """Parse a capture timestamp; ``None`` for anything not in the fixed format."""
    if not isinstance(value, str) or not _TIMESTAMP_RE.match(value):
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ")
    except ValueError:
        return None
    return parsed.replace(tzinfo=UTC)


class LocationSample(TownpassBaseModel):
    """One stored location fix.

    Parameters
    ----------
    latitude : float
        Latitude in degrees.
    longitude : float
        Longitude in degrees.
    captured_at : str
        Capture time, serialized as ``capturedAt``.
    """

    latitude: float
    longitude: float
    captured_at: str

    @field_validator("captured_at")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if parse_timestamp(value) is None:
            raise ValueError(f"capturedAt must match YYYY-MM-DDTHH:mm:ss.sssZ, got {value!r}")
        return value

    @property
    def captured_at_datetime(self) -> datetime:
        parsed = parse_timestamp(self.captured_at)
        assert parsed is not None  # noqa: S101
        return parsed
