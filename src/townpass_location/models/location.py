"""Provider-side location models: fixes, result batches and request profile."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from townpass_location._constants import (
    DEFAULT_MIN_UPDATE_DISTANCE_M,
    DEFAULT_MIN_UPDATE_INTERVAL_S,
    DEFAULT_UPDATE_INTERVAL_S,
)
from townpass_location._normalize import parse_fix_time, safe_float
from townpass_location.config import TownpassConfig


class Priority(StrEnum):
    HIGH_ACCURACY = "high_accuracy"
    BALANCED = "balanced"
    LOW_POWER = "low_power"
    PASSIVE = "passive"


class LocationFix(BaseModel):
    """A single position reading from a location provider.

    Accepts the key spellings used by common sources (``lat``/``lon``
    from OwnTracks, ``lng`` from web APIs, nested ``data`` objects).

    Parameters
    ----------
    latitude : float
        Latitude in degrees, -90 to 90.
    longitude : float
        Longitude in degrees, -180 to 180.
    accuracy : float or None
        Horizontal accuracy radius in metres.
    timestamp : datetime or None
        Time the provider took the reading, when it reports one.
    raw : dict
        Original payload.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    latitude: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(
        ge=-180.0,
        le=180.0,
        validation_alias=AliasChoices("longitude", "lon", "lng"),
    )
    accuracy: float | None = Field(default=None, validation_alias=AliasChoices("accuracy", "acc", "horizontalAccuracy"))
    timestamp: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("timestamp", "tst", "time", "fixTime"),
    )
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _merge_nested_data(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        nested = values.get("data")
        merged = dict(values)
        if isinstance(nested, dict):
            merged.update(nested)
        merged.setdefault("raw", values)
        return merged

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> Any:
        parsed = safe_float(value)
        # Leave unparseable input alone so pydantic reports it.
        return value if parsed is None else parsed

    @field_validator("accuracy", mode="before")
    @classmethod
    def _coerce_accuracy(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime | None:
        return parse_fix_time(value)


class LocationResult(BaseModel):
    """A batch of fixes delivered by one provider callback."""

    model_config = ConfigDict(frozen=True)

    locations: list[LocationFix] = Field(default_factory=list)

    @property
    def last_location(self) -> LocationFix | None:
        return self.locations[-1] if self.locations else None


class LocationRequest(BaseModel):
    """How often and how precisely fixes should be delivered."""

    model_config = ConfigDict(frozen=True)

    priority: Priority = Priority.HIGH_ACCURACY
    interval: float = Field(default=DEFAULT_UPDATE_INTERVAL_S, gt=0)
    min_update_interval: float = Field(default=DEFAULT_MIN_UPDATE_INTERVAL_S, ge=0)
    min_update_distance: float = Field(default=DEFAULT_MIN_UPDATE_DISTANCE_M, ge=0)
    wait_for_accurate_location: bool = False

    @classmethod
    def from_config(cls, config: TownpassConfig) -> LocationRequest:
        return cls(
            interval=config.update_interval,
            min_update_interval=config.min_update_interval,
            min_update_distance=config.min_update_distance,
            wait_for_accurate_location=config.wait_for_accurate_location,
        )
