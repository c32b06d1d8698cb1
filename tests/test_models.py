"""Tests for sample, fix and request models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from townpass_location.config import TownpassConfig
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

# ------------------------------------------------------------------
# Timestamps
# ------------------------------------------------------------------


class TestTimestamps:
    def test_format_has_millisecond_precision_and_z_suffix(self) -> None:
        value = datetime(2026, 3, 4, 5, 6, 7, 891_999, tzinfo=UTC)
        assert format_timestamp(value) == "2026-03-04T05:06:07.891Z"

    def test_format_converts_to_utc(self) -> None:
        value = datetime(2026, 3, 4, 13, 0, 0, tzinfo=timezone(timedelta(hours=8)))
        assert format_timestamp(value) == "2026-03-04T05:00:00.000Z"

    def test_parse_round_trips(self) -> None:
        text = "2026-03-04T05:06:07.891Z"
        parsed = parse_timestamp(text)
        assert parsed == datetime(2026, 3, 4, 5, 6, 7, 891_000, tzinfo=UTC)
        assert parsed is not None and format_timestamp(parsed) == text

    @pytest.mark.parametrize(
        "value",
        [
            "garbage",
            "",
            None,
            12345,
            "2026-03-04T05:06:07Z",
            "2026-03-04T05:06:07.891234Z",
            "2026-03-04 05:06:07.891Z",
            "2026-13-04T05:06:07.891Z",
            "2026-03-04T05:06:07.891+00:00",
        ],
    )
    def test_parse_rejects_other_formats(self, value: object) -> None:
        assert parse_timestamp(value) is None


# ------------------------------------------------------------------
# LocationSample
# ------------------------------------------------------------------


class TestLocationSample:
    def test_payload_uses_camel_case(self) -> None:
        sample = LocationSample(latitude=25.0, longitude=121.5, captured_at="2026-01-01T00:00:00.000Z")
        assert sample.to_payload() == {
            "latitude": 25.0,
            "longitude": 121.5,
            "capturedAt": "2026-01-01T00:00:00.000Z",
        }

    def test_validates_from_wire_keys(self) -> None:
        sample = LocationSample.model_validate(
            {"latitude": 1, "longitude": 2, "capturedAt": "2026-01-01T00:00:00.000Z"}
        )
        assert sample.captured_at_datetime == datetime(2026, 1, 1, tzinfo=UTC)

    def test_rejects_bad_timestamp(self) -> None:
        with pytest.raises(ValidationError):
            LocationSample(latitude=1.0, longitude=2.0, captured_at="garbage")


# ------------------------------------------------------------------
# LocationFix
# ------------------------------------------------------------------


class TestLocationFix:
    def test_owntracks_payload(self) -> None:
        fix = LocationFix.model_validate(
            {"_type": "location", "lat": 25.033, "lon": 121.565, "acc": 8, "tst": 1_767_225_600}
        )
        assert fix.latitude == pytest.approx(25.033)
        assert fix.longitude == pytest.approx(121.565)
        assert fix.accuracy == 8.0
        assert fix.timestamp == datetime(2026, 1, 1, tzinfo=UTC)
        assert fix.raw["_type"] == "location"

    def test_string_coordinates_and_lng_alias(self) -> None:
        fix = LocationFix.model_validate({"latitude": "25.5", "lng": "121.25"})
        assert (fix.latitude, fix.longitude) == (25.5, 121.25)

    def test_nested_data_is_merged(self) -> None:
        fix = LocationFix.model_validate({"data": {"lat": 1.5, "lon": 2.5}})
        assert (fix.latitude, fix.longitude) == (1.5, 2.5)

    def test_millisecond_and_iso_timestamps(self) -> None:
        ms = LocationFix.model_validate({"lat": 0, "lon": 0, "time": 1_767_225_600_000})
        iso = LocationFix.model_validate({"lat": 0, "lon": 0, "time": "2026-01-01T00:00:00Z"})
        assert ms.timestamp == iso.timestamp == datetime(2026, 1, 1, tzinfo=UTC)

    def test_sentinel_accuracy_becomes_none(self) -> None:
        fix = LocationFix.model_validate({"lat": 0, "lon": 0, "acc": "--"})
        assert fix.accuracy is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"lat": 91, "lon": 0},
            {"lat": 0, "lon": -181},
            {"lat": "north", "lon": 0},
            {"lon": 0},
        ],
    )
    def test_invalid_fix_rejected(self, payload: dict) -> None:
        with pytest.raises(ValidationError):
            LocationFix.model_validate(payload)


def test_location_result_last_location() -> None:
    first = LocationFix(latitude=1.0, longitude=1.0)
    last = LocationFix(latitude=2.0, longitude=2.0)
    assert LocationResult(locations=[first, last]).last_location == last
    assert LocationResult().last_location is None


def test_location_request_defaults_match_tracking_profile() -> None:
    request = LocationRequest()
    assert request.priority == Priority.HIGH_ACCURACY
    assert request.interval == 10.0
    assert request.min_update_interval == 5.0
    assert request.min_update_distance == 0.0
    assert request.wait_for_accurate_location is False


def test_location_request_from_config() -> None:
    config = TownpassConfig(update_interval=3.0, min_update_interval=1.0, min_update_distance=25.0)
    request = LocationRequest.from_config(config)
    assert (request.interval, request.min_update_interval, request.min_update_distance) == (3.0, 1.0, 25.0)


@pytest.mark.parametrize(
    ("fine", "background", "require_background", "expected"),
    [
        (True, True, True, True),
        (True, False, True, False),
        (True, False, False, True),
        (False, True, False, False),
    ],
)
def test_permission_state_allows_tracking(fine: bool, background: bool, require_background: bool, expected: bool) -> None:
    state = PermissionState(fine_location=fine, background_location=background)
    assert state.allows_tracking(require_background=require_background) is expected
