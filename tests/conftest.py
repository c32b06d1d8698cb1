from __future__ import annotations

from datetime import UTC, datetime

import pytest

from townpass_location.exceptions import TownpassPermissionError
from townpass_location.models.location import LocationFix, LocationRequest, LocationResult
from townpass_location.providers.base import LocationCallback


class FakeProvider:
    """Records registrations and lets tests push results by hand."""

    def __init__(self, *, reject: bool = False) -> None:
        self.reject = reject
        self.callbacks: list[LocationCallback] = []
        self.requests: list[LocationRequest] = []

    async def request_updates(self, request: LocationRequest, callback: LocationCallback) -> None:
        if self.reject:
            raise TownpassPermissionError("denied")
        self.requests.append(request)
        self.callbacks.append(callback)

    async def remove_updates(self, callback: LocationCallback) -> None:
        self.callbacks.remove(callback)

    def push(self, *coords: tuple[float, float]) -> None:
        result = LocationResult(locations=[LocationFix(latitude=lat, longitude=lon) for lat, lon in coords])
        for callback in list(self.callbacks):
            callback(result)


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 1, 12, 0, 0, 250_000, tzinfo=UTC))
