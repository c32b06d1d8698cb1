"""Delivery filter applying a request's rate and distance limits."""

from __future__ import annotations

import math
import time
from collections.abc import Callable

from townpass_location._constants import EARTH_RADIUS_M
from townpass_location.models.location import LocationFix, LocationRequest

#: Fixes reporting an accuracy radius at or below this count as accurate.
ACCURATE_FIX_RADIUS_M = 50.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in metres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


class FixFilter:
    """Decide which incoming fixes reach a registered callback.

    A fix passes when at least ``min_update_interval`` seconds have gone
    by since the last delivered fix and it is at least
    ``min_update_distance`` metres away from it.  With
    ``wait_for_accurate_location`` set, nothing passes until a fix with a
    known accuracy of :data:`ACCURATE_FIX_RADIUS_M` or better arrives.
    """

    def __init__(self, request: LocationRequest, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._request = request
        self._clock = clock
        self._last_fix: LocationFix | None = None
        self._last_at: float | None = None
        self._accurate_seen = not request.wait_for_accurate_location

    def accept(self, fix: LocationFix) -> bool:
        if not self._accurate_seen:
            if fix.accuracy is None or fix.accuracy > ACCURATE_FIX_RADIUS_M:
                return False
            self._accurate_seen = True

        now = self._clock()
        if self._last_fix is not None and self._last_at is not None:
            if now - self._last_at < self._request.min_update_interval:
                return False
            distance = haversine_m(
                self._last_fix.latitude,
                self._last_fix.longitude,
                fix.latitude,
                fix.longitude,
            )
            if distance < self._request.min_update_distance:
                return False

        self._last_fix = fix
        self._last_at = now
        return True
