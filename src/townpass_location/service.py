"""Background location tracking service.

Registers for location updates with a provider, records every fix in the
rolling history and forwards it to the channel bridge.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from townpass_location._redact import redact_for_log
from townpass_location.exceptions import TownpassPermissionError, TownpassProviderError, TownpassStorageError
from townpass_location.history import LocationHistoryCache
from townpass_location.models.location import LocationRequest, LocationResult
from townpass_location.models.sample import LocationSample, format_timestamp
from townpass_location.permissions import PermissionChecker
from townpass_location.providers.base import LocationProvider

_logger = logging.getLogger(__name__)

LocationListener = Callable[[dict[str, Any]], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LocationTrackingService:
    """Foreground tracking service.

    ``start`` leaves the service running even when permissions
    are missing: in that case no updates are requested and nothing is
    recorded until ``stop`` and ``start`` are issued again after the
    grant.
    """

    def __init__(
        self,
        history: LocationHistoryCache,
        provider: LocationProvider,
        permissions: PermissionChecker,
        *,
        request: LocationRequest | None = None,
        on_location: LocationListener | None = None,
        require_background_permission: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._history = history
        self._provider = provider
        self._permissions = permissions
        self._request = request or LocationRequest()
        self._require_background = require_background_permission
        self._clock = clock
        self.on_location = on_location
        self._running = False
        self._updates_registered = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def receiving_updates(self) -> bool:
        """Whether the provider accepted the update registration."""
        return self._updates_registered

    def has_location_permission(self) -> bool:
        state = self._permissions.check()
        allowed = state.allows_tracking(require_background=self._require_background)
        _logger.debug(
            "Location permission fine=%s background=%s required_background=%s",
            state.fine_location,
            state.background_location,
            self._require_background,
        )
        return allowed

    async def start(self) -> None:
        """Enter the running state and request location updates.

        A provider that cannot start leaves the service stopped and the
        :class:`TownpassProviderError` propagates.
        """
        _logger.debug("Tracking service start")
        self._running = True
        try:
            await self._request_location_updates()
        except TownpassProviderError:
            self._running = False
            raise

    async def stop(self) -> None:
        """Remove location updates and leave the running state."""
        _logger.debug("Tracking service stop")
        if self._updates_registered:
            await self._provider.remove_updates(self.on_location_result)
            self._updates_registered = False
        self._running = False

    async def _request_location_updates(self) -> None:
        if self._updates_registered:
            return
        if not self.has_location_permission():
            _logger.warning("Missing location permission; location updates not requested")
            return
        try:
            await self._provider.request_updates(self._request, self.on_location_result)
        except TownpassPermissionError as exc:
            _logger.warning("Location update request rejected: %s", exc)
            return
        self._updates_registered = True
        _logger.debug("Location updates registered interval=%s", self._request.interval)

    def on_location_result(self, result: LocationResult) -> None:
        """Record and emit the newest fix of a provider batch."""
        _logger.debug("Location result with %d locations", len(result.locations))
        location = result.last_location
        if location is None:
            return
        captured_at = format_timestamp(self._clock())
        self._save_location(location.latitude, location.longitude, captured_at)
        self._emit_location(location.latitude, location.longitude, captured_at)

    def _save_location(self, latitude: float, longitude: float, captured_at: str) -> None:
        try:
            self._history.record_sample(latitude, longitude, captured_at)
        except TownpassStorageError:
            _logger.warning("Could not persist location sample", exc_info=True)

    def _emit_location(self, latitude: float, longitude: float, captured_at: str) -> None:
        listener = self.on_location
        if listener is None:
            return
        payload = LocationSample(latitude=latitude, longitude=longitude, captured_at=captured_at).to_payload()
        try:
            listener(payload)
        except Exception:
            _logger.debug("Location listener failed for %s", redact_for_log(payload), exc_info=True)
