"""Provider protocol and the shared callback bookkeeping."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from townpass_location.models.location import LocationFix, LocationRequest, LocationResult
from townpass_location.providers._filter import FixFilter

_logger = logging.getLogger(__name__)

LocationCallback = Callable[[LocationResult], None]


class LocationProvider(Protocol):
    """Structural interface the tracking service talks to."""

    async def request_updates(self, request: LocationRequest, callback: LocationCallback) -> None: ...

    async def remove_updates(self, callback: LocationCallback) -> None: ...


@dataclass(slots=True)
class _Registration:
    request: LocationRequest
    filter: FixFilter


class BaseLocationProvider:
    """Keeps the callback registry and fans fixes out through each filter.

    Subclasses implement :meth:`_start` and :meth:`_stop`, called when
    the first callback registers and when the last one is removed, and
    feed readings into :meth:`_deliver` on the event loop.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._registrations: dict[LocationCallback, _Registration] = {}

    @property
    def is_active(self) -> bool:
        return bool(self._registrations)

    async def request_updates(self, request: LocationRequest, callback: LocationCallback) -> None:
        first = not self._registrations
        self._registrations[callback] = _Registration(request=request, filter=FixFilter(request, clock=self._clock))
        if first:
            try:
                await self._start(request)
            except BaseException:
                self._registrations.pop(callback, None)
                raise

    async def remove_updates(self, callback: LocationCallback) -> None:
        if self._registrations.pop(callback, None) is None:
            return
        if not self._registrations:
            await self._stop()

    def _deliver(self, fixes: list[LocationFix]) -> None:
        for callback, registration in list(self._registrations.items()):
            accepted = [fix for fix in fixes if registration.filter.accept(fix)]
            if not accepted:
                continue
            try:
                callback(LocationResult(locations=accepted))
            except Exception:
                _logger.debug("Location callback failed", exc_info=True)

    async def _start(self, request: LocationRequest) -> None:
        raise NotImplementedError

    async def _stop(self) -> None:
        raise NotImplementedError
