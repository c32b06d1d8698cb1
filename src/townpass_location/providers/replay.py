"""Provider that replays a fixed list of fixes at the request interval."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from townpass_location.exceptions import TownpassProviderError
from townpass_location.models.location import LocationFix, LocationRequest
from townpass_location.providers.base import BaseLocationProvider

_logger = logging.getLogger(__name__)

_FIX_LIST = TypeAdapter(list[LocationFix])


class ReplayLocationProvider(BaseLocationProvider):
    """Deliver pre-recorded fixes, one every ``request.interval`` seconds."""

    def __init__(
        self,
        fixes: Iterable[LocationFix],
        *,
        loop_forever: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(clock=clock)
        self._fixes = list(fixes)
        self._loop_forever = loop_forever
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_file(cls, path: Path, *, loop_forever: bool = False) -> ReplayLocationProvider:
        """Load fixes from a JSON array file."""
        try:
            fixes = _FIX_LIST.validate_json(Path(path).read_bytes())
        except (OSError, ValidationError, json.JSONDecodeError) as exc:
            raise TownpassProviderError(f"Could not load replay file {path}: {exc}", source="replay") from exc
        return cls(fixes, loop_forever=loop_forever)

    async def _run(self, interval: float) -> None:
        while True:
            for fix in self._fixes:
                self._deliver([fix])
                await asyncio.sleep(interval)
            if not self._loop_forever or not self._fixes:
                _logger.debug("Replay finished after %d fixes", len(self._fixes))
                return

    async def _start(self, request: LocationRequest) -> None:
        self._task = asyncio.create_task(self._run(request.interval))

    async def _stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        if task.done():
            if not task.cancelled() and task.exception() is not None:
                _logger.warning("Replay task had stopped", exc_info=task.exception())
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
