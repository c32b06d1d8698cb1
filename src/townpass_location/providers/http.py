"""Provider polling a JSON location endpoint over HTTP."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp
from pydantic import ValidationError

from townpass_location._redact import redact_for_log
from townpass_location.exceptions import TownpassProviderError
from townpass_location.models.location import LocationFix, LocationRequest
from townpass_location.providers.base import BaseLocationProvider

_logger = logging.getLogger(__name__)


def parse_fixes(body: Any) -> list[LocationFix]:
    """Parse an endpoint body: one fix object, a list of them, or ``{"locations": [...]}``."""
    if isinstance(body, dict) and isinstance(body.get("locations"), list):
        body = body["locations"]
    items = body if isinstance(body, list) else [body]
    fixes: list[LocationFix] = []
    for item in items:
        try:
            fixes.append(LocationFix.model_validate(item))
        except ValidationError as exc:
            raise TownpassProviderError(f"Invalid fix payload: {exc.errors()[0]['msg']}", source="http") from exc
    return fixes


class HttpLocationProvider(BaseLocationProvider):
    """Poll *url* every ``request.interval`` seconds.

    Failed polls are logged and skipped; the next poll happens on
    schedule.  The caller owns *session*.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(clock=clock)
        self._http = session
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._task: asyncio.Task[None] | None = None

    async def fetch_fixes(self, request: LocationRequest | None = None) -> list[LocationFix]:
        """Fetch and parse one reading from the endpoint."""
        params = {"priority": request.priority.value} if request is not None else None
        try:
            async with self._http.get(self._url, params=params, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise TownpassProviderError(f"HTTP {resp.status} from {self._url}: {text[:200]}", source="http")
        except TownpassProviderError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TownpassProviderError(f"Request to {self._url} failed: {exc}", source="http") from exc
        except UnicodeDecodeError as exc:
            raise TownpassProviderError(f"Undecodable body from {self._url}: {exc}", source="http") from exc

        try:
            body = json.loads(text)
        except (ValueError, RecursionError) as exc:
            raise TownpassProviderError(f"Invalid JSON from {self._url}: {text[:200]}", source="http") from exc

        _logger.debug("GET %s -> %s", self._url, redact_for_log(body))
        return parse_fixes(body)

    async def _run(self, request: LocationRequest) -> None:
        while True:
            try:
                fixes = await self.fetch_fixes(request)
            except TownpassProviderError as exc:
                _logger.debug("Location poll failed: %s", exc)
            else:
                self._deliver(fixes)
            await asyncio.sleep(request.interval)

    async def _start(self, request: LocationRequest) -> None:
        self._task = asyncio.create_task(self._run(request))

    async def _stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        if task.done():
            if not task.cancelled() and task.exception() is not None:
                _logger.warning("Location poll task had stopped", exc_info=task.exception())
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
