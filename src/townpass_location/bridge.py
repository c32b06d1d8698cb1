"""Command/event bridge between the application layer and the tracker.

Inbound, the bridge answers three commands (``start``, ``stop``,
``isRunning``).  Outbound, it pushes location payloads to at most one
listener; a new listener replaces the old one and cancelling clears it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

from townpass_location._constants import LOCATION_EVENT_CHANNEL, LOCATION_METHOD_CHANNEL
from townpass_location._redact import redact_for_log
from townpass_location.exceptions import TownpassMethodNotImplementedError
from townpass_location.service import LocationTrackingService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodCall:
    """An inbound command."""

    method: str
    arguments: Any = None


class EventSink(Protocol):
    """Receiver of outbound events."""

    def success(self, event: Any) -> None: ...

    def error(self, code: str, message: str | None = None, details: Any = None) -> None: ...

    def end_of_stream(self) -> None: ...


@dataclass(frozen=True)
class StreamError:
    """An error event delivered through a :class:`LocationEventStream`."""

    code: str
    message: str | None = None
    details: Any = None


_END = object()


class LocationEventStream:
    """Queue-backed sink consumed with ``async for``.

    Iteration ends when the stream is replaced by a newer subscription
    or cancelled.  Error events are yielded as :class:`StreamError`.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    def success(self, event: Any) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def error(self, code: str, message: str | None = None, details: Any = None) -> None:
        if not self._closed:
            self._queue.put_nowait(StreamError(code=code, message=message, details=details))

    def end_of_stream(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_END)

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[Any]:
        return self

    async def __anext__(self) -> Any:
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        return item


class ChannelBridge:
    """Dispatch commands to the tracking service and relay its updates."""

    method_channel = LOCATION_METHOD_CHANNEL
    event_channel = LOCATION_EVENT_CHANNEL

    def __init__(self, service: LocationTrackingService) -> None:
        self._service = service
        self._event_sink: EventSink | None = None
        service.on_location = self.emit_location_update

    @property
    def event_sink(self) -> EventSink | None:
        return self._event_sink

    # ------------------------------------------------------------------
    # Inbound commands
    # ------------------------------------------------------------------

    async def handle(self, call: MethodCall | str) -> Any:
        """Run a command and return its result.

        Raises :class:`TownpassMethodNotImplementedError` for unknown
        commands.
        """
        if isinstance(call, str):
            call = MethodCall(call)
        _logger.debug("Method call: %s", call.method)
        if call.method == "start":
            await self._start_location_service()
            return None
        if call.method == "stop":
            await self._stop_location_service()
            return None
        if call.method == "isRunning":
            return self._service.is_running
        raise TownpassMethodNotImplementedError(call.method)

    async def _start_location_service(self) -> None:
        if self._service.is_running:
            _logger.debug("Location service already running")
            return
        await self._service.start()
        _logger.debug("Location service started")

    async def _stop_location_service(self) -> None:
        await self._service.stop()
        _logger.debug("Location service stopped")

    # ------------------------------------------------------------------
    # Outbound events
    # ------------------------------------------------------------------

    def on_listen(self, sink: EventSink) -> None:
        """Attach *sink* as the only listener, replacing any previous one."""
        _logger.debug("Event listener attached")
        self._event_sink = sink

    def on_cancel(self) -> None:
        _logger.debug("Event listener cancelled")
        self._event_sink = None

    def subscribe(self) -> LocationEventStream:
        """Attach a new :class:`LocationEventStream`, ending the previous one if it was a stream."""
        previous = self._event_sink
        stream = LocationEventStream()
        self.on_listen(stream)
        if isinstance(previous, LocationEventStream):
            previous.end_of_stream()
        return stream

    def cancel(self) -> None:
        """Detach the current listener, ending it if it is a stream."""
        previous = self._event_sink
        self.on_cancel()
        if isinstance(previous, LocationEventStream):
            previous.end_of_stream()

    def emit_location_update(self, payload: dict[str, Any]) -> None:
        sink = self._event_sink
        if sink is not None:
            sink.success(payload)
        _logger.debug("Emit location: %s", redact_for_log(payload))
