"""High-level async entry point wiring storage, provider, service and bridge."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from townpass_location.bridge import ChannelBridge, LocationEventStream, MethodCall
from townpass_location.config import TownpassConfig
from townpass_location.exceptions import TownpassError
from townpass_location.history import LocationHistoryCache
from townpass_location.models.location import LocationRequest
from townpass_location.permissions import EnvPermissionChecker, PermissionChecker
from townpass_location.providers.base import LocationProvider
from townpass_location.providers.http import HttpLocationProvider
from townpass_location.providers.mqtt import MqttLocationProvider
from townpass_location.providers.replay import ReplayLocationProvider
from townpass_location.service import LocationTrackingService
from townpass_location.storage import FilePreferences, KeyValueStore, MemoryPreferences

_logger = logging.getLogger(__name__)


class LocationTracker:
    """Async facade over the tracking components.

    Usage::

        async with LocationTracker(TownpassConfig.from_env()) as tracker:
            stream = tracker.subscribe()
            await tracker.handle("start")
            async for update in stream:
                ...
    """

    def __init__(
        self,
        config: TownpassConfig,
        *,
        store: KeyValueStore | None = None,
        provider: LocationProvider | None = None,
        permissions: PermissionChecker | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._provider = provider
        self._permissions = permissions
        self._external_session = http_session is not None
        self._http_session = http_session
        self._history: LocationHistoryCache | None = None
        self._service: LocationTrackingService | None = None
        self._bridge: ChannelBridge | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LocationTracker:
        store = self._store or self._build_store()
        provider = self._provider or self._build_provider()
        self._history = LocationHistoryCache(store, key=self._config.history_key)
        self._service = LocationTrackingService(
            self._history,
            provider,
            self._permissions or EnvPermissionChecker(),
            request=LocationRequest.from_config(self._config),
            require_background_permission=self._config.require_background_permission,
        )
        self._bridge = ChannelBridge(self._service)
        _logger.debug("Tracker ready provider=%s", type(provider).__name__)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        try:
            if self._service is not None and self._service.is_running:
                await self._service.stop()
        finally:
            if self._bridge is not None:
                self._bridge.cancel()
            if not self._external_session and self._http_session is not None:
                await self._http_session.close()
                self._http_session = None
            self._service = None
            self._bridge = None
            self._history = None

    def _build_store(self) -> KeyValueStore:
        if self._config.storage_dir is None:
            return MemoryPreferences()
        return FilePreferences(self._config.storage_dir, self._config.preferences_name)

    def _build_provider(self) -> LocationProvider:
        config = self._config
        if config.provider == "http":
            assert config.http_url is not None  # noqa: S101
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            return HttpLocationProvider(self._http_session, config.http_url, timeout=config.http_timeout)
        if config.provider == "mqtt":
            return MqttLocationProvider(config.mqtt, logger=_logger)
        if config.replay_file is not None:
            return ReplayLocationProvider.from_file(config.replay_file, loop_forever=config.replay_loop)
        return ReplayLocationProvider([], loop_forever=config.replay_loop)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _require(self, component: Any) -> Any:
        if component is None:
            raise TownpassError("Tracker not initialized. Use 'async with LocationTracker(...) as tracker:'")
        return component

    @property
    def bridge(self) -> ChannelBridge:
        bridge: ChannelBridge = self._require(self._bridge)
        return bridge

    @property
    def history(self) -> LocationHistoryCache:
        history: LocationHistoryCache = self._require(self._history)
        return history

    @property
    def service(self) -> LocationTrackingService:
        service: LocationTrackingService = self._require(self._service)
        return service

    async def handle(self, method: str, arguments: Any = None) -> Any:
        """Send a command through the bridge."""
        return await self.bridge.handle(MethodCall(method, arguments))

    def subscribe(self) -> LocationEventStream:
        """Subscribe to location updates (replaces any earlier subscriber)."""
        return self.bridge.subscribe()
