"""Provider subscribing to location messages on an MQTT broker."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt
from pydantic import ValidationError

from townpass_location._redact import redact_for_log
from townpass_location.config import MqttSettings
from townpass_location.exceptions import TownpassProviderError
from townpass_location.models.location import LocationFix, LocationRequest
from townpass_location.providers.base import BaseLocationProvider


def decode_location_message(payload: bytes) -> LocationFix | None:
    """Decode an MQTT payload into a fix.

    Returns ``None`` for OwnTracks messages that are not location
    reports (``_type`` of ``transition``, ``lwt`` and so on).  Raises
    :class:`TownpassProviderError` for anything unparseable.
    """
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (ValueError, RecursionError) as exc:
        raise TownpassProviderError(f"MQTT payload is not JSON: {exc}", source="mqtt") from exc
    if not isinstance(parsed, dict):
        raise TownpassProviderError("MQTT payload decoded to non-object JSON", source="mqtt")
    message_type = parsed.get("_type")
    if message_type is not None and message_type != "location":
        return None
    try:
        return LocationFix.model_validate(parsed)
    except ValidationError as exc:
        raise TownpassProviderError(f"Invalid fix payload: {exc.errors()[0]['msg']}", source="mqtt") from exc


class MqttLocationProvider(BaseLocationProvider):
    """Threaded paho-mqtt subscriber that hands fixes to the asyncio loop."""

    def __init__(
        self,
        settings: MqttSettings,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(clock=clock)
        self._settings = settings
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT network loop is active."""
        return self._running

    def _handle_message(self, topic: str, payload: bytes) -> None:
        """Parse a message on the network thread and schedule delivery."""
        try:
            fix = decode_location_message(payload)
        except TownpassProviderError:
            self._logger.debug("MQTT payload parse failure topic=%s", topic, exc_info=True)
            return
        if fix is None:
            self._logger.debug("Ignoring non-location MQTT message topic=%s", topic)
            return
        self._logger.debug("MQTT fix topic=%s fix=%s", topic, redact_for_log(fix.raw))
        loop = self._loop
        if loop is None:
            return
        loop.call_soon_threadsafe(self._deliver, [fix])

    def _start_client(self) -> None:
        settings = self._settings
        self._logger.debug(
            "MQTT provider start requested host=%s port=%s topic=%s client_id=%s",
            settings.host,
            settings.port,
            settings.topic,
            settings.client_id,
        )
        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if settings.username:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        topic = settings.topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected; subscribing topic=%s", topic)
            c.subscribe(topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self._handle_message(msg.topic, msg.payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        try:
            client.connect(settings.host, settings.port, keepalive=settings.keepalive)
        except OSError as exc:
            raise TownpassProviderError(
                f"MQTT connect to {settings.host}:{settings.port} failed: {exc}",
                source="mqtt",
            ) from exc
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def _stop_client(self) -> None:
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    async def _start(self, request: LocationRequest) -> None:
        loop = asyncio.get_running_loop()
        self._loop = loop
        await loop.run_in_executor(None, self._start_client)

    async def _stop(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        await loop.run_in_executor(None, self._stop_client)
