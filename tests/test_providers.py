from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp
import pytest

from townpass_location.config import MqttSettings
from townpass_location.exceptions import TownpassProviderError
from townpass_location.models.location import LocationFix, LocationRequest, LocationResult
from townpass_location.providers._filter import FixFilter, haversine_m
from townpass_location.providers.http import HttpLocationProvider, parse_fixes
from townpass_location.providers.mqtt import MqttLocationProvider, decode_location_message
from townpass_location.providers.replay import ReplayLocationProvider


class _Ticker:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _fix(lat: float, lon: float, accuracy: float | None = None) -> LocationFix:
    return LocationFix(latitude=lat, longitude=lon, accuracy=accuracy)


# ------------------------------------------------------------------
# Filter
# ------------------------------------------------------------------


def test_haversine_one_degree_of_latitude() -> None:
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)
    assert haversine_m(25.0, 121.0, 25.0, 121.0) == 0.0


def test_filter_enforces_min_update_interval() -> None:
    ticker = _Ticker()
    fix_filter = FixFilter(LocationRequest(min_update_interval=5.0), clock=ticker)

    assert fix_filter.accept(_fix(0, 0))
    ticker.now = 4.9
    assert not fix_filter.accept(_fix(1, 1))
    ticker.now = 5.0
    assert fix_filter.accept(_fix(1, 1))


def test_filter_enforces_min_update_distance() -> None:
    ticker = _Ticker()
    fix_filter = FixFilter(LocationRequest(min_update_interval=0.0, min_update_distance=100.0), clock=ticker)

    assert fix_filter.accept(_fix(25.0, 121.0))
    # About 11 m north.
    assert not fix_filter.accept(_fix(25.0001, 121.0))
    # About 1.1 km north.
    assert fix_filter.accept(_fix(25.01, 121.0))


def test_filter_waits_for_accurate_fix() -> None:
    fix_filter = FixFilter(
        LocationRequest(min_update_interval=0.0, wait_for_accurate_location=True),
        clock=_Ticker(),
    )

    assert not fix_filter.accept(_fix(0, 0))
    assert not fix_filter.accept(_fix(0, 0, accuracy=500.0))
    assert fix_filter.accept(_fix(0, 0, accuracy=10.0))
    assert fix_filter.accept(_fix(0, 0, accuracy=500.0))


# ------------------------------------------------------------------
# Replay
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_replay_delivers_fixes_in_order() -> None:
    provider = ReplayLocationProvider([_fix(1, 1), _fix(2, 2), _fix(3, 3)])
    received: list[LocationResult] = []

    await provider.request_updates(LocationRequest(interval=0.001, min_update_interval=0.0), received.append)
    for _ in range(200):
        if len(received) == 3:
            break
        await asyncio.sleep(0.005)
    await provider.remove_updates(received.append)

    assert [r.last_location.latitude for r in received if r.last_location] == [1.0, 2.0, 3.0]
    assert not provider.is_active


@pytest.mark.asyncio
async def test_remove_unknown_callback_is_noop() -> None:
    provider = ReplayLocationProvider([])
    await provider.remove_updates(lambda _result: None)
    assert not provider.is_active


def test_replay_from_file(tmp_path: Any) -> None:
    path = tmp_path / "fixes.json"
    path.write_text(json.dumps([{"lat": 1, "lon": 2}, {"latitude": 3, "longitude": 4}]))

    provider = ReplayLocationProvider.from_file(path)

    assert [(f.latitude, f.longitude) for f in provider._fixes] == [(1.0, 2.0), (3.0, 4.0)]  # noqa: SLF001


def test_replay_from_invalid_file(tmp_path: Any) -> None:
    path = tmp_path / "fixes.json"
    path.write_text("[{]")

    with pytest.raises(TownpassProviderError):
        ReplayLocationProvider.from_file(path)


# ------------------------------------------------------------------
# HTTP
# ------------------------------------------------------------------


class _FakeResponse:
    def __init__(self, status: int, text: str | bytes) -> None:
        self.status = status
        self._body = text.encode() if isinstance(text, str) else text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def text(self) -> str:
        return self._body.decode("utf-8")


class _FakeSession:
    def __init__(self, *responses: _FakeResponse | Exception) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"url": url, **kwargs})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_parse_fixes_accepts_object_list_and_wrapper() -> None:
    assert len(parse_fixes({"lat": 1, "lon": 2})) == 1
    assert len(parse_fixes([{"lat": 1, "lon": 2}, {"lat": 3, "lon": 4}])) == 2
    assert len(parse_fixes({"locations": [{"lat": 1, "lon": 2}]})) == 1
    with pytest.raises(TownpassProviderError):
        parse_fixes({"lat": "x"})


@pytest.mark.asyncio
async def test_http_fetch_fixes_passes_priority() -> None:
    session = _FakeSession(_FakeResponse(200, json.dumps({"latitude": 25.0, "longitude": 121.5, "accuracy": 5})))
    provider = HttpLocationProvider(session, "http://gps.local/fix")  # type: ignore[arg-type]

    fixes = await provider.fetch_fixes(LocationRequest())

    assert fixes[0].accuracy == 5.0
    assert session.calls[0]["params"] == {"priority": "high_accuracy"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse(503, "busy"),
        _FakeResponse(200, "not json"),
        _FakeResponse(200, b"\xff\xfe\xfa"),
        aiohttp.ClientConnectionError("refused"),
    ],
)
async def test_http_fetch_failures_raise_provider_error(response: Any) -> None:
    provider = HttpLocationProvider(_FakeSession(response), "http://gps.local/fix")  # type: ignore[arg-type]

    with pytest.raises(TownpassProviderError) as exc_info:
        await provider.fetch_fixes()

    assert exc_info.value.source == "http"


@pytest.mark.asyncio
async def test_http_poll_skips_failures_and_keeps_polling() -> None:
    session = _FakeSession(
        _FakeResponse(500, "oops"),
        _FakeResponse(200, json.dumps({"lat": 1, "lon": 2})),
        *[_FakeResponse(200, json.dumps({"lat": 1, "lon": 2})) for _ in range(500)],
    )
    provider = HttpLocationProvider(session, "http://gps.local/fix")  # type: ignore[arg-type]
    received: list[LocationResult] = []

    await provider.request_updates(LocationRequest(interval=0.001, min_update_interval=60.0), received.append)
    for _ in range(200):
        if received:
            break
        await asyncio.sleep(0.005)
    await provider.remove_updates(received.append)

    assert len(received) == 1


@pytest.mark.asyncio
async def test_http_poll_survives_undecodable_body() -> None:
    session = _FakeSession(
        _FakeResponse(200, b"\xff\xfe\xfa"),
        *[_FakeResponse(200, json.dumps({"lat": 1, "lon": 2})) for _ in range(500)],
    )
    provider = HttpLocationProvider(session, "http://gps.local/fix")  # type: ignore[arg-type]
    received: list[LocationResult] = []

    await provider.request_updates(LocationRequest(interval=0.001, min_update_interval=60.0), received.append)
    for _ in range(200):
        if received:
            break
        await asyncio.sleep(0.005)
    await provider.remove_updates(received.append)

    assert len(received) == 1
    assert len(session.calls) >= 2


@pytest.mark.asyncio
async def test_http_stop_tolerates_failed_poll_task() -> None:
    session = _FakeSession(RuntimeError("boom"))
    provider = HttpLocationProvider(session, "http://gps.local/fix")  # type: ignore[arg-type]
    received: list[LocationResult] = []

    await provider.request_updates(LocationRequest(interval=0.001), received.append)
    for _ in range(100):
        await asyncio.sleep(0)

    await provider.remove_updates(received.append)

    assert not provider.is_active
    assert received == []


# ------------------------------------------------------------------
# MQTT
# ------------------------------------------------------------------


def test_decode_owntracks_location() -> None:
    fix = decode_location_message(b'{"_type": "location", "lat": 25.03, "lon": 121.56, "tst": 1767225600}')
    assert fix is not None
    assert fix.latitude == 25.03


def test_decode_ignores_non_location_messages() -> None:
    assert decode_location_message(b'{"_type": "transition", "event": "enter"}') is None


@pytest.mark.parametrize("payload", [b"\xff\xfe", b"[1, 2]", b"{not json", b'{"lat": 100, "lon": 0}', b"[" * 100_000])
def test_decode_rejects_bad_payloads(payload: bytes) -> None:
    with pytest.raises(TownpassProviderError):
        decode_location_message(payload)


@pytest.mark.asyncio
async def test_mqtt_message_is_delivered_on_loop() -> None:
    provider = MqttLocationProvider(MqttSettings(), loop=asyncio.get_running_loop())
    received: list[LocationResult] = []
    # Register without connecting to a broker.
    provider._start = _no_op_start  # type: ignore[method-assign]  # noqa: SLF001
    await provider.request_updates(LocationRequest(min_update_interval=0.0), received.append)

    provider._handle_message("owntracks/me/phone", b'{"_type": "location", "lat": 1.5, "lon": 2.5}')  # noqa: SLF001
    provider._handle_message("owntracks/me/phone", b"garbage")  # noqa: SLF001
    await asyncio.sleep(0)

    assert len(received) == 1
    assert received[0].last_location is not None
    assert received[0].last_location.longitude == 2.5


async def _no_op_start(_request: LocationRequest) -> None:
    return None
