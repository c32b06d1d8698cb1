"""Rolling location history kept in the preferences store.

The whole history lives under one key as a JSON array of
``{latitude, longitude, capturedAt}`` objects in capture order.  Eviction
is lazy: stale entries are only removed when a new sample is recorded,
so there is no background sweep and no separate delete path.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from townpass_location._constants import HISTORY_KEY, RETENTION_WINDOW
from townpass_location.models.sample import LocationSample, parse_timestamp
from townpass_location.storage import KeyValueStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def _decode_entries(raw: str | None) -> list[Any]:
    """Decode the stored array; anything unreadable counts as empty."""
    if not raw:
        return []
    try:
        decoded = json.loads(raw)
    except (ValueError, RecursionError):
        _logger.debug("Stored history is not valid JSON; starting from empty")
        return []
    if not isinstance(decoded, list):
        _logger.debug("Stored history is not a JSON array; starting from empty")
        return []
    return decoded


def _to_samples(entries: list[Any]) -> list[LocationSample]:
    samples: list[LocationSample] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            samples.append(LocationSample.model_validate(entry))
        except ValidationError:
            _logger.debug("Skipping unreadable history entry %r", entry)
    return samples


class LocationHistoryCache:
    """Trailing window of location samples persisted under a single key.

    Parameters
    ----------
    store : KeyValueStore
        Preferences backend.
    key : str
        Key holding the serialized history.
    retention : timedelta
        Samples older than this are evicted on the next write.  The
        comparison is inclusive at millisecond resolution.
    clock : callable
        Returns the current aware UTC datetime.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = HISTORY_KEY,
        retention: timedelta = RETENTION_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._key = key
        self._retention = retention
        self._clock = clock

    @property
    def key(self) -> str:
        return self._key

    @property
    def retention(self) -> timedelta:
        return self._retention

    def _is_fresh(self, entry: Any, now: datetime) -> bool:
        if not isinstance(entry, dict):
            return False
        captured = parse_timestamp(entry.get("capturedAt"))
        if captured is None:
            return False
        return now - captured <= self._retention

    def record_sample(self, latitude: float, longitude: float, captured_at: str) -> list[LocationSample]:
        """Evict stale entries, append a sample and write the history back.

        Returns the stored history after the write.  Entries that survive
        eviction are written back exactly as they were read.

        Raises :class:`~townpass_location.exceptions.TownpassStorageError`
        if the store cannot be written.
        """
        entries = _decode_entries(self._store.get_string(self._key, "[]"))
        now = _truncate_to_millis(self._clock())
        kept = [entry for entry in entries if self._is_fresh(entry, now)]
        kept.append(
            {
                "latitude": latitude,
                "longitude": longitude,
                "capturedAt": captured_at,
            }
        )
        self._store.put_string(self._key, json.dumps(kept, separators=(",", ":")))
        _logger.debug("Recorded location sample; total=%d evicted=%d", len(kept), len(entries) + 1 - len(kept))
        return _to_samples(kept)

    def samples(self) -> list[LocationSample]:
        """Return the stored history as-is, without evicting anything."""
        return _to_samples(_decode_entries(self._store.get_string(self._key)))
