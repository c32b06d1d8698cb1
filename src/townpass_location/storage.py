"""Durable key-value preferences storage.

The tracker persists its state as plain strings under string keys, the
same shape as a mobile "shared preferences" file.  Two backends are
provided: an in-memory dict for tests and embedding, and a JSON file
written atomically so a crash mid-write never leaves a truncated file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from townpass_location.exceptions import TownpassStorageError

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Structural preferences interface used by the history cache.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementations concrete.
    """

    def get_string(self, key: str, default: str | None = None) -> str | None: ...

    def put_string(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def contains(self, key: str) -> bool: ...


class MemoryPreferences:
    """Process-local preferences backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get_string(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def put_string(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def contains(self, key: str) -> bool:
        return key in self._values


class FilePreferences:
    """Preferences persisted as a JSON object in ``<directory>/<name>.json``.

    Every write rewrites the whole file through a temporary file and
    ``os.replace``.  Reads go to disk each time so that two instances
    pointed at the same file observe each other's writes.  Values that
    are not strings are invisible to ``get_string`` but survive rewrites.
    """

    def __init__(self, directory: Path, name: str) -> None:
        self._path = Path(directory) / f"{name}.json"

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError:
            _logger.warning("Preferences file %s unreadable; using empty preferences", self._path, exc_info=True)
            return {}
        try:
            data = json.loads(text)
        except (ValueError, RecursionError):
            _logger.warning("Preferences file %s is not valid JSON; using empty preferences", self._path)
            return {}
        if not isinstance(data, dict):
            _logger.warning("Preferences file %s is not a JSON object; using empty preferences", self._path)
            return {}
        return data

    def _dump(self, values: dict[str, Any]) -> None:
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(values, handle, separators=(",", ":"))
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise TownpassStorageError(f"Could not write preferences file {self._path}: {exc}") from exc

    def get_string(self, key: str, default: str | None = None) -> str | None:
        value = self._load().get(key)
        if value is None:
            return default
        if not isinstance(value, str):
            _logger.debug("Preference %s holds a non-string value; ignoring it", key)
            return default
        return value

    def put_string(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        try:
            self._dump(values)
        except TownpassStorageError as exc:
            exc.key = key
            raise

    def remove(self, key: str) -> None:
        values = self._load()
        if key in values:
            del values[key]
            self._dump(values)

    def contains(self, key: str) -> bool:
        return isinstance(self._load().get(key), str)
