"""Custom exception hierarchy for townpass_location."""

from __future__ import annotations


class TownpassError(Exception):
    """Base exception for all townpass_location errors."""


class TownpassConfigError(TownpassError):
    """Invalid or missing configuration."""


class TownpassStorageError(TownpassError):
    """Preferences store could not be written."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class TownpassPermissionError(TownpassError):
    """Location permission was denied when registering for updates."""


class TownpassProviderError(TownpassError):
    """A location provider failed to start or to deliver a fix."""

    def __init__(self, message: str, *, source: str = "") -> None:
        self.source = source
        super().__init__(message)


class TownpassMethodNotImplementedError(TownpassError):
    """The channel bridge received a command it does not handle.

    Mirrors the ``notImplemented`` result of a method channel; the
    application layer should treat it as "unsupported", not as a crash.
    """

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not implemented: {method!r}")
