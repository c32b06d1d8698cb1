"""Location permission checks."""

from __future__ import annotations

import os
from typing import Protocol

from townpass_location.config import env_bool
from townpass_location.models.permissions import PermissionState


class PermissionChecker(Protocol):
    def check(self) -> PermissionState: ...


class StaticPermissionChecker:
    """Returns a fixed permission state; ``grant``/``revoke`` change it."""

    def __init__(self, *, fine_location: bool = True, background_location: bool = True) -> None:
        self._state = PermissionState(fine_location=fine_location, background_location=background_location)

    def check(self) -> PermissionState:
        return self._state

    def grant(self, *, background: bool = True) -> None:
        self._state = PermissionState(fine_location=True, background_location=background)

    def revoke(self) -> None:
        self._state = PermissionState()


class EnvPermissionChecker:
    """Reads grants from ``TOWNPASS_PERMISSION_FINE`` / ``TOWNPASS_PERMISSION_BACKGROUND``.

    Re-read on every check so grants take effect without a restart.
    Both default to granted.
    """

    def check(self) -> PermissionState:
        return PermissionState(
            fine_location=env_bool(os.environ.get("TOWNPASS_PERMISSION_FINE"), True),
            background_location=env_bool(os.environ.get("TOWNPASS_PERMISSION_BACKGROUND"), True),
        )
