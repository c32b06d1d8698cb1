"""Location permission state."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PermissionState(BaseModel):
    """Snapshot of the location permissions granted to the tracker."""

    model_config = ConfigDict(frozen=True)

    fine_location: bool = False
    background_location: bool = False

    def allows_tracking(self, *, require_background: bool = True) -> bool:
        """Whether location updates may be requested."""
        return self.fine_location and (self.background_location or not require_background)
