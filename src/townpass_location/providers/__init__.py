"""Location providers.

Each provider pushes :class:`~townpass_location.models.LocationResult`
batches to registered callbacks on the asyncio loop, honouring the
:class:`~townpass_location.models.LocationRequest` it was registered with.
"""

from townpass_location.providers.base import BaseLocationProvider, LocationCallback, LocationProvider
from townpass_location.providers.http import HttpLocationProvider
from townpass_location.providers.mqtt import MqttLocationProvider
from townpass_location.providers.replay import ReplayLocationProvider

__all__ = [
    "BaseLocationProvider",
    "HttpLocationProvider",
    "LocationCallback",
    "LocationProvider",
    "MqttLocationProvider",
    "ReplayLocationProvider",
]
