"""Tracker configuration for townpass_location."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from townpass_location._constants import (
    DEFAULT_MIN_UPDATE_DISTANCE_M,
    DEFAULT_MIN_UPDATE_INTERVAL_S,
    DEFAULT_UPDATE_INTERVAL_S,
    HISTORY_KEY,
    PREFERENCES_NAME,
)
from townpass_location.exceptions import TownpassConfigError

PROVIDER_KINDS: frozenset[str] = frozenset({"replay", "http", "mqtt"})


def env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, raw: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(raw)
    except ValueError as exc:
        raise TownpassConfigError(f"{env_key} must be numeric, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class MqttSettings:
    """Broker connection fields for the MQTT location provider.

    The default topic matches OwnTracks' ``owntracks/<user>/<device>``
    layout with wildcards, so any device publishing on the broker is
    picked up.
    """

    host: str = "localhost"
    port: int = 1883
    topic: str = "owntracks/+/+"
    username: str | None = None
    password: str | None = None
    client_id: str = "townpass-location"
    keepalive: int = 60
    tls: bool = False


@dataclasses.dataclass(frozen=True)
class TownpassConfig:
    """Tracker configuration.

    Parameters
    ----------
    storage_dir : Path or None
        Directory holding the preferences file.  ``None`` keeps
        preferences in memory only.
    preferences_name : str
        Name of the preferences file (without ``.json``).
    history_key : str
        Key under which the location history is stored.
    provider : str
        Location provider kind: ``"replay"``, ``"http"`` or ``"mqtt"``.
    update_interval : float
        Desired seconds between location updates.
    min_update_interval : float
        Fastest accepted rate, in seconds between delivered fixes.
    min_update_distance : float
        Minimum movement in metres before a new fix is delivered.
    wait_for_accurate_location : bool
        Hold the first fix until an accurate one is available.
    require_background_permission : bool
        Whether background location access is required in addition to
        fine location access before updates are requested.
    replay_file : Path or None
        JSON file with a list of fixes for the replay provider.
    replay_loop : bool
        Restart the replay list when it is exhausted.
    http_url : str or None
        Endpoint polled by the HTTP provider.
    http_timeout : float
        Per-request timeout for the HTTP provider.
    mqtt : MqttSettings
        Broker settings for the MQTT provider.
    """

    storage_dir: Path | None = None
    preferences_name: str = PREFERENCES_NAME
    history_key: str = HISTORY_KEY
    provider: str = "replay"
    update_interval: float = DEFAULT_UPDATE_INTERVAL_S
    min_update_interval: float = DEFAULT_MIN_UPDATE_INTERVAL_S
    min_update_distance: float = DEFAULT_MIN_UPDATE_DISTANCE_M
    wait_for_accurate_location: bool = False
    require_background_permission: bool = True
    replay_file: Path | None = None
    replay_loop: bool = False
    http_url: str | None = None
    http_timeout: float = 10.0
    mqtt: MqttSettings = dataclasses.field(default_factory=MqttSettings)

    def __post_init__(self) -> None:
        if self.provider not in PROVIDER_KINDS:
            raise TownpassConfigError(f"provider must be one of {sorted(PROVIDER_KINDS)}, got {self.provider!r}")
        if self.update_interval <= 0:
            raise TownpassConfigError("update_interval must be positive")
        if self.min_update_interval < 0 or self.min_update_distance < 0:
            raise TownpassConfigError("min_update_interval and min_update_distance must not be negative")
        if self.provider == "http" and not self.http_url:
            raise TownpassConfigError("http_url is required for the http provider")

    @classmethod
    def from_env(cls, **overrides: Any) -> TownpassConfig:
        """Create configuration from environment variables.

        Reads optional ``TOWNPASS_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TownpassConfig
            Populated configuration.
        """
        env = os.environ

        mqtt_kwargs: dict[str, Any] = {}
        _ENV_MQTT_MAP = {
            "TOWNPASS_MQTT_HOST": "host",
            "TOWNPASS_MQTT_TOPIC": "topic",
            "TOWNPASS_MQTT_USERNAME": "username",
            "TOWNPASS_MQTT_PASSWORD": "password",
            "TOWNPASS_MQTT_CLIENT_ID": "client_id",
        }
        for env_key, field_name in _ENV_MQTT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = val
        for env_key, field_name in (("TOWNPASS_MQTT_PORT", "port"), ("TOWNPASS_MQTT_KEEPALIVE", "keepalive")):
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = _env_number(env_key, val, int)
        if "TOWNPASS_MQTT_TLS" in env:
            mqtt_kwargs["tls"] = env_bool(env.get("TOWNPASS_MQTT_TLS"), False)

        # Allow overriding broker fields via a nested dict
        mqtt_overrides = overrides.pop("mqtt", None)
        if isinstance(mqtt_overrides, dict):
            mqtt_kwargs.update(mqtt_overrides)
        elif isinstance(mqtt_overrides, MqttSettings):
            mqtt_kwargs = dataclasses.asdict(mqtt_overrides)

        config_kwargs: dict[str, Any] = {"mqtt": MqttSettings(**mqtt_kwargs)}

        _ENV_CONFIG_MAP = {
            "TOWNPASS_PREFERENCES_NAME": "preferences_name",
            "TOWNPASS_HISTORY_KEY": "history_key",
            "TOWNPASS_PROVIDER": "provider",
            "TOWNPASS_HTTP_URL": "http_url",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in (("TOWNPASS_STORAGE_DIR", "storage_dir"), ("TOWNPASS_REPLAY_FILE", "replay_file")):
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = Path(val).expanduser()

        _ENV_FLOAT_MAP = {
            "TOWNPASS_UPDATE_INTERVAL": "update_interval",
            "TOWNPASS_MIN_UPDATE_INTERVAL": "min_update_interval",
            "TOWNPASS_MIN_UPDATE_DISTANCE": "min_update_distance",
            "TOWNPASS_HTTP_TIMEOUT": "http_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, float)

        _ENV_BOOL_MAP = {
            "TOWNPASS_WAIT_FOR_ACCURATE_LOCATION": ("wait_for_accurate_location", False),
            "TOWNPASS_REQUIRE_BACKGROUND_PERMISSION": ("require_background_permission", True),
            "TOWNPASS_REPLAY_LOOP": ("replay_loop", False),
        }
        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = env_bool(env.get(env_key), default)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
