"""Client configuration for sellertrack."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from sellertrack import _constants as c
from sellertrack.exceptions import TrackingConfigError


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise TrackingConfigError(f"{name} must be a number, got {value!r}") from exc


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise TrackingConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class TrackingConfig:
    """Client configuration.

    Parameters
    ----------
    ws_base_url : str
        Base URL of the users service WebSocket endpoint. The tracking
        path ``/tracking/ws/track/<seller>/<shopkeeper>`` is appended.
    api_base_url : str
        REST gateway base URL (geocoding lives under ``/users/geocoding``).
    report_base_url : str
        Reports service base URL.
    heartbeat_interval : float
        Seconds between ``{"type": "ping"}`` keep-alive frames.
    max_reconnect_attempts : int
        Automatic reconnect attempts before the session gives up.
    reconnect_base_delay : float
        Delay in seconds before the first reconnect attempt; doubles
        on each consecutive failure.
    reconnect_max_delay : float
        Upper bound on any reconnect delay, in seconds.
    http_timeout : float
        Total timeout for REST calls, in seconds.
    token : str or None
        Bearer token for REST calls. Takes precedence over ``token_file``.
    token_file : Path or None
        Persisted credentials file read by :class:`~sellertrack.credentials.CredentialStore`.
    """

    ws_base_url: str = c.WS_BASE_URL
    api_base_url: str = c.API_BASE_URL
    report_base_url: str = c.REPORT_BASE_URL
    heartbeat_interval: float = c.HEARTBEAT_INTERVAL
    max_reconnect_attempts: int = c.MAX_RECONNECT_ATTEMPTS
    reconnect_base_delay: float = c.RECONNECT_BASE_DELAY
    reconnect_max_delay: float = c.RECONNECT_MAX_DELAY
    http_timeout: float = c.HTTP_TIMEOUT
    token: str | None = None
    token_file: Path | None = None

    def __post_init__(self) -> None:
        if self.heartbeat_interval <= 0:
            raise TrackingConfigError("heartbeat_interval must be positive")
        if self.max_reconnect_attempts < 0:
            raise TrackingConfigError("max_reconnect_attempts must not be negative")
        if self.reconnect_base_delay < 0 or self.reconnect_max_delay < 0:
            raise TrackingConfigError("reconnect delays must not be negative")
        if self.reconnect_max_delay < self.reconnect_base_delay:
            raise TrackingConfigError("reconnect_max_delay must be >= reconnect_base_delay")
        if self.http_timeout <= 0:
            raise TrackingConfigError("http_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackingConfig:
        """Create configuration from ``SELLERTRACK_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "SELLERTRACK_WS_URL": "ws_base_url",
            "SELLERTRACK_API_URL": "api_base_url",
            "SELLERTRACK_REPORT_URL": "report_base_url",
            "SELLERTRACK_TOKEN": "token",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip().rstrip("/") if field_name.endswith("_url") else val

        _ENV_FLOAT_MAP = {
            "SELLERTRACK_HEARTBEAT_INTERVAL": "heartbeat_interval",
            "SELLERTRACK_RECONNECT_BASE_DELAY": "reconnect_base_delay",
            "SELLERTRACK_RECONNECT_MAX_DELAY": "reconnect_max_delay",
            "SELLERTRACK_HTTP_TIMEOUT": "http_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        attempts_env = env.get("SELLERTRACK_MAX_RECONNECT_ATTEMPTS")
        if attempts_env is not None and "max_reconnect_attempts" not in overrides:
            config_kwargs["max_reconnect_attempts"] = _env_int("SELLERTRACK_MAX_RECONNECT_ATTEMPTS", attempts_env)

        token_file_env = env.get("SELLERTRACK_TOKEN_FILE")
        if token_file_env and "token_file" not in overrides:
            config_kwargs["token_file"] = Path(token_file_env).expanduser()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
