"""Bind address, client limits and fixed routes of the clock UI server."""

from __future__ import annotations

from dataclasses import dataclass


class ServerConfigurationError(Exception):
    """Raised when UI server configuration is invalid."""


WEBSOCKET_PATH = "/ws"
HEALTHZ_PATH = "/healthz"
STATE_PATH = "/state"

MAX_CLIENTS_LIMIT = 64
COMMAND_BYTES_RANGE = (64, 65536)


@dataclass(frozen=True)
class UIServerConfig:
    """UI server settings checked once at startup.

    `max_command_bytes` doubles as the websocket frame size limit, so an
    oversized command closes its connection before it reaches the clock.
    """
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    max_clients: int = 8
    max_command_bytes: int = 4096

    def __post_init__(self) -> None:
        host = (self.host or "").strip()
        if not host:
            raise ServerConfigurationError("ui_server.host cannot be empty")
        object.__setattr__(self, "host", host)

        _require_between("ui_server.port", self.port, 1, 65535)
        _require_between("ui_server.max_clients", self.max_clients, 1, MAX_CLIENTS_LIMIT)
        low, high = COMMAND_BYTES_RANGE
        _require_between("ui_server.max_command_bytes", self.max_command_bytes, low, high)

    @property
    def websocket_path(self) -> str:
        return WEBSOCKET_PATH

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @classmethod
    def from_settings(cls, settings) -> "UIServerConfig":
        return cls(
            enabled=bool(settings.enabled),
            host=settings.host,
            port=settings.port,
            max_clients=settings.max_clients,
            max_command_bytes=settings.max_command_bytes,
        )


def _require_between(field: str, value: int, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ServerConfigurationError(f"{field} must be an integer, got: {value!r}")
    if not low <= value <= high:
        raise ServerConfigurationError(f"{field} must be in [{low}, {high}], got: {value}")
