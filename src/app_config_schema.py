"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_CONFIG_FILE = "config.toml"

NOTIFICATION_BACKEND_DESKTOP = "desktop"
NOTIFICATION_BACKEND_LOG = "log"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class ClockDefaults:
    """Startup defaults for the session clock from `[clock]`.

    These apply only to keys missing from the persisted settings file.
    """
    work_minutes: int = 25
    break_minutes: int = 5
    auto_advance: bool = False
    sound_enabled: bool = True
    bgm_enabled: bool = False
    autostart: bool = False

    @property
    def work_duration_seconds(self) -> int:
        return self.work_minutes * 60

    @property
    def break_duration_seconds(self) -> int:
        return self.break_minutes * 60


@dataclass(frozen=True)
class SettingsStoreSettings:
    """Location of the persisted user settings from `[settings_store]`."""
    path: str = "settings.json"


@dataclass(frozen=True)
class NotificationSettings:
    """Phase-end notification settings from `[notifications]`."""
    enabled: bool = True
    backend: str = NOTIFICATION_BACKEND_DESKTOP
    app_name: str = "ポモドーロタイマー"
    timeout_seconds: int = 10


@dataclass(frozen=True)
class SoundSettings:
    """Alert chime settings from `[sound]`."""
    enabled: bool = True
    output_device: Optional[int] = None
    alert_frequency_hz: float = 880.0
    alert_duration_seconds: float = 0.25
    alert_volume: float = 0.5


@dataclass(frozen=True)
class BGMSettings:
    """Looping background music settings from `[bgm]`."""
    file: str = "bgm.wav"
    volume: float = 0.3


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in UI server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    max_clients: int = 8
    max_command_bytes: int = 4096


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    clock: ClockDefaults
    settings_store: SettingsStoreSettings
    notifications: NotificationSettings
    sound: SoundSettings
    bgm: BGMSettings
    ui_server: UIServerSettings
    source_file: str
