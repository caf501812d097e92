"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    NOTIFICATION_BACKEND_DESKTOP,
    NOTIFICATION_BACKEND_LOG,
    AppConfig,
    AppConfigurationError,
    BGMSettings,
    ClockDefaults,
    NotificationSettings,
    SettingsStoreSettings,
    SoundSettings,
    UIServerSettings,
)

_ALLOWED_NOTIFICATION_BACKENDS = {NOTIFICATION_BACKEND_DESKTOP, NOTIFICATION_BACKEND_LOG}


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    return AppConfig(
        clock=_parse_clock_defaults(_section(raw, "clock")),
        settings_store=_parse_settings_store(
            _section(raw, "settings_store"),
            base_dir=base_dir,
        ),
        notifications=_parse_notification_settings(_section(raw, "notifications")),
        sound=_parse_sound_settings(_section(raw, "sound")),
        bgm=_parse_bgm_settings(_section(raw, "bgm"), base_dir=base_dir),
        ui_server=_parse_ui_server_settings(_section(raw, "ui_server")),
        source_file=source_file,
    )


def _parse_clock_defaults(section: Mapping[str, Any]) -> ClockDefaults:
    return ClockDefaults(
        work_minutes=_as_positive_int(
            section.get("work_minutes", 25),
            "clock.work_minutes",
        ),
        break_minutes=_as_positive_int(
            section.get("break_minutes", 5),
            "clock.break_minutes",
        ),
        auto_advance=_as_bool(section.get("auto_advance", False), "clock.auto_advance"),
        sound_enabled=_as_bool(
            section.get("sound_enabled", True),
            "clock.sound_enabled",
        ),
        bgm_enabled=_as_bool(section.get("bgm_enabled", False), "clock.bgm_enabled"),
        autostart=_as_bool(section.get("autostart", False), "clock.autostart"),
    )


def _parse_settings_store(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> SettingsStoreSettings:
    path = _as_str(section.get("path", "settings.json"), "settings_store.path")
    if not path:
        raise AppConfigurationError("settings_store.path is required.")
    return SettingsStoreSettings(path=_resolve_path(base_dir, path))


def _parse_notification_settings(section: Mapping[str, Any]) -> NotificationSettings:
    backend = _as_str(
        section.get("backend", NOTIFICATION_BACKEND_DESKTOP),
        "notifications.backend",
    ).lower()
    if backend not in _ALLOWED_NOTIFICATION_BACKENDS:
        allowed = ", ".join(sorted(_ALLOWED_NOTIFICATION_BACKENDS))
        raise AppConfigurationError(f"notifications.backend must be one of: {allowed}.")
    return NotificationSettings(
        enabled=_as_bool(section.get("enabled", True), "notifications.enabled"),
        backend=backend,
        app_name=(
            _as_str(section.get("app_name", "ポモドーロタイマー"), "notifications.app_name")
            or "ポモドーロタイマー"
        ),
        timeout_seconds=_as_positive_int(
            section.get("timeout_seconds", 10),
            "notifications.timeout_seconds",
        ),
    )


def _parse_sound_settings(section: Mapping[str, Any]) -> SoundSettings:
    return SoundSettings(
        enabled=_as_bool(section.get("enabled", True), "sound.enabled"),
        output_device=(
            _as_int(section.get("output_device"), "sound.output_device")
            if "output_device" in section
            else None
        ),
        alert_frequency_hz=_as_positive_float(
            section.get("alert_frequency_hz", 880.0),
            "sound.alert_frequency_hz",
        ),
        alert_duration_seconds=_as_positive_float(
            section.get("alert_duration_seconds", 0.25),
            "sound.alert_duration_seconds",
        ),
        alert_volume=_as_volume(section.get("alert_volume", 0.5), "sound.alert_volume"),
    )


def _parse_bgm_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> BGMSettings:
    file = _as_str(section.get("file", "bgm.wav"), "bgm.file")
    return BGMSettings(
        file=_resolve_path(base_dir, file),
        volume=_as_volume(section.get("volume", 0.3), "bgm.volume"),
    )


def _parse_ui_server_settings(section: Mapping[str, Any]) -> UIServerSettings:
    return UIServerSettings(
        enabled=_as_bool(section.get("enabled", True), "ui_server.enabled"),
        host=_as_str(section.get("host", "127.0.0.1"), "ui_server.host"),
        port=_as_int(section.get("port", 8765), "ui_server.port"),
        max_clients=_as_positive_int(
            section.get("max_clients", 8),
            "ui_server.max_clients",
        ),
        max_command_bytes=_as_positive_int(
            section.get("max_command_bytes", 4096),
            "ui_server.max_command_bytes",
        ),
    )


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_positive_int(value: Any, field: str) -> int:
    number = _as_int(value, field)
    if number <= 0:
        raise AppConfigurationError(f"{field} must be positive, got: {number}")
    return number


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    raise AppConfigurationError(f"{field} must be a float.")


def _as_positive_float(value: Any, field: str) -> float:
    number = _as_float(value, field)
    if number <= 0:
        raise AppConfigurationError(f"{field} must be positive, got: {number}")
    return number


def _as_volume(value: Any, field: str) -> float:
    volume = _as_float(value, field)
    if not 0.0 <= volume <= 1.0:
        raise AppConfigurationError(f"{field} must be in [0.0, 1.0], got: {volume}")
    return volume


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
