"""JSON-file key-value persistence for clock settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from pomodoro import ClockSettings

KEY_WORK_DURATION = "work_duration"
KEY_BREAK_DURATION = "break_duration"
KEY_AUTO_ADVANCE = "auto_advance"
KEY_SOUND_ENABLED = "sound_enabled"
KEY_BGM_ENABLED = "bgm_enabled"


class SettingsStoreError(Exception):
    """Raised when settings cannot be written."""


class JsonSettingsStore:
    """Stores `ClockSettings` as a flat JSON object.

    Loading never fails: missing or unreadable files and invalid values fall
    back to ``defaults`` field by field.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        defaults: Optional[ClockSettings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._path = Path(path)
        self._defaults = defaults or ClockSettings()
        self._logger = logger or logging.getLogger("settings")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ClockSettings:
        raw = self._read()
        settings = ClockSettings(
            work_duration_seconds=_positive_int(
                raw.get(KEY_WORK_DURATION),
                self._defaults.work_duration_seconds,
            ),
            break_duration_seconds=_positive_int(
                raw.get(KEY_BREAK_DURATION),
                self._defaults.break_duration_seconds,
            ),
            auto_advance=_bool(raw.get(KEY_AUTO_ADVANCE), self._defaults.auto_advance),
            sound_enabled=_bool(raw.get(KEY_SOUND_ENABLED), self._defaults.sound_enabled),
            bgm_enabled=_bool(raw.get(KEY_BGM_ENABLED), self._defaults.bgm_enabled),
        )
        self._logger.debug("Loaded settings from %s: %s", self._path, settings)
        return settings

    def save(self, settings: ClockSettings) -> None:
        payload = {
            KEY_WORK_DURATION: settings.work_duration_seconds,
            KEY_BREAK_DURATION: settings.break_duration_seconds,
            KEY_AUTO_ADVANCE: settings.auto_advance,
            KEY_SOUND_ENABLED: settings.sound_enabled,
            KEY_BGM_ENABLED: settings.bgm_enabled,
        }
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(
                json.dumps(payload, indent=2, sort_keys=True),
                encoding="utf-8",
            )
            temp_path.replace(self._path)
        except OSError as error:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass
            raise SettingsStoreError(
                f"Failed to write settings to {self._path}: {error}"
            ) from error
        self._logger.debug("Saved settings to %s", self._path)

    def _read(self) -> Mapping[str, Any]:
        if not self._path.exists():
            self._logger.info("No saved settings at %s; using defaults", self._path)
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as error:
            self._logger.warning("Ignoring unreadable settings file %s: %s", self._path, error)
            return {}
        if not isinstance(raw, Mapping):
            self._logger.warning("Ignoring settings file %s: root is not an object", self._path)
            return {}
        return raw


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    if value <= 0:
        return default
    return value


def _bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default
