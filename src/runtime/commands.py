"""Parsing, validation, and dispatch of clock commands received from the UI."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from pomodoro import ClockSettings, SessionActionResult, SessionClock
from pomodoro.constants import ACTION_SYNC
from contracts.ui_protocol import (
    COMMAND_NAMES,
    COMMAND_PAUSE,
    COMMAND_RESET,
    COMMAND_START,
    COMMAND_SYNC,
    COMMAND_TOGGLE,
    COMMAND_UPDATE_SETTINGS,
    EVENT_COMMAND_RESULT,
    EVENT_ERROR,
    STATE_ERROR,
)

from .messages import rejection_text
from .ui import RuntimeUIPublisher

WORK_MINUTES_RANGE = (1, 60)
BREAK_MINUTES_RANGE = (1, 30)


class CommandError(Exception):
    """Raised when a UI command is malformed or carries invalid values."""


@dataclass(frozen=True)
class ClockCommand:
    """Normalized UI command with its raw arguments."""
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SettingsUpdate:
    """Validated arguments for `SessionClock.update_configuration`."""
    work_seconds: int
    break_seconds: int
    auto_advance: bool
    sound_enabled: bool
    bgm_enabled: bool


def parse_command(raw: str) -> ClockCommand:
    """Parse a websocket message of the form `{"command": "...", ...}`."""
    try:
        payload = json.loads(raw)
    except ValueError as error:
        raise CommandError(f"Command is not valid JSON: {error}") from error

    if not isinstance(payload, dict):
        raise CommandError("Command must be a JSON object.")

    name = payload.get("command")
    if not isinstance(name, str):
        raise CommandError("Command name must be a string.")
    normalized = name.strip().lower()
    if normalized not in COMMAND_NAMES:
        raise CommandError(f"Unsupported command: {name}")

    arguments = {key: value for key, value in payload.items() if key != "command"}
    return ClockCommand(name=normalized, arguments=arguments)


def parse_settings_update(
    arguments: Mapping[str, Any],
    current: ClockSettings,
) -> SettingsUpdate:
    """Validate settings arguments; missing fields keep their current value."""
    work_seconds = current.work_duration_seconds
    if "work_minutes" in arguments:
        work_seconds = 60 * _as_minutes(
            arguments["work_minutes"],
            "work_minutes",
            WORK_MINUTES_RANGE,
        )

    break_seconds = current.break_duration_seconds
    if "break_minutes" in arguments:
        break_seconds = 60 * _as_minutes(
            arguments["break_minutes"],
            "break_minutes",
            BREAK_MINUTES_RANGE,
        )

    return SettingsUpdate(
        work_seconds=work_seconds,
        break_seconds=break_seconds,
        auto_advance=_as_bool(arguments, "auto_advance", current.auto_advance),
        sound_enabled=_as_bool(arguments, "sound_enabled", current.sound_enabled),
        bgm_enabled=_as_bool(arguments, "bgm_enabled", current.bgm_enabled),
    )


class RuntimeCommandDispatcher:
    """Routes UI commands to the session clock and reports the outcome."""
    def __init__(
        self,
        *,
        clock: SessionClock,
        ui: RuntimeUIPublisher,
        logger: Optional[logging.Logger] = None,
    ):
        self._clock = clock
        self._ui = ui
        self._logger = logger or logging.getLogger("runtime")

    def handle_raw(self, raw: str) -> Optional[SessionActionResult]:
        try:
            command = parse_command(raw)
        except CommandError as error:
            self._reject(None, error)
            return None
        return self.handle(command)

    def handle(self, command: ClockCommand) -> Optional[SessionActionResult]:
        self._logger.debug("Handling UI command: %s", command.name)
        try:
            result = self._apply(command)
        except CommandError as error:
            self._reject(command.name, error)
            return None

        if result is None:
            return None

        payload: dict[str, Any] = {
            "command": command.name,
            "action": result.action,
            "accepted": result.accepted,
            "reason": result.reason,
        }
        if not result.accepted:
            payload["message"] = rejection_text(result.action, result.reason)
        self._ui.publish(EVENT_COMMAND_RESULT, **payload)
        return result

    def publish_sync(self, reason: str = "") -> None:
        snapshot = self._clock.snapshot()
        self._ui.publish_settings(self._clock.settings)
        self._ui.publish_session_update(
            snapshot,
            action=ACTION_SYNC,
            accepted=True,
            reason=reason,
        )
        self._ui.publish_runtime_state(snapshot)

    def _apply(self, command: ClockCommand) -> Optional[SessionActionResult]:
        if command.name == COMMAND_START:
            return self._clock.start()
        if command.name == COMMAND_PAUSE:
            return self._clock.pause()
        if command.name == COMMAND_RESET:
            return self._clock.reset()
        if command.name == COMMAND_TOGGLE:
            if self._clock.snapshot().is_running:
                return self._clock.pause()
            return self._clock.start()
        if command.name == COMMAND_UPDATE_SETTINGS:
            update = parse_settings_update(command.arguments, self._clock.settings)
            return self._clock.update_configuration(
                work_seconds=update.work_seconds,
                break_seconds=update.break_seconds,
                auto_advance=update.auto_advance,
                sound_enabled=update.sound_enabled,
                bgm_enabled=update.bgm_enabled,
            )
        if command.name == COMMAND_SYNC:
            self.publish_sync()
            return None
        raise CommandError(f"Unsupported command: {command.name}")

    def _reject(self, command_name: Optional[str], error: CommandError) -> None:
        self._logger.warning("Rejected UI command %s: %s", command_name or "<invalid>", error)
        payload: dict[str, Any] = {"state": STATE_ERROR, "message": str(error)}
        if command_name:
            payload["command"] = command_name
        self._ui.publish(EVENT_ERROR, **payload)


def _as_minutes(value: Any, field_name: str, bounds: tuple[int, int]) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CommandError(f"{field_name} must be an integer.")
    low, high = bounds
    if not low <= value <= high:
        raise CommandError(f"{field_name} must be in [{low}, {high}], got: {value}")
    return value


def _as_bool(arguments: Mapping[str, Any], field_name: str, default: bool) -> bool:
    if field_name not in arguments:
        return default
    value = arguments[field_name]
    if not isinstance(value, bool):
        raise CommandError(f"{field_name} must be a boolean.")
    return value
