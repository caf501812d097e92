"""Turns session clock events into notification, sound, and music side effects."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pomodoro import (
    ClockSettings,
    PhaseCompleted,
    SessionStateChanged,
    SettingsChanged,
)
from pomodoro.constants import ACTION_PAUSE, ACTION_RESET, ACTION_START
from pomodoro.contracts import BackgroundMusic, NotificationSink, SoundSink
from pomodoro.messages import phase_completed_text


class PhaseAlertDispatcher:
    """Session event publisher owning the sound and BGM flags.

    Every side effect is best effort: failures are logged and never reach the
    clock.
    """

    def __init__(
        self,
        *,
        settings: ClockSettings,
        notifier: Optional[NotificationSink] = None,
        sound: Optional[SoundSink] = None,
        bgm: Optional[BackgroundMusic] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._notifier = notifier
        self._sound = sound
        self._bgm = bgm
        self._sound_enabled = settings.sound_enabled
        self._bgm_enabled = settings.bgm_enabled
        self._logger = logger or logging.getLogger("alerts")

    @property
    def sound_enabled(self) -> bool:
        return self._sound_enabled

    @property
    def bgm_enabled(self) -> bool:
        return self._bgm_enabled

    def publish(self, event: Any) -> None:
        if isinstance(event, PhaseCompleted):
            self._handle_phase_completed(event)
        elif isinstance(event, SessionStateChanged):
            self._handle_state_changed(event)
        elif isinstance(event, SettingsChanged):
            self._handle_settings_changed(event.settings)

    def stop(self) -> None:
        """Silence background music on shutdown."""
        if self._bgm is not None:
            self._attempt("BGM stop", self._bgm.stop)

    def _handle_phase_completed(self, event: PhaseCompleted) -> None:
        title, body = phase_completed_text(
            event.previous_phase,
            event.snapshot.break_duration_seconds,
        )
        if self._notifier is not None:
            self._attempt("Notification", lambda: self._notifier.notify(title, body))
        if self._sound_enabled and self._sound is not None:
            self._attempt("Alert sound", self._sound.play_alert)
            self._attempt("Vibration", self._sound.vibrate)

    def _handle_state_changed(self, event: SessionStateChanged) -> None:
        if self._bgm is None:
            return
        if event.action == ACTION_START and self._bgm_enabled:
            self._attempt("BGM play", self._bgm.play)
        elif event.action == ACTION_PAUSE:
            self._attempt("BGM pause", self._bgm.pause)
        elif event.action == ACTION_RESET:
            self._attempt("BGM stop", self._bgm.stop)

    def _handle_settings_changed(self, settings: ClockSettings) -> None:
        self._sound_enabled = settings.sound_enabled
        self._bgm_enabled = settings.bgm_enabled
        if not self._bgm_enabled and self._bgm is not None:
            self._attempt("BGM stop", self._bgm.stop)

    def _attempt(self, label: str, operation: Callable[[], None]) -> None:
        try:
            operation()
        except Exception as error:
            self._logger.error("%s failed: %s", label, error)
