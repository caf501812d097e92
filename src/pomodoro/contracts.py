"""Settings value and collaborator protocols consumed by the session clock."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from .constants import DEFAULT_BREAK_DURATION_SECONDS, DEFAULT_WORK_DURATION_SECONDS


@dataclass(frozen=True)
class ClockSettings:
    """Persisted clock configuration.

    Durations are positive whole seconds. Callers validate them before handing
    settings to the clock; the clock does not re-check.
    """
    work_duration_seconds: int = DEFAULT_WORK_DURATION_SECONDS
    break_duration_seconds: int = DEFAULT_BREAK_DURATION_SECONDS
    auto_advance: bool = False
    sound_enabled: bool = True
    bgm_enabled: bool = False


class SessionEventPublisher(Protocol):
    """Protocol for receiving session events emitted by the clock."""

    def publish(self, event: Any) -> None: ...


class NotificationSink(Protocol):
    """Best-effort user notification channel."""

    def notify(self, title: str, body: str) -> None: ...


class SoundSink(Protocol):
    """Audible and haptic alerts played on phase completion."""

    def play_alert(self) -> None: ...

    def vibrate(self) -> None: ...


class BackgroundMusic(Protocol):
    """Looping background track that follows the running state."""

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...


class SettingsStore(Protocol):
    """Key-value persistence for clock settings."""

    def load(self) -> ClockSettings: ...

    def save(self, settings: ClockSettings) -> None: ...
