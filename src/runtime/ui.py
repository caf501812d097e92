from __future__ import annotations

from typing import Any, Optional, Protocol

from pomodoro import (
    ClockSettings,
    PhaseCompleted,
    SessionSnapshot,
    SessionStateChanged,
    SessionTick,
    SettingsChanged,
)
from pomodoro.constants import (
    ACTION_COMPLETED,
    ACTION_CONFIGURE,
    ACTION_TICK,
    PHASE_IDLE,
    REASON_COMPLETED,
    REASON_CONFIGURED,
    REASON_TICK,
)
from pomodoro.messages import format_duration, phase_completed_text, phase_label
from contracts.ui_protocol import (
    EVENT_PHASE_COMPLETED,
    EVENT_SESSION,
    EVENT_SETTINGS,
    STATE_IDLE,
    STATE_PAUSED,
    STATE_RUNNING,
)

from .messages import session_status_message


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        ...


class RuntimeUIPublisher:
    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        if self._ui_server:
            self._ui_server.publish_state(state, message=message, **payload)

    def publish_runtime_state(self, snapshot: SessionSnapshot) -> None:
        if snapshot.is_running:
            state = STATE_RUNNING
        elif snapshot.phase == PHASE_IDLE:
            state = STATE_IDLE
        else:
            state = STATE_PAUSED
        self.publish_state(state, message=session_status_message(snapshot))

    def publish_session_update(
        self,
        snapshot: SessionSnapshot,
        *,
        action: str,
        accepted: Optional[bool] = None,
        reason: str = "",
        message: Optional[str] = None,
    ) -> None:
        payload: dict[str, Any] = {
            "action": action,
            "phase": snapshot.phase,
            "label": phase_label(snapshot.phase),
            "remaining_seconds": snapshot.remaining_seconds,
            "display": format_duration(snapshot.remaining_seconds),
            "phase_length_seconds": snapshot.phase_length_seconds,
            "work_duration_seconds": snapshot.work_duration_seconds,
            "break_duration_seconds": snapshot.break_duration_seconds,
            "is_running": snapshot.is_running,
            "completed_count": snapshot.completed_count,
            "auto_advance": snapshot.auto_advance,
            "auto_advance_pending": snapshot.auto_advance_pending,
            "progress": round(snapshot.progress, 4),
        }
        if accepted is not None:
            payload["accepted"] = accepted
        if reason:
            payload["reason"] = reason
        if message:
            payload["message"] = message
        self.publish(EVENT_SESSION, **payload)

    def publish_settings(self, settings: ClockSettings) -> None:
        self.publish(
            EVENT_SETTINGS,
            work_duration_seconds=settings.work_duration_seconds,
            break_duration_seconds=settings.break_duration_seconds,
            auto_advance=settings.auto_advance,
            sound_enabled=settings.sound_enabled,
            bgm_enabled=settings.bgm_enabled,
        )

    def publish_phase_completed(self, event: PhaseCompleted) -> None:
        title, body = phase_completed_text(
            event.previous_phase,
            event.snapshot.break_duration_seconds,
        )
        self.publish(
            EVENT_PHASE_COMPLETED,
            previous_phase=event.previous_phase,
            next_phase=event.next_phase,
            completed_count=event.completed_count,
            title=title,
            body=body,
        )


class UISessionEventPublisher:
    """Session event publisher forwarding clock events to the UI stream."""
    def __init__(self, ui: RuntimeUIPublisher):
        self._ui = ui

    def publish(self, event: Any) -> None:
        if isinstance(event, SessionTick):
            self._ui.publish_session_update(
                event.snapshot,
                action=ACTION_TICK,
                accepted=True,
                reason=REASON_TICK,
            )
            return

        if isinstance(event, PhaseCompleted):
            self._ui.publish_phase_completed(event)
            self._ui.publish_session_update(
                event.snapshot,
                action=ACTION_COMPLETED,
                accepted=True,
                reason=REASON_COMPLETED,
            )
            self._ui.publish_runtime_state(event.snapshot)
            return

        if isinstance(event, SessionStateChanged):
            self._ui.publish_session_update(
                event.snapshot,
                action=event.action,
                accepted=True,
                reason=event.reason,
            )
            self._ui.publish_runtime_state(event.snapshot)
            return

        if isinstance(event, SettingsChanged):
            self._ui.publish_settings(event.settings)
            self._ui.publish_session_update(
                event.snapshot,
                action=ACTION_CONFIGURE,
                accepted=True,
                reason=REASON_CONFIGURED,
            )
