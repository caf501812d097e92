"""Japanese status and rejection text builders for clock flows."""

from __future__ import annotations

from pomodoro import SessionSnapshot
from pomodoro.constants import (
    ACTION_PAUSE,
    ACTION_START,
    PHASE_IDLE,
    REASON_ALREADY_RUNNING,
    REASON_NOT_RUNNING,
)
from pomodoro.messages import format_duration, phase_label


def session_status_message(snapshot: SessionSnapshot) -> str:
    """Build status text for the current session snapshot."""
    if snapshot.phase == PHASE_IDLE:
        return f"{phase_label(snapshot.phase)} ({format_duration(snapshot.remaining_seconds)})"
    label = phase_label(snapshot.phase)
    remaining = format_duration(snapshot.remaining_seconds)
    if snapshot.is_running:
        return f"{label} {remaining}"
    if snapshot.auto_advance_pending:
        return f"{label} {remaining} (まもなく開始)"
    return f"{label} {remaining} (一時停止中)"


def rejection_text(action: str, reason: str) -> str:
    """Return text for a clock operation that was not applied."""
    if reason == REASON_ALREADY_RUNNING and action == ACTION_START:
        return "タイマーはすでに動いています。"
    if reason == REASON_NOT_RUNNING and action == ACTION_PAUSE:
        return "タイマーは動いていません。"
    return "この操作は現在の状態では実行できません。"
