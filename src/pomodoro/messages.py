"""Japanese user-facing copy for phase labels and completion notifications."""

from __future__ import annotations

from .constants import PHASE_BREAK, PHASE_WORK

LABEL_WORK = "作業時間"
LABEL_BREAK = "休憩時間"
LABEL_IDLE = "開始前"

WORK_COMPLETED_TITLE = "作業完了！"
BREAK_COMPLETED_TITLE = "休憩終了！"
BREAK_COMPLETED_BODY = "次の作業セッションを開始しましょう。"


def format_duration(seconds: int) -> str:
    """Format a duration in seconds as `MM:SS`."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


def format_duration_ja(seconds: int) -> str:
    """Spell a duration the way the notification copy reads, e.g. `5分`."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    if minutes and remainder:
        return f"{minutes}分{remainder}秒"
    if minutes:
        return f"{minutes}分"
    return f"{remainder}秒"


def phase_label(phase: str) -> str:
    if phase == PHASE_WORK:
        return LABEL_WORK
    if phase == PHASE_BREAK:
        return LABEL_BREAK
    return LABEL_IDLE


def phase_completed_text(previous_phase: str, break_duration_seconds: int) -> tuple[str, str]:
    """Return the notification `(title, body)` for the phase that just ended."""
    if previous_phase == PHASE_WORK:
        return (
            WORK_COMPLETED_TITLE,
            f"お疲れ様でした。{format_duration_ja(break_duration_seconds)}間休憩しましょう。",
        )
    return BREAK_COMPLETED_TITLE, BREAK_COMPLETED_BODY
