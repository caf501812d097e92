"""Phase, action, and reason constants used by the session clock."""

from __future__ import annotations

DEFAULT_WORK_DURATION_SECONDS = 25 * 60
DEFAULT_BREAK_DURATION_SECONDS = 5 * 60

TICK_INTERVAL_SECONDS = 1.0
AUTO_ADVANCE_DELAY_SECONDS = 1.0

PHASE_IDLE = "idle"
PHASE_WORK = "work"
PHASE_BREAK = "break"

ACTION_START = "start"
ACTION_PAUSE = "pause"
ACTION_RESET = "reset"
ACTION_CONFIGURE = "configure"

ACTION_SYNC = "sync"
ACTION_TICK = "tick"
ACTION_COMPLETED = "completed"

REASON_STARTED = "started"
REASON_RESUMED = "resumed"
REASON_AUTO_ADVANCED = "auto_advanced"
REASON_ALREADY_RUNNING = "already_running"
REASON_PAUSED = "paused"
REASON_NOT_RUNNING = "not_running"
REASON_AUTO_ADVANCE_CANCELLED = "auto_advance_cancelled"
REASON_RESET = "reset"
REASON_CONFIGURED = "configured"

REASON_TICK = "tick"
REASON_COMPLETED = "completed"
REASON_STARTUP = "startup"
